"""Pipeline architecture for document loading."""

from .base import DocumentPipeline, PageContext, PipelineStep

__all__ = ["DocumentPipeline", "PageContext", "PipelineStep"]
