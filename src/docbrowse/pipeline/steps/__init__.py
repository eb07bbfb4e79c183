"""Pipeline steps for loading documents."""

from .classify import ClassifyStep
from .convert import ConvertStep
from .fetch import ACCEPT_HTML, ACCEPT_MARKDOWN, FetchStep, accept_header
from .reduce import ReduceStep

__all__ = [
    "ACCEPT_HTML",
    "ACCEPT_MARKDOWN",
    "ClassifyStep",
    "ConvertStep",
    "FetchStep",
    "ReduceStep",
    "accept_header",
]
