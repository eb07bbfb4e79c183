"""Navigation target validation for docbrowse."""

from .url_validator import UrlValidationResult, UrlValidator

__all__ = ["UrlValidationResult", "UrlValidator"]
