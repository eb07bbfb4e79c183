"""HTTP transport and response decoding for docbrowse."""

from .client import DEFAULT_USER_AGENT, AsyncHttpClient
from .decoding import decode_body, get_charset
from .protocols import HttpClient, HttpResponse

__all__ = [
    "AsyncHttpClient",
    "DEFAULT_USER_AGENT",
    "HttpClient",
    "HttpResponse",
    "decode_body",
    "get_charset",
]
