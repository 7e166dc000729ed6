"""
Simple httpx wrapper for JSON based requests.
"""
__version__ = "1.0.0"

from .client import ResponseWrapper, request
from .config import Config, TransportConfig
from .errors import (
    ContentTypeError,
    ErrorKind,
    NetworkError,
    RequestError,
    RequestTimeoutError,
    TransportError,
)
from .log import configure_logging
from .options import DEFAULT_TIMEOUT
from .transport import CancelToken, HTTPTransport

__all__ = [
    "request",
    "ResponseWrapper",
    "DEFAULT_TIMEOUT",
    "CancelToken",
    "HTTPTransport",
    "Config",
    "TransportConfig",
    "ErrorKind",
    "RequestError",
    "NetworkError",
    "RequestTimeoutError",
    "ContentTypeError",
    "TransportError",
    "configure_logging",
]
