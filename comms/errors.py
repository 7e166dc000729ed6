"""
Classified failures raised by request().

Every failure carries a kind so callers can branch on it
without comparing class names or messages.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    CONTENT_TYPE = "content_type"
    TRANSPORT = "transport"


def _format_ms(value) -> str:
    # integral floats render without the decimal, 20.0 -> 20
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class RequestError(Exception):
    """Base class for every failure surfaced by request()."""

    kind: ErrorKind = None

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.message = message
        self.url = url


class NetworkError(RequestError):
    kind = ErrorKind.NETWORK

    def __init__(self, url: str, status_code: int):
        super().__init__(f"{url} responded with {status_code}.", url)
        self.status_code = status_code


class RequestTimeoutError(RequestError, TimeoutError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, url: str, timeout):
        super().__init__(f"{url} timed out after {_format_ms(timeout)}ms.", url)
        self.timeout = timeout


class ContentTypeError(RequestError, TypeError):
    kind = ErrorKind.CONTENT_TYPE

    def __init__(self, url: str, content_type: Optional[str]):
        super().__init__(f"{url} responded with Content-Type {content_type}.", url)
        self.content_type = content_type


class TransportError(RequestError, TypeError):
    """Malformed URL, embedded credentials or a connection level failure."""

    kind = ErrorKind.TRANSPORT


class AbortError(Exception):
    """Raised by the transport when the cancellation signal fires.

    request() always converts it, it never reaches the caller.
    """
