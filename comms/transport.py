"""
HTTP transport capability used by request().

Wraps an httpx.AsyncClient so that every network step can be raced
against a cancellation signal, and translates httpx failures into
TransportError. Keeps network code separate from the JSON handling.
"""
import asyncio
from typing import Any, Awaitable, Dict, Optional

import httpx

from .config import TransportConfig, default_config
from .errors import AbortError, TransportError
from .log import get_logger

logger = get_logger(__name__)


class AbortSignal:
    """Observable side of a CancelToken."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()

    def _trigger(self):
        self._event.set()


class CancelToken:
    """Caller owned cancellation handle, can be triggered once."""

    def __init__(self):
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    @property
    def cancelled(self) -> bool:
        return self._signal.aborted

    def cancel(self):
        """Trigger cancellation. Calling it again has no effect."""
        self._signal._trigger()


class HTTPTransport:
    def __init__(self, client: httpx.AsyncClient = None, config: TransportConfig = None):
        """Initialize the transport around an existing client or build one from config."""
        self._owns_client = client is None
        if client is None:
            config = config or TransportConfig.from_config(default_config())
            client = httpx.AsyncClient(
                follow_redirects=config.follow_redirects,
                max_redirects=config.max_redirects,
                headers={'User-Agent': config.user_agent},
                verify=config.verify_ssl,
                limits=httpx.Limits(
                    max_connections=config.max_connections,
                    max_keepalive_connections=config.max_keepalive_connections,
                ),
                timeout=None,
            )
        self._client = client

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str, options: Dict[str, Any]) -> httpx.Response:
        """Send a request and return the response with its body still unread."""
        options = dict(options)
        signal = options.pop('signal', None)
        method = options.pop('method', None) or 'GET'
        headers = options.pop('headers', None)
        body = options.pop('body', None)

        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise TransportError(f"Failed to parse URL from {url}: {e}", url) from e

        if parsed.userinfo:
            raise TransportError(
                f"Request cannot be constructed from a URL that includes credentials: {url}", url
            )

        try:
            http_request = self._client.build_request(
                method.upper(), parsed, headers=headers, content=body, **options
            )
            return await self._until_aborted(
                self._client.send(http_request, stream=True), signal
            )
        except (httpx.InvalidURL, httpx.RequestError) as e:
            logger.debug("transport_error", url=url, error=str(e))
            raise TransportError(f"Failed to fetch {url}: {e}", url) from e

    async def read_text(self, response: httpx.Response, signal: AbortSignal = None) -> str:
        """Read the whole body and decode it as text."""
        try:
            await self._until_aborted(response.aread(), signal)
        except httpx.RequestError as e:
            url = str(response.request.url)
            raise TransportError(f"Failed to read body of {url}: {e}", url) from e

        try:
            return response.content.decode(response.charset_encoding or 'utf-8', errors='replace')
        except LookupError:
            return response.content.decode('utf-8', errors='replace')

    async def discard(self, response: httpx.Response):
        """Release the response without reading its body."""
        await response.aclose()

    async def _until_aborted(self, awaitable: Awaitable, signal: Optional[AbortSignal]):
        if signal is None:
            return await awaitable

        task = asyncio.ensure_future(awaitable)
        if signal.aborted:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise AbortError("The operation was aborted.")

        waiter = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if task.done() and not task.cancelled():
            return task.result()
        raise AbortError("The operation was aborted.")
