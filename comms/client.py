"""
Simple httpx wrapper for JSON based requests.

- Provides timeout functionality
- Errors on a response status >= 500
- Does not error when the caller cancels the request, it resolves with
  an empty ResponseWrapper instead
"""
import asyncio
import json
import re
from typing import Any, Dict, Optional

import httpx

from .errors import AbortError, ContentTypeError, NetworkError, RequestTimeoutError
from .log import get_logger
from .options import append_search_params, build_fetch_options, resolve_timeout
from .transport import CancelToken, HTTPTransport

logger = get_logger(__name__)

JSON_CONTENT_TYPE = re.compile(r'application/[+\w.]*json')


class ResponseWrapper:
    def __init__(self, body: Any = None, response: httpx.Response = None, aborted: bool = False):
        """Result of request(): the parsed body and the raw response."""
        self.body = body
        self.response = response
        self.aborted = aborted

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None

    def __repr__(self):
        return f"ResponseWrapper(status_code={self.status_code}, aborted={self.aborted})"


async def request(
    url: str,
    options: Optional[Dict[str, Any]] = None,
    *,
    transport: HTTPTransport = None,
    scheduler=None,
) -> ResponseWrapper:
    """Request a JSON resource.

    Args:
        url: URL of the resource, may already carry a query string.
        options: Any transport setting (method, headers, body, ...) plus:
            cancel_token: CancelToken to abort the request with. Any
                'signal' in options is replaced by this token's signal.
            json_body: Value serialized with json.dumps, replaces 'body'.
            search_params: Mapping or pairs appended to the URL query.
            timeout: Milliseconds, defaults to DEFAULT_TIMEOUT. 0 or
                math.inf disable the timeout.
        transport: HTTP transport to send with. A short lived HTTPTransport
            is created and closed when omitted.
        scheduler: Object with call_later(seconds, callback), defaults to
            the running event loop.

    Raises:
        NetworkError: The response status is 500 or above.
        RequestTimeoutError: The timeout elapsed first.
        ContentTypeError: The response Content-Type is not JSON.
        TransportError: The URL is malformed, includes credentials or the
            connection failed.
    """
    options = options or {}
    cancel_token = options.get('cancel_token') or CancelToken()
    fetch_options = build_fetch_options(options, cancel_token.signal)
    timeout = resolve_timeout(options)

    if options.get('search_params'):
        url = append_search_params(url, options['search_params'])

    timed_out = False
    timer = None

    def on_timeout():
        nonlocal timed_out
        timed_out = True
        cancel_token.cancel()

    owns_transport = transport is None
    transport = transport or HTTPTransport()
    response = None
    body = None

    try:
        # Armed inside the try, the finally below always cancels it
        if timeout is not None:
            scheduler = scheduler or asyncio.get_running_loop()
            timer = scheduler.call_later(timeout / 1000, on_timeout)

        logger.debug("request_started", url=url, method=fetch_options.get('method', 'GET'), timeout=timeout)
        response = await transport.fetch(url, fetch_options)

        if response.status_code >= 500:
            raise NetworkError(url, response.status_code)

        content_type = response.headers.get('content-type')
        if not content_type or not JSON_CONTENT_TYPE.search(content_type):
            raise ContentTypeError(url, content_type)

        # Some endpoints send a JSON Content-Type with no content
        text = await transport.read_text(response, cancel_token.signal)
        body = json.loads(text) if text else None

    except AbortError:
        if timed_out:
            logger.debug("request_timed_out", url=url, timeout=timeout)
            raise RequestTimeoutError(url, timeout) from None

        logger.debug("request_aborted", url=url)
        return ResponseWrapper(response=response, aborted=True)

    except Exception as e:
        logger.debug("request_failed", url=url, error=str(e), error_type=type(e).__name__)
        raise

    finally:
        if timer is not None:
            timer.cancel()
        if response is not None:
            await transport.discard(response)
        if owns_transport:
            await transport.aclose()

    logger.debug("request_completed", url=url, status_code=response.status_code)
    return ResponseWrapper(body=body, response=response)
