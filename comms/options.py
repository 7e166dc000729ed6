"""
Builds the per-call transport options from caller supplied request options.
Never mutates or aliases the caller's mapping.
"""
import json
import math
from numbers import Real
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlencode

import httpx

DEFAULT_TIMEOUT = 30 * 1000

# Handled by request() itself, never forwarded to the transport
REQUEST_ONLY_KEYS = ('cancel_token', 'json_body', 'search_params', 'timeout')


def build_fetch_options(options: Mapping[str, Any], signal) -> Dict[str, Any]:
    fetch_options = {
        key: value for key, value in options.items() if key not in REQUEST_ONLY_KEYS
    }
    fetch_options['signal'] = signal

    headers = httpx.Headers(fetch_options.get('headers'))
    if 'accept' not in headers:
        headers['accept'] = 'application/json'

    json_body = options.get('json_body')
    if json_body is not None:
        fetch_options['body'] = json.dumps(json_body, separators=(',', ':'))

        if 'content-type' not in headers:
            headers['content-type'] = 'application/json'

    fetch_options['headers'] = headers
    return fetch_options


def _stringify(value) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    return str(value)


def encode_search_params(params) -> str:
    """Encode a mapping or a sequence of pairs as a query string.

    List and tuple values repeat their key. Spaces become %20.
    """
    pairs = params.items() if isinstance(params, Mapping) else params
    flat = []
    for key, value in pairs:
        if isinstance(value, (list, tuple)):
            flat.extend((str(key), _stringify(item)) for item in value)
        else:
            flat.append((str(key), _stringify(value)))
    return urlencode(flat, quote_via=quote, safe='')


def append_search_params(url: str, params) -> str:
    if not params:
        return url
    return url + ('&' if '?' in url else '?') + encode_search_params(params)


def resolve_timeout(options: Mapping[str, Any]) -> Optional[float]:
    """Return the timeout in milliseconds, or None when the request never times out."""
    timeout = options.get('timeout')
    if timeout is None:
        return DEFAULT_TIMEOUT

    if isinstance(timeout, bool) or not isinstance(timeout, Real) or math.isnan(timeout):
        raise ValueError(f"timeout must be a number of milliseconds, got {timeout!r}")
    if timeout < 0:
        raise ValueError(f"timeout must not be negative, got {timeout!r}")

    if timeout == 0 or math.isinf(timeout):
        return None
    return timeout
