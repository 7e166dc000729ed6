"""
Shared fixtures for the comms test suite.

Requests never leave the process: every transport is backed by
httpx.MockTransport, and timers can be recorded through a scheduler
that wraps the running event loop.
"""

import os

import httpx
import pytest
import structlog

from comms import HTTPTransport
from comms.config import default_config

from tests.helpers import RecordingScheduler


@pytest.fixture
def make_transport():
    """Build an HTTPTransport whose requests are answered by handler."""
    def factory(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HTTPTransport(client=client)
    return factory


@pytest.fixture
def json_handler():
    """Handler answering every request with a JSON body, keeping what it saw."""
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    handler.seen = seen
    return handler


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def clean_env():
    """Temporarily clear COMMS_* env vars and the cached process config."""
    saved = {key: os.environ.pop(key) for key in list(os.environ) if key.startswith("COMMS_")}
    default_config.cache_clear()
    yield
    for key in [k for k in os.environ if k.startswith("COMMS_")]:
        del os.environ[key]
    os.environ.update(saved)
    default_config.cache_clear()


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def default_client(monkeypatch):
    """Answer requests made through the transport request() builds itself.

    Returns an installer taking a handler; every client created afterwards
    is recorded in the returned list.
    """
    real_client = httpx.AsyncClient
    created = []

    def install(handler):
        def factory(**kwargs):
            client = real_client(transport=httpx.MockTransport(handler), **kwargs)
            created.append(client)
            return client

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        return created

    return install
