import json
import logging

import httpx
import pytest
import structlog

from comms import Config, HTTPTransport, configure_logging, request
from comms.log import configure_from, get_logger


class TestLogging:

    def test_json_lines(self, caplog, reset_structlog):
        configure_logging("DEBUG", "json")
        caplog.set_level(logging.DEBUG)

        structlog.get_logger("comms.tests").info("widget_built", size=3)

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "widget_built"
        assert payload["size"] == 3
        assert payload["level"] == "info"
        assert payload["logger"] == "comms.tests"

    def test_library_logger_respects_stdlib_level(self, caplog, reset_structlog):
        configure_logging("INFO", "json")
        caplog.set_level(logging.INFO, logger="comms.quiet")

        get_logger("comms.quiet").debug("hidden")

        assert [r for r in caplog.records if r.name == "comms.quiet"] == []

    def test_configure_from_config(self, clean_env, monkeypatch, caplog, reset_structlog):
        monkeypatch.setenv("COMMS_LOG_FORMAT", "console")
        configure_from(Config())
        caplog.set_level(logging.INFO)

        structlog.get_logger("comms.tests").info("console_line")

        assert "console_line" in caplog.records[-1].getMessage()

    @pytest.mark.asyncio
    async def test_request_events(self, caplog, reset_structlog):
        configure_logging("DEBUG", "json")
        caplog.set_level(logging.DEBUG, logger="comms.client")
        client = httpx.AsyncClient(transport=httpx.MockTransport(
            lambda req: httpx.Response(200, json={"ok": True})
        ))

        await request("http://x/y", transport=HTTPTransport(client=client))

        events = [json.loads(r.getMessage())["event"] for r in caplog.records if r.name == "comms.client"]
        assert events == ["request_started", "request_completed"]
