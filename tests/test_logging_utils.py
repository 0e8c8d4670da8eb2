"""Tests for logging helpers."""

import json
import logging

from common.logging_utils import (
    ContextFormatter,
    JsonFormatter,
    Timer,
    configure_logging,
    extra_context,
    safe_url,
)


def make_record(message="hello", **context):
    record = logging.LogRecord("feedfetch.test", logging.INFO, __file__, 1, message, None, None)
    if context:
        record.ff_context = context
    return record


class TestHelpers:
    def test_safe_url_strips_credentials_and_query(self):
        assert safe_url("https://u:p@feed.example:8443/v3/index.json?key=1#x") == (
            "https://feed.example:8443/v3/index.json"
        )

    def test_safe_url_empty(self):
        assert safe_url(None) == ""

    def test_extra_context_drops_none(self):
        assert extra_context(event="fetch", target=None) == {"ff_context": {"event": "fetch"}}

    def test_timer_measures_non_negative_duration(self):
        with Timer() as t:
            pass
        assert t.duration_ms() >= 0


class TestFormatters:
    def test_context_formatter_appends_fields(self):
        line = ContextFormatter("%(message)s").format(make_record(event="install", outcome="success"))
        assert line == "hello [event=install outcome=success]"

    def test_context_formatter_plain_record(self):
        assert ContextFormatter("%(message)s").format(make_record()) == "hello"

    def test_json_formatter(self):
        payload = json.loads(JsonFormatter().format(make_record(target="pkg.1.0.0")))
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["target"] == "pkg.1.0.0"


class TestConfigureLogging:
    def _handlers(self):
        return [h for h in logging.getLogger().handlers if h.get_name() == "feedfetch-console"]

    def test_repeated_calls_keep_one_handler(self, monkeypatch):
        monkeypatch.setenv("FEEDFETCH_LOG_LEVEL", "debug")
        configure_logging()
        configure_logging()
        assert len(self._handlers()) == 1
        assert logging.getLogger().level == logging.DEBUG

    def test_json_format(self, monkeypatch):
        monkeypatch.setenv("FEEDFETCH_LOG_FORMAT", "json")
        configure_logging()
        assert isinstance(self._handlers()[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("FEEDFETCH_LOG_LEVEL", "chatty")
        configure_logging()
        assert logging.getLogger().level == logging.INFO
