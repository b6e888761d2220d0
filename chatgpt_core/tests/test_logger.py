import json
import logging

from chatgpt_core.infrastructure.logging.logger import JsonFormatter, logger, settings, setup_logger


def test_json_formatter_merges_extra():
    record = logging.LogRecord("chatgpt_core", logging.DEBUG, __file__, 1, "session.response", None, None)
    record.extra = {"status_code": 200, "body": "{}"}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "session.response"
    assert payload["level"] == "DEBUG"
    assert payload["status_code"] == 200
    assert payload["ts"].endswith("Z")


def test_setup_logger_is_idempotent():
    before = len(logger.handlers)
    assert setup_logger() is logger
    assert len(logger.handlers) == before


def test_json_formatter_redacts_content(monkeypatch):
    monkeypatch.setattr(settings, "log_redact_content", True)
    token = "secret-access-token-" + "x" * 100
    record = logging.LogRecord("chatgpt_core", logging.DEBUG, __file__, 1, "m" * 100, None, None)
    record.extra = {"status_code": 200, "body": '{"accessToken": "%s"}' % token}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "m" * 64
    assert len(payload["body"]) == 64
    assert token not in payload["body"]
    assert payload["status_code"] == 200
