"""Tests for settings and logging setup."""

import json
import logging

from nivasa.config import Settings
from nivasa.logging import JsonFormatter, get_logger, setup_logging


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    s = Settings()
    assert s.JWT_ALG == "HS256"
    assert s.APARTMENT_CODE_LENGTH == 4
    assert s.cors_origins == ["*"]


def test_cors_origins_split():
    s = Settings(CORS_ORIGINS="http://localhost:5173, http://127.0.0.1:5173,")
    assert s.cors_origins == ["http://localhost:5173", "http://127.0.0.1:5173"]


def test_setup_logging_sets_level_and_single_handler():
    setup_logging("DEBUG")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    setup_logging("INFO")
    assert logging.getLogger("nivasa").level == logging.INFO


def test_setup_logging_json_formatter():
    setup_logging("INFO", format_type="json")
    assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)
    setup_logging("INFO")


def test_json_formatter_output():
    record = logging.LogRecord("nivasa.test", logging.WARNING, __file__, 1, "flat %s taken", ("101",), None)
    data = json.loads(JsonFormatter().format(record))
    assert data["level"] == "WARNING"
    assert data["logger"] == "nivasa.test"
    assert data["message"] == "flat 101 taken"
    assert "timestamp" in data


def test_get_logger_name():
    assert get_logger("nivasa.services").name == "nivasa.services"


def test_json_formatter_merges_request_fields():
    record = logging.LogRecord("nivasa.app", logging.INFO, __file__, 1, "GET /api/health -> 200", (), None)
    record.fields = {"method": "GET", "path": "/api/health", "status": 200, "durationMs": 1.5}
    data = json.loads(JsonFormatter().format(record))
    assert data["message"] == "GET /api/health -> 200"
    assert data["path"] == "/api/health"
    assert data["status"] == 200
    assert data["durationMs"] == 1.5


def test_request_log_carries_fields(client, caplog):
    caplog.set_level(logging.INFO, logger="nivasa")
    client.get("/api/health")
    [record] = [r for r in caplog.records if r.name == "nivasa.app" and hasattr(r, "fields")]
    assert record.fields["method"] == "GET"
    assert record.fields["path"] == "/api/health"
    assert record.fields["status"] == 200
    assert record.fields["durationMs"] >= 0
