"""Tests for app factory, config selection and logging setup."""

import json
import logging

import pytest

from config import ProductionConfig, config_by_name
from logging_config import JSONFormatter, RequestIdFilter


class TestAppFactory:
    def test_healthz(self, client):
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok"}

    def test_security_headers(self, client):
        resp = client.get("/healthz")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Request-ID"]

    def test_request_id_echoed(self, client):
        resp = client.get("/healthz", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"

    def test_testing_defaults(self, app):
        assert app.config["TESTING"] is True
        assert app.config["EFFORT_STREAK_WINDOW_DAYS"] == 7


class TestConfig:
    def test_config_names(self):
        assert set(config_by_name) == {"development", "production", "testing"}

    def test_production_rejects_dev_secret(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "dev-key-change-in-production")
        with pytest.raises(RuntimeError, match="SECRET_KEY"):
            ProductionConfig.validate()

    def test_production_rejects_bad_streak_window(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "s3cure")
        monkeypatch.setattr(ProductionConfig, "EFFORT_STREAK_WINDOW_DAYS", 0)
        with pytest.raises(RuntimeError, match="EFFORT_STREAK_WINDOW_DAYS"):
            ProductionConfig.validate()


class TestJSONFormatter:
    def test_single_line_json(self):
        record = logging.LogRecord("effort", logging.INFO, __file__, 1,
                                   "Effort updated user=%s", ("stu-1",), None)
        record.request_id = "req-1"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "Effort updated user=stu-1"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"

    def test_effort_context_lifted_to_fields(self):
        record = logging.LogRecord("effort_state", logging.INFO, __file__, 1,
                                   "Effort updated", (), None)
        record.user_id = "stu-1"
        record.state_module = "course:alg"
        record.effort = 52
        record.status = "neutral"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["user_id"] == "stu-1"
        assert entry["state_module"] == "course:alg"
        assert entry["effort"] == 52
        assert entry["status"] == "neutral"
        assert "course_id" not in entry


class TestRequestIdFilter:
    def test_outside_request_uses_dash(self):
        record = logging.LogRecord("tasks", logging.INFO, __file__, 1, "job", (), None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "-"

    def test_inside_request_uses_header(self, app):
        record = logging.LogRecord("effort", logging.INFO, __file__, 1, "x", (), None)
        with app.test_request_context("/healthz", headers={"X-Request-ID": "req-9"}):
            app.preprocess_request()
            RequestIdFilter().filter(record)
        assert record.request_id == "req-9"


class TestEffortWriteLogging:
    def test_upsert_logs_effort_context(self, fake_states, caplog):
        from effort_calculator import StudentHomeworkData, compute_effort_score
        from effort_state import EffortStateStore

        score = compute_effort_score(StudentHomeworkData(4, 2, 70.0, 2))
        with caplog.at_level(logging.INFO, logger="effort_state"):
            EffortStateStore(fake_states).upsert("stu-1", "alg", score)

        record = next(r for r in caplog.records if r.name == "effort_state")
        assert record.user_id == "stu-1"
        assert record.state_module == "course:alg"
        assert record.effort == 52
        assert record.status == "neutral"
