"""
Logging for the effort monitor.

Every record carries the request id of the HTTP request (or "-" inside an
RQ job). Effort writes attach user_id / state_module / effort / status through
``extra=``; the JSON formatter promotes those to top-level fields so a
student's score history can be filtered out of the log stream.
"""

from __future__ import annotations

import json
import logging
import time
import uuid

from flask import Flask, g, has_request_context, request

CONTEXT_FIELDS = ("request_id", "user_id", "state_module", "course_id", "effort", "status")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp records with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = g.get("request_id", "-") if has_request_context() else "-"
        return True


class JSONFormatter(logging.Formatter):
    """Single-line JSON with the effort context fields lifted out of ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def init_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if app.config.get("LOG_FORMAT", "text") == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    @app.before_request
    def _start_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def _finish_request(response):
        duration_ms = (time.time() - g.get("request_start", time.time())) * 1000
        # /healthz is polled by the load balancer
        if request.path != "/healthz":
            app.logger.info("%s %s %s %.0fms", request.method, request.path,
                            response.status_code, duration_ms)
        response.headers["X-Request-ID"] = g.get("request_id", "-")
        return response
