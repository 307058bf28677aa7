"""
Student Effort Monitor: Flask Web Application

Scores student effort per course from homework data, keeps the result in the
shared study-bot state, and serves the at-risk roster to tutors.
"""

from __future__ import annotations

import os
from typing import Any

from flask import Flask, Response

import database
from blueprints import register_blueprints, register_error_handlers
from extensions import limiter


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    app.secret_key = app.config.get("SECRET_KEY")

    # Background task processing (RQ or synchronous fallback)
    from tasks import init_tasks
    init_tasks(app)

    # Structured logging
    from logging_config import init_logging
    init_logging(app)

    # Register database teardown
    database.init_app(app)

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    register_blueprints(app)
    register_error_handlers(app)

    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    @app.route("/healthz")
    def healthz():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
