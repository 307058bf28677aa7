"""
Blueprint registration for the effort monitor.

All blueprints are registered without URL prefixes; routes carry their full /api paths.
"""

from __future__ import annotations

import logging

from flask import jsonify

from errors import EffortError, PersistenceError

logger = logging.getLogger(__name__)


def register_blueprints(app):
    from blueprints.effort import bp as effort_bp
    from blueprints.homework import bp as homework_bp

    app.register_blueprint(effort_bp)
    app.register_blueprint(homework_bp)


def register_error_handlers(app):
    """Translate domain errors into JSON responses."""

    @app.errorhandler(PersistenceError)
    def _persistence_error(e: PersistenceError):
        logger.exception("Persistence failure: %s", e.message)
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(EffortError)
    def _effort_error(e: EffortError):
        return jsonify({"error": e.message}), e.status_code
