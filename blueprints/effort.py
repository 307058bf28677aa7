"""Study-bot effort score and tutor at-risk roster routes."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from effort_service import get_effort_service
from extensions import limiter
from roster import roster_summary
from tasks import enqueue, recompute_course_effort

bp = Blueprint("effort", __name__)


def _roster_limit() -> str:
    return current_app.config.get("ROSTER_RATE_LIMIT", "60 per minute")


# ── Student effort ─────────────────────────────────────────

@bp.route("/api/bot/effort-score", methods=["GET"])
def api_get_effort_score():
    module = request.args.get("module")
    user_id = request.args.get("userId")
    if not module or not user_id:
        return jsonify({"error": "Module and userId are required"}), 400

    return jsonify(get_effort_service().get_effort(user_id, module))


@bp.route("/api/bot/effort-score", methods=["POST"])
def api_recompute_effort_score():
    data = request.get_json(silent=True) or {}
    module = data.get("module")
    user_id = data.get("userId")
    if not module or not user_id:
        return jsonify({"error": "Module and userId are required"}), 400

    return jsonify(get_effort_service().recompute_module(user_id, module))


# ── Tutor roster ───────────────────────────────────────────

@bp.route("/api/tutor/students-at-risk")
@limiter.limit(_roster_limit)
def api_students_at_risk():
    tutor_id = request.args.get("tutorId") or None
    entries = get_effort_service().students_at_risk(tutor_id)
    return jsonify([e.to_dict() for e in entries])


@bp.route("/api/tutor/students-at-risk/summary")
@limiter.limit(_roster_limit)
def api_students_at_risk_summary():
    tutor_id = request.args.get("tutorId") or None
    entries = get_effort_service().students_at_risk(tutor_id)
    return jsonify(roster_summary(entries))


@bp.route("/api/tutor/courses/<course_id>/effort/recompute", methods=["POST"])
def api_recompute_course(course_id):
    result = enqueue(recompute_course_effort, course_id)
    # enqueue runs the job inline when no worker accepts it
    if isinstance(result, list):
        return jsonify({"queued": False, "results": result})
    return jsonify({"queued": True, "job_id": result.id}), 202


@bp.route("/api/bot/effort-reminders")
def api_effort_reminders():
    user_id = request.args.get("userId") or None
    return jsonify(get_effort_service().pending_reminders(user_id))
