"""Homework submission and grading routes; every write refreshes the effort score."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from homework_service import get_homework_service

bp = Blueprint("homework", __name__)


@bp.route("/api/homework", methods=["GET"])
def api_list_homework():
    user_id = request.args.get("userId")
    if not user_id:
        return jsonify({"error": "userId is required"}), 400

    records = get_homework_service().list_homework(
        user_id,
        course_id=request.args.get("courseId"),
        assignment_id=request.args.get("assignmentId"),
    )
    return jsonify([r.to_dict() for r in records])


@bp.route("/api/homework", methods=["POST"])
def api_submit_homework():
    data = request.get_json(silent=True) or {}
    assignment_id = data.get("assignmentId")
    user_id = data.get("userId")
    if not assignment_id or not user_id:
        return jsonify({"error": "assignmentId and userId are required"}), 400
    completed = data.get("completed", False)
    if not isinstance(completed, bool):
        return jsonify({"error": "completed must be a boolean"}), 400

    record = get_homework_service().submit_homework(
        assignment_id, user_id,
        content=data.get("content") or "",
        completed=completed,
    )
    return jsonify(record.to_dict())


@bp.route("/api/homework", methods=["PUT"])
def api_grade_homework():
    data = request.get_json(silent=True) or {}
    assignment_id = data.get("assignmentId")
    user_id = data.get("userId")
    score = data.get("score")
    if not assignment_id or not user_id or score is None:
        return jsonify({"error": "assignmentId, userId, and score are required"}), 400
    try:
        score = float(score)
    except (TypeError, ValueError):
        return jsonify({"error": "score must be a number"}), 400

    record = get_homework_service().grade_homework(assignment_id, user_id, score)
    return jsonify(record.to_dict())


@bp.route("/api/homework", methods=["DELETE"])
def api_delete_homework():
    assignment_id = request.args.get("assignmentId")
    user_id = request.args.get("userId")
    if not assignment_id or not user_id:
        return jsonify({"error": "assignmentId and userId are required"}), 400

    get_homework_service().delete_homework(assignment_id, user_id)
    return jsonify({"success": True})
