"""
Effort service: the calling contract used by the HTTP layer and tasks.

    get_effort        stored state, or compute + persist on first read
    recompute         unconditional aggregate -> score -> merge
    recompute_course  recompute every enrolled student of a course
    students_at_risk  tutor roster
    pending_reminders course states flagged needsReminder
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from effort_calculator import HomeworkAggregator, compute_effort_score
from effort_state import CourseModule, EffortStateStore, parse_module
from errors import InvalidModuleError, NotEnrolledError
from repositories import CourseRepository, EffortStateRepository, HomeworkRepository
from roster import AtRiskEntry, AtRiskRosterBuilder

logger = logging.getLogger(__name__)


class EffortService:
    def __init__(
        self,
        homework: HomeworkRepository,
        courses: CourseRepository,
        states: EffortStateRepository,
        streak_window_days: int = 7,
    ):
        self.courses = courses
        self.aggregator = HomeworkAggregator(homework, streak_window_days)
        self.store = EffortStateStore(states)
        self.roster = AtRiskRosterBuilder(self.store, courses)

    def get_effort(self, user_id: str, module: str) -> dict:
        """Return the stored effort for a course module, computing it if absent."""
        ref = parse_module(module)
        if not isinstance(ref, CourseModule):
            raise InvalidModuleError("Effort score only available for course modules")
        if not self.courses.is_enrolled(user_id, ref.course_id):
            raise NotEnrolledError("User not enrolled in this course")

        existing = self.store.get(user_id, ref.course_id)
        if existing is not None:
            return existing.to_response()

        state, _ = self._compute_and_store(user_id, ref.course_id)
        return state.to_response()

    def recompute(self, user_id: str, course_id: str,
                  now: Optional[datetime] = None) -> dict:
        state, score = self._compute_and_store(user_id, course_id, now)
        return {
            **state.to_response(),
            "details": score.details(),
        }

    def recompute_module(self, user_id: str, module: str) -> dict:
        ref = parse_module(module)
        if not isinstance(ref, CourseModule):
            raise InvalidModuleError(
                "Effort score calculation only available for course modules"
            )
        return self.recompute(user_id, ref.course_id)

    def recompute_course(self, course_id: str) -> list[dict]:
        """Recompute effort for every student enrolled in the course."""
        results = []
        for student in self.courses.enrolled_students(course_id):
            state, score = self._compute_and_store(student.id, course_id)
            results.append({
                "userId": student.id,
                "userName": student.name,
                "effort": state.effort,
                "emoji": state.emoji,
                "status": state.status,
                "details": score.details(),
            })
        logger.info("Recomputed effort for %d students in course %s", len(results), course_id,
                    extra={"course_id": course_id})
        return results

    def students_at_risk(self, tutor_id: Optional[str] = None) -> list[AtRiskEntry]:
        return self.roster.build_roster(tutor_id)

    def pending_reminders(self, user_id: Optional[str] = None) -> list[dict]:
        """Course states flagged for a nudge, for the study-bot reminder feed."""
        return [
            {
                "userId": s.user_id,
                "courseId": s.module.course_id,
                **s.state.to_response(),
            }
            for s in self.store.pending_reminders(user_id)
        ]

    def _compute_and_store(self, user_id: str, course_id: str,
                           now: Optional[datetime] = None):
        now = now or datetime.now()
        data = self.aggregator.aggregate(user_id, course_id, now)
        score = compute_effort_score(data)
        state = self.store.upsert(user_id, course_id, score, now)
        return state, score


def get_effort_service(config=None) -> EffortService:
    """Build a service over the SQLite stores for the current app context."""
    from flask import current_app

    from db_stores import BotStateStoreDB, CourseStoreDB, HomeworkStoreDB

    cfg = config if config is not None else current_app.config
    return EffortService(
        homework=HomeworkStoreDB(),
        courses=CourseStoreDB(),
        states=BotStateStoreDB(),
        streak_window_days=cfg.get("EFFORT_STREAK_WINDOW_DAYS", 7),
    )
