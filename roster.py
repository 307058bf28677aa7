"""At-risk roster: students in the two lowest effort bands, worst first."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from effort_calculator import EffortStatus
from effort_state import EffortStateStore
from repositories import CourseRepository

logger = logging.getLogger(__name__)

ROSTER_STATUSES = (EffortStatus.AT_RISK.value, EffortStatus.CONCERNED.value)


@dataclass
class AtRiskEntry:
    user_id: str
    user_name: str
    course_id: str
    course_name: str
    effort_score: int
    status: str
    emoji: str

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "courseId": self.course_id,
            "courseName": self.course_name,
            "effortScore": self.effort_score,
            "status": self.status,
            "emoji": self.emoji,
        }


class AtRiskRosterBuilder:
    def __init__(self, store: EffortStateStore, courses: CourseRepository):
        self.store = store
        self.courses = courses

    def build_roster(self, tutor_id: Optional[str] = None) -> list[AtRiskEntry]:
        """Scan all course states and return concerned/at-risk students.

        States whose course no longer exists are skipped. When tutor_id is
        given, only courses owned by that tutor are included. Sorted
        ascending by effort so the lowest scores come first.
        """
        entries: list[AtRiskEntry] = []
        course_cache: dict = {}

        for stored in self.store.course_states():
            state = stored.state
            if state.status not in ROSTER_STATUSES:
                continue

            course_id = stored.module.course_id
            if course_id not in course_cache:
                course_cache[course_id] = self.courses.get_course(course_id)
            course = course_cache[course_id]
            if course is None:
                logger.debug("Skipping orphaned effort state user=%s course=%s",
                             stored.user_id, course_id)
                continue
            if tutor_id and course.tutor_id != tutor_id:
                continue

            user = self.courses.get_user(stored.user_id)
            entries.append(AtRiskEntry(
                user_id=stored.user_id,
                user_name=user.name if user else "Unknown",
                course_id=course.id,
                course_name=course.title,
                effort_score=state.effort,
                status=state.status,
                emoji=state.emoji,
            ))

        entries.sort(key=lambda e: e.effort_score)
        return entries


def roster_summary(entries: list[AtRiskEntry]) -> dict:
    """Headline numbers for the tutor dashboard."""
    by_status = {status: 0 for status in ROSTER_STATUSES}
    for e in entries:
        by_status[e.status] = by_status.get(e.status, 0) + 1
    average = round(sum(e.effort_score for e in entries) / len(entries)) if entries else 0
    return {
        "count": len(entries),
        "averageEffort": average,
        "byStatus": by_status,
        "lowest": [e.to_dict() for e in entries[:5]],
    }
