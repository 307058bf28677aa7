"""Homework submission, grading and deletion, each followed by an effort recompute."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from effort_service import EffortService
from errors import AssignmentNotFoundError, HomeworkNotFoundError, NotEnrolledError
from models import Assignment, HomeworkRecord
from repositories import CourseRepository, HomeworkRepository

logger = logging.getLogger(__name__)


class HomeworkService:
    def __init__(self, homework: HomeworkRepository, courses: CourseRepository,
                 effort: EffortService):
        self.homework = homework
        self.courses = courses
        self.effort = effort

    def _assignment(self, assignment_id: str) -> Assignment:
        assignment = self.homework.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError("Assignment not found")
        return assignment

    def list_homework(self, user_id: str, course_id: Optional[str] = None,
                      assignment_id: Optional[str] = None) -> list[HomeworkRecord]:
        if assignment_id:
            record = self.homework.get_homework(assignment_id, user_id)
            return [record] if record else []
        return self.homework.list_for_user(user_id, course_id)

    def submit_homework(self, assignment_id: str, user_id: str, content: str = "",
                        completed: bool = False) -> HomeworkRecord:
        """Create or resubmit homework; only completed submissions move the effort score."""
        assignment = self._assignment(assignment_id)
        if not self.courses.is_enrolled(user_id, assignment.course_id):
            raise NotEnrolledError("User not enrolled in this course", status_code=403)

        record = self.homework.save_homework(HomeworkRecord(
            assignment_id=assignment_id,
            user_id=user_id,
            content=content,
            completed=completed,
            submitted_at=datetime.now() if completed else None,
        ))

        if completed:
            self.effort.recompute(user_id, assignment.course_id)
        return record

    def grade_homework(self, assignment_id: str, user_id: str, score: float) -> HomeworkRecord:
        assignment = self._assignment(assignment_id)
        clamped = max(0.0, min(100.0, float(score)))
        record = self.homework.set_score(assignment_id, user_id, clamped)
        if record is None:
            raise HomeworkNotFoundError("Homework not found")
        self.effort.recompute(user_id, assignment.course_id)
        return record

    def delete_homework(self, assignment_id: str, user_id: str) -> None:
        assignment = self._assignment(assignment_id)
        if not self.homework.delete_homework(assignment_id, user_id):
            raise HomeworkNotFoundError("Homework not found")
        self.effort.recompute(user_id, assignment.course_id)


def get_homework_service() -> HomeworkService:
    from db_stores import CourseStoreDB, HomeworkStoreDB
    from effort_service import get_effort_service

    effort = get_effort_service()
    return HomeworkService(HomeworkStoreDB(), CourseStoreDB(), effort)
