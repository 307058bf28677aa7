"""
Narrow repository interfaces the effort pipeline depends on.

The SQLite implementations live in db_stores.py; tests substitute
in-memory fakes with the same methods.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from models import Assignment, Course, HomeworkRecord, UserSummary


class HomeworkRepository(Protocol):
    def assignments_with_homework(
        self, course_id: str, user_id: str,
    ) -> list[tuple[Assignment, Optional[HomeworkRecord]]]:
        """Every assignment of the course joined with the student's homework row, if any."""
        ...

    def count_submissions_since(self, user_id: str, since: datetime) -> int: ...

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]: ...

    def get_homework(self, assignment_id: str, user_id: str) -> Optional[HomeworkRecord]: ...

    def save_homework(self, record: HomeworkRecord) -> HomeworkRecord: ...

    def set_score(self, assignment_id: str, user_id: str, score: float) -> Optional[HomeworkRecord]: ...

    def delete_homework(self, assignment_id: str, user_id: str) -> bool: ...

    def list_for_user(self, user_id: str, course_id: Optional[str] = None) -> list[HomeworkRecord]: ...


class CourseRepository(Protocol):
    def get_course(self, course_id: str) -> Optional[Course]: ...

    def get_user(self, user_id: str) -> Optional[UserSummary]: ...

    def is_enrolled(self, user_id: str, course_id: str) -> bool: ...

    def enrolled_students(self, course_id: str) -> list[UserSummary]: ...


class EffortStateRepository(Protocol):
    def load(self, user_id: str, module: str) -> Optional[str]:
        """Raw JSON blob for the key, or None when no row exists."""
        ...

    def save(self, user_id: str, module: str, state_json: str) -> None: ...

    def scan(self, module_prefix: str) -> list[tuple[str, str, str]]:
        """(user_id, module, state_json) for every row whose module has the prefix."""
        ...
