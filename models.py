"""Plain dataclasses shared by the stores, the scoring pipeline, and the routes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp column, returning None for empty or bad values."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


@dataclass
class HomeworkRecord:
    assignment_id: str
    user_id: str
    completed: bool = False
    score: Optional[float] = None
    submitted_at: Optional[datetime] = None
    content: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        return {
            "assignmentId": self.assignment_id,
            "userId": self.user_id,
            "completed": self.completed,
            "score": self.score,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "content": self.content,
            "createdAt": self.created_at,
        }


@dataclass
class Assignment:
    id: str
    course_id: str
    title: str = ""
    due_date: str = ""


@dataclass
class Course:
    id: str
    title: str
    tutor_id: Optional[str] = None


@dataclass
class UserSummary:
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def name(self) -> str:
        """Display name, then email, then a literal placeholder."""
        return self.display_name or self.email or "Unknown"
