"""
DB-backed store classes for the effort monitor.

Each class implements one of the repository interfaces in repositories.py
and reads/writes SQLite through the request-scoped connection from
database.get_db(). Driver errors are re-raised as PersistenceError.
"""

from __future__ import annotations

import functools
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from database import get_db
from errors import PersistenceError
from models import Assignment, Course, HomeworkRecord, UserSummary, parse_timestamp

logger = logging.getLogger(__name__)


def _wrap_db_errors(func):
    """Translate sqlite3 errors into PersistenceError, keeping the cause."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as e:
            logger.error("Store operation %s failed: %s", func.__qualname__, e)
            raise PersistenceError(f"{func.__qualname__} failed: {e}") from e
    return wrapper


def _homework_from_row(row) -> HomeworkRecord:
    return HomeworkRecord(
        assignment_id=row["assignment_id"],
        user_id=row["user_id"],
        completed=bool(row["completed"]),
        score=row["score"],
        submitted_at=parse_timestamp(row["submitted_at"]),
        content=row["content"] or "",
        created_at=row["created_at"] or "",
    )


# ── Homework ─────────────────────────────────────────────────────────


class HomeworkStoreDB:
    """Assignments and per-student homework rows."""

    @_wrap_db_errors
    def assignments_with_homework(
        self, course_id: str, user_id: str,
    ) -> list[tuple[Assignment, Optional[HomeworkRecord]]]:
        db = get_db()
        rows = db.execute(
            "SELECT a.id AS a_id, a.course_id, a.title, a.due_date, "
            "h.assignment_id, h.user_id, h.completed, h.score, h.submitted_at, "
            "h.content, h.created_at "
            "FROM assignments a "
            "LEFT JOIN homework h ON h.assignment_id = a.id AND h.user_id = ? "
            "WHERE a.course_id = ? ORDER BY a.created_at, a.id",
            (user_id, course_id),
        ).fetchall()
        result = []
        for r in rows:
            assignment = Assignment(
                id=r["a_id"], course_id=r["course_id"],
                title=r["title"], due_date=r["due_date"],
            )
            homework = _homework_from_row(r) if r["assignment_id"] is not None else None
            result.append((assignment, homework))
        return result

    @_wrap_db_errors
    def count_submissions_since(self, user_id: str, since: datetime) -> int:
        db = get_db()
        row = db.execute(
            "SELECT COUNT(*) AS n FROM homework "
            "WHERE user_id = ? AND submitted_at IS NOT NULL AND submitted_at >= ?",
            (user_id, since.isoformat()),
        ).fetchone()
        return row["n"] if row else 0

    @_wrap_db_errors
    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        db = get_db()
        row = db.execute(
            "SELECT id, course_id, title, due_date FROM assignments WHERE id = ?",
            (assignment_id,),
        ).fetchone()
        if not row:
            return None
        return Assignment(id=row["id"], course_id=row["course_id"],
                          title=row["title"], due_date=row["due_date"])

    @_wrap_db_errors
    def get_homework(self, assignment_id: str, user_id: str) -> Optional[HomeworkRecord]:
        db = get_db()
        row = db.execute(
            "SELECT * FROM homework WHERE assignment_id = ? AND user_id = ?",
            (assignment_id, user_id),
        ).fetchone()
        return _homework_from_row(row) if row else None

    @_wrap_db_errors
    def save_homework(self, record: HomeworkRecord) -> HomeworkRecord:
        """Insert or update the (assignment, student) row; score is left untouched on update."""
        db = get_db()
        now = datetime.now().isoformat()
        submitted = record.submitted_at.isoformat() if record.submitted_at else None
        db.execute(
            "INSERT INTO homework (assignment_id, user_id, content, completed, score, "
            "submitted_at, created_at) VALUES (?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(assignment_id, user_id) DO UPDATE SET "
            "content = excluded.content, completed = excluded.completed, "
            "submitted_at = excluded.submitted_at",
            (record.assignment_id, record.user_id, record.content,
             int(record.completed), record.score, submitted, now),
        )
        db.commit()
        return self.get_homework(record.assignment_id, record.user_id)

    @_wrap_db_errors
    def set_score(self, assignment_id: str, user_id: str, score: float) -> Optional[HomeworkRecord]:
        db = get_db()
        cur = db.execute(
            "UPDATE homework SET score = ? WHERE assignment_id = ? AND user_id = ?",
            (score, assignment_id, user_id),
        )
        db.commit()
        if cur.rowcount == 0:
            return None
        return self.get_homework(assignment_id, user_id)

    @_wrap_db_errors
    def delete_homework(self, assignment_id: str, user_id: str) -> bool:
        db = get_db()
        cur = db.execute(
            "DELETE FROM homework WHERE assignment_id = ? AND user_id = ?",
            (assignment_id, user_id),
        )
        db.commit()
        return cur.rowcount > 0

    @_wrap_db_errors
    def list_for_user(self, user_id: str, course_id: Optional[str] = None) -> list[HomeworkRecord]:
        db = get_db()
        if course_id:
            rows = db.execute(
                "SELECT h.* FROM homework h JOIN assignments a ON a.id = h.assignment_id "
                "WHERE h.user_id = ? AND a.course_id = ? ORDER BY h.created_at DESC",
                (user_id, course_id),
            ).fetchall()
        else:
            rows = db.execute(
                "SELECT * FROM homework WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
        return [_homework_from_row(r) for r in rows]


# ── Courses & enrollment ─────────────────────────────────────────────


class CourseStoreDB:
    """Read-only view over users, courses and enrollments."""

    @_wrap_db_errors
    def get_course(self, course_id: str) -> Optional[Course]:
        db = get_db()
        row = db.execute(
            "SELECT id, title, tutor_id FROM courses WHERE id = ?", (course_id,),
        ).fetchone()
        if not row:
            return None
        return Course(id=row["id"], title=row["title"], tutor_id=row["tutor_id"])

    @_wrap_db_errors
    def get_user(self, user_id: str) -> Optional[UserSummary]:
        db = get_db()
        row = db.execute(
            "SELECT id, display_name, email FROM users WHERE id = ?", (user_id,),
        ).fetchone()
        if not row:
            return None
        return UserSummary(id=row["id"], display_name=row["display_name"], email=row["email"])

    @_wrap_db_errors
    def is_enrolled(self, user_id: str, course_id: str) -> bool:
        db = get_db()
        return db.execute(
            "SELECT 1 FROM enrollments WHERE user_id = ? AND course_id = ?",
            (user_id, course_id),
        ).fetchone() is not None

    @_wrap_db_errors
    def enrolled_students(self, course_id: str) -> list[UserSummary]:
        db = get_db()
        rows = db.execute(
            "SELECT u.id, u.display_name, u.email FROM enrollments e "
            "JOIN users u ON u.id = e.user_id WHERE e.course_id = ? ORDER BY u.id",
            (course_id,),
        ).fetchall()
        return [UserSummary(id=r["id"], display_name=r["display_name"], email=r["email"])
                for r in rows]


# ── Bot state ────────────────────────────────────────────────────────


class BotStateStoreDB:
    """Opaque JSON blobs keyed by (user_id, module)."""

    @_wrap_db_errors
    def load(self, user_id: str, module: str) -> Optional[str]:
        db = get_db()
        row = db.execute(
            "SELECT state_json FROM bot_states WHERE user_id = ? AND module = ?",
            (user_id, module),
        ).fetchone()
        return row["state_json"] if row else None

    @_wrap_db_errors
    def save(self, user_id: str, module: str, state_json: str) -> None:
        db = get_db()
        db.execute(
            "INSERT INTO bot_states (user_id, module, state_json, updated_at) "
            "VALUES (?, ?, ?, ?) "
            "ON CONFLICT(user_id, module) DO UPDATE SET "
            "state_json = excluded.state_json, updated_at = excluded.updated_at",
            (user_id, module, state_json, datetime.now().isoformat()),
        )
        db.commit()

    @_wrap_db_errors
    def scan(self, module_prefix: str) -> list[tuple[str, str, str]]:
        db = get_db()
        rows = db.execute(
            "SELECT user_id, module, state_json FROM bot_states "
            "WHERE substr(module, 1, ?) = ? ORDER BY user_id, module",
            (len(module_prefix), module_prefix),
        ).fetchall()
        return [(r["user_id"], r["module"], r["state_json"]) for r in rows]
