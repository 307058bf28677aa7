"""
Test fixtures for the effort monitor.

Provides app, client and db fixtures with file-based SQLite, a seeded
course roster, and in-memory repository fakes for the pure pipeline tests.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from models import Assignment, Course, HomeworkRecord, UserSummary  # noqa: E402


# ── In-memory repositories ─────────────────────────────────


class FakeHomeworkRepository:
    def __init__(self):
        self.assignments: dict[str, Assignment] = {}
        self.homework: dict[tuple[str, str], HomeworkRecord] = {}

    def add_assignment(self, assignment_id: str, course_id: str, title: str = "") -> Assignment:
        a = Assignment(id=assignment_id, course_id=course_id, title=title or assignment_id)
        self.assignments[assignment_id] = a
        return a

    def add_homework(self, assignment_id: str, user_id: str, completed: bool = True,
                     score: Optional[float] = None,
                     submitted_at: Optional[datetime] = None) -> HomeworkRecord:
        rec = HomeworkRecord(assignment_id=assignment_id, user_id=user_id,
                             completed=completed, score=score, submitted_at=submitted_at)
        self.homework[(assignment_id, user_id)] = rec
        return rec

    def assignments_with_homework(self, course_id, user_id):
        return [
            (a, self.homework.get((a.id, user_id)))
            for a in self.assignments.values() if a.course_id == course_id
        ]

    def count_submissions_since(self, user_id, since):
        return sum(
            1 for (_, uid), rec in self.homework.items()
            if uid == user_id and rec.submitted_at is not None and rec.submitted_at >= since
        )

    def get_assignment(self, assignment_id):
        return self.assignments.get(assignment_id)

    def get_homework(self, assignment_id, user_id):
        return self.homework.get((assignment_id, user_id))

    def save_homework(self, record):
        existing = self.homework.get((record.assignment_id, record.user_id))
        if existing is not None:
            record.score = existing.score
        self.homework[(record.assignment_id, record.user_id)] = record
        return record

    def set_score(self, assignment_id, user_id, score):
        rec = self.homework.get((assignment_id, user_id))
        if rec is None:
            return None
        rec.score = score
        return rec

    def delete_homework(self, assignment_id, user_id):
        return self.homework.pop((assignment_id, user_id), None) is not None

    def list_for_user(self, user_id, course_id=None):
        return [
            rec for (aid, uid), rec in self.homework.items()
            if uid == user_id and (course_id is None or self.assignments[aid].course_id == course_id)
        ]


class FakeCourseRepository:
    def __init__(self):
        self.courses: dict[str, Course] = {}
        self.users: dict[str, UserSummary] = {}
        self.enrollments: set[tuple[str, str]] = set()

    def add_course(self, course_id: str, title: str, tutor_id: Optional[str] = None) -> Course:
        c = Course(id=course_id, title=title, tutor_id=tutor_id)
        self.courses[course_id] = c
        return c

    def add_user(self, user_id: str, display_name=None, email=None) -> UserSummary:
        u = UserSummary(id=user_id, display_name=display_name, email=email)
        self.users[user_id] = u
        return u

    def enroll(self, user_id: str, course_id: str) -> None:
        self.enrollments.add((user_id, course_id))

    def get_course(self, course_id):
        return self.courses.get(course_id)

    def get_user(self, user_id):
        return self.users.get(user_id)

    def is_enrolled(self, user_id, course_id):
        return (user_id, course_id) in self.enrollments

    def enrolled_students(self, course_id):
        return [self.users[uid] for uid, cid in sorted(self.enrollments) if cid == course_id]


class FakeStateRepository:
    def __init__(self):
        self.rows: dict[tuple[str, str], str] = {}

    def load(self, user_id, module):
        return self.rows.get((user_id, module))

    def save(self, user_id, module, state_json):
        self.rows[(user_id, module)] = state_json

    def scan(self, module_prefix):
        return [
            (uid, module, raw) for (uid, module), raw in sorted(self.rows.items())
            if module.startswith(module_prefix)
        ]


@pytest.fixture
def fake_homework():
    return FakeHomeworkRepository()


@pytest.fixture
def fake_courses():
    return FakeCourseRepository()


@pytest.fixture
def fake_states():
    return FakeStateRepository()


# ── Flask app + SQLite ─────────────────────────────────────


@pytest.fixture
def app(tmp_path):
    """Create app with file-based SQLite for testing."""
    from app import create_app

    db_file = str(tmp_path / "test.db")
    app = create_app({
        "TESTING": True,
        "DATABASE": db_file,
        "SECRET_KEY": "test-secret-key",
    })

    with app.app_context():
        from database import init_db, run_migrations, get_db

        init_db()
        run_migrations()

        now = datetime.now().isoformat()
        db = get_db()
        db.execute(
            "INSERT INTO users (id, display_name, email, role, created_at) "
            "VALUES ('tutor-1', 'Ms Rivera', 'rivera@example.com', 'tutor', ?)", (now,),
        )
        db.execute(
            "INSERT INTO users (id, display_name, email, role, created_at) "
            "VALUES ('tutor-2', 'Mr Okafor', 'okafor@example.com', 'tutor', ?)", (now,),
        )
        db.execute(
            "INSERT INTO users (id, display_name, email, created_at) "
            "VALUES ('stu-1', 'Ana Lima', 'ana@example.com', ?)", (now,),
        )
        db.commit()

        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    """Direct database access for store tests."""
    with app.app_context():
        from database import get_db
        yield get_db()


@pytest.fixture
def seeded_course(app):
    """Algebra (tutor-1) with four assignments and Biology (tutor-2) with one.

    stu-1 is enrolled in both, stu-2 (email only) and stu-3 (no name or
    email) in Algebra only.
    """
    with app.app_context():
        from database import get_db
        db = get_db()
        db.execute("INSERT INTO users (id, email) VALUES ('stu-2', 'ben@example.com')")
        db.execute("INSERT INTO users (id) VALUES ('stu-3')")
        db.execute("INSERT INTO courses (id, title, tutor_id) VALUES ('alg', 'Algebra', 'tutor-1')")
        db.execute("INSERT INTO courses (id, title, tutor_id) VALUES ('bio', 'Biology', 'tutor-2')")
        for uid, cid in [("stu-1", "alg"), ("stu-2", "alg"), ("stu-3", "alg"), ("stu-1", "bio")]:
            db.execute("INSERT INTO enrollments (user_id, course_id) VALUES (?, ?)", (uid, cid))
        for i in range(1, 5):
            db.execute(
                "INSERT INTO assignments (id, course_id, title, created_at) VALUES (?, 'alg', ?, ?)",
                (f"alg-{i}", f"Algebra HW {i}", f"2026-01-0{i}"),
            )
        db.execute(
            "INSERT INTO assignments (id, course_id, title) VALUES ('bio-1', 'bio', 'Cells')"
        )
        db.commit()
    return {"courses": ["alg", "bio"], "students": ["stu-1", "stu-2", "stu-3"]}


def insert_homework(db, assignment_id: str, user_id: str, completed: bool = True,
                    score: Optional[float] = None, days_ago: Optional[float] = 1) -> None:
    """Insert a homework row directly, bypassing the recompute trigger."""
    submitted = (
        (datetime.now() - timedelta(days=days_ago)).isoformat()
        if days_ago is not None else None
    )
    db.execute(
        "INSERT INTO homework (assignment_id, user_id, completed, score, submitted_at, created_at) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (assignment_id, user_id, int(completed), score, submitted, datetime.now().isoformat()),
    )
    db.commit()


@pytest.fixture
def add_homework():
    return insert_homework
