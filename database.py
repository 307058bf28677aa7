"""
SQLite database layer for the effort monitor.

Uses raw sqlite3 with WAL mode and parameterized queries.
A schema_version table handles migrations.
"""

from __future__ import annotations

import fcntl
import sqlite3
from datetime import datetime
from pathlib import Path

from flask import current_app, g

DEFAULT_DATABASE = str(Path(__file__).parent / "effort_monitor.db")


SCHEMA = """
-- Migration tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL,
    applied_at TEXT NOT NULL
);

-- Students and tutors
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    display_name TEXT,
    email TEXT UNIQUE,
    role TEXT NOT NULL DEFAULT 'student',
    created_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS courses (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    tutor_id TEXT REFERENCES users(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS enrollments (
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    enrolled_at TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (user_id, course_id)
);

CREATE TABLE IF NOT EXISTS assignments (
    id TEXT PRIMARY KEY,
    course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    due_date TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_assignments_course ON assignments(course_id);

-- One homework row per (assignment, student)
CREATE TABLE IF NOT EXISTS homework (
    assignment_id TEXT NOT NULL REFERENCES assignments(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    content TEXT NOT NULL DEFAULT '',
    completed INTEGER NOT NULL DEFAULT 0,
    score REAL,
    submitted_at TEXT,
    created_at TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (assignment_id, user_id)
);
CREATE INDEX IF NOT EXISTS idx_homework_user_submitted ON homework(user_id, submitted_at);

-- Per-(user, module) JSON state shared by the study bot features
CREATE TABLE IF NOT EXISTS bot_states (
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    module TEXT NOT NULL,
    state_json TEXT NOT NULL DEFAULT '{}',
    updated_at TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (user_id, module)
);
"""


# Versioned migrations applied after SCHEMA. Each entry is (version, sql).
MIGRATIONS: list[tuple[int, str]] = [
    (2, """
CREATE INDEX IF NOT EXISTS idx_bot_states_module ON bot_states(module);
"""),
    (3, """
CREATE INDEX IF NOT EXISTS idx_courses_tutor ON courses(tutor_id);
"""),
]


def get_db() -> sqlite3.Connection:
    """Return a DB connection from Flask g, creating if needed."""
    if "db" not in g:
        db_path = current_app.config.get("DATABASE", DEFAULT_DATABASE)
        g.db = sqlite3.connect(db_path)
        g.db.row_factory = sqlite3.Row
        g.db.execute("PRAGMA journal_mode=WAL")
        g.db.execute("PRAGMA foreign_keys=ON")
    return g.db


def close_db(e=None) -> None:
    """Teardown handler: close DB connection."""
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db() -> None:
    """Execute schema DDL to create all tables."""
    db = get_db()
    db.executescript(SCHEMA)
    if db.execute("SELECT 1 FROM schema_version WHERE version = 1").fetchone() is None:
        db.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (1, ?)",
            (datetime.now().isoformat(),),
        )
    db.commit()


def run_migrations() -> None:
    """Apply any unapplied versioned migrations.

    Uses file-based locking to prevent race conditions when multiple
    Gunicorn workers start simultaneously.
    """
    db_path = current_app.config.get("DATABASE", DEFAULT_DATABASE)
    lock_file = None

    if db_path != ":memory:":
        lock_path = Path(db_path).with_suffix(".migration.lock")
        try:
            lock_file = open(lock_path, "w")
            fcntl.flock(lock_file, fcntl.LOCK_EX)
        except OSError:
            lock_file = None

    try:
        db = get_db()
        applied = {
            row["version"]
            for row in db.execute("SELECT version FROM schema_version").fetchall()
        }
        for version, sql in MIGRATIONS:
            if version not in applied:
                try:
                    db.executescript(sql)
                except sqlite3.OperationalError as e:
                    err_msg = str(e).lower()
                    if "duplicate column" not in err_msg and "already exists" not in err_msg:
                        raise
                db.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now().isoformat()),
                )
                db.commit()
    finally:
        if lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_UN)
            lock_file.close()


def init_app(app) -> None:
    """Register teardown and auto-init on first request."""
    app.teardown_appcontext(close_db)

    @app.before_request
    def _ensure_db():
        if not getattr(app, "_db_initialized", False):
            init_db()
            run_migrations()
            app._db_initialized = True
