"""Tests for database.py: schema creation, migrations, pragmas."""

import pytest

from database import MIGRATIONS, get_db, init_db, run_migrations


class TestSchema:
    def test_tables_exist(self, app):
        with app.app_context():
            db = get_db()
            tables = [r["name"] for r in db.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            ).fetchall()]
            for t in ["assignments", "bot_states", "courses", "enrollments",
                      "homework", "schema_version", "users"]:
                assert t in tables, f"Table {t} not found"

    def test_wal_mode(self, app):
        with app.app_context():
            mode = get_db().execute("PRAGMA journal_mode").fetchone()[0]
            assert mode == "wal"

    def test_foreign_keys_enabled(self, app):
        with app.app_context():
            fk = get_db().execute("PRAGMA foreign_keys").fetchone()[0]
            assert fk == 1

    def test_homework_unique_per_assignment_and_student(self, db, seeded_course):
        db.execute("INSERT INTO homework (assignment_id, user_id) VALUES ('alg-1', 'stu-1')")
        with pytest.raises(Exception):
            db.execute("INSERT INTO homework (assignment_id, user_id) VALUES ('alg-1', 'stu-1')")

    def test_assignment_cascade_deletes_homework(self, db, seeded_course):
        db.execute("INSERT INTO homework (assignment_id, user_id) VALUES ('alg-1', 'stu-1')")
        db.execute("DELETE FROM assignments WHERE id = 'alg-1'")
        db.commit()
        assert db.execute("SELECT COUNT(*) FROM homework").fetchone()[0] == 0


class TestMigrations:
    def test_all_versions_recorded(self, app):
        with app.app_context():
            versions = {r["version"] for r in get_db().execute(
                "SELECT version FROM schema_version"
            ).fetchall()}
            assert 1 in versions
            for version, _ in MIGRATIONS:
                assert version in versions

    def test_rerun_is_noop(self, app):
        with app.app_context():
            init_db()
            run_migrations()
            count = get_db().execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
            assert count == len(MIGRATIONS) + 1

    def test_module_index_created(self, app):
        with app.app_context():
            names = [r["name"] for r in get_db().execute(
                "SELECT name FROM sqlite_master WHERE type='index'"
            ).fetchall()]
            assert "idx_bot_states_module" in names
