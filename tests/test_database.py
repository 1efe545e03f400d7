"""Tests for database.py — schema creation, migrations, constraints."""

import sqlite3

import pytest

from database import MIGRATIONS, get_db, init_db, run_migrations


class TestSchema:
    """Verify all tables are created correctly."""

    def test_tables_exist(self, db):
        tables = [r["name"] for r in db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ).fetchall()]
        for t in ("audit_log", "checkins", "cohorts", "failure_reasons", "schema_version",
                  "settings", "study_modes", "subjects", "tasks", "users"):
            assert t in tables, f"Table {t} not found"

    def test_wal_mode(self, db):
        assert db.execute("PRAGMA journal_mode").fetchone()[0] == "wal"

    def test_foreign_keys_enabled(self, db):
        assert db.execute("PRAGMA foreign_keys").fetchone()[0] == 1

    def test_migration_columns(self, db):
        cols = {r["name"] for r in db.execute("PRAGMA table_info(users)").fetchall()}
        assert {"role", "status", "cohort_id"} <= cols


class TestMigrations:
    def test_all_versions_recorded(self, db):
        versions = {r["version"] for r in db.execute("SELECT version FROM schema_version").fetchall()}
        assert versions == {1} | {v for v, _ in MIGRATIONS}

    def test_rerun_is_noop(self, app):
        with app.app_context():
            init_db()
            run_migrations()
            db = get_db()
            count = db.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
            assert count == 1 + len(MIGRATIONS)


class TestConstraints:
    def test_task_duration_must_be_positive(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            db.execute(
                "INSERT INTO tasks (cohort_id, subject, mode, duration_minutes, day_of_week) "
                "VALUES (1, 'Math', 'Video', 0, 'Monday')"
            )

    def test_task_day_must_be_valid(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            db.execute(
                "INSERT INTO tasks (cohort_id, subject, mode, duration_minutes, day_of_week) "
                "VALUES (1, 'Math', 'Video', 10, 'Funday')"
            )

    def test_checkin_period_must_be_valid(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            db.execute(
                "INSERT INTO checkins (task_id, student_id, completed, period, timestamp) "
                "VALUES (1, 2, 1, 'Lunch', '2026-01-01T10:00:00')"
            )

    def test_user_status_checked(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            db.execute("UPDATE users SET status = 'deleted' WHERE id = 2")

    def test_deleting_task_keeps_checkin(self, db):
        db.execute(
            "INSERT INTO checkins (id, task_id, student_id, completed, period, timestamp) "
            "VALUES (50, 1, 2, 1, 'Morning', '2026-01-01T10:00:00')"
        )
        db.execute("DELETE FROM tasks WHERE id = 1")
        db.commit()
        row = db.execute("SELECT task_id FROM checkins WHERE id = 50").fetchone()
        assert row["task_id"] is None

    def test_deleting_student_removes_their_tasks(self, db):
        db.execute(
            "INSERT INTO tasks (id, cohort_id, student_id, subject, mode, duration_minutes, day_of_week) "
            "VALUES (10, 1, 2, 'Math', 'Video', 30, 'Friday')"
        )
        db.execute("DELETE FROM users WHERE id = 2")
        db.commit()
        assert db.execute("SELECT 1 FROM tasks WHERE id = 10").fetchone() is None
