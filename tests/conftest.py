"""
Test fixtures for StudyFlow.

Provides app, client, admin_client, student_client and db fixtures with
file-based SQLite, plus a small seeded school: two cohorts, an admin, three
students and a base schedule.
"""

from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

ADMIN_EMAIL = "admin@test.com"
ADMIN_PASSWORD = "AdminPass1"
STUDENT_EMAIL = "alice@test.com"
STUDENT_PASSWORD = "StudentPass1"


def _seed(db):
    db.execute("INSERT INTO cohorts (id, name) VALUES (1, 'Cohort A')")
    db.execute("INSERT INTO cohorts (id, name) VALUES (2, 'Cohort B')")

    users = [
        (1, "Admin", ADMIN_EMAIL, ADMIN_PASSWORD, "admin", "active", None),
        (2, "Alice", STUDENT_EMAIL, STUDENT_PASSWORD, "student", "active", 1),
        (3, "Bob", "bob@test.com", "BobPass123", "student", "pending", 1),
        (4, "Carol", "carol@test.com", "CarolPass1", "student", "blocked", 2),
    ]
    for uid, name, email, password, role, status, cohort_id in users:
        db.execute(
            "INSERT INTO users (id, name, email, password_hash, role, status, cohort_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, '2026-01-01T00:00:00')",
            (uid, name, email, generate_password_hash(password), role, status, cohort_id),
        )

    for name, color in (("Math", "#3b82f6"), ("Physics", "#f59e0b"), ("History", "#10b981")):
        db.execute("INSERT INTO subjects (name, color) VALUES (?, ?)", (name, color))

    # Base schedules: two tasks for cohort A, one for cohort B
    db.execute(
        "INSERT INTO tasks (id, cohort_id, subject, mode, duration_minutes, day_of_week, created_at) "
        "VALUES (1, 1, 'Math', 'Video', 60, 'Monday', '2026-01-01T00:00:01')"
    )
    db.execute(
        "INSERT INTO tasks (id, cohort_id, subject, mode, duration_minutes, day_of_week, created_at) "
        "VALUES (2, 1, 'Physics', 'Reading', 90, 'Tuesday', '2026-01-01T00:00:02')"
    )
    db.execute(
        "INSERT INTO tasks (id, cohort_id, subject, mode, duration_minutes, day_of_week, created_at) "
        "VALUES (3, 2, 'History', 'Review', 30, 'Monday', '2026-01-01T00:00:03')"
    )

    db.execute("INSERT INTO failure_reasons (label, value) VALUES ('Work', 'work')")
    db.execute("INSERT INTO failure_reasons (label, value) VALUES ('Tired', 'tired')")
    db.commit()


@pytest.fixture
def app(tmp_path):
    """Create app with file-based SQLite for testing."""
    from app import create_app

    db_file = str(tmp_path / "test.db")
    app = create_app({
        "TESTING": True,
        "DATABASE": db_file,
        "SECRET_KEY": "test-secret-key",
        "WTF_CSRF_ENABLED": False,
    })

    with app.app_context():
        from database import init_db, run_migrations, get_db

        init_db()
        run_migrations()
        _seed(get_db())

    # Requests get their own app context (and a fresh flask.g)
    yield app


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


def _login(app, email, password):
    client = app.test_client()
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def admin_client(app):
    """Test client logged in as the admin."""
    return _login(app, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def student_client(app):
    """Test client logged in as Alice, an active student of cohort 1."""
    return _login(app, STUDENT_EMAIL, STUDENT_PASSWORD)


@pytest.fixture
def db(app):
    """Direct database access for store tests."""
    with app.app_context():
        from database import get_db
        yield get_db()
