"""Tests for seed_demo_data.py — demo data and idempotent re-runs."""

from werkzeug.security import check_password_hash

from seed_demo_data import DEMO_COHORTS, DEMO_PASSWORD, DEMO_SUBJECTS, DEMO_TASKS, seed


def _count(db, table):
    return db.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


class TestSeed:
    def test_creates_demo_records(self, db):
        before_tasks = _count(db, "tasks")
        result = seed(db, admin_email="owner@school.test", admin_password="OwnerPass1")

        assert result["tasks_created"] == len(DEMO_TASKS)
        assert _count(db, "tasks") == before_tasks + len(DEMO_TASKS)
        names = {r["name"] for r in db.execute("SELECT name FROM cohorts").fetchall()}
        assert {c["name"] for c in DEMO_COHORTS} <= names
        assert _count(db, "subjects") == 3 + len(DEMO_SUBJECTS)

        admin = db.execute("SELECT * FROM users WHERE email = 'owner@school.test'").fetchone()
        assert admin["role"] == "admin"
        assert check_password_hash(admin["password_hash"], "OwnerPass1")

        alice = db.execute("SELECT * FROM users WHERE email = 'alice@example.com'").fetchone()
        assert check_password_hash(alice["password_hash"], DEMO_PASSWORD)
        assert alice["cohort_id"] == result["id_map"]["c1"]

        bob = db.execute("SELECT status FROM users WHERE email = 'bob@example.com'").fetchone()
        assert bob["status"] == "pending"

    def test_id_map_translates_seed_ids(self, db):
        result = seed(db)
        mentoring = db.execute(
            "SELECT * FROM tasks WHERE subject = 'Mentoria Individual'"
        ).fetchone()
        assert mentoring["student_id"] == result["id_map"]["s1"]
        assert mentoring["cohort_id"] == result["id_map"]["c1"]

    def test_rerun_is_idempotent(self, db):
        seed(db)
        counts = {t: _count(db, t) for t in ("cohorts", "subjects", "users", "tasks",
                                             "settings", "study_modes", "failure_reasons")}
        second = seed(db)
        assert second["tasks_created"] == 0
        assert {t: _count(db, t) for t in counts} == counts

    def test_existing_settings_untouched(self, db):
        db.execute("INSERT INTO settings (school_name) VALUES ('Mine')")
        db.commit()
        seed(db)
        assert _count(db, "settings") == 1
        assert db.execute("SELECT school_name FROM settings").fetchone()[0] == "Mine"

    def test_existing_failure_reasons_kept(self, db):
        seed(db)
        labels = {r["label"] for r in db.execute("SELECT label FROM failure_reasons").fetchall()}
        # Work was already there and is not duplicated
        assert _count(db, "failure_reasons") == len(labels)
        assert {"Work", "Tired", "Other"} <= labels

    def test_admin_email_stored_lowercase(self, db):
        seed(db, admin_email="Owner@School.test", admin_password="OwnerPass1")
        row = db.execute("SELECT email FROM users WHERE role = 'admin' AND email LIKE 'owner%'").fetchone()
        assert row["email"] == "owner@school.test"
