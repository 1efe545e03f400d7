"""
DB-backed store classes for StudyFlow.

One class per collection. Every read goes through the row mappers in
entities.py so callers never see raw sqlite3 rows.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from database import get_db
from entities import (
    AppSettings,
    CheckIn,
    Cohort,
    RegistryItem,
    Subject,
    Task,
    User,
    checkin_from_row,
    cohort_from_row,
    registry_item_from_row,
    settings_from_row,
    subject_from_row,
    task_from_row,
    user_from_row,
)


# ── Users ────────────────────────────────────────────────────────────


class UserStoreDB:
    """Manage user accounts, approval status and cohort membership."""

    @staticmethod
    def get(user_id: int) -> Optional[User]:
        db = get_db()
        row = db.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return user_from_row(row) if row else None

    @staticmethod
    def get_auth_row(email: str):
        """Return the raw row including password_hash, for login only."""
        db = get_db()
        return db.execute(
            "SELECT id, name, email, password_hash, role, status, cohort_id "
            "FROM users WHERE lower(email) = ?", (email.strip().lower(),),
        ).fetchone()

    @staticmethod
    def get_by_email(email: str) -> Optional[User]:
        db = get_db()
        row = db.execute("SELECT * FROM users WHERE lower(email) = ?", (email.strip().lower(),)).fetchone()
        return user_from_row(row) if row else None

    @staticmethod
    def get_by_oauth(provider: str, oauth_id: str) -> Optional[User]:
        db = get_db()
        row = db.execute(
            "SELECT * FROM users WHERE oauth_provider = ? AND oauth_id = ?",
            (provider, oauth_id),
        ).fetchone()
        return user_from_row(row) if row else None

    @staticmethod
    def list_students(cohort_id: int | None = None) -> list[User]:
        db = get_db()
        if cohort_id is not None:
            rows = db.execute(
                "SELECT * FROM users WHERE role = 'student' AND cohort_id = ? ORDER BY name",
                (cohort_id,),
            ).fetchall()
        else:
            rows = db.execute(
                "SELECT * FROM users WHERE role = 'student' ORDER BY name"
            ).fetchall()
        return [user_from_row(r) for r in rows]

    @staticmethod
    def create(name: str, email: str, role: str = "student", status: str = "pending",
               cohort_id: int | None = None, password_hash: str = "",
               oauth_provider: str = "", oauth_id: str = "") -> User:
        db = get_db()
        cur = db.execute(
            "INSERT INTO users (name, email, password_hash, role, status, cohort_id, "
            "oauth_provider, oauth_id, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (name, email.strip().lower(), password_hash, role, status, cohort_id,
             oauth_provider, oauth_id, datetime.now().isoformat()),
        )
        db.commit()
        return UserStoreDB.get(cur.lastrowid)

    @staticmethod
    def set_status(user_id: int, status: str) -> Optional[User]:
        db = get_db()
        db.execute("UPDATE users SET status = ? WHERE id = ?", (status, user_id))
        db.commit()
        return UserStoreDB.get(user_id)

    @staticmethod
    def set_cohort(user_id: int, cohort_id: int | None) -> Optional[User]:
        db = get_db()
        db.execute("UPDATE users SET cohort_id = ? WHERE id = ?", (cohort_id, user_id))
        db.commit()
        return UserStoreDB.get(user_id)

    @staticmethod
    def link_oauth(user_id: int, provider: str, oauth_id: str) -> None:
        db = get_db()
        db.execute(
            "UPDATE users SET oauth_provider = ?, oauth_id = ? WHERE id = ?",
            (provider, oauth_id, user_id),
        )
        db.commit()


# ── Cohorts & Subjects ───────────────────────────────────────────────


class CohortStoreDB:
    """Manage cohorts."""

    @staticmethod
    def list_all() -> list[Cohort]:
        db = get_db()
        rows = db.execute("SELECT * FROM cohorts ORDER BY name").fetchall()
        return [cohort_from_row(r) for r in rows]

    @staticmethod
    def get(cohort_id: int) -> Optional[Cohort]:
        db = get_db()
        row = db.execute("SELECT * FROM cohorts WHERE id = ?", (cohort_id,)).fetchone()
        return cohort_from_row(row) if row else None

    @staticmethod
    def get_by_name(name: str) -> Optional[Cohort]:
        db = get_db()
        row = db.execute("SELECT * FROM cohorts WHERE name = ?", (name,)).fetchone()
        return cohort_from_row(row) if row else None

    @staticmethod
    def create(name: str) -> Cohort:
        db = get_db()
        cur = db.execute(
            "INSERT INTO cohorts (name, created_at) VALUES (?, ?)",
            (name, datetime.now().isoformat()),
        )
        db.commit()
        return Cohort(id=cur.lastrowid, name=name)

    @staticmethod
    def rename(cohort_id: int, name: str) -> Optional[Cohort]:
        db = get_db()
        db.execute("UPDATE cohorts SET name = ? WHERE id = ?", (name, cohort_id))
        db.commit()
        return CohortStoreDB.get(cohort_id)

    @staticmethod
    def delete(cohort_id: int) -> bool:
        db = get_db()
        cur = db.execute("DELETE FROM cohorts WHERE id = ?", (cohort_id,))
        db.commit()
        return cur.rowcount > 0


class SubjectStoreDB:
    """Manage subjects. Tasks reference subjects by name, not id."""

    @staticmethod
    def list_all() -> list[Subject]:
        db = get_db()
        rows = db.execute("SELECT * FROM subjects ORDER BY name").fetchall()
        return [subject_from_row(r) for r in rows]

    @staticmethod
    def get(subject_id: int) -> Optional[Subject]:
        db = get_db()
        row = db.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,)).fetchone()
        return subject_from_row(row) if row else None

    @staticmethod
    def get_by_name(name: str) -> Optional[Subject]:
        db = get_db()
        row = db.execute("SELECT * FROM subjects WHERE name = ?", (name,)).fetchone()
        return subject_from_row(row) if row else None

    @staticmethod
    def create(name: str, color: str = "#94a3b8") -> Optional[Subject]:
        """Create a subject. Returns None if the name is already taken."""
        db = get_db()
        try:
            cur = db.execute(
                "INSERT INTO subjects (name, color, created_at) VALUES (?, ?, ?)",
                (name, color, datetime.now().isoformat()),
            )
            db.commit()
        except sqlite3.IntegrityError:
            return None
        return Subject(id=cur.lastrowid, name=name, color=color)

    @staticmethod
    def update(subject_id: int, name: str, color: str) -> Optional[Subject]:
        """Update a subject; a rename is propagated to the tasks using it.

        Returns None if the subject does not exist or the new name is taken.
        """
        db = get_db()
        current = SubjectStoreDB.get(subject_id)
        if current is None:
            return None
        try:
            db.execute(
                "UPDATE subjects SET name = ?, color = ? WHERE id = ?",
                (name, color, subject_id),
            )
            if name != current.name:
                db.execute("UPDATE tasks SET subject = ? WHERE subject = ?", (name, current.name))
            db.commit()
        except sqlite3.IntegrityError:
            db.rollback()
            return None
        return Subject(id=subject_id, name=name, color=color)

    @staticmethod
    def delete(subject_id: int) -> bool:
        db = get_db()
        cur = db.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
        db.commit()
        return cur.rowcount > 0


# ── Settings & registries ────────────────────────────────────────────


class SettingsStoreDB:
    """The single school settings record."""

    @staticmethod
    def get() -> AppSettings:
        db = get_db()
        row = db.execute("SELECT * FROM settings ORDER BY id LIMIT 1").fetchone()
        return settings_from_row(row) if row else AppSettings()

    @staticmethod
    def save(values: dict) -> AppSettings:
        """Upsert by existence: update the first record or create it."""
        db = get_db()
        fields = {f: str(values.get(f) or "") for f in AppSettings.FIELDS}
        row = db.execute("SELECT id FROM settings ORDER BY id LIMIT 1").fetchone()
        if row:
            sets = ", ".join(f"{f}=?" for f in fields)
            db.execute(f"UPDATE settings SET {sets} WHERE id=?", (*fields.values(), row["id"]))
        else:
            cols = ", ".join(fields)
            marks = ", ".join("?" for _ in fields)
            db.execute(f"INSERT INTO settings ({cols}) VALUES ({marks})", tuple(fields.values()))
        db.commit()
        return AppSettings(**fields)

    @staticmethod
    def exists() -> bool:
        db = get_db()
        return db.execute("SELECT 1 FROM settings LIMIT 1").fetchone() is not None


class RegistryStoreDB:
    """Admin-managed option lists: study modes and failure reasons."""

    TABLES = ("study_modes", "failure_reasons")

    def __init__(self, table: str):
        if table not in self.TABLES:
            raise ValueError(f"Unknown registry: {table}")
        self.table = table

    def list_all(self) -> list[RegistryItem]:
        db = get_db()
        rows = db.execute(f"SELECT * FROM {self.table} ORDER BY label").fetchall()
        return [registry_item_from_row(r) for r in rows]

    def get(self, item_id: int) -> Optional[RegistryItem]:
        db = get_db()
        row = db.execute(f"SELECT * FROM {self.table} WHERE id = ?", (item_id,)).fetchone()
        return registry_item_from_row(row) if row else None

    def create(self, label: str, value: str = "", color: str = "#64748b") -> RegistryItem:
        db = get_db()
        cur = db.execute(
            f"INSERT INTO {self.table} (label, value, color) VALUES (?, ?, ?)",
            (label, value, color),
        )
        db.commit()
        return RegistryItem(id=cur.lastrowid, label=label, value=value, color=color)

    def delete(self, item_id: int) -> bool:
        db = get_db()
        cur = db.execute(f"DELETE FROM {self.table} WHERE id = ?", (item_id,))
        db.commit()
        return cur.rowcount > 0

    def labels(self) -> set[str]:
        return {item.label for item in self.list_all()}


# ── Tasks ────────────────────────────────────────────────────────────


TASK_FIELDS = ("subject", "mode", "duration_minutes", "day_of_week", "description")


class TaskStoreDB:
    """Weekly schedule tasks (cohort base tasks and per-student tasks)."""

    @staticmethod
    def get(task_id: int) -> Optional[Task]:
        db = get_db()
        row = db.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return task_from_row(row) if row else None

    @staticmethod
    def list_all() -> list[Task]:
        db = get_db()
        rows = db.execute("SELECT * FROM tasks ORDER BY created_at DESC, id DESC").fetchall()
        return [task_from_row(r) for r in rows]

    @staticmethod
    def list_for_cohort(cohort_id: int) -> list[Task]:
        """All tasks of a cohort (base and personalized), newest first."""
        db = get_db()
        rows = db.execute(
            "SELECT * FROM tasks WHERE cohort_id = ? ORDER BY created_at DESC, id DESC",
            (cohort_id,),
        ).fetchall()
        return [task_from_row(r) for r in rows]

    @staticmethod
    def list_for_student(student_id: int) -> list[Task]:
        db = get_db()
        rows = db.execute(
            "SELECT * FROM tasks WHERE student_id = ? ORDER BY created_at DESC, id DESC",
            (student_id,),
        ).fetchall()
        return [task_from_row(r) for r in rows]

    @staticmethod
    def list_applicable(student_id: int, cohort_id: int | None) -> list[Task]:
        """Tasks a student sees: cohort base tasks plus tasks assigned to them."""
        db = get_db()
        rows = db.execute(
            "SELECT * FROM tasks WHERE (cohort_id = ? AND student_id IS NULL) OR student_id = ? "
            "ORDER BY created_at DESC, id DESC",
            (cohort_id, student_id),
        ).fetchall()
        return [task_from_row(r) for r in rows]

    @staticmethod
    def create(cohort_id: int, subject: str, mode: str, duration_minutes: int,
               day_of_week: str, description: str = "", student_id: int | None = None,
               commit: bool = True) -> Task:
        db = get_db()
        now = datetime.now().isoformat()
        cur = db.execute(
            "INSERT INTO tasks (cohort_id, student_id, subject, mode, duration_minutes, "
            "day_of_week, description, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (cohort_id, student_id, subject, mode, duration_minutes, day_of_week,
             description or "", now),
        )
        if commit:
            db.commit()
        return Task(
            id=cur.lastrowid, cohort_id=cohort_id, student_id=student_id, subject=subject,
            mode=mode, duration_minutes=duration_minutes, day_of_week=day_of_week,
            description=description or "", created_at=now,
        )

    @staticmethod
    def update(task_id: int, **fields) -> Optional[Task]:
        """Update schedule fields in place; the id is preserved."""
        updates = {k: v for k, v in fields.items() if k in TASK_FIELDS or k == "student_id"}
        if updates:
            db = get_db()
            sets = ", ".join(f"{k}=?" for k in updates)
            db.execute(f"UPDATE tasks SET {sets} WHERE id=?", (*updates.values(), task_id))
            db.commit()
        return TaskStoreDB.get(task_id)

    @staticmethod
    def delete(task_id: int, commit: bool = True) -> bool:
        db = get_db()
        cur = db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        if commit:
            db.commit()
        return cur.rowcount > 0


# ── Check-ins ────────────────────────────────────────────────────────


class CheckInStoreDB:
    """Student check-ins. Rows are created and deleted, never updated."""

    @staticmethod
    def get(checkin_id: int) -> Optional[CheckIn]:
        db = get_db()
        row = db.execute("SELECT * FROM checkins WHERE id = ?", (checkin_id,)).fetchone()
        return checkin_from_row(row) if row else None

    @staticmethod
    def list_all() -> list[CheckIn]:
        db = get_db()
        rows = db.execute("SELECT * FROM checkins ORDER BY timestamp DESC").fetchall()
        return [checkin_from_row(r) for r in rows]

    @staticmethod
    def list_for_student(student_id: int) -> list[CheckIn]:
        db = get_db()
        rows = db.execute(
            "SELECT * FROM checkins WHERE student_id = ? ORDER BY timestamp DESC",
            (student_id,),
        ).fetchall()
        return [checkin_from_row(r) for r in rows]

    @staticmethod
    def get_for_task(task_id: int, student_id: int) -> Optional[CheckIn]:
        db = get_db()
        row = db.execute(
            "SELECT * FROM checkins WHERE task_id = ? AND student_id = ? "
            "ORDER BY timestamp DESC LIMIT 1",
            (task_id, student_id),
        ).fetchone()
        return checkin_from_row(row) if row else None

    @staticmethod
    def create(task_id: int, student_id: int, completed: bool, period: str,
               actual_duration_minutes: int | None = None, reason_for_failure: str = "",
               note: str = "", timestamp: str | None = None) -> CheckIn:
        db = get_db()
        ts = timestamp or datetime.now().isoformat()
        minutes = actual_duration_minutes if completed else None
        reason = "" if completed else reason_for_failure
        cur = db.execute(
            "INSERT INTO checkins (task_id, student_id, completed, actual_duration_minutes, "
            "period, reason_for_failure, note, timestamp) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (task_id, student_id, 1 if completed else 0, minutes, period, reason, note or "", ts),
        )
        db.commit()
        return CheckIn(
            id=cur.lastrowid, task_id=task_id, student_id=student_id, completed=completed,
            period=period, timestamp=ts, actual_duration_minutes=minutes,
            reason_for_failure=reason, note=note or "",
        )

    @staticmethod
    def delete(checkin_id: int) -> bool:
        db = get_db()
        cur = db.execute("DELETE FROM checkins WHERE id = ?", (checkin_id,))
        db.commit()
        return cur.rowcount > 0
