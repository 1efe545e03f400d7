"""
Domain entities for StudyFlow and the mapping from store rows to them.

Rows coming out of sqlite3 are loosely typed; every store method converts
them here so the rest of the code only handles these dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Optional

DAYS_OF_WEEK = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]
PERIODS = ["Morning", "Afternoon", "Night", "Dawn"]
ROLES = ("student", "admin")
STATUSES = ("active", "pending", "blocked")

# Used when the study_modes registry is empty
DEFAULT_STUDY_MODES = [
    {"label": "Video lesson", "value": "Video"},
    {"label": "Reading", "value": "Reading"},
    {"label": "Questions", "value": "Questions"},
    {"label": "Review", "value": "Review"},
]

# Used when the failure_reasons registry is empty
DEFAULT_FAILURE_REASONS = [
    {"label": "Work", "value": "work"},
    {"label": "Tired", "value": "tired"},
    {"label": "Overslept", "value": "sleep"},
    {"label": "Hungry", "value": "hungry"},
    {"label": "Other", "value": "other"},
]


@dataclass
class User:
    id: int
    name: str
    email: str
    role: str = "student"  # "student" or "admin"
    status: str = "pending"  # "active", "pending" or "blocked"
    cohort_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Cohort:
    id: int
    name: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Subject:
    id: int
    name: str
    color: str = "#94a3b8"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Task:
    id: int
    cohort_id: int
    subject: str
    mode: str
    duration_minutes: int
    day_of_week: str
    student_id: Optional[int] = None  # None = cohort base task
    description: str = ""
    created_at: str = ""

    @property
    def is_base(self) -> bool:
        return self.student_id is None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CheckIn:
    id: int
    task_id: Optional[int]
    student_id: int
    completed: bool
    period: str
    timestamp: str
    actual_duration_minutes: Optional[int] = None
    reason_for_failure: str = ""
    note: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AppSettings:
    school_name: str = ""
    instructor_name: str = ""
    phone: str = ""
    email: str = ""
    welcome_message: str = ""
    whatsapp_link: str = ""

    FIELDS = (
        "school_name", "instructor_name", "phone", "email",
        "welcome_message", "whatsapp_link",
    )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RegistryItem:
    """A study mode or failure reason."""
    id: int
    label: str
    value: str = ""
    color: str = "#64748b"

    @property
    def code(self) -> str:
        return self.value or self.label

    def to_dict(self) -> dict:
        return asdict(self)


# ── Row mapping ──────────────────────────────────────────────────────


def _get(row: Any, key: str, default=None):
    keys = row.keys()
    if key in keys and row[key] is not None:
        return row[key]
    return default


def user_from_row(row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=_get(row, "email", ""),
        role=_get(row, "role", "student"),
        status=_get(row, "status", "pending"),
        cohort_id=_get(row, "cohort_id"),
    )


def cohort_from_row(row) -> Cohort:
    return Cohort(id=row["id"], name=row["name"])


def subject_from_row(row) -> Subject:
    return Subject(id=row["id"], name=row["name"], color=_get(row, "color", "#94a3b8"))


def task_from_row(row) -> Task:
    return Task(
        id=row["id"],
        cohort_id=row["cohort_id"],
        student_id=_get(row, "student_id"),
        subject=row["subject"],
        mode=row["mode"],
        duration_minutes=int(row["duration_minutes"]),
        day_of_week=row["day_of_week"],
        description=_get(row, "description", ""),
        created_at=_get(row, "created_at", ""),
    )


def checkin_from_row(row) -> CheckIn:
    completed = bool(row["completed"])
    return CheckIn(
        id=row["id"],
        task_id=_get(row, "task_id"),
        student_id=row["student_id"],
        completed=completed,
        period=row["period"],
        timestamp=row["timestamp"],
        actual_duration_minutes=_get(row, "actual_duration_minutes") if completed else None,
        reason_for_failure="" if completed else _get(row, "reason_for_failure", ""),
        note=_get(row, "note", ""),
    )


def settings_from_row(row) -> AppSettings:
    return AppSettings(**{f: _get(row, f, "") for f in AppSettings.FIELDS})


def registry_item_from_row(row) -> RegistryItem:
    return RegistryItem(
        id=row["id"],
        label=row["label"],
        value=_get(row, "value", ""),
        color=_get(row, "color", "#64748b"),
    )
