"""
Schedule planner — base vs. personalized weekly tasks.

A cohort has a base schedule (tasks without a student). Individual students
can get their own tasks, either written by hand or imported from the base
schedule. An imported copy keeps the subject and weekday of its source, which
is how we tell a real customization from an unmodified copy.
"""

from __future__ import annotations

import logging
from typing import Optional

from database import get_db
from db_stores import TaskStoreDB
from entities import DAYS_OF_WEEK, Task

logger = logging.getLogger(__name__)

PLAN_MODES = ("base", "student")
IMPORT_STRATEGIES = ("merge", "replace")


class PlannerError(ValueError):
    """Raised for planner requests that cannot be carried out."""


def visible_tasks(tasks: list[Task], mode: str, cohort_id: int, day: str,
                  student_id: Optional[int] = None) -> list[Task]:
    """Tasks shown in the planner for one cohort, day and plan mode."""
    if mode == "base":
        return [
            t for t in tasks
            if t.day_of_week == day and t.cohort_id == cohort_id and t.student_id is None
        ]
    return [t for t in tasks if t.day_of_week == day and t.student_id == student_id]


def is_truly_personalized(task: Task, tasks: list[Task]) -> bool:
    """A student task that does not mirror any base task of its cohort."""
    if task.student_id is None:
        return False
    return not any(
        base.student_id is None
        and base.subject == task.subject
        and base.day_of_week == task.day_of_week
        and base.cohort_id == task.cohort_id
        for base in tasks
    )


def badge_for(task: Task, tasks: list[Task]) -> str:
    return "personalized" if is_truly_personalized(task, tasks) else "cohort"


def needs_import_choice(tasks: list[Task], student_id: int) -> bool:
    """True when importing would collide with tasks the student already has."""
    return any(t.student_id == student_id for t in tasks)


def validate_task_fields(data: dict, *, partial: bool = False) -> dict:
    """Normalize task fields from a request body.

    Returns only the fields present (all required unless ``partial``).
    """
    fields: dict = {}

    if "subject" in data or not partial:
        subject = str(data.get("subject") or "").strip()
        if not subject:
            raise PlannerError("Subject is required.")
        fields["subject"] = subject

    if "mode" in data or not partial:
        mode = str(data.get("mode") or "").strip()
        if not mode:
            raise PlannerError("Mode is required.")
        fields["mode"] = mode

    if "duration_minutes" in data or not partial:
        try:
            duration = int(data.get("duration_minutes"))
        except (TypeError, ValueError):
            raise PlannerError("Duration must be a whole number of minutes.")
        if duration <= 0:
            raise PlannerError("Duration must be positive.")
        fields["duration_minutes"] = duration

    if "day_of_week" in data or not partial:
        day = data.get("day_of_week")
        if day not in DAYS_OF_WEEK:
            raise PlannerError(f"Invalid day of week: {day}")
        fields["day_of_week"] = day

    if "description" in data:
        fields["description"] = str(data.get("description") or "")

    return fields


def execute_import(cohort_id: int, student_id: int, strategy: str) -> dict:
    """Copy the cohort's base schedule onto one student.

    ``replace`` first deletes every task assigned to the student; ``merge``
    keeps them, so subjects/days may end up duplicated.
    """
    if strategy not in IMPORT_STRATEGIES:
        raise PlannerError(f"Unknown import strategy: {strategy}")

    cohort_tasks = TaskStoreDB.list_for_cohort(cohort_id)
    base_tasks = [t for t in cohort_tasks if t.student_id is None]
    if not base_tasks:
        raise PlannerError("The cohort has no base schedule to import.")

    deleted = 0
    if strategy == "replace":
        for t in TaskStoreDB.list_for_student(student_id):
            if TaskStoreDB.delete(t.id, commit=False):
                deleted += 1

    created = [
        TaskStoreDB.create(
            cohort_id=cohort_id,
            student_id=student_id,
            subject=base.subject,
            mode=base.mode,
            duration_minutes=base.duration_minutes,
            day_of_week=base.day_of_week,
            description=base.description,
            commit=False,
        )
        # oldest first so the copies keep the base schedule's order
        for base in reversed(base_tasks)
    ]

    get_db().commit()

    logger.info(
        "Imported %d base tasks of cohort %s into student %s (%s, %d deleted)",
        len(created), cohort_id, student_id, strategy, deleted,
    )
    return {"strategy": strategy, "created": created, "deleted": deleted}
