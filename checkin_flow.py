"""
Check-in wizard for a single task.

    pending --open--> period_select --outcome--> success | failure
    success --submit--> completed        failure --submit--> failed
    completed | failed --undo--> pending
    any wizard step --close--> pending (nothing stored)

Only ``submit_*`` and ``undo`` touch the store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from db_stores import CheckInStoreDB
from entities import PERIODS, CheckIn

logger = logging.getLogger(__name__)

PENDING = "pending"
PERIOD_SELECT = "period_select"
SUCCESS = "success"
FAILURE = "failure"
COMPLETED = "completed"
FAILED = "failed"

WIZARD_STATES = (PERIOD_SELECT, SUCCESS, FAILURE)


class CheckInError(ValueError):
    """An action that is not allowed in the wizard's current state."""


def task_status(checkin: Optional[CheckIn]) -> str:
    if checkin is None:
        return PENDING
    return COMPLETED if checkin.completed else FAILED


class CheckInWizard:
    """State machine for one (task, student) pair."""

    def __init__(self, task_id: int, student_id: int,
                 existing: Optional[CheckIn] = None, store=CheckInStoreDB):
        self.task_id = task_id
        self.student_id = student_id
        self.store = store
        self.checkin = existing
        self.state = task_status(existing)
        self.period: Optional[str] = None

    def _require(self, *states: str) -> None:
        if self.state not in states:
            raise CheckInError(f"Cannot do that while the check-in is {self.state}.")

    def open(self) -> None:
        self._require(PENDING)
        self.state = PERIOD_SELECT
        self.period = None

    def select_period(self, period: str) -> None:
        self._require(PERIOD_SELECT)
        if period not in PERIODS:
            raise CheckInError(f"Invalid period: {period}")
        self.period = period

    def choose_outcome(self, completed: bool) -> None:
        self._require(PERIOD_SELECT)
        if self.period is None:
            raise CheckInError("Choose a period first.")
        self.state = SUCCESS if completed else FAILURE

    def back(self) -> None:
        self._require(SUCCESS, FAILURE)
        self.state = PERIOD_SELECT

    def close(self) -> None:
        """Discard the wizard without storing anything."""
        if self.state in WIZARD_STATES:
            self.state = PENDING
            self.period = None

    def submit_success(self, minutes, note: str = "") -> CheckIn:
        self._require(SUCCESS)
        try:
            minutes = int(minutes)
        except (TypeError, ValueError):
            raise CheckInError("Minutes must be a whole number.")
        if minutes <= 0:
            raise CheckInError("Minutes must be positive.")

        self.checkin = self.store.create(
            task_id=self.task_id,
            student_id=self.student_id,
            completed=True,
            period=self.period,
            actual_duration_minutes=minutes,
            note=note or "",
            timestamp=datetime.now().isoformat(),
        )
        self.state = COMPLETED
        return self.checkin

    def submit_failure(self, reason: str, allowed_reasons: set[str], note: str = "") -> CheckIn:
        self._require(FAILURE)
        if not reason or reason not in allowed_reasons:
            raise CheckInError(f"Unknown failure reason: {reason}")

        self.checkin = self.store.create(
            task_id=self.task_id,
            student_id=self.student_id,
            completed=False,
            period=self.period,
            reason_for_failure=reason,
            note=note or "",
            timestamp=datetime.now().isoformat(),
        )
        self.state = FAILED
        return self.checkin

    def undo(self, confirmed: bool) -> None:
        """Delete the stored check-in, returning the task to pending."""
        self._require(COMPLETED, FAILED)
        if not confirmed:
            raise CheckInError("Undo must be confirmed.")
        self.store.delete(self.checkin.id)
        logger.info("Check-in %s undone for task %s", self.checkin.id, self.task_id)
        self.checkin = None
        self.period = None
        self.state = PENDING


def submit_checkin(task_id: int, student_id: int, data: dict,
                   allowed_reasons: set[str], store=CheckInStoreDB) -> CheckIn:
    """Run the whole wizard for one request body.

    ``data`` carries ``period``, ``completed`` and either ``minutes`` (+ ``note``)
    or ``reason``.
    """
    existing = store.get_for_task(task_id, student_id)
    wizard = CheckInWizard(task_id, student_id, existing, store=store)
    if wizard.state != PENDING:
        raise CheckInError("This task already has a check-in; undo it first.")

    wizard.open()
    wizard.select_period(data.get("period"))
    completed = data.get("completed")
    if not isinstance(completed, bool):
        raise CheckInError("completed must be true or false.")
    wizard.choose_outcome(completed)
    if completed:
        return wizard.submit_success(data.get("minutes"), data.get("note", ""))
    return wizard.submit_failure(data.get("reason", ""), allowed_reasons, data.get("note", ""))
