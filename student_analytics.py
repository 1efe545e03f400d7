"""Student progress analytics: weekly goal vs. actual, efficiency and streak."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from entities import DAYS_OF_WEEK, CheckIn, Task

STREAK_WINDOW_DAYS = 30
REMOVED_TASK = "Removed task"


def applicable_tasks(tasks: list[Task], student_id: int, cohort_id: Optional[int]) -> list[Task]:
    """Cohort base tasks plus the tasks assigned to this student."""
    return [
        t for t in tasks
        if (t.cohort_id == cohort_id and t.student_id is None) or t.student_id == student_id
    ]


def _checkin_date(checkin: CheckIn) -> str:
    return checkin.timestamp[:10]


class StudentAnalytics:
    """Analytics for a single student's dashboard."""

    def __init__(self, student_id: int, cohort_id: Optional[int],
                 tasks: list[Task], checkins: list[CheckIn], today: date | None = None):
        self.student_id = student_id
        self.cohort_id = cohort_id
        self.tasks = applicable_tasks(tasks, student_id, cohort_id)
        self.checkins = [c for c in checkins if c.student_id == student_id]
        self.today = today or date.today()

    def weekly_series(self) -> list[dict]:
        """Planned vs. completed hours for the last 7 days, oldest first."""
        series = []
        for offset in range(6, -1, -1):
            d = self.today - timedelta(days=offset)
            day_name = DAYS_OF_WEEK[d.weekday()]
            day_str = d.isoformat()

            meta_minutes = sum(t.duration_minutes for t in self.tasks if t.day_of_week == day_name)
            real_minutes = sum(
                c.actual_duration_minutes or 0
                for c in self.checkins
                if c.completed and _checkin_date(c) == day_str
            )
            series.append({
                "date": day_str,
                "day": day_name,
                "meta": round(meta_minutes / 60, 1),
                "real": round(real_minutes / 60, 1),
            })
        return series

    def efficiency(self) -> int:
        if not self.checkins:
            return 0
        return round(self.completed_total() / len(self.checkins) * 100)

    def completed_total(self) -> int:
        return sum(1 for c in self.checkins if c.completed)

    def streak(self) -> int:
        """Consecutive days with a completed check-in, counting back from today.

        Today without a check-in does not break the streak; any earlier gap does.
        """
        study_days = {_checkin_date(c) for c in self.checkins if c.completed}
        count = 0
        for i in range(STREAK_WINDOW_DAYS):
            day_str = (self.today - timedelta(days=i)).isoformat()
            if day_str in study_days:
                count += 1
            elif i > 0:
                break
        return count

    def summary(self) -> dict:
        return {
            "series": self.weekly_series(),
            "efficiency": self.efficiency(),
            "completed_total": self.completed_total(),
            "streak": self.streak(),
        }


def filter_history(checkins: list[CheckIn], tasks_by_id: dict[int, Task],
                   on_date: str = "", subject: str = "") -> list[dict]:
    """The student's history list, optionally narrowed to one day and/or subject."""
    rows = []
    for c in checkins:
        task = tasks_by_id.get(c.task_id) if c.task_id is not None else None
        subject_name = task.subject if task else REMOVED_TASK
        if on_date and _checkin_date(c) != on_date:
            continue
        if subject and subject_name != subject:
            continue
        rows.append({**c.to_dict(), "subject": subject_name})
    return rows
