"""Admin dashboard analytics.

Turns the raw student list and check-in history into the KPIs and chart
series shown on the admin dashboard. Everything here is a pure function of
its inputs; the blueprint fetches the records and passes them in.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from entities import DAYS_OF_WEEK, CheckIn, Cohort, Task, User

NO_FAILURE = "None"
NO_COHORT = "No cohort"
OTHER_SUBJECT = "Others"
TOP_SUBJECTS_LIMIT = 5


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp, dropping any timezone so values compare."""
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).replace(tzinfo=None)


def _parse_bound(value: str, end_of_day: bool) -> datetime:
    # A bare date as the upper bound covers that whole day
    if len(value.strip()) == 10:
        d = datetime.fromisoformat(value.strip()).date()
        return datetime.combine(d, time.max if end_of_day else time.min)
    return parse_timestamp(value)


@dataclass
class DashboardFilters:
    cohort_id: Optional[int] = None
    subject: str = ""
    student_id: Optional[int] = None
    start_date: str = ""
    end_date: str = ""

    def __post_init__(self):
        # Raises ValueError on malformed dates so callers can reject the request
        self._start = _parse_bound(self.start_date, end_of_day=False) if self.start_date else None
        self._end = _parse_bound(self.end_date, end_of_day=True) if self.end_date else None

    @property
    def start(self) -> Optional[datetime]:
        return self._start

    @property
    def end(self) -> Optional[datetime]:
        return self._end


class AdminAnalytics:
    """Analytics engine for the admin dashboard."""

    def __init__(self, students: list[User], history: list[CheckIn],
                 tasks_by_id: dict[int, Task], cohorts: list[Cohort]):
        self.students = students
        self.history = history
        self.tasks_by_id = tasks_by_id
        self.cohorts = cohorts
        self._students_by_id = {s.id: s for s in students}

    def _task(self, checkin: CheckIn) -> Optional[Task]:
        if checkin.task_id is None:
            return None
        return self.tasks_by_id.get(checkin.task_id)

    def filter_history(self, filters: DashboardFilters) -> list[CheckIn]:
        """Check-ins matching every active filter."""
        result = []
        for item in self.history:
            task = self._task(item)
            student = self._students_by_id.get(item.student_id)

            if filters.cohort_id is not None and (student is None or student.cohort_id != filters.cohort_id):
                continue
            if filters.student_id is not None and item.student_id != filters.student_id:
                continue
            if filters.subject and (task is None or task.subject != filters.subject):
                continue
            if filters.start or filters.end:
                ts = parse_timestamp(item.timestamp)
                if filters.start and ts < filters.start:
                    continue
                if filters.end and ts > filters.end:
                    continue
            result.append(item)
        return result

    def filtered_students_count(self, filters: DashboardFilters) -> int:
        if filters.cohort_id is not None:
            return sum(1 for s in self.students if s.cohort_id == filters.cohort_id)
        return len(self.students)

    @staticmethod
    def efficiency(checkins: list[CheckIn]) -> int:
        if not checkins:
            return 0
        completed = sum(1 for c in checkins if c.completed)
        return round(completed / len(checkins) * 100)

    @staticmethod
    def failure_counts(checkins: list[CheckIn]) -> Counter:
        return Counter(c.reason_for_failure for c in checkins if not c.completed and c.reason_for_failure)

    def daily_average(self, checkins: list[CheckIn], student_count: int) -> list[dict]:
        """Average completed hours per student for each weekday of the schedule."""
        totals = {day: 0.0 for day in DAYS_OF_WEEK}
        for c in checkins:
            if not c.completed:
                continue
            task = self._task(c)
            if task is not None and task.day_of_week in totals:
                totals[task.day_of_week] += (c.actual_duration_minutes or 0) / 60

        divider = student_count or 1
        return [{"day": day, "hours": round(hours / divider, 1)} for day, hours in totals.items()]

    def top_subjects(self, checkins: list[CheckIn]) -> list[dict]:
        hours: dict[str, float] = {}
        for c in checkins:
            if not c.completed:
                continue
            task = self._task(c)
            subject = task.subject if task is not None else OTHER_SUBJECT
            hours[subject] = hours.get(subject, 0.0) + (c.actual_duration_minutes or 0) / 60

        ranked = sorted(hours.items(), key=lambda kv: kv[1], reverse=True)
        return [
            {"subject": subject, "hours": round(h, 1)}
            for subject, h in ranked[:TOP_SUBJECTS_LIMIT]
        ]

    def per_cohort(self) -> list[dict]:
        """Completed hours and failures per cohort over the whole history.

        The cohort filter is not applied here so cohorts can always be
        compared against each other.
        """
        names = {c.id: c.name for c in self.cohorts}
        stats: dict[str, dict[str, float]] = {}
        for c in self.history:
            student = self._students_by_id.get(c.student_id)
            cohort_id = student.cohort_id if student else None
            name = names.get(cohort_id, NO_COHORT) if cohort_id is not None else NO_COHORT

            bucket = stats.setdefault(name, {"hours": 0.0, "failures": 0})
            if c.completed:
                bucket["hours"] += (c.actual_duration_minutes or 0) / 60
            else:
                bucket["failures"] += 1

        return [
            {"name": name, "total_hours": round(s["hours"]), "failures": int(s["failures"])}
            for name, s in stats.items()
        ]

    def dashboard(self, filters: DashboardFilters | None = None) -> dict:
        """All KPIs and chart series for one filter selection."""
        filters = filters or DashboardFilters()
        filtered = self.filter_history(filters)
        student_count = self.filtered_students_count(filters)
        failures = self.failure_counts(filtered)
        top_failure = failures.most_common(1)[0][0] if failures else NO_FAILURE

        return {
            "has_data": bool(filtered),
            "kpis": {
                "total_students": student_count,
                "efficiency": self.efficiency(filtered),
                "top_failure": top_failure,
                "checkin_count": len(filtered),
            },
            "daily_average": self.daily_average(filtered, student_count),
            "top_subjects": self.top_subjects(filtered),
            "failure_distribution": [
                {"name": reason, "value": count} for reason, count in failures.items()
            ],
            "per_cohort": self.per_cohort(),
        }


def student_options(students: list[User], cohort_id: int | None = None) -> list[dict]:
    """Active students for the dashboard's student filter."""
    result = [s for s in students if s.status == "active"]
    if cohort_id is not None:
        result = [s for s in result if s.cohort_id == cohort_id]
    return [{"value": s.id, "label": s.name} for s in result]


def pending_students(students: list[User]) -> list[User]:
    return [s for s in students if s.status == "pending"]
