"""Student routes — today's tasks, check-ins, progress and history."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, jsonify, request
from flask_login import current_user

from audit import log_event
from checkin_flow import CheckInError, CheckInWizard, submit_checkin, task_status
from db_stores import CheckInStoreDB, RegistryStoreDB, SubjectStoreDB, TaskStoreDB
from entities import DAYS_OF_WEEK, DEFAULT_FAILURE_REASONS, DEFAULT_STUDY_MODES, PERIODS
from helpers import current_user_id, json_error, student_required
from schedule_planner import is_truly_personalized
from student_analytics import StudentAnalytics, filter_history

bp = Blueprint("student", __name__, url_prefix="/api/student")


def _failure_reasons() -> list[dict]:
    items = RegistryStoreDB("failure_reasons").list_all()
    if not items:
        return DEFAULT_FAILURE_REASONS
    return [{"label": i.label, "value": i.code, "color": i.color} for i in items]


def _study_modes() -> list[dict]:
    items = RegistryStoreDB("study_modes").list_all()
    if not items:
        return DEFAULT_STUDY_MODES
    return [{"label": i.label, "value": i.code, "color": i.color} for i in items]


def _applicable(uid: int):
    return TaskStoreDB.list_applicable(uid, current_user.cohort_id)


@bp.route("/tasks")
@student_required
def day_tasks():
    """Tasks for one weekday (today by default) with their check-in status."""
    uid = current_user_id()
    day = request.args.get("day") or DAYS_OF_WEEK[date.today().weekday()]
    if day not in DAYS_OF_WEEK:
        return json_error(f"Invalid day: {day}")

    tasks = _applicable(uid)
    # Personalization is judged against the cohort's full base schedule
    cohort_tasks = TaskStoreDB.list_for_cohort(current_user.cohort_id) if current_user.cohort_id else tasks
    result = []
    for task in tasks:
        if task.day_of_week != day:
            continue
        checkin = CheckInStoreDB.get_for_task(task.id, uid)
        result.append({
            **task.to_dict(),
            "status": task_status(checkin),
            "checkin": checkin.to_dict() if checkin else None,
            "is_personalized": is_truly_personalized(task, cohort_tasks),
        })
    return jsonify({"day": day, "tasks": result})


@bp.route("/tasks/<int:task_id>/checkin", methods=["POST"])
@student_required
def checkin(task_id):
    uid = current_user_id()
    if task_id not in {t.id for t in _applicable(uid)}:
        return json_error("Task not found", 404)
    if CheckInStoreDB.get_for_task(task_id, uid) is not None:
        return json_error("This task already has a check-in; undo it first", 409)

    data = request.get_json(silent=True) or {}
    allowed = {r["label"] for r in _failure_reasons()}
    try:
        record = submit_checkin(task_id, uid, data, allowed)
    except CheckInError as e:
        return json_error(str(e))
    return jsonify({"checkin": record.to_dict(), "status": task_status(record)}), 201


@bp.route("/checkins/<int:checkin_id>", methods=["DELETE"])
@student_required
def undo_checkin(checkin_id):
    uid = current_user_id()
    record = CheckInStoreDB.get(checkin_id)
    if record is None or record.student_id != uid:
        return json_error("Check-in not found", 404)

    data = request.get_json(silent=True) or {}
    confirmed = bool(data.get("confirm")) or request.args.get("confirm") == "true"
    wizard = CheckInWizard(record.task_id, uid, record)
    try:
        wizard.undo(confirmed)
    except CheckInError as e:
        return json_error(str(e))
    log_event("checkin_undone", uid, checkin=checkin_id, task=record.task_id)
    return jsonify({"status": wizard.state})


@bp.route("/analytics")
@student_required
def analytics():
    uid = current_user_id()
    stats = StudentAnalytics(
        student_id=uid,
        cohort_id=current_user.cohort_id,
        tasks=_applicable(uid),
        checkins=CheckInStoreDB.list_for_student(uid),
    )
    return jsonify(stats.summary())


@bp.route("/history")
@student_required
def history():
    uid = current_user_id()
    on_date = request.args.get("date", "").strip()
    if on_date:
        try:
            date.fromisoformat(on_date)
        except ValueError:
            return json_error(f"Invalid date: {on_date}")
    rows = filter_history(
        CheckInStoreDB.list_for_student(uid),
        {t.id: t for t in TaskStoreDB.list_all()},
        on_date=on_date,
        subject=request.args.get("subject", "").strip(),
    )
    return jsonify({"history": rows})


@bp.route("/options")
@student_required
def options():
    """Lists used by the check-in wizard and history filters."""
    return jsonify({
        "periods": PERIODS,
        "failure_reasons": _failure_reasons(),
        "study_modes": _study_modes(),
        "subjects": [s.to_dict() for s in SubjectStoreDB.list_all()],
    })
