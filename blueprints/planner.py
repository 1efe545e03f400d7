"""Schedule planner routes — cohort base schedules and per-student tasks."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from audit import log_event
from db_stores import CohortStoreDB, TaskStoreDB, UserStoreDB
from entities import DAYS_OF_WEEK
from helpers import admin_required, current_user_id, int_arg, json_error
from schedule_planner import (
    PLAN_MODES,
    PlannerError,
    badge_for,
    execute_import,
    needs_import_choice,
    validate_task_fields,
    visible_tasks,
)

bp = Blueprint("planner", __name__, url_prefix="/api/planner")


def _task_json(task, tasks):
    return {**task.to_dict(), "badge": badge_for(task, tasks)}


def _check_student(student_id):
    student = UserStoreDB.get(student_id)
    if student is None or student.role != "student":
        raise LookupError("Student not found")
    return student


@bp.route("/tasks")
@admin_required
def list_tasks():
    try:
        cohort_id = int_arg(request.args, "cohort_id")
        student_id = int_arg(request.args, "student_id")
    except ValueError as e:
        return json_error(str(e))
    mode = request.args.get("mode", "base")
    day = request.args.get("day", DAYS_OF_WEEK[0])

    if cohort_id is None:
        return json_error("cohort_id is required")
    if mode not in PLAN_MODES:
        return json_error(f"Invalid mode: {mode}")
    if day not in DAYS_OF_WEEK:
        return json_error(f"Invalid day: {day}")
    if mode == "student" and student_id is None:
        return json_error("student_id is required in student mode")

    tasks = TaskStoreDB.list_for_cohort(cohort_id)
    shown = visible_tasks(tasks, mode, cohort_id, day, student_id)
    return jsonify({
        "mode": mode,
        "day": day,
        "tasks": [_task_json(t, tasks) for t in shown],
    })


@bp.route("/tasks", methods=["POST"])
@admin_required
def create_task():
    data = request.get_json(silent=True) or {}
    try:
        fields = validate_task_fields(data)
        cohort_id = int_arg(data, "cohort_id")
        student_id = int_arg(data, "student_id")
        if cohort_id is None:
            raise PlannerError("cohort_id is required")
    except ValueError as e:
        return json_error(str(e))

    if CohortStoreDB.get(cohort_id) is None:
        return json_error("Cohort not found", 404)
    if student_id is not None:
        try:
            _check_student(student_id)
        except LookupError as e:
            return json_error(str(e), 404)

    task = TaskStoreDB.create(cohort_id=cohort_id, student_id=student_id, **fields)
    tasks = TaskStoreDB.list_for_cohort(cohort_id)
    return jsonify({"task": _task_json(task, tasks)}), 201


@bp.route("/tasks/<int:task_id>", methods=["PUT"])
@admin_required
def update_task(task_id):
    if TaskStoreDB.get(task_id) is None:
        return json_error("Task not found", 404)
    data = request.get_json(silent=True) or {}
    try:
        fields = validate_task_fields(data, partial=True)
    except PlannerError as e:
        return json_error(str(e))

    task = TaskStoreDB.update(task_id, **fields)
    tasks = TaskStoreDB.list_for_cohort(task.cohort_id)
    return jsonify({"task": _task_json(task, tasks)})


@bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@admin_required
def delete_task(task_id):
    data = request.get_json(silent=True) or {}
    if not (data.get("confirm") or request.args.get("confirm") == "true"):
        return json_error("Deleting a task must be confirmed")
    if not TaskStoreDB.delete(task_id):
        return json_error("Task not found", 404)
    return jsonify({"success": True})


@bp.route("/import", methods=["POST"])
@admin_required
def import_base_schedule():
    """Copy the cohort's base tasks onto a student.

    If the student already has tasks the caller must pick ``merge`` or
    ``replace``; otherwise the import runs as a merge.
    """
    data = request.get_json(silent=True) or {}
    try:
        cohort_id = int_arg(data, "cohort_id")
        student_id = int_arg(data, "student_id")
    except ValueError as e:
        return json_error(str(e))
    if cohort_id is None or student_id is None:
        return json_error("cohort_id and student_id are required")
    if CohortStoreDB.get(cohort_id) is None:
        return json_error("Cohort not found", 404)
    try:
        _check_student(student_id)
    except LookupError as e:
        return json_error(str(e), 404)

    strategy = data.get("strategy")
    if not strategy:
        if needs_import_choice(TaskStoreDB.list_for_student(student_id), student_id):
            return jsonify({
                "error": "The student already has tasks; choose merge or replace",
                "needs_choice": True,
            }), 409
        strategy = "merge"

    try:
        result = execute_import(cohort_id, student_id, strategy)
    except PlannerError as e:
        return json_error(str(e))

    log_event("schedule_import", current_user_id(),
              cohort=cohort_id, student=student_id, strategy=strategy)
    tasks = TaskStoreDB.list_for_cohort(cohort_id)
    return jsonify({
        "strategy": result["strategy"],
        "deleted": result["deleted"],
        "created": [_task_json(t, tasks) for t in result["created"]],
    })
