"""Admin routes — dashboard analytics, student approval, cohorts, subjects, settings, registries, audit trail."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from admin_analytics import AdminAnalytics, DashboardFilters, pending_students, student_options
from audit import log_event, recent_events
from db_stores import (
    CheckInStoreDB,
    CohortStoreDB,
    RegistryStoreDB,
    SettingsStoreDB,
    SubjectStoreDB,
    TaskStoreDB,
    UserStoreDB,
)
from entities import STATUSES
from helpers import admin_required, current_user_id, int_arg, json_error

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _student_or_404(student_id: int):
    student = UserStoreDB.get(student_id)
    if student is None or student.role != "student":
        return None
    return student


# ── Dashboard ─────────────────────────────────────────────

@bp.route("/dashboard")
@admin_required
def dashboard():
    try:
        filters = DashboardFilters(
            cohort_id=int_arg(request.args, "cohort_id"),
            subject=request.args.get("subject", "").strip(),
            student_id=int_arg(request.args, "student_id"),
            start_date=request.args.get("start_date", "").strip(),
            end_date=request.args.get("end_date", "").strip(),
        )
    except ValueError as e:
        return json_error(f"Invalid filter: {e}")

    students = UserStoreDB.list_students()
    analytics = AdminAnalytics(
        students=students,
        history=CheckInStoreDB.list_all(),
        tasks_by_id={t.id: t for t in TaskStoreDB.list_all()},
        cohorts=CohortStoreDB.list_all(),
    )
    result = analytics.dashboard(filters)
    result["student_options"] = student_options(students, filters.cohort_id)
    result["pending_count"] = len(pending_students(students))
    return jsonify(result)


# ── Students ──────────────────────────────────────────────

@bp.route("/students")
@admin_required
def list_students():
    try:
        cohort_id = int_arg(request.args, "cohort_id")
    except ValueError as e:
        return json_error(str(e))
    status = request.args.get("status", "")
    query = request.args.get("q", "").strip().lower()
    students = UserStoreDB.list_students(cohort_id)
    if status:
        students = [s for s in students if s.status == status]
    if query:
        students = [s for s in students if query in s.name.lower()]
    return jsonify({"students": [s.to_dict() for s in students]})


@bp.route("/students/pending")
@admin_required
def list_pending():
    students = pending_students(UserStoreDB.list_students())
    return jsonify({"students": [s.to_dict() for s in students]})


@bp.route("/students/<int:student_id>", methods=["PUT"])
@admin_required
def update_student(student_id):
    student = _student_or_404(student_id)
    if student is None:
        return json_error("Student not found", 404)

    data = request.get_json(silent=True) or {}
    # Validate every field before writing any of them
    if "status" in data and data["status"] not in STATUSES:
        return json_error(f"Invalid status: {data['status']}")
    if "cohort_id" in data:
        try:
            cohort_id = int_arg(data, "cohort_id")
        except ValueError as e:
            return json_error(str(e))
        if cohort_id is not None and CohortStoreDB.get(cohort_id) is None:
            return json_error("Cohort not found", 404)

    if "status" in data:
        student = UserStoreDB.set_status(student_id, data["status"])
        log_event("student_status", current_user_id(), student=student_id, status=student.status)
    if "cohort_id" in data:
        student = UserStoreDB.set_cohort(student_id, cohort_id)

    return jsonify({"student": student.to_dict()})


@bp.route("/students/<int:student_id>/approve", methods=["POST"])
@admin_required
def approve_student(student_id):
    student = _student_or_404(student_id)
    if student is None:
        return json_error("Student not found", 404)
    student = UserStoreDB.set_status(student_id, "active")
    log_event("student_approved", current_user_id(), student=student_id)
    return jsonify({"student": student.to_dict()})


@bp.route("/students/<int:student_id>/toggle-block", methods=["POST"])
@admin_required
def toggle_block(student_id):
    """Blocked <-> active."""
    student = _student_or_404(student_id)
    if student is None:
        return json_error("Student not found", 404)
    new_status = "active" if student.status == "blocked" else "blocked"
    student = UserStoreDB.set_status(student_id, new_status)
    log_event("student_status", current_user_id(), student=student_id, status=new_status)
    return jsonify({"student": student.to_dict()})


# ── Cohorts ───────────────────────────────────────────────

@bp.route("/cohorts")
@admin_required
def list_cohorts():
    return jsonify({"cohorts": [c.to_dict() for c in CohortStoreDB.list_all()]})


@bp.route("/cohorts", methods=["POST"])
@admin_required
def create_cohort():
    data = request.get_json(silent=True) or {}
    name = str(data.get("name", "")).strip()
    if not name:
        return json_error("Name is required")
    cohort = CohortStoreDB.create(name)
    return jsonify({"cohort": cohort.to_dict()}), 201


@bp.route("/cohorts/<int:cohort_id>", methods=["PUT"])
@admin_required
def rename_cohort(cohort_id):
    data = request.get_json(silent=True) or {}
    name = str(data.get("name", "")).strip()
    if not name:
        return json_error("Name is required")
    if CohortStoreDB.get(cohort_id) is None:
        return json_error("Cohort not found", 404)
    return jsonify({"cohort": CohortStoreDB.rename(cohort_id, name).to_dict()})


@bp.route("/cohorts/<int:cohort_id>", methods=["DELETE"])
@admin_required
def delete_cohort(cohort_id):
    data = request.get_json(silent=True) or {}
    if not (data.get("confirm") or request.args.get("confirm") == "true"):
        return json_error("Deleting a cohort removes its schedule; confirm to proceed")
    if not CohortStoreDB.delete(cohort_id):
        return json_error("Cohort not found", 404)
    log_event("cohort_deleted", current_user_id(), cohort=cohort_id)
    return jsonify({"success": True})


# ── Subjects ──────────────────────────────────────────────

@bp.route("/subjects")
@admin_required
def list_subjects():
    return jsonify({"subjects": [s.to_dict() for s in SubjectStoreDB.list_all()]})


@bp.route("/subjects", methods=["POST"])
@admin_required
def create_subject():
    data = request.get_json(silent=True) or {}
    name = str(data.get("name", "")).strip()
    if not name:
        return json_error("Name is required")
    subject = SubjectStoreDB.create(name, data.get("color") or "#94a3b8")
    if subject is None:
        return json_error("A subject with this name already exists", 409)
    return jsonify({"subject": subject.to_dict()}), 201


@bp.route("/subjects/<int:subject_id>", methods=["PUT"])
@admin_required
def update_subject(subject_id):
    current = SubjectStoreDB.get(subject_id)
    if current is None:
        return json_error("Subject not found", 404)
    data = request.get_json(silent=True) or {}
    name = str(data.get("name", current.name)).strip()
    if not name:
        return json_error("Name is required")
    subject = SubjectStoreDB.update(subject_id, name, data.get("color") or current.color)
    if subject is None:
        return json_error("A subject with this name already exists", 409)
    return jsonify({"subject": subject.to_dict()})


@bp.route("/subjects/<int:subject_id>", methods=["DELETE"])
@admin_required
def delete_subject(subject_id):
    if not SubjectStoreDB.delete(subject_id):
        return json_error("Subject not found", 404)
    return jsonify({"success": True})


# ── Settings ──────────────────────────────────────────────

@bp.route("/settings")
@admin_required
def get_settings():
    return jsonify(SettingsStoreDB.get().to_dict())


@bp.route("/settings", methods=["PUT"])
@admin_required
def save_settings():
    data = request.get_json(silent=True) or {}
    merged = {**SettingsStoreDB.get().to_dict(), **data}
    settings = SettingsStoreDB.save(merged)
    log_event("settings_saved", current_user_id())
    return jsonify(settings.to_dict())


# ── Registries (study modes, failure reasons) ─────────────

REGISTRY_KINDS = "any(study_modes, failure_reasons)"


@bp.route(f"/registries/<{REGISTRY_KINDS}:kind>")
@admin_required
def list_registry(kind):
    return jsonify({"items": [i.to_dict() for i in RegistryStoreDB(kind).list_all()]})


@bp.route(f"/registries/<{REGISTRY_KINDS}:kind>", methods=["POST"])
@admin_required
def create_registry_item(kind):
    data = request.get_json(silent=True) or {}
    label = str(data.get("label", "")).strip()
    if not label:
        return json_error("Label is required")
    item = RegistryStoreDB(kind).create(
        label, str(data.get("value", "")).strip(), data.get("color") or "#64748b",
    )
    return jsonify({"item": item.to_dict()}), 201


@bp.route(f"/registries/<{REGISTRY_KINDS}:kind>/<int:item_id>", methods=["DELETE"])
@admin_required
def delete_registry_item(kind, item_id):
    if not RegistryStoreDB(kind).delete(item_id):
        return json_error("Item not found", 404)
    return jsonify({"success": True})


# ── Audit trail ───────────────────────────────────────────

@bp.route("/audit")
@admin_required
def audit_trail():
    try:
        user_id = int_arg(request.args, "user_id")
        limit = int_arg(request.args, "limit") or 50
    except ValueError as e:
        return json_error(str(e))
    events = recent_events(request.args.get("action", ""), user_id, limit)
    return jsonify({"events": events})
