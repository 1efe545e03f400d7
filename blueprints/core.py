"""Core routes — session view routing, school info, health checks."""

from __future__ import annotations

import logging
import sqlite3
import time

from flask import Blueprint, jsonify, request, session
from flask_login import current_user, login_required, logout_user

from auth import session_payload
from database import get_db
from db_stores import SettingsStoreDB

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__)

LOGGED_OUT_VIEWS = ("login", "pending_approval")


@bp.route("/")
@bp.route("/api/session")
def session_state():
    """Which view the client should show: login, pending_approval or app."""
    error = request.args.get("error", "")

    if not current_user.is_authenticated:
        view = request.args.get("view", "login")
        if view not in LOGGED_OUT_VIEWS:
            view = "login"
        payload = {"view": view}
        if error:
            payload["error"] = error
        return jsonify(payload)

    if current_user.status == "blocked":
        logout_user()
        session.clear()
        return jsonify({"view": "login", "error": "blocked"})

    payload = session_payload(current_user)
    if payload["view"] == "pending_approval":
        # Pending accounts never keep a session
        logout_user()
        session.clear()
    return jsonify(payload)


@bp.route("/api/settings")
@login_required
def school_settings():
    """School contact details shown on the student 'about' page."""
    return jsonify(SettingsStoreDB.get().to_dict())


# ── Health checks ─────────────────────────────────────────

_start_time = time.time()


@bp.route("/health")
def health():
    uptime = int(time.time() - _start_time)
    return jsonify({"status": "ok", "uptime_seconds": uptime})


@bp.route("/ready")
def ready():
    try:
        get_db().execute("SELECT 1").fetchone()
        return jsonify({"status": "ready"}), 200
    except sqlite3.Error as exc:
        logger.error("Readiness check failed: %s", exc, exc_info=True)
        return jsonify({"status": "not_ready"}), 503
