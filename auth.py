"""
User Authentication — Flask-Login blueprint.

Provides the JSON login and logout routes. Passwords are hashed with
werkzeug.security; students without a password sign in through oauth.py.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request, session
from flask_login import LoginManager, UserMixin, current_user, login_user, logout_user
from werkzeug.security import check_password_hash

from audit import log_event
from db_stores import UserStoreDB
from entities import User as UserRecord
from extensions import limiter

auth_bp = Blueprint("auth", __name__)
login_manager = LoginManager()


class User(UserMixin):
    """Wraps a stored user for Flask-Login."""

    def __init__(self, record: UserRecord):
        self.record = record
        self.id = record.id
        self.name = record.name
        self.email = record.email
        self.role = record.role
        self.status = record.status
        self.cohort_id = record.cohort_id

    @property
    def is_admin(self):
        return self.role == "admin"

    @staticmethod
    def get(user_id: int):
        record = UserStoreDB.get(user_id)
        return User(record) if record else None


@login_manager.user_loader
def load_user(user_id):
    # Re-read on every request so approval or blocking applies immediately
    try:
        return User.get(int(user_id))
    except (TypeError, ValueError):
        return None


def session_payload(user: User) -> dict:
    """View state for a signed-in user."""
    if user.status == "pending" and not user.is_admin:
        return {"view": "pending_approval", "user": user.record.to_dict()}
    return {
        "view": "app",
        "surface": "admin" if user.is_admin else "student",
        "user": user.record.to_dict(),
    }


def start_session(user: User) -> None:
    session.permanent = True
    login_user(user)


@auth_bp.route("/api/auth/login", methods=["POST"])
@limiter.limit("5 per 15 minutes")
def login():
    data = request.get_json(silent=True) or request.form
    email = str(data.get("email", "")).strip().lower()
    password = str(data.get("password", ""))

    if not email or not password:
        return jsonify({"error": "Email and password are required."}), 400

    row = UserStoreDB.get_auth_row(email)
    if not row or not row["password_hash"] or not check_password_hash(row["password_hash"], password):
        log_event("login_failed", row["id"] if row else None, email=email)
        return jsonify({"error": "Invalid email or password."}), 401

    user = User.get(row["id"])
    if user.status == "blocked":
        log_event("login_blocked", user.id)
        return jsonify({"error": "Your account has been blocked.", "view": "login"}), 403

    if user.status == "pending" and not user.is_admin:
        # Pending students are told to wait; no session is kept
        log_event("login_pending", user.id)
        return jsonify(session_payload(user)), 403

    start_session(user)
    log_event("login_success", user.id)
    return jsonify(session_payload(user))


@auth_bp.route("/api/auth/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        log_event("logout", current_user.id)
    logout_user()
    session.clear()
    return jsonify({"view": "login"})
