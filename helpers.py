"""
Shared helpers used across blueprints.

Kept out of app.py to avoid circular imports between the blueprints.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, jsonify
from flask_login import current_user

from auth import login_manager


def current_user_id() -> int:
    """Return the current authenticated user's ID."""
    if not current_user.is_authenticated:
        abort(401)
    return current_user.id


def json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def admin_required(f: Callable) -> Callable:
    """Decorator that requires an authenticated admin."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if current_user.role != "admin":
            abort(403)
        return f(*args, **kwargs)
    return decorated


def student_required(f: Callable) -> Callable:
    """Decorator that requires an authenticated, approved student."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if current_user.role != "student":
            abort(403)
        if current_user.status != "active":
            return json_error("Your account is not active.", 403)
        return f(*args, **kwargs)
    return decorated


def int_arg(args, name: str) -> int | None:
    """Read an optional integer query/body parameter; blank means absent."""
    value = args.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer")
