"""
Structured logging for StudyFlow.

Every record emitted inside a request carries the request id and the id of
the signed-in user ("-" for anonymous requests), so a student's check-ins or
an admin's approvals can be followed across log lines. Production uses one
JSON object per line; development uses a readable text line.
"""

from __future__ import annotations

import json
import logging
import time
import uuid

from flask import Flask, g, has_request_context, request

ANONYMOUS = "-"


def request_user_id() -> str:
    """Id of the signed-in user for the current request, or ``-``."""
    if not has_request_context():
        return ANONYMOUS
    # Reuse the user Flask-Login already loaded; never trigger a store lookup from a log call
    user = g.get("_login_user")
    if user is None or not getattr(user, "is_authenticated", False):
        return ANONYMOUS
    return str(user.id)


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ANONYMOUS),
            "user_id": getattr(record, "user_id", ANONYMOUS),
        }
        for key in ("method", "path", "status", "duration_ms", "surface"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RequestContextFilter(logging.Filter):
    """Attach request id and user id to records emitted inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = g.get("request_id", ANONYMOUS) if has_request_context() else ANONYMOUS
        if not hasattr(record, "user_id"):
            record.user_id = request_user_id()
        return True


def _surface(path: str) -> str:
    """API area a path belongs to: admin, planner, student, auth or core."""
    parts = path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "api" and parts[1] in ("admin", "planner", "student", "auth"):
        return parts[1]
    return "core"


def init_logging(app: Flask) -> None:
    log_format = app.config.get("LOG_FORMAT", "text")
    log_level = app.config.get("LOG_LEVEL", "INFO")

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s user=%(user_id)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    root.addHandler(handler)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    @app.before_request
    def _start_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def _log_request(response):
        duration_ms = (time.time() - g.get("request_start", time.time())) * 1000
        surface = _surface(request.path)
        app.logger.info(
            "%s %s %s %.0fms user=%s",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            request_user_id(),
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms),
                "surface": surface,
            },
        )
        response.headers["X-Request-ID"] = g.get("request_id", ANONYMOUS)
        return response
