"""
Audit trail for StudyFlow.

Logins, student approvals and blocks, cohort deletions, base-schedule
imports and check-in undos are written to the audit_log table and to the
structured log. Details are stored as ``key=value`` pairs, e.g.
``student=4 status=blocked``, so admins can filter them later.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from flask import has_request_context, request

from database import get_db

logger = logging.getLogger(__name__)


def format_detail(**fields) -> str:
    """``key=value`` pairs in call order; ``None`` values are skipped."""
    return " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)


def log_event(action: str, user_id: int | None = None, detail: str = "", **fields) -> None:
    """Record an audit event; keyword fields are appended to ``detail``."""
    detail = " ".join(p for p in (detail, format_detail(**fields)) if p)
    ip = (request.remote_addr or "") if has_request_context() else ""
    ua = request.headers.get("User-Agent", "") if has_request_context() else ""

    try:
        db = get_db()
        db.execute(
            "INSERT INTO audit_log (user_id, action, detail, ip_address, user_agent, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (user_id, action, detail, ip, ua, datetime.now().isoformat()),
        )
        db.commit()
    except sqlite3.Error:
        logger.exception("Could not write audit event %s", action)

    logger.info("audit: %s user_id=%s %s", action, user_id, detail)


def recent_events(action: str = "", user_id: int | None = None, limit: int = 50) -> list[dict]:
    """Newest audit events first, optionally narrowed to one action or actor."""
    clauses, params = [], []
    if action:
        clauses.append("action = ?")
        params.append(action)
    if user_id is not None:
        clauses.append("user_id = ?")
        params.append(user_id)
    where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
    rows = get_db().execute(
        "SELECT id, user_id, action, detail, ip_address, created_at FROM audit_log "
        f"{where}ORDER BY id DESC LIMIT ?",
        (*params, max(1, min(limit, 500))),
    ).fetchall()
    return [dict(r) for r in rows]
