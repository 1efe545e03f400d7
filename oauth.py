"""Google OAuth integration — student sign-in via Google."""

from __future__ import annotations

import logging

from authlib.integrations.base_client import OAuthError
from authlib.integrations.flask_client import OAuth
from flask import Blueprint, current_app, redirect, url_for

from audit import log_event
from auth import User, start_session
from db_stores import UserStoreDB

logger = logging.getLogger(__name__)

oauth_bp = Blueprint("oauth", __name__)

oauth = OAuth()
_registered = False


def init_oauth(app):
    """Initialize OAuth with the Flask app. Call from create_app()."""
    global _registered
    client_id = app.config.get("GOOGLE_OAUTH_CLIENT_ID", "")
    if not client_id:
        logger.info("GOOGLE_OAUTH_CLIENT_ID not set — Google OAuth disabled")
        return

    oauth.init_app(app)
    if not _registered:
        oauth.register(
            name="google",
            client_id=client_id,
            client_secret=app.config.get("GOOGLE_OAUTH_CLIENT_SECRET", ""),
            server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
            client_kwargs={"scope": "openid email profile"},
        )
        _registered = True


def is_oauth_available() -> bool:
    """Check if Google OAuth is configured."""
    client_id = current_app.config.get("GOOGLE_OAUTH_CLIENT_ID", "")
    return bool(client_id) and _registered


def _session_view(**params):
    return redirect(url_for("core.session_state", **params))


@oauth_bp.route("/login/google")
def google_login():
    """Redirect to Google OAuth consent screen."""
    if not is_oauth_available():
        return _session_view(error="google_unavailable")

    redirect_uri = url_for("oauth.google_callback", _external=True)
    return oauth.google.authorize_redirect(redirect_uri)


@oauth_bp.route("/callback/google")
def google_callback():
    """Handle Google OAuth callback."""
    if not is_oauth_available():
        return _session_view(error="google_unavailable")

    try:
        token = oauth.google.authorize_access_token()
        user_info = token.get("userinfo")
        if not user_info:
            user_info = oauth.google.userinfo()
    except OAuthError as e:
        logger.error("Google OAuth error: %s", e)
        return _session_view(error="google_failed")

    google_id = user_info.get("sub", "")
    email = user_info.get("email", "").lower()
    name = user_info.get("name") or email.split("@")[0]

    if not email:
        return _session_view(error="google_no_email")

    record = UserStoreDB.get_by_oauth("google", google_id)
    if record:
        log_event("login_google", record.id)
    else:
        record = UserStoreDB.get_by_email(email)
        if record:
            # Link Google to the existing account
            UserStoreDB.link_oauth(record.id, "google", google_id)
            log_event("login_google_linked", record.id)
        else:
            # First sign-in: a student waiting for approval
            record = UserStoreDB.create(
                name=name, email=email, role="student", status="pending",
                oauth_provider="google", oauth_id=google_id,
            )
            log_event("register_google", record.id, email=email)

    user = User(record)
    if user.status == "blocked":
        return _session_view(error="blocked")
    if user.status == "pending" and not user.is_admin:
        return _session_view(view="pending_approval")

    start_session(user)
    return _session_view()
