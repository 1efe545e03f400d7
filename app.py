"""
StudyFlow — Flask Web Application

Weekly study-plan tracker: admins build cohort schedules and follow
analytics, students check in on their daily tasks.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

import database
from auth import auth_bp, login_manager
from blueprints import register_blueprints
from extensions import csrf, limiter
from logging_config import init_logging
from oauth import init_oauth, oauth_bp

logger = logging.getLogger(__name__)


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    # Flask ships TRUSTED_HOSTS = None, so only an explicit list wins
    if (app.config.get("ALLOWED_HOSTS") and not app.config.get("TESTING")
            and not app.config.get("TRUSTED_HOSTS")):
        app.config["TRUSTED_HOSTS"] = list(app.config["ALLOWED_HOSTS"])

    # Structured logging
    init_logging(app)

    # CSRF protection
    csrf.init_app(app)

    # Register database teardown
    database.init_app(app)

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    # Register auth blueprint and login manager
    csrf.exempt(auth_bp)
    app.register_blueprint(auth_bp)
    login_manager.init_app(app)

    # Register all application blueprints
    register_blueprints(app, csrf)

    # Google OAuth (disabled when no client id is configured)
    init_oauth(app)
    app.register_blueprint(oauth_bp)

    # JSON errors everywhere; there are no HTML pages
    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        if not app.debug and not app.testing:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
