"""
Blueprint registration for StudyFlow.

Everything under /api is JSON; these blueprints are exempt from CSRF form
tokens and rely on the SameSite session cookie instead.
"""

from __future__ import annotations


def register_blueprints(app, csrf=None):
    from blueprints.core import bp as core_bp
    from blueprints.admin import bp as admin_bp
    from blueprints.planner import bp as planner_bp
    from blueprints.student import bp as student_bp

    for bp in (core_bp, admin_bp, planner_bp, student_bp):
        if csrf is not None:
            csrf.exempt(bp)
        app.register_blueprint(bp)
