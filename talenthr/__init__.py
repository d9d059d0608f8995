# talenthr/__init__.py
import logging

from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from talenthr.config import get_config
from talenthr.models import db
from talenthr.utils.responses import fail


def _register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return fail(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.exception("Unhandled error")
        message = str(e) if app.config.get("DEBUG") else "Internal server error"
        return fail(message, 500)


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or get_config())

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize Extensions
    origins = [o.strip() for o in str(app.config.get("CORS_ORIGINS", "")).split(",") if o.strip()]
    CORS(
        app,
        resources={r"/api/*": {"origins": origins or "*"}},
        supports_credentials=True,
        allow_headers=["Content-Type"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )
    db.init_app(app)

    # Import Blueprints
    from talenthr.routes.auth import auth_bp
    from talenthr.routes.otp import otp_bp
    from talenthr.routes.invitations import invitations_bp
    from talenthr.routes.attendance import attendance_bp
    from talenthr.leave import leave_bp
    from talenthr.leave import routes as _leave_routes  # noqa: F401
    from talenthr.routes.performance import goals_bp, reviews_bp
    from talenthr.routes.recruiting import jobs_bp, candidates_bp, interviews_bp
    from talenthr.routes.users import users_bp
    from talenthr.routes.profile import profile_bp
    from talenthr.routes.settings import settings_bp
    from talenthr.routes.employees import employees_bp
    from talenthr.routes.departments import departments_bp
    from talenthr.routes.reports import reports_bp
    from talenthr.routes.misc import seed_bp, feedback_bp

    # Register Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(otp_bp, url_prefix="/api/otp")
    app.register_blueprint(invitations_bp, url_prefix="/api/invitations")
    app.register_blueprint(attendance_bp, url_prefix="/api/attendance")
    app.register_blueprint(leave_bp, url_prefix="/api")
    app.register_blueprint(goals_bp, url_prefix="/api/goals")
    app.register_blueprint(reviews_bp, url_prefix="/api/reviews")
    app.register_blueprint(jobs_bp, url_prefix="/api/jobs")
    app.register_blueprint(candidates_bp, url_prefix="/api/candidates")
    app.register_blueprint(interviews_bp, url_prefix="/api/interviews")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(profile_bp, url_prefix="/api/profile")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")
    app.register_blueprint(employees_bp, url_prefix="/api/employees")
    app.register_blueprint(departments_bp, url_prefix="/api/departments")
    app.register_blueprint(reports_bp, url_prefix="/api/reports")
    app.register_blueprint(seed_bp, url_prefix="/api/seed")
    app.register_blueprint(feedback_bp, url_prefix="/api/feedback")

    _register_error_handlers(app)

    @app.route("/")
    def home():
        return {
            "message": "TalentHR API",
            "version": "1.0.0",
        }

    with app.app_context():
        db.create_all()

    return app
