"""
Advocacy Hub
Flask Application Factory.

Usage:
    from advocacy import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from advocacy.config import config
from advocacy.middleware.jwt_auth import init_jwt_middleware
from advocacy.middleware.logging_config import configure_logging
from advocacy.middleware.rate_limiter import init_rate_limits
from advocacy.middleware.timing import init_request_timing
from advocacy.models import db

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate(directory=os.path.join(os.path.dirname(os.path.dirname(__file__)), "migrations"))
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing + identity ────────────────────────────────────────
    init_request_timing(app)
    init_jwt_middleware(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 1024 * 1024)  # 1 MB

    @app.before_request
    def _guard_request():
        from flask import abort

        if request.method in ("POST", "PUT", "PATCH", "DELETE") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from advocacy.models import auth as _auth_models              # noqa: F401
    from advocacy.models import congress as _congress_models      # noqa: F401
    from advocacy.models import permissions as _permission_models  # noqa: F401

    # ── Auto-create tables outside production (migrations own prod schema) ──
    if config_name != "production":
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except SQLAlchemyError as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from advocacy.blueprints.admin_permissions_bp import admin_permissions_bp
    from advocacy.blueprints.congress_bp import congress_bp
    from advocacy.blueprints.health_bp import health_bp
    from advocacy.blueprints.me_bp import me_bp

    app.register_blueprint(admin_permissions_bp)
    app.register_blueprint(congress_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(me_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("set-role")
    @click.argument("email")
    @click.argument("role")
    def set_role_cmd(email, role):
        """Assign a platform role to the profile with EMAIL (the only way to bootstrap an admin)."""
        from advocacy.core.exceptions import ValidationError
        from advocacy.models.auth import Profile
        from advocacy.services.admin_actions import assign_platform_role

        profile = Profile.query.filter_by(email=email).first()
        if profile is None:
            raise click.ClickException(f"No profile with email {email}")
        try:
            assign_platform_role(profile.id, role, changed_by="cli")
        except ValidationError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"{email} is now {role}")

    @app.cli.command("purge-session-preferences")
    def purge_session_preferences_cmd():
        """Delete expired view-as previews and other session preferences."""
        from advocacy.services.view_as import purge_expired_preferences

        count = purge_expired_preferences()
        click.echo(f"Purged {count} expired session preferences.")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return {"error": "Not found", "path": request.path}, 404
        return e

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(415)
    def unsupported_media_type(e):
        return {"error": e.description}, 415

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        if request.path.startswith("/api/"):
            return {"error": "Internal server error"}, 500
        return "<h1>500 — Internal Server Error</h1>", 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
