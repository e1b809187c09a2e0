"""
Onboarding Buddy
Flask Application Factory.

Usage:
    from onboarding import create_app
    app = create_app()           # defaults to APP_ENV or "development"
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
from werkzeug.exceptions import HTTPException

from onboarding.auth import init_auth
from onboarding.config import config
from onboarding.core.exceptions import (
    CapabilityUnavailableError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from onboarding.middleware.diagnostics import resolve_capabilities, run_startup_diagnostics
from onboarding.middleware.jwt_auth import init_jwt_middleware
from onboarding.middleware.logging_config import configure_logging
from onboarding.middleware.rate_limiter import init_rate_limits
from onboarding.middleware.security_headers import init_security_headers
from onboarding.middleware.timing import init_request_timing
from onboarding.models import db
from onboarding.utils.errors import E, api_error

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),
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
    app.config.setdefault("RATELIMIT_STORAGE_URI", os.getenv("REDIS_URL", "memory://"))
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, resources={r"/api/*": {
            "origins": [o.strip() for o in cors_origins.split(",") if o.strip()],
        }})
    else:
        CORS(app, resources={r"/api/*": {"origins": "*"}})

    # ── Request pipeline (timing → JWT context → auth gate) ──────────────
    init_request_timing(app)
    init_jwt_middleware(app)
    init_auth(app)
    init_security_headers(app)

    # ── Schema ───────────────────────────────────────────────────────────
    if app.config.get("AUTO_CREATE_TABLES"):
        os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except SQLAlchemyError as e:
                app.logger.warning("db.create_all() failed: %s", e)
    resolve_capabilities(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from onboarding.blueprints.auth_bp import auth_bp
    from onboarding.blueprints.buddy_bp import buddy_bp
    from onboarding.blueprints.categories_bp import categories_bp
    from onboarding.blueprints.checklist_bp import checklist_bp
    from onboarding.blueprints.employees_bp import employees_bp
    from onboarding.blueprints.health_bp import health_bp
    from onboarding.blueprints.organization_bp import organization_bp
    from onboarding.blueprints.super_admin_bp import super_admin_bp
    from onboarding.blueprints.tasks_bp import tasks_bp
    from onboarding.blueprints.templates_bp import templates_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(templates_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(buddy_bp)
    app.register_blueprint(checklist_bp)
    app.register_blueprint(organization_bp)
    app.register_blueprint(super_admin_bp)
    app.register_blueprint(health_bp)

    _register_error_handlers(app)
    _register_cli(app)

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app


# ═══════════════════════════════════════════════════════════════
# Error handlers
# ═══════════════════════════════════════════════════════════════
def _register_error_handlers(app):

    @app.errorhandler(NotFoundError)
    def _not_found_error(e):
        logger.debug("Not found: %s id=%s", e.resource, e.resource_id)
        return api_error(E.NOT_FOUND, str(e))

    @app.errorhandler(ValidationError)
    def _validation_error(e):
        code = E.VALIDATION_REQUIRED if "required" in str(e) else E.VALIDATION_INVALID
        return api_error(code, str(e), details=e.details)

    @app.errorhandler(ForbiddenError)
    def _forbidden_error(e):
        return api_error(E.FORBIDDEN, str(e))

    @app.errorhandler(ConflictError)
    def _conflict_error(e):
        return api_error(E.CONFLICT_DUPLICATE, str(e), details={"field": e.field})

    @app.errorhandler(CapabilityUnavailableError)
    def _capability_error(e):
        return api_error(E.UNAVAILABLE, str(e))

    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"retry_after": e.description})

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        db.session.rollback()
        logger.exception("Database error on %s %s", request.method, request.path)
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(Exception)
    def unexpected_error(e):
        if isinstance(e, HTTPException):
            return api_error(E.VALIDATION_INVALID, e.description or e.name, status=e.code)
        logger.exception("Unexpected error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error")


# ═══════════════════════════════════════════════════════════════
# CLI commands
# ═══════════════════════════════════════════════════════════════
def _register_cli(app):

    @app.cli.command("init-db")
    def init_db_cmd():
        """Create all tables (development / first deploy without migrations)."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed-pre-assigned-roles")
    @click.argument("assignments", nargs=-1, required=True)
    def seed_pre_assigned_roles_cmd(assignments):
        """Upsert pre-assigned roles given as EMAIL:ROLE pairs."""
        from onboarding.services import organization_service

        for item in assignments:
            email, _, role = item.rpartition(":")
            try:
                organization_service.upsert_pre_assigned_role(email, role.upper())
                click.echo(f"  {email} → {role.upper()}")
            except ValidationError as exc:
                click.echo(f"  skipped {item}: {exc}")

    @app.cli.command("seed-buddy-checklist")
    @click.option("--organization", "organization_name", default=None,
                  help="Only this organization (default: all).")
    def seed_buddy_checklist_cmd(organization_name):
        """Append the default buddy template to checklists without buddy tasks."""
        from onboarding.models.organization import Checklist, Organization
        from onboarding.services.template_service import add_buddy_checklist

        q = Checklist.query.join(Organization)
        if organization_name:
            q = q.filter(Organization.name == organization_name)
        for checklist in q.all():
            created = add_buddy_checklist(checklist)
            click.echo(f"  {checklist.organization.name}: {created} buddy tasks added")
        db.session.commit()
