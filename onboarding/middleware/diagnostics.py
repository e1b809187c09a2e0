"""
Startup diagnostics — runs once when the Flask app starts.

Resolves the schema capabilities the services consult at request time and
logs a summary banner.

Capabilities:
    buddy_preparations  BUDDY_PREPARATIONS_ENABLED when set, otherwise
                        whether the ``buddy_preparations`` table exists
"""

import logging
import sys
from dataclasses import dataclass

from flask import Flask, current_app
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from onboarding.models import db

logger = logging.getLogger(__name__)

EXTENSION_KEY = "schema_capabilities"


@dataclass(frozen=True)
class SchemaCapabilities:
    buddy_preparations: bool = True


def _parse_flag(value):
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    return None


def resolve_capabilities(app: Flask) -> SchemaCapabilities:
    """Compute capabilities once and store them on ``app.extensions``."""
    override = _parse_flag(app.config.get("BUDDY_PREPARATIONS_ENABLED"))
    if override is not None:
        enabled = override
    else:
        with app.app_context():
            try:
                enabled = sa_inspect(db.engine).has_table("buddy_preparations")
            except SQLAlchemyError as exc:
                logger.warning("Schema inspection failed, disabling buddy preparations: %s", exc)
                enabled = False

    capabilities = SchemaCapabilities(buddy_preparations=enabled)
    app.extensions[EXTENSION_KEY] = capabilities
    if not enabled:
        logger.warning("Buddy preparations unavailable: endpoints will answer 503")
    return capabilities


def get_capabilities() -> SchemaCapabilities:
    return current_app.extensions.get(EXTENSION_KEY) or SchemaCapabilities()


def run_startup_diagnostics(app: Flask):
    """Run diagnostic checks during app startup."""
    if app.config.get("TESTING"):
        return

    issues: list[str] = []

    with app.app_context():
        py = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

        db_status = "ok"
        db_uri = str(app.config.get("SQLALCHEMY_DATABASE_URI", ""))
        db_type = "PostgreSQL" if "postgresql" in db_uri else "SQLite" if "sqlite" in db_uri else "unknown"
        try:
            db.session.execute(db.text("SELECT 1"))
        except SQLAlchemyError as exc:
            db_status = "FAILED"
            issues.append(f"Database unreachable: {exc}")

        try:
            table_count = len(sa_inspect(db.engine).get_table_names())
            if table_count == 0:
                issues.append("No tables found, run 'flask db upgrade' or 'flask init-db'")
        except SQLAlchemyError:
            table_count = "?"

        capabilities = get_capabilities()
        idp = "configured" if app.config.get("IDP_JWT_SECRET") else "NOT SET"
        if idp == "NOT SET":
            issues.append("IDP_JWT_SECRET not set, sign-in is disabled")

        banner = f"""
╔══════════════════════════════════════════════════════════════╗
║  Onboarding Buddy — Startup Diagnostics                      ║
╠══════════════════════════════════════════════════════════════╣
║  Python      : {py:<46s}║
║  Environment : {app.config.get('ENV', 'development'):<46s}║
║  Debug       : {str(app.debug):<46s}║
║  Database    : {f'{db_type} ({db_status})':<46s}║
║  Tables      : {str(table_count):<46s}║
║  Buddy preps : {'available' if capabilities.buddy_preparations else 'UNAVAILABLE':<46s}║
║  IdP secret  : {idp:<46s}║
╚══════════════════════════════════════════════════════════════╝"""
        logger.info(banner)

        if issues:
            logger.warning("Startup issues detected:")
            for issue in issues:
                logger.warning("  ⚠ %s", issue)
        else:
            logger.info("✅ All startup checks passed")
