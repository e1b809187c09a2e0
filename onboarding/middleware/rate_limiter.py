"""
Rate limiting configuration.

The Limiter instance is created in onboarding/__init__.py with no default
limits; this module applies limits per blueprint.

Limits (per remote IP):
    - sign-in:  10/minute
    - writes:   60/minute (POST/PUT/PATCH/DELETE on the API blueprints)
    - health:   exempt

Usage:
    from onboarding.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

from flask import request

SIGNIN_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"

WRITE_BLUEPRINTS = (
    "templates", "categories", "tasks", "employees", "buddy",
    "checklist", "organization", "super_admin",
)


def _is_read():
    return request.method in ("GET", "HEAD", "OPTIONS")


def init_rate_limits(app, limiter):
    """Apply limits to registered blueprints. Disabled in testing or when RATELIMIT_ENABLED is off."""
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    auth = app.blueprints.get("auth")
    if auth:
        limiter.limit(SIGNIN_LIMIT, methods=["POST"])(auth)

    for name in WRITE_BLUEPRINTS:
        bp = app.blueprints.get(name)
        if bp:
            limiter.limit(WRITE_LIMIT, exempt_when=_is_read)(bp)

    health = app.blueprints.get("health")
    if health:
        limiter.exempt(health)

    app.logger.info("Rate limiter configured: sign-in %s, writes %s", SIGNIN_LIMIT, WRITE_LIMIT)
