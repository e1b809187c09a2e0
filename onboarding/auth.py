"""
Onboarding Buddy
Authentication & Authorization.

Provides:
    - init_auth: rejects unauthenticated /api/* calls with 401
    - require_role decorator: role-based access control (403)
    - current_context: the RequestContext of the request

Security model:
    - Every /api/* endpoint needs a valid bearer access token, except
      /api/auth/signin and /api/health/*
    - Role and organization are read from the database on each request
      (middleware.jwt_auth → services.context_service.derive_context)
    - State-changing requests must send JSON (lightweight CSRF mitigation)

Roles: EMPLOYEE < ADMIN < SUPER_ADMIN. SUPER_ADMIN passes every role check.
"""

import functools
import logging

from flask import g, request

from onboarding.core.exceptions import ForbiddenError
from onboarding.middleware.jwt_auth import is_public_path
from onboarding.models.user import ADMIN, SUPER_ADMIN
from onboarding.services.context_service import RequestContext
from onboarding.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def current_context() -> RequestContext:
    """The caller's context; only valid behind init_auth."""
    return g.ctx


# ── Authorization decorators ─────────────────────────────────────────────────

def require_auth(f):
    """Decorator: 401 unless the request carries a valid access token."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "ctx", None) is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return f(*args, **kwargs)
    return decorated


def require_role(*roles: str):
    """
    Decorator: allow only the given roles (SUPER_ADMIN is always allowed).

    Usage:
        @require_role(ADMIN)
        def reset_template(checklist_id): ...
    """
    allowed = set(roles) | {SUPER_ADMIN}

    def decorator(f):
        @functools.wraps(f)
        @require_auth
        def decorated(*args, **kwargs):
            ctx = g.ctx
            if ctx.role not in allowed:
                logger.warning(
                    "Access denied: role '%s' (user=%s) on %s %s",
                    ctx.role, ctx.user_id, request.method, request.path,
                )
                raise ForbiddenError("Insufficient permissions")
            return f(*args, **kwargs)
        return decorated
    return decorator


require_admin = require_role(ADMIN)
require_super_admin = require_role(SUPER_ADMIN)


# ── CSRF protection for API ──────────────────────────────────────────────────

def _check_content_type():
    """State-changing requests with a body must be application/json (415 otherwise)."""
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length:
            return api_error(
                E.VALIDATION_INVALID,
                "Content-Type must be application/json for state-changing requests",
                status=415,
            )
    return None


def init_auth(app):
    """
    Install the authentication gate.

    Runs after the JWT middleware has set ``g.ctx``.
    """
    @app.before_request
    def _before_request_auth():
        if is_public_path(request.path) or request.method == "OPTIONS":
            return None

        csrf_error = _check_content_type()
        if csrf_error:
            return csrf_error

        if getattr(g, "ctx", None) is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return None
