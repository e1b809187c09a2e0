"""
JWT Auth Middleware — parses the bearer token and sets ``g.ctx``.

For every request under /api/ (except the public prefixes below) the
Authorization header is decoded and handed to ``derive_context`` together
with a database lookup. ``g.ctx`` is the resulting RequestContext, or None
when the token is missing, invalid, expired, or names a user that no longer
exists. Rejecting anonymous calls is left to onboarding.auth.
"""

import logging

import jwt as pyjwt
from flask import g, request

from onboarding.models import db
from onboarding.models.user import User
from onboarding.services.context_service import derive_context
from onboarding.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

PUBLIC_PREFIXES = (
    "/api/auth/signin",
    "/api/health",
)


def is_public_path(path: str) -> bool:
    return not path.startswith("/api/") or path.startswith(PUBLIC_PREFIXES)


def _lookup_user(user_id):
    return db.session.get(User, user_id)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.ctx = None
        if is_public_path(request.path):
            return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        try:
            claims = decode_access_token(auth_header[7:])
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired access token on %s", request.path)
            return
        except pyjwt.InvalidTokenError as exc:
            logger.info("Invalid access token on %s: %s", request.path, exc)
            return

        g.ctx = derive_context(claims, _lookup_user)
        if g.ctx is None:
            logger.info("Access token for unknown user %s", claims.get("sub"))
