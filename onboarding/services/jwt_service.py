"""
JWT Service — access token issuing and identity-token verification.

Access token:  8 hours (configurable via JWT_ACCESS_EXPIRES)
Algorithm:     HS256

Token payload (access):
{
    "sub": <user_id>,
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}

Role and organization are deliberately absent: they are derived from the
database on every request (see context_service.derive_context).

Identity tokens come from the external identity provider and are verified
with IDP_JWT_SECRET / IDP_JWT_ALGORITHM (and IDP_AUDIENCE when set).
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


# ─── Defaults ────────────────────────────────────────────────
DEFAULT_ACCESS_EXPIRES = 8 * 3600
ALGORITHM = "HS256"


def _get_secret():
    """Get the JWT secret key from app config."""
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_access_expires():
    return current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES)


# ═══════════════════════════════════════════════════════════════
# Access tokens
# ═══════════════════════════════════════════════════════════════
def generate_access_token(user_id: str) -> str:
    """Generate an access token for a local user."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(seconds=_get_access_expires()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def issue_token_response(user_id: str) -> dict:
    """Access token plus the metadata returned by the sign-in endpoint."""
    return {
        "access_token": generate_access_token(user_id),
        "token_type": "Bearer",
        "expires_in": _get_access_expires(),
    }


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.

    Returns the payload dict on success.
    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError(f"Expected access token, got {payload.get('type')}")
    return payload


# ═══════════════════════════════════════════════════════════════
# Identity provider tokens
# ═══════════════════════════════════════════════════════════════
def decode_identity_token(token: str) -> dict:
    """Verify an identity-provider id token and return its claims.

    Raises jwt.InvalidTokenError (or a subclass) when the signature,
    expiry or audience check fails, or when no IdP secret is configured.
    """
    secret = current_app.config.get("IDP_JWT_SECRET")
    if not secret:
        raise jwt.InvalidTokenError("Identity provider verification is not configured")
    algorithm = current_app.config.get("IDP_JWT_ALGORITHM", ALGORITHM)
    audience = current_app.config.get("IDP_AUDIENCE")
    options = {} if audience else {"verify_aud": False}
    return jwt.decode(
        token, secret, algorithms=[algorithm], audience=audience, options=options,
    )
