"""
Auth Blueprint — sign-in through the identity provider.

Endpoints:
  POST /api/auth/signin   — IdP id token → local access token (provisions on first sign-in)
  GET  /api/auth/me       — Current user profile with organization
"""

import logging

import jwt as pyjwt
from flask import Blueprint, jsonify, request

from onboarding.auth import current_context, require_auth
from onboarding.models import db
from onboarding.models.user import User
from onboarding.services import provisioning_service
from onboarding.utils.errors import E, api_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/signin
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/signin", methods=["POST"])
def signin():
    """
    Exchange an identity-provider id token for an access token.

    Body: { "id_token": "..." }
    Returns: { access_token, token_type, expires_in, user, organization, created }
    """
    data = request.get_json(silent=True) or {}
    try:
        result = provisioning_service.sign_in(data.get("id_token"))
    except pyjwt.InvalidTokenError as exc:
        logger.info("Rejected id token: %s", exc)
        return api_error(E.UNAUTHORIZED, "Invalid identity token")
    return jsonify(result), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    user = db.session.get(User, current_context().user_id)
    d = user.to_dict(include_buddy=True)
    d["organization"] = user.organization.to_dict()
    return jsonify(d), 200
