"""Organization blueprint — settings and users of the caller's organization.

Endpoints:
  GET    /api/organization/settings        (any role)
  PATCH  /api/organization/settings        (ADMIN+)   {buddyEnabled: bool}
  GET    /api/organization/users           (ADMIN+)   all roles, with progress %
  PATCH  /api/organization/users/<id>      (ADMIN+)   {role}
"""

from flask import Blueprint, jsonify, request

import onboarding.services.organization_service as svc
from onboarding.auth import current_context, require_admin, require_auth

organization_bp = Blueprint("organization", __name__, url_prefix="/api/organization")


@organization_bp.route("/settings", methods=["GET"])
@require_auth
def get_settings():
    return jsonify(svc.get_settings(current_context())), 200


@organization_bp.route("/settings", methods=["PATCH"])
@require_admin
def update_settings():
    data = request.get_json(silent=True) or {}
    return jsonify(svc.update_settings(current_context(), data)), 200


@organization_bp.route("/users", methods=["GET"])
@require_admin
def list_users():
    return jsonify(svc.list_organization_users(current_context())), 200


@organization_bp.route("/users/<user_id>", methods=["PATCH"])
@require_admin
def update_user_role(user_id):
    """ADMIN cannot grant SUPER_ADMIN; identity-provider managed users are read-only."""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.update_organization_user_role(current_context(), user_id, data)), 200
