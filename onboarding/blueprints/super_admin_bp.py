"""Super-admin blueprint — cross-organization administration.

Every route requires SUPER_ADMIN.

Endpoint groups:
  Organizations      GET/POST    /api/super-admin/organizations
                     PUT/DELETE  /api/super-admin/organizations/<id>
  Users              GET/POST    /api/super-admin/users?organizationId=
                     PUT/DELETE  /api/super-admin/users/<id>
  Pre-assigned roles GET/POST    /api/super-admin/pre-assigned-roles
                     DELETE      /api/super-admin/pre-assigned-roles?email=
"""

from flask import Blueprint, jsonify, request

import onboarding.services.organization_service as svc
from onboarding.auth import current_context, require_super_admin

super_admin_bp = Blueprint("super_admin", __name__, url_prefix="/api/super-admin")


# ═════════════════════════════════════════════════════════════════════════
# Organizations
# ═════════════════════════════════════════════════════════════════════════


@super_admin_bp.route("/organizations", methods=["GET"])
@require_super_admin
def list_organizations():
    return jsonify(svc.list_organizations()), 200


@super_admin_bp.route("/organizations", methods=["POST"])
@require_super_admin
def create_organization():
    """Body: {name, buddyEnabled?} — seeds the default checklist."""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.create_organization(data)), 201


@super_admin_bp.route("/organizations/<organization_id>", methods=["PUT"])
@require_super_admin
def update_organization(organization_id):
    data = request.get_json(silent=True) or {}
    return jsonify(svc.update_organization(organization_id, data)), 200


@super_admin_bp.route("/organizations/<organization_id>", methods=["DELETE"])
@require_super_admin
def delete_organization(organization_id):
    svc.delete_organization(current_context(), organization_id)
    return jsonify({"success": True, "message": "Organization deleted"}), 200


# ═════════════════════════════════════════════════════════════════════════
# Users
# ═════════════════════════════════════════════════════════════════════════


@super_admin_bp.route("/users", methods=["GET"])
@require_super_admin
def list_users():
    return jsonify(svc.list_users(request.args.get("organizationId"))), 200


@super_admin_bp.route("/users", methods=["POST"])
@require_super_admin
def create_user():
    """Body: {name, email, organizationId, role?}"""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.create_user(data)), 201


@super_admin_bp.route("/users/<user_id>", methods=["PUT"])
@require_super_admin
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    return jsonify(svc.update_user(user_id, data)), 200


@super_admin_bp.route("/users/<user_id>", methods=["DELETE"])
@require_super_admin
def delete_user(user_id):
    svc.delete_user(current_context(), user_id)
    return jsonify({"success": True, "message": "User deleted"}), 200


# ═════════════════════════════════════════════════════════════════════════
# Pre-assigned roles
# ═════════════════════════════════════════════════════════════════════════


@super_admin_bp.route("/pre-assigned-roles", methods=["GET"])
@require_super_admin
def list_pre_assigned_roles():
    return jsonify(svc.list_pre_assigned_roles()), 200


@super_admin_bp.route("/pre-assigned-roles", methods=["POST"])
@require_super_admin
def upsert_pre_assigned_role():
    """Body: {email, role}"""
    data = request.get_json(silent=True) or {}
    row = svc.upsert_pre_assigned_role(data.get("email"), data.get("role"))
    return jsonify(row.to_dict()), 200


@super_admin_bp.route("/pre-assigned-roles", methods=["DELETE"])
@require_super_admin
def delete_pre_assigned_role():
    svc.delete_pre_assigned_role(request.args.get("email"))
    return jsonify({"success": True, "message": "Pre-assigned role removed"}), 200
