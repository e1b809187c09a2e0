"""Employees blueprint — the admin roster.

Endpoints:
  GET/POST    /api/employees
  GET/DELETE  /api/employees/<id>
  PATCH       /api/employees/<id>/buddy    {buddyId | null, additionalBuddyId?}
"""

from flask import Blueprint, jsonify, request

import onboarding.services.employee_service as svc
from onboarding.auth import current_context, require_admin

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.route("", methods=["GET"])
@require_admin
def list_employees():
    """EMPLOYEE-role users of the caller's organization with completion %."""
    return jsonify(svc.list_employees(current_context())), 200


@employees_bp.route("", methods=["POST"])
@require_admin
def create_employee():
    """Body: {name, email}"""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.create_employee(current_context(), data)), 201


@employees_bp.route("/<user_id>", methods=["GET"])
@require_admin
def get_employee(user_id):
    return jsonify(svc.get_employee(current_context(), user_id)), 200


@employees_bp.route("/<user_id>", methods=["DELETE"])
@require_admin
def delete_employee(user_id):
    svc.delete_employee(current_context(), user_id)
    return jsonify({"success": True, "message": "Employee deleted"}), 200


@employees_bp.route("/<user_id>/buddy", methods=["PATCH"])
@require_admin
def set_buddy(user_id):
    data = request.get_json(silent=True) or {}
    return jsonify(svc.set_buddy(current_context(), user_id, data)), 200
