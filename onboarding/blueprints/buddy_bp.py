"""Buddy blueprint — preparations and the buddy's view of their people.

Endpoint groups:
  Preparations (admin)  GET/POST               /api/buddy-preparations
                        GET/PATCH/PUT/DELETE   /api/buddy-preparations/<id>
  Buddy work            GET   /api/checklist/employee/<employeeId>
                        POST  /api/buddy/tasks/<taskId>/progress/<employeeId>
  Lookups (any role)    GET   /api/buddies
                        GET   /api/user/buddy-relationships
                        GET   /api/user/is-buddy

``employeeId`` may name a user or a buddy preparation.
"""

import logging

from flask import Blueprint, jsonify, request

import onboarding.services.buddy_service as svc
from onboarding.auth import current_context, require_admin, require_auth

logger = logging.getLogger(__name__)

buddy_bp = Blueprint("buddy", __name__, url_prefix="/api")


# ═════════════════════════════════════════════════════════════════════════
# Buddy preparations
# ═════════════════════════════════════════════════════════════════════════


@buddy_bp.route("/buddy-preparations", methods=["GET"])
@require_admin
def list_preparations():
    """Query params: organizationId (SUPER_ADMIN only)"""
    result = svc.list_preparations(current_context(), request.args.get("organizationId"))
    return jsonify({"success": True, **result}), 200


@buddy_bp.route("/buddy-preparations", methods=["POST"])
@require_admin
def create_preparation():
    """Body: {firstName, lastName, buddyId, email?, notes?, organizationId?}"""
    data = request.get_json(silent=True) or {}
    preparation = svc.create_preparation(current_context(), data)
    return jsonify({
        "success": True,
        "data": preparation.to_dict(),
        "message": "Buddy preparation created",
    }), 201


@buddy_bp.route("/buddy-preparations/<preparation_id>", methods=["GET"])
@require_admin
def get_preparation(preparation_id):
    preparation = svc.get_preparation(current_context(), preparation_id)
    return jsonify({"success": True, "data": preparation.to_dict()}), 200


@buddy_bp.route("/buddy-preparations/<preparation_id>", methods=["PATCH", "PUT"])
@require_admin
def update_preparation(preparation_id):
    data = request.get_json(silent=True) or {}
    preparation = svc.update_preparation(
        current_context(), preparation_id, data, partial=request.method == "PATCH",
    )
    return jsonify({
        "success": True,
        "data": preparation.to_dict(),
        "message": "Buddy preparation updated",
    }), 200


@buddy_bp.route("/buddy-preparations/<preparation_id>", methods=["DELETE"])
@require_admin
def delete_preparation(preparation_id):
    svc.delete_preparation(current_context(), preparation_id)
    return jsonify({"success": True, "message": "Buddy preparation deleted"}), 200


# ═════════════════════════════════════════════════════════════════════════
# Buddy work
# ═════════════════════════════════════════════════════════════════════════


@buddy_bp.route("/checklist/employee/<employee_id>", methods=["GET"])
@require_auth
def person_checklist(employee_id):
    """Buddy tasks of a mentored user or preparation, with completion."""
    return jsonify(svc.person_checklist(current_context(), employee_id)), 200


@buddy_bp.route("/buddy/tasks/<task_id>/progress/<employee_id>", methods=["POST"])
@require_auth
def set_person_progress(task_id, employee_id):
    """Body: {completed: bool}"""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.set_person_progress(current_context(), task_id, employee_id, data)), 200


# ═════════════════════════════════════════════════════════════════════════
# Lookups
# ═════════════════════════════════════════════════════════════════════════


@buddy_bp.route("/buddies", methods=["GET"])
@require_auth
def list_buddies():
    return jsonify(svc.list_buddies(current_context())), 200


@buddy_bp.route("/user/buddy-relationships", methods=["GET"])
@require_auth
def buddy_relationships():
    return jsonify({"success": True, "data": svc.buddy_relationships(current_context())}), 200


@buddy_bp.route("/user/is-buddy", methods=["GET"])
@require_auth
def is_buddy():
    return jsonify(svc.is_buddy(current_context())), 200
