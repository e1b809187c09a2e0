"""Categories blueprint — CRUD and bulk reorder of checklist categories.

Endpoints:
  GET/POST          /api/categories?checklistId=
  PATCH             /api/categories/reorder
  GET/PATCH/DELETE  /api/categories/<id>
"""

from flask import Blueprint, jsonify, request

import onboarding.services.checklist_service as svc
from onboarding.auth import current_context, require_admin
from onboarding.services import ordering_service

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.route("", methods=["GET"])
@require_admin
def list_categories():
    return jsonify(svc.list_categories(current_context(), request.args.get("checklistId"))), 200


@categories_bp.route("", methods=["POST"])
@require_admin
def create_category():
    """Body: {name, checklistId, order?, isBuddyCategory?}"""
    data = request.get_json(silent=True) or {}
    category = svc.create_category(current_context(), data)
    return jsonify(category.to_dict(include_tasks=True)), 201


@categories_bp.route("/reorder", methods=["PATCH"])
@require_admin
def reorder_categories():
    """Body: {categories: [{id, order}, ...]}"""
    data = request.get_json(silent=True) or {}
    rows = ordering_service.reorder_categories(current_context(), data.get("categories"))
    return jsonify({"success": True, "categories": [c.to_dict() for c in rows]}), 200


@categories_bp.route("/<category_id>", methods=["GET"])
@require_admin
def get_category(category_id):
    category = svc.get_category(current_context(), category_id)
    return jsonify(category.to_dict(include_tasks=True)), 200


@categories_bp.route("/<category_id>", methods=["PATCH"])
@require_admin
def update_category(category_id):
    """Body: {name?, order?, isBuddyCategory?}"""
    data = request.get_json(silent=True) or {}
    category = svc.update_category(current_context(), category_id, data)
    return jsonify(category.to_dict()), 200


@categories_bp.route("/<category_id>", methods=["DELETE"])
@require_admin
def delete_category(category_id):
    svc.delete_category(current_context(), category_id)
    return jsonify({"success": True, "message": "Category deleted"}), 200
