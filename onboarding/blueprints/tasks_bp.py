"""Tasks blueprint — task CRUD, ordering and the caller's own progress.

Endpoints:
  Admin
    GET/POST          /api/tasks?categoryId=
    PATCH             /api/tasks/reorder
    GET/PATCH/DELETE  /api/tasks/<id>
    PATCH             /api/tasks/<id>/move          {categoryId, order}
  Any role
    GET/POST          /api/tasks/<id>/progress      {completed: bool}
"""

from flask import Blueprint, jsonify, request

import onboarding.services.checklist_service as svc
from onboarding.auth import current_context, require_admin, require_auth
from onboarding.services import ordering_service

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


# ═════════════════════════════════════════════════════════════════════════
# Tasks
# ═════════════════════════════════════════════════════════════════════════


@tasks_bp.route("", methods=["GET"])
@require_admin
def list_tasks():
    return jsonify(svc.list_tasks(current_context(), request.args.get("categoryId"))), 200


@tasks_bp.route("", methods=["POST"])
@require_admin
def create_task():
    """Body: {title, categoryId, description?, link?, order?, isBuddyTask?}"""
    data = request.get_json(silent=True) or {}
    task = svc.create_task(current_context(), data)
    return jsonify(task.to_dict()), 201


@tasks_bp.route("/reorder", methods=["PATCH"])
@require_admin
def reorder_tasks():
    """Body: {tasks: [{id, order}, ...]}"""
    data = request.get_json(silent=True) or {}
    rows = ordering_service.reorder_tasks(current_context(), data.get("tasks"))
    return jsonify({"success": True, "tasks": [t.to_dict() for t in rows]}), 200


@tasks_bp.route("/<task_id>", methods=["GET"])
@require_admin
def get_task(task_id):
    return jsonify(svc.get_task(current_context(), task_id).to_dict()), 200


@tasks_bp.route("/<task_id>", methods=["PATCH"])
@require_admin
def update_task(task_id):
    """Body: {title?, description?, link?, isBuddyTask?, categoryId?, order?}"""
    data = request.get_json(silent=True) or {}
    task = svc.update_task(current_context(), task_id, data)
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/<task_id>", methods=["DELETE"])
@require_admin
def delete_task(task_id):
    svc.delete_task(current_context(), task_id)
    return jsonify({"success": True, "message": "Task deleted"}), 200


@tasks_bp.route("/<task_id>/move", methods=["PATCH"])
@require_admin
def move_task(task_id):
    """Move a task to another category (or position) of the same checklist.

    Both affected lists come back densely numbered from 0.
    """
    data = request.get_json(silent=True) or {}
    result = ordering_service.move_task(
        current_context(), task_id, data.get("categoryId"), data.get("order"),
    )
    return jsonify({"success": True, **result}), 200


# ═════════════════════════════════════════════════════════════════════════
# Own progress
# ═════════════════════════════════════════════════════════════════════════


@tasks_bp.route("/<task_id>/progress", methods=["GET"])
@require_auth
def get_progress(task_id):
    return jsonify(svc.get_own_progress(current_context(), task_id)), 200


@tasks_bp.route("/<task_id>/progress", methods=["POST"])
@require_auth
def set_progress(task_id):
    data = request.get_json(silent=True) or {}
    return jsonify(svc.set_own_progress(current_context(), task_id, data)), 200
