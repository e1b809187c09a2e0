"""Checklist blueprint — the caller's own onboarding view.

Endpoints:
  GET  /api/checklist        own checklist (regular tasks) with completion
  GET  /api/user-dashboard   own progress, buddy and latest completed tasks
"""

from flask import Blueprint, jsonify

import onboarding.services.checklist_service as svc
from onboarding.auth import current_context, require_auth

checklist_bp = Blueprint("checklist", __name__, url_prefix="/api")


@checklist_bp.route("/checklist", methods=["GET"])
@require_auth
def own_checklist():
    """Regular tasks only; buddy tasks are reached through the buddy endpoints."""
    return jsonify(svc.own_checklist(current_context())), 200


@checklist_bp.route("/user-dashboard", methods=["GET"])
@require_auth
def user_dashboard():
    return jsonify(svc.user_dashboard(current_context())), 200
