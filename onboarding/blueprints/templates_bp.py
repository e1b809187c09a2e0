"""Templates blueprint — the organization's checklist as an admin template.

Endpoint groups:
  Templates        GET/POST        /api/templates
                   GET/PATCH       /api/templates/<id>
                   DELETE          /api/templates/<id>           (405)
  Reset            POST            /api/templates/<id>/reset
                   POST            /api/templates/<id>/reset-buddy
  Import / export  GET             /api/templates/<id>/export?type=all|regular|buddy
                   POST            /api/templates/import

GET /api/templates/<id> is the authoritative nested view clients re-fetch
after a failed reorder or move.
"""

import json
import logging

from flask import Blueprint, Response, jsonify, request

import onboarding.services.template_service as svc
import onboarding.services.transfer_service as transfer
from onboarding.auth import current_context, require_admin
from onboarding.utils.errors import E, api_error

logger = logging.getLogger(__name__)

templates_bp = Blueprint("templates", __name__, url_prefix="/api/templates")


# ═════════════════════════════════════════════════════════════════════════
# Templates
# ═════════════════════════════════════════════════════════════════════════


@templates_bp.route("", methods=["GET"])
@require_admin
def list_templates():
    """Checklists visible to the caller (all of them for SUPER_ADMIN)."""
    return jsonify(svc.list_templates(current_context())), 200


@templates_bp.route("", methods=["POST"])
@require_admin
def create_template():
    """Create the organization's checklist.

    Body: {name, description?, organizationId? (SUPER_ADMIN)}
    Returns: template summary (201); 409 when the organization already has one.
    """
    data = request.get_json(silent=True) or {}
    return jsonify(svc.create_template(current_context(), data)), 201


@templates_bp.route("/import", methods=["POST"])
@require_admin
def import_template():
    """Merge an exported document into the organization's checklist.

    Body: {metadata?, checklist: {name, description, buddyEnabled, categories}, organizationId?}
    """
    data = request.get_json(silent=True) or {}
    return jsonify(transfer.import_checklist(current_context(), data)), 200


@templates_bp.route("/<checklist_id>", methods=["GET"])
@require_admin
def get_template(checklist_id):
    checklist = svc.get_template(current_context(), checklist_id)
    return jsonify(svc.template_detail(checklist)), 200


@templates_bp.route("/<checklist_id>", methods=["PATCH"])
@require_admin
def update_template(checklist_id):
    """Body: {name?, description?}"""
    data = request.get_json(silent=True) or {}
    return jsonify(svc.update_template(current_context(), checklist_id, data)), 200


@templates_bp.route("/<checklist_id>", methods=["DELETE"])
@require_admin
def delete_template(checklist_id):
    """A checklist lives as long as its organization; reset it instead."""
    svc.get_template(current_context(), checklist_id)
    return api_error(
        E.METHOD_NOT_ALLOWED,
        "A checklist cannot be deleted; use reset instead",
    )


# ═════════════════════════════════════════════════════════════════════════
# Reset
# ═════════════════════════════════════════════════════════════════════════


@templates_bp.route("/<checklist_id>/reset", methods=["POST"])
@require_admin
def reset_template(checklist_id):
    data = svc.reset_template(current_context(), checklist_id)
    return jsonify({
        "success": True,
        "message": "Checklist reset to the default template",
        "data": data,
    }), 200


@templates_bp.route("/<checklist_id>/reset-buddy", methods=["POST"])
@require_admin
def reset_buddy_template(checklist_id):
    data = svc.reset_buddy_template(current_context(), checklist_id)
    return jsonify({
        "success": True,
        "message": "Buddy tasks reset to the default template",
        "data": data,
    }), 200


# ═════════════════════════════════════════════════════════════════════════
# Export
# ═════════════════════════════════════════════════════════════════════════


@templates_bp.route("/<checklist_id>/export", methods=["GET"])
@require_admin
def export_template(checklist_id):
    """Download the checklist as a JSON document.

    Query params: type = all (default) | regular | buddy
    """
    document, filename = transfer.export_checklist(
        current_context(), checklist_id, request.args.get("type"),
    )
    return Response(
        json.dumps(document, indent=2, ensure_ascii=False),
        status=200,
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
