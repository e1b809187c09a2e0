"""
Transfer service — checklist export to / import from a JSON document.

Document format (version "1.0"):

    {
      "metadata": {"exportedAt", "exportedBy", "version", "exportType",
                   "originalOrganization"},
      "checklist": {"name", "description", "buddyEnabled",
                    "categories": [{"name", "order", "isBuddyCategory",
                                    "tasks": [{"title", "description", "link",
                                               "order", "isBuddyTask"}]}]}
    }

Export types:
    all      every category and task
    regular  non-buddy tasks only
    buddy    buddy tasks only

Import merges by export type into the organization's existing checklist
(replacing only the matching subset) or creates the checklist.
"""

import logging
from datetime import datetime, timezone

from onboarding.core.exceptions import ValidationError
from onboarding.models import db
from onboarding.models.organization import Category, Checklist, Organization, Task
from onboarding.services.helpers.scoped_queries import (
    ensure_organization_access,
    get_in_organization,
    get_or_raise,
)
from onboarding.utils.helpers import parse_order, slugify, transaction

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
EXPORT_TYPES = ("all", "regular", "buddy")

_TYPE_LABELS = {"all": "Complete", "regular": "Regular", "buddy": "Buddy"}


def _keep(task, export_type: str) -> bool:
    if export_type == "regular":
        return not task.is_buddy_task
    if export_type == "buddy":
        return task.is_buddy_task
    return True


# ── Export ───────────────────────────────────────────────────────────────────


def export_checklist(ctx, checklist_id, export_type: str | None = None) -> tuple[dict, str]:
    """Build the export document for a checklist.

    Returns:
        (document, filename)
    """
    export_type = export_type or "all"
    if export_type not in EXPORT_TYPES:
        raise ValidationError(
            f"Invalid export type {export_type!r}; expected one of {', '.join(EXPORT_TYPES)}",
        )
    checklist = get_in_organization(Checklist, checklist_id, ctx, "Checklist")
    organization = checklist.organization

    categories = []
    for category in checklist.categories:
        tasks = [t for t in category.tasks if _keep(t, export_type)]
        if export_type != "all" and not tasks:
            continue
        categories.append({
            "name": category.name,
            "order": category.order,
            "isBuddyCategory": category.is_buddy_category,
            "tasks": [
                {
                    "title": t.title,
                    "description": t.description,
                    "link": t.link,
                    "order": t.order,
                    "isBuddyTask": t.is_buddy_task,
                }
                for t in tasks
            ],
        })

    now = datetime.now(timezone.utc)
    label = _TYPE_LABELS[export_type]
    document = {
        "metadata": {
            "exportedAt": now.isoformat(),
            "exportedBy": ctx.email,
            "version": EXPORT_VERSION,
            "exportType": export_type,
            "originalOrganization": organization.name,
        },
        "checklist": {
            "name": f"{organization.name} {label} Checklist",
            "description": f"{label} checklist exported from {organization.name}",
            "buddyEnabled": bool(organization.buddy_enabled),
            "categories": categories,
        },
    }
    filename = f"checklist-{export_type}-{slugify(organization.name)}-{now.date().isoformat()}.json"

    logger.info(
        "Exported checklist %s type=%s categories=%d (user=%s)",
        checklist.id, export_type, len(categories), ctx.user_id,
    )
    return document, filename


# ── Import ───────────────────────────────────────────────────────────────────


def _has_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _optional_str(value, field: str) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")


def _parse_document(data: dict) -> tuple[dict, str, str | None]:
    checklist_data = data.get("checklist")
    if not isinstance(checklist_data, dict) or not isinstance(checklist_data.get("categories"), list):
        raise ValidationError("Invalid import data format: checklist.categories must be a list")

    metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
    export_type = metadata.get("exportType") or data.get("exportType") or "all"
    if export_type not in EXPORT_TYPES:
        raise ValidationError(f"Invalid export type {export_type!r}")
    _optional_str(checklist_data.get("name"), "checklist.name")
    _optional_str(checklist_data.get("description"), "checklist.description")

    for index, category in enumerate(checklist_data["categories"]):
        if not isinstance(category, dict) or not _has_text(category.get("name")):
            raise ValidationError(f"categories[{index}].name is required")
        if not isinstance(category.get("tasks", []), list):
            raise ValidationError(f"categories[{index}].tasks must be a list")
        for task_index, task in enumerate(category.get("tasks", [])):
            prefix = f"categories[{index}].tasks[{task_index}]"
            if not isinstance(task, dict) or not _has_text(task.get("title")):
                raise ValidationError(f"{prefix}.title is required")
            _optional_str(task.get("description"), f"{prefix}.description")
            _optional_str(task.get("link"), f"{prefix}.link")

    return checklist_data, export_type, metadata.get("version")


def _clear_subset(checklist: Checklist, export_type: str) -> None:
    """Delete the tasks the import replaces, then categories left empty."""
    if export_type == "all":
        checklist.categories.clear()
        return
    for category in list(checklist.categories):
        for task in [t for t in category.tasks if _keep(t, export_type)]:
            category.tasks.remove(task)
        if not category.tasks:
            checklist.categories.remove(category)


def import_checklist(ctx, data: dict) -> dict:
    checklist_data, export_type, version = _parse_document(data)

    organization_id = ctx.organization_id
    if ctx.is_super_admin and data.get("organizationId"):
        organization_id = data["organizationId"]
    organization = get_or_raise(Organization, organization_id, "Organization")
    ensure_organization_access(ctx, organization.id, "Organization")

    existing = organization.checklist
    categories_count = tasks_count = 0
    with transaction():
        if existing is not None:
            checklist = existing
            _clear_subset(checklist, export_type)
            db.session.flush()
        else:
            checklist = Checklist(
                name=(checklist_data.get("name") or "").strip() or organization.name,
                description=checklist_data.get("description"),
                organization=organization,
            )
            db.session.add(checklist)

        for category_data in checklist_data["categories"]:
            category = Category(
                name=category_data["name"].strip(),
                order=parse_order(category_data.get("order") or 0, "category order"),
                is_buddy_category=bool(category_data.get("isBuddyCategory", False)),
            )
            checklist.categories.append(category)
            categories_count += 1
            for task_data in category_data.get("tasks", []):
                category.tasks.append(Task(
                    title=task_data["title"].strip(),
                    description=task_data.get("description") or "",
                    link=task_data.get("link"),
                    order=parse_order(task_data.get("order") or 0, "task order"),
                    is_buddy_task=bool(task_data.get("isBuddyTask", False)),
                ))
                tasks_count += 1

        if isinstance(checklist_data.get("buddyEnabled"), bool):
            organization.buddy_enabled = checklist_data["buddyEnabled"]

    logger.info(
        "Imported checklist into %s type=%s version=%s categories=%d tasks=%d (user=%s)",
        checklist.id, export_type, version, categories_count, tasks_count, ctx.user_id,
    )
    label = _TYPE_LABELS[export_type]
    action = "updated" if existing is not None else "imported"
    return {
        "success": True,
        "message": f"{label} checklist {action} successfully",
        "checklistId": checklist.id,
        "categoriesCount": categories_count,
        "tasksCount": tasks_count,
        "exportType": export_type,
    }
