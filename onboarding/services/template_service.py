"""
Template service — the organization's checklist as an editable template.

Each organization owns exactly one checklist; "template" is the admin-facing
name for it. This module covers:

  - list / create / fetch / rename templates
  - seeding a checklist from the default definitions
  - full reset and buddy-only reset to the defaults

Resets are destructive and run in a single transaction: either the old
content is gone and the defaults are in place, or nothing changed.
"""

import logging

from onboarding.core.exceptions import ConflictError
from onboarding.data.default_templates import (
    DEFAULT_BUDDY_CHECKLIST_CATEGORIES,
    DEFAULT_CHECKLIST_CATEGORIES,
)
from onboarding.models import db
from onboarding.models.base import iso
from onboarding.models.organization import Category, Checklist, Organization, Task
from onboarding.services.helpers.scoped_queries import (
    get_in_organization,
    get_or_raise,
)
from onboarding.utils.helpers import require_text, transaction

logger = logging.getLogger(__name__)


# ── Serialization ────────────────────────────────────────────────────────────


def template_summary(checklist: Checklist) -> dict:
    categories = checklist.categories
    return {
        "id": checklist.id,
        "name": checklist.name,
        "description": checklist.description,
        "organizationId": checklist.organization_id,
        "organizationName": checklist.organization.name,
        "buddyEnabled": checklist.organization.buddy_enabled,
        "categoriesCount": len(categories),
        "tasksCount": sum(len(c.tasks) for c in categories),
        "createdAt": iso(checklist.created_at),
        "updatedAt": iso(checklist.updated_at),
    }


def template_detail(checklist: Checklist) -> dict:
    d = checklist.to_dict(include_children=True)
    d["buddyEnabled"] = checklist.organization.buddy_enabled
    d["organizationName"] = checklist.organization.name
    return d


# ── Seeding ──────────────────────────────────────────────────────────────────


def seed_categories(checklist: Checklist, definitions, *, order_offset: int = 0,
                    reuse_by_name: bool = False) -> tuple[int, int]:
    """Create categories and tasks from template definitions.

    Args:
        checklist: Target checklist (must be in the session).
        definitions: List of category dicts (see data/default_templates.py).
        order_offset: Added to each definition's ``order``.
        reuse_by_name: When True, a definition whose name matches an existing
                       category adds its tasks to that category instead of
                       creating a duplicate.

    Returns:
        (categories_created, tasks_created)
    """
    existing = {c.name: c for c in checklist.categories} if reuse_by_name else {}
    categories_created = tasks_created = 0
    for definition in definitions:
        category = existing.get(definition["name"])
        if category is None:
            category = Category(
                name=definition["name"],
                order=order_offset + definition["order"],
                is_buddy_category=definition.get("is_buddy_category", False),
            )
            checklist.categories.append(category)
            categories_created += 1
        start = max((t.order for t in category.tasks), default=-1) + 1
        for index, task_def in enumerate(definition["tasks"]):
            category.tasks.append(Task(
                title=task_def["title"],
                description=task_def.get("description") or "",
                link=task_def.get("link"),
                order=start + index,
                is_buddy_task=definition.get("is_buddy_category", False),
            ))
            tasks_created += 1
    db.session.flush()
    return categories_created, tasks_created


def create_default_checklist(organization: Organization) -> Checklist:
    """Create the organization's checklist seeded with the full default template."""
    checklist = Checklist(name=organization.name, organization=organization)
    db.session.add(checklist)
    seed_categories(checklist, DEFAULT_CHECKLIST_CATEGORIES)
    logger.info("Seeded default checklist for organization %s", organization.id)
    return checklist


def add_buddy_checklist(checklist: Checklist) -> int:
    """Append the default buddy categories after the current highest order.

    Returns the number of buddy tasks created (0 when the checklist already
    has buddy tasks).
    """
    if any(t.is_buddy_task for c in checklist.categories for t in c.tasks):
        return 0
    max_order = max((c.order for c in checklist.categories), default=0)
    _, tasks = seed_categories(
        checklist, DEFAULT_BUDDY_CHECKLIST_CATEGORIES,
        order_offset=max_order, reuse_by_name=True,
    )
    return tasks


# ── CRUD ─────────────────────────────────────────────────────────────────────


def list_templates(ctx) -> list[dict]:
    q = Checklist.query
    if not ctx.is_super_admin:
        q = q.filter_by(organization_id=ctx.organization_id)
    return [template_summary(c) for c in q.order_by(Checklist.created_at).all()]


def create_template(ctx, data: dict) -> dict:
    """Create the (single) checklist of an organization.

    SUPER_ADMIN may target another organization through ``organizationId``.
    """
    name = require_text(data, "name")
    organization_id = ctx.organization_id
    if ctx.is_super_admin and data.get("organizationId"):
        organization_id = data["organizationId"]
    organization = get_or_raise(Organization, organization_id, "Organization")
    if organization.checklist is not None:
        raise ConflictError("Checklist", "organizationId", organization_id)

    with transaction():
        checklist = Checklist(
            name=name,
            description=(data.get("description") or "").strip() or None,
            organization=organization,
        )
        db.session.add(checklist)

    logger.info("Created checklist %s for organization %s", checklist.id, organization_id)
    return template_summary(checklist)


def get_template(ctx, checklist_id) -> Checklist:
    return get_in_organization(Checklist, checklist_id, ctx, "Template")


def update_template(ctx, checklist_id, data: dict) -> dict:
    checklist = get_template(ctx, checklist_id)
    with transaction():
        if "name" in data:
            checklist.name = require_text(data, "name")
        if "description" in data:
            checklist.description = (data.get("description") or "").strip() or None
    return template_detail(checklist)


# ── Reset ────────────────────────────────────────────────────────────────────


def reset_template(ctx, checklist_id) -> dict:
    """Delete every category and task, then recreate the full default template."""
    checklist = get_template(ctx, checklist_id)
    with transaction():
        checklist.categories.clear()
        db.session.flush()
        seed_categories(checklist, DEFAULT_CHECKLIST_CATEGORIES)

    logger.warning("Checklist %s reset to defaults (user=%s)", checklist.id, ctx.user_id)
    return template_detail(checklist)


def reset_buddy_template(ctx, checklist_id) -> dict:
    """Replace only the buddy tasks with the default buddy set.

    1. delete every task with is_buddy_task=True
    2. delete categories left without tasks
    3. append the default buddy categories after the current highest order,
       reusing a category whose name matches a default buddy category
    Regular tasks keep their id, title and order.
    """
    checklist = get_template(ctx, checklist_id)
    with transaction():
        for category in list(checklist.categories):
            for task in [t for t in category.tasks if t.is_buddy_task]:
                category.tasks.remove(task)
            if not category.tasks:
                checklist.categories.remove(category)
        db.session.flush()

        max_order = max((c.order for c in checklist.categories), default=0)
        seed_categories(
            checklist, DEFAULT_BUDDY_CHECKLIST_CATEGORIES,
            order_offset=max_order, reuse_by_name=True,
        )

    logger.warning("Checklist %s buddy tasks reset to defaults (user=%s)", checklist.id, ctx.user_id)
    return template_detail(checklist)
