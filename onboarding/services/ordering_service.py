"""
Ordering service — bulk reorder and cross-category move.

Reorder persists exactly the ``order`` the caller sends for each listed row;
rows that are not listed keep their value (no implicit compaction). The
client computes the sequence (0-based, contiguous) before calling.

Move relocates one task and rewrites both affected task lists as dense
``0..n-1`` sequences.

Both operations are all-or-nothing: either every row is updated or the
session is rolled back. On any error the client is expected to re-fetch
``GET /api/templates/<id>`` and replace its optimistic state.
"""

import logging

from onboarding.core.exceptions import NotFoundError, ValidationError
from onboarding.models.organization import Category, Task
from onboarding.services.helpers.scoped_queries import (
    ensure_organization_access,
    get_in_organization,
    get_or_raise,
)
from onboarding.utils.helpers import parse_order, transaction

logger = logging.getLogger(__name__)


# ── Reorder ──────────────────────────────────────────────────────────────────


def _parse_items(items, label: str) -> dict:
    """Validate ``[{id, order}, ...]`` and return ``{id: order}``."""
    if not isinstance(items, list) or not items:
        raise ValidationError(f"{label} must be a non-empty list of {{id, order}} objects")
    orders = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("id"):
            raise ValidationError(f"{label}[{index}].id is required")
        if item.get("order") is None:
            raise ValidationError(f"{label}[{index}].order is required")
        orders[str(item["id"])] = parse_order(item["order"], f"{label}[{index}].order")
    return orders


def _reorder(model, ctx, items, label: str) -> list:
    orders = _parse_items(items, label)
    rows = model.query.filter(model.id.in_(list(orders))).all()
    if len(rows) != len(orders):
        missing = sorted(set(orders) - {row.id for row in rows})
        raise NotFoundError(resource=model.__name__, resource_id=",".join(missing))
    for row in rows:
        ensure_organization_access(ctx, row.organization_id, model.__name__)

    with transaction():
        for row in rows:
            row.order = orders[row.id]

    logger.info("Reordered %d %s (user=%s)", len(rows), label, ctx.user_id)
    return sorted(rows, key=lambda r: r.order)


def reorder_categories(ctx, items) -> list[Category]:
    """Persist the given order for each listed category."""
    return _reorder(Category, ctx, items, "categories")


def reorder_tasks(ctx, items) -> list[Task]:
    """Persist the given order for each listed task."""
    return _reorder(Task, ctx, items, "tasks")


# ── Move ─────────────────────────────────────────────────────────────────────


def _resequence(tasks) -> None:
    for position, task in enumerate(tasks):
        task.order = position


def move_task(ctx, task_id, category_id, order) -> dict:
    """Move a task to ``category_id`` at position ``order``.

    The source list is compacted to ``0..n-2``; the destination list becomes
    ``0..m`` with the moved task at ``order`` (clamped to the list length).
    Moving within the same category reorders that single list.

    Returns:
        {"task": ..., "sourceTasks": [...], "destinationTasks": [...]}
    """
    if not category_id or order is None:
        raise ValidationError("categoryId and order are required")
    position = parse_order(order)

    task = get_in_organization(Task, task_id, ctx)
    target = get_or_raise(Category, category_id)
    source = task.category
    if target.checklist_id != source.checklist_id:
        raise ValidationError("Target category belongs to a different checklist")

    source_tasks = [t for t in sorted(source.tasks, key=lambda t: t.order) if t.id != task.id]
    if target.id == source.id:
        destination_tasks = source_tasks
    else:
        destination_tasks = [
            t for t in sorted(target.tasks, key=lambda t: t.order) if t.id != task.id
        ]

    with transaction():
        if target.id != source.id:
            task.category = target
            _resequence(source_tasks)
        destination_tasks.insert(min(position, len(destination_tasks)), task)
        _resequence(destination_tasks)

    logger.info(
        "Moved task %s from category %s to %s at %d (user=%s)",
        task.id, source.id, target.id, task.order, ctx.user_id,
    )
    return {
        "task": task.to_dict(),
        "sourceTasks": [t.to_dict() for t in sorted(source.tasks, key=lambda t: t.order)],
        "destinationTasks": [t.to_dict() for t in sorted(target.tasks, key=lambda t: t.order)],
    }
