"""
Checklist service — category / task CRUD, the caller's own checklist and dashboard.

Admin CRUD is organization-scoped through scoped_queries; SUPER_ADMIN may
act on any organization. New rows are appended at the end of their sibling
list unless an explicit ``order`` is given.

Progress rows are never backfilled when a task is created: existing
employees get a row the first time they toggle the task.
"""

import logging

from onboarding.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from onboarding.models import db
from onboarding.models.base import iso
from onboarding.models.organization import Category, Checklist, Task
from onboarding.models.progress import TaskProgress
from onboarding.models.user import User
from onboarding.services import progress_service
from onboarding.services.helpers.scoped_queries import get_in_organization, get_or_raise
from onboarding.utils.helpers import parse_order, require_text, transaction

logger = logging.getLogger(__name__)


def _optional_bool(data: dict, field: str, default=None):
    if field not in data:
        return default
    value = data[field]
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean", details={field: "invalid"})
    return value


def _optional_text(data: dict, field: str):
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "invalid"})
    return value.strip() or None


# ═════════════════════════════════════════════════════════════════════════════
# Categories
# ═════════════════════════════════════════════════════════════════════════════


def list_categories(ctx, checklist_id) -> list[dict]:
    if not checklist_id:
        raise ValidationError("checklistId query parameter is required")
    checklist = get_in_organization(Checklist, checklist_id, ctx, "Checklist")
    return [c.to_dict(include_tasks=True) for c in checklist.categories]


def create_category(ctx, data: dict) -> Category:
    name = require_text(data, "name")
    if not data.get("checklistId"):
        raise ValidationError("checklistId is required", details={"checklistId": "missing"})
    checklist = get_in_organization(Checklist, data["checklistId"], ctx, "Checklist")

    if data.get("order") is not None:
        order = parse_order(data["order"])
    else:
        order = max((c.order for c in checklist.categories), default=-1) + 1

    with transaction():
        category = Category(
            name=name,
            order=order,
            is_buddy_category=_optional_bool(data, "isBuddyCategory", False),
        )
        checklist.categories.append(category)

    logger.info("Created category %s in checklist %s", category.id, checklist.id)
    return category


def get_category(ctx, category_id) -> Category:
    return get_in_organization(Category, category_id, ctx)


def update_category(ctx, category_id, data: dict) -> Category:
    category = get_category(ctx, category_id)
    with transaction():
        if "name" in data:
            category.name = require_text(data, "name")
        if data.get("order") is not None:
            category.order = parse_order(data["order"])
        if "isBuddyCategory" in data:
            category.is_buddy_category = _optional_bool(data, "isBuddyCategory")
    return category


def delete_category(ctx, category_id) -> None:
    """Delete a category together with its tasks and their progress rows."""
    category = get_category(ctx, category_id)
    task_count = len(category.tasks)
    with transaction():
        db.session.delete(category)
    logger.info(
        "Deleted category %s with %d tasks (user=%s)", category_id, task_count, ctx.user_id,
    )


# ═════════════════════════════════════════════════════════════════════════════
# Tasks
# ═════════════════════════════════════════════════════════════════════════════


def list_tasks(ctx, category_id) -> list[dict]:
    if not category_id:
        raise ValidationError("categoryId query parameter is required")
    category = get_category(ctx, category_id)
    return [t.to_dict() for t in category.tasks]


def create_task(ctx, data: dict) -> Task:
    title = require_text(data, "title")
    if not data.get("categoryId"):
        raise ValidationError("categoryId is required", details={"categoryId": "missing"})
    category = get_category(ctx, data["categoryId"])

    if data.get("order") is not None:
        order = parse_order(data["order"])
    else:
        order = max((t.order for t in category.tasks), default=-1) + 1

    with transaction():
        task = Task(
            title=title,
            description=_optional_text(data, "description") or "",
            link=_optional_text(data, "link"),
            order=order,
            is_buddy_task=_optional_bool(data, "isBuddyTask", category.is_buddy_category),
        )
        category.tasks.append(task)

    logger.info("Created task %s in category %s", task.id, category.id)
    return task


def get_task(ctx, task_id) -> Task:
    return get_in_organization(Task, task_id, ctx)


def update_task(ctx, task_id, data: dict) -> Task:
    task = get_task(ctx, task_id)

    target = None
    if data.get("categoryId") and data["categoryId"] != task.category_id:
        target = get_category(ctx, data["categoryId"])
        if target.checklist_id != task.category.checklist_id:
            raise ValidationError("Target category belongs to a different checklist")

    with transaction():
        if "title" in data:
            task.title = require_text(data, "title")
        if "description" in data:
            task.description = _optional_text(data, "description") or ""
        if "link" in data:
            task.link = _optional_text(data, "link")
        if "isBuddyTask" in data:
            task.is_buddy_task = _optional_bool(data, "isBuddyTask")
        if target is not None:
            task.category = target
        if data.get("order") is not None:
            task.order = parse_order(data["order"])
    return task


def delete_task(ctx, task_id) -> None:
    task = get_task(ctx, task_id)
    with transaction():
        db.session.delete(task)
    logger.info("Deleted task %s (user=%s)", task_id, ctx.user_id)


# ═════════════════════════════════════════════════════════════════════════════
# Own checklist & progress
# ═════════════════════════════════════════════════════════════════════════════


def own_checklist(ctx) -> dict:
    """The caller's checklist without buddy tasks, annotated with completion."""
    checklist = Checklist.query.filter_by(organization_id=ctx.organization_id).first()
    if checklist is None:
        raise NotFoundError(resource="Checklist", resource_id=ctx.organization_id)

    progress = progress_service.user_progress_map(ctx.user_id)
    categories, visible = [], []
    for category in checklist.categories:
        tasks = [t for t in category.tasks if not t.is_buddy_task]
        if not tasks:
            continue
        visible.extend(tasks)
        d = category.to_dict()
        d["tasks"] = [{**t.to_dict(), "completed": bool(progress.get(t.id))} for t in tasks]
        categories.append(d)

    return {
        "id": checklist.id,
        "name": checklist.name,
        "description": checklist.description,
        "categories": categories,
        "progress": progress_service.summarize(visible, progress),
    }


def _own_task(ctx, task_id) -> Task:
    task = get_in_organization(Task, task_id, ctx)
    if task.organization_id != ctx.organization_id:
        raise ForbiddenError("Task belongs to another organization")
    return task


def get_own_progress(ctx, task_id) -> dict:
    task = _own_task(ctx, task_id)
    completed = progress_service.user_progress_map(ctx.user_id).get(task.id, False)
    return {"taskId": task.id, "completed": completed}


def set_own_progress(ctx, task_id, data: dict) -> dict:
    completed = data.get("completed")
    if not isinstance(completed, bool):
        raise ValidationError("completed must be a boolean", details={"completed": "invalid"})
    task = _own_task(ctx, task_id)
    if task.is_buddy_task:
        raise ForbiddenError("Buddy tasks are tracked by the assigned buddy")

    with transaction():
        row = progress_service.set_user_progress(ctx.user_id, task.id, completed)
    return row.to_dict()


# ── Dashboard ────────────────────────────────────────────────────────────────

RECENT_TASKS = 3


def user_dashboard(ctx) -> dict:
    """Own progress over regular tasks, the assigned buddy and recent completions."""
    user = get_or_raise(User, ctx.user_id, "User")
    tasks = progress_service.organization_tasks(user.organization_id, buddy=False)
    progress = progress_service.user_progress_map(user.id)
    summary = progress_service.summarize(tasks, progress)

    recent = (
        TaskProgress.query.join(Task, TaskProgress.task_id == Task.id)
        .filter(
            TaskProgress.user_id == user.id,
            TaskProgress.completed.is_(True),
            Task.is_buddy_task.is_(False),
        )
        .order_by(TaskProgress.updated_at.desc())
        .limit(RECENT_TASKS)
        .all()
    )

    return {
        "user": {"id": user.id, "name": user.name, "email": user.email, "role": user.role},
        "organization": user.organization.to_dict(),
        "buddy": user.buddy.to_brief() if user.buddy else None,
        "progress": summary["percentage"],
        "completedTasks": summary["completed"],
        "totalTasks": summary["total"],
        "recentTasks": [
            {
                "id": row.task.id,
                "title": row.task.title,
                "description": row.task.description,
                "completedAt": iso(row.updated_at),
            }
            for row in recent
        ],
    }
