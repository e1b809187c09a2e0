"""
Progress service — TaskProgress / BuddyPreparationTaskProgress bookkeeping.

Rules:
  - Progress rows are created in bulk only when a user is created
    (``create_initial_progress``); tasks added later get a row lazily the
    first time someone toggles them (``set_user_progress``).
  - Callers own the transaction; nothing here commits.
"""

import logging

from onboarding.models import db
from onboarding.models.organization import Category, Checklist, Task
from onboarding.models.progress import BuddyPreparationTaskProgress, TaskProgress

logger = logging.getLogger(__name__)


def organization_tasks(organization_id, *, buddy=None):
    """Tasks of an organization's checklist, optionally filtered by buddy flag."""
    q = (
        Task.query.join(Category, Task.category_id == Category.id)
        .join(Checklist, Category.checklist_id == Checklist.id)
        .filter(Checklist.organization_id == organization_id)
    )
    if buddy is not None:
        q = q.filter(Task.is_buddy_task.is_(buddy))
    return q.order_by(Category.order, Task.order).all()


def create_initial_progress(user) -> int:
    """Create one incomplete TaskProgress row per current task of the user's org."""
    tasks = organization_tasks(user.organization_id)
    for task in tasks:
        db.session.add(TaskProgress(user_id=user.id, task_id=task.id, completed=False))
    db.session.flush()
    logger.debug("Created %d progress rows for user %s", len(tasks), user.id)
    return len(tasks)


def user_progress_map(user_id) -> dict:
    """{task_id: completed} for one user."""
    rows = TaskProgress.query.filter_by(user_id=user_id).all()
    return {row.task_id: row.completed for row in rows}


def preparation_progress_map(preparation_id) -> dict:
    """{task_id: completed} for one buddy preparation."""
    rows = BuddyPreparationTaskProgress.query.filter_by(
        buddy_preparation_id=preparation_id,
    ).all()
    return {row.task_id: row.completed for row in rows}


def set_user_progress(user_id, task_id, completed: bool) -> TaskProgress:
    """Upsert the (user, task) progress row."""
    row = TaskProgress.query.filter_by(user_id=user_id, task_id=task_id).first()
    if row is None:
        row = TaskProgress(user_id=user_id, task_id=task_id)
        db.session.add(row)
    row.completed = completed
    db.session.flush()
    return row


def set_preparation_progress(preparation_id, task_id, completed: bool) -> BuddyPreparationTaskProgress:
    """Upsert the (preparation, task) progress row."""
    row = BuddyPreparationTaskProgress.query.filter_by(
        buddy_preparation_id=preparation_id, task_id=task_id,
    ).first()
    if row is None:
        row = BuddyPreparationTaskProgress(buddy_preparation_id=preparation_id, task_id=task_id)
        db.session.add(row)
    row.completed = completed
    db.session.flush()
    return row


def summarize(tasks, progress: dict) -> dict:
    """Completed / total / percentage over ``tasks`` given a progress map."""
    total = len(tasks)
    completed = sum(1 for t in tasks if progress.get(t.id))
    return {
        "completed": completed,
        "total": total,
        "percentage": round(completed / total * 100) if total else 0,
    }
