"""
Employee service — roster, creation, detail, removal and buddy assignment.

Creating an employee is one unit of work: the user row, its initial
TaskProgress rows and buddy-preparation linking commit together.
"""

import logging

from onboarding.core.exceptions import ForbiddenError, ValidationError
from onboarding.models import db
from onboarding.models.base import iso
from onboarding.models.buddy_preparation import BuddyPreparation
from onboarding.models.organization import Checklist
from onboarding.models.progress import TaskProgress
from onboarding.models.user import EMPLOYEE, BuddyAssignment, User
from onboarding.services import buddy_service, progress_service
from onboarding.services.helpers.scoped_queries import get_in_organization, get_or_raise
from onboarding.utils.helpers import normalize_email, require_text, transaction

logger = logging.getLogger(__name__)


def _roster_entry(user: User) -> dict:
    rows = user.progress
    completed = sum(1 for p in rows if p.completed)
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "organizationId": user.organization_id,
        "progress": round(completed / len(rows) * 100) if rows else 0,
        "hasBuddy": user.buddy_id is not None,
    }


def list_employees(ctx) -> list[dict]:
    employees = (
        User.query_for_organization(ctx.organization_id)
        .filter(User.role == EMPLOYEE)
        .order_by(User.name)
        .all()
    )
    return [_roster_entry(u) for u in employees]


def create_user(organization_id, name: str, email: str, role: str = EMPLOYEE,
                *, is_azure_managed: bool = False) -> User:
    """Insert a user with initial progress and run preparation linking.

    The caller owns the transaction.
    """
    user = User(
        name=name,
        email=email,
        role=role,
        organization_id=organization_id,
        is_azure_managed=is_azure_managed,
    )
    db.session.add(user)
    db.session.flush()
    progress_service.create_initial_progress(user)
    buddy_service.link_preparations(user)
    return user


def create_employee(ctx, data: dict) -> dict:
    name = require_text(data, "name")
    email = normalize_email(data.get("email"))
    if User.query.filter(db.func.lower(User.email) == email).first() is not None:
        raise ValidationError("A user with this email address already exists")

    with transaction():
        user = create_user(ctx.organization_id, name, email)

    logger.info("Created employee %s in organization %s", user.id, ctx.organization_id)
    return _roster_entry(user)


def get_employee(ctx, user_id) -> dict:
    """Employee detail with per-category completion and split task lists."""
    user = get_in_organization(User, user_id, ctx, "Employee")
    progress = progress_service.user_progress_map(user.id)
    checklist = Checklist.query.filter_by(organization_id=user.organization_id).first()

    categories, buddy_tasks, regular_tasks = [], [], []
    for category in (checklist.categories if checklist else []):
        done = 0
        for task in category.tasks:
            completed = bool(progress.get(task.id))
            done += completed
            entry = {
                "id": task.id,
                "title": task.title,
                "completed": completed,
                "categoryId": category.id,
                "categoryName": category.name,
            }
            (buddy_tasks if task.is_buddy_task else regular_tasks).append(entry)
        categories.append({
            "id": category.id,
            "name": category.name,
            "isBuddyCategory": category.is_buddy_category,
            "completedTasks": done,
            "totalTasks": len(category.tasks),
        })

    total = sum(c["totalTasks"] for c in categories)
    completed = sum(c["completedTasks"] for c in categories)
    mentees = User.query.filter_by(buddy_id=user.id).count()
    preparations = 0
    if buddy_service.preparations_available():
        preparations = BuddyPreparation.query_active().filter_by(buddy_id=user.id).count()

    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "organizationId": user.organization_id,
        "createdAt": iso(user.created_at),
        "progress": round(completed / total * 100) if total else 0,
        "hasBuddy": user.buddy_id is not None,
        "isBuddyForSomeone": mentees > 0 or preparations > 0,
        "buddy": user.buddy.to_brief() if user.buddy else None,
        "categories": categories,
        "totalTasks": total,
        "completedTasks": completed,
        "buddyTasks": buddy_tasks,
        "regularTasks": regular_tasks,
    }


def _clear_buddy_links(user: User) -> None:
    """Drop every buddy link to or from ``user``, in both directions."""
    User.query.filter_by(buddy_id=user.id).update(
        {User.buddy_id: None}, synchronize_session="fetch",
    )
    BuddyAssignment.query.filter(
        (BuddyAssignment.employee_id == user.id) | (BuddyAssignment.buddy_id == user.id),
    ).delete(synchronize_session="fetch")
    if buddy_service.preparations_available():
        BuddyPreparation.query.filter_by(linked_user_id=user.id).update(
            {BuddyPreparation.linked_user_id: None}, synchronize_session="fetch",
        )
        dropped = BuddyPreparation.query.filter_by(buddy_id=user.id).delete(
            synchronize_session="fetch",
        )
        if dropped:
            logger.info("Removed %d buddy preparations of user %s", dropped, user.id)


def delete_user(user: User) -> None:
    """Remove a user and every reference to it. The caller owns the transaction."""
    _clear_buddy_links(user)
    db.session.delete(user)


def move_user(user: User, organization_id) -> None:
    """Move ``user`` to another organization. The caller owns the transaction.

    Buddy links and progress rows refer to the old organization, so they are
    dropped and progress is reseeded against the new checklist.
    """
    _clear_buddy_links(user)
    user.buddy = None
    TaskProgress.query.filter_by(user_id=user.id).delete(synchronize_session="fetch")
    user.organization_id = organization_id
    db.session.flush()
    db.session.expire(user, ["progress", "organization"])
    progress_service.create_initial_progress(user)


def delete_employee(ctx, user_id) -> None:
    user = get_in_organization(User, user_id, ctx, "Employee")
    if user.id == ctx.user_id:
        raise ValidationError("You cannot remove your own account")
    with transaction():
        delete_user(user)
    logger.info("Deleted employee %s (user=%s)", user_id, ctx.user_id)


def _validate_buddy_id(value, field: str):
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {field}")
    return value.strip()


def _load_buddy(ctx, employee: User, buddy_id) -> User:
    buddy = get_or_raise(User, buddy_id, "Buddy")
    if buddy.organization_id != employee.organization_id:
        raise ForbiddenError("Buddy belongs to another organization")
    if buddy.id == employee.id:
        raise ValidationError("An employee cannot be their own buddy")
    return buddy


def set_buddy(ctx, user_id, data: dict) -> dict:
    """Assign (``buddyId``) or unassign (``null``) the employee's buddy.

    ``additionalBuddyId`` records a second buddy in BuddyAssignment only.
    """
    buddy_id = _validate_buddy_id(data.get("buddyId"), "buddyId")
    extra_id = _validate_buddy_id(data.get("additionalBuddyId"), "additionalBuddyId")

    employee = get_in_organization(User, user_id, ctx, "Employee")
    buddy = _load_buddy(ctx, employee, buddy_id) if buddy_id else None
    extra = _load_buddy(ctx, employee, extra_id) if extra_id else None

    with transaction():
        employee.buddy = buddy
        BuddyAssignment.query.filter_by(employee_id=employee.id).delete(
            synchronize_session="fetch",
        )
        db.session.flush()
        for assigned in (buddy, extra):
            if assigned is not None:
                buddy_service.assign_buddy(employee, assigned.id)

    logger.info(
        "Employee %s buddy set to %s (additional=%s, user=%s)",
        employee.id, buddy_id, extra_id, ctx.user_id,
    )
    return {
        "id": employee.id,
        "buddyId": employee.buddy_id,
        "buddy": buddy.to_brief() if buddy else None,
    }
