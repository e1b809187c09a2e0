"""
Buddy service — buddy preparations, linking, and the buddy's view of a person.

A "person" is either a real User or a BuddyPreparation placeholder. The
buddy checklist endpoints accept either id; since ids are UUIDs the two
kinds never collide, and a User match is tried first.

The caller may view or update a person's buddy tasks when it is that
person's buddy through any of:
    User.buddy_id                (legacy single-buddy link)
    BuddyAssignment              (multi-buddy rows)
    BuddyPreparation.buddy_id    (placeholder)
and the person's organization has buddy_enabled=True.

Preparation endpoints require the ``buddy_preparations`` capability
(see middleware.diagnostics); relationship lookups silently omit
preparations when it is off.
"""

import logging

from sqlalchemy import or_

from onboarding.core.exceptions import (
    CapabilityUnavailableError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from onboarding.middleware.diagnostics import get_capabilities
from onboarding.models import db
from onboarding.models.base import iso
from onboarding.models.buddy_preparation import BuddyPreparation
from onboarding.models.organization import Checklist, Organization, Task
from onboarding.models.user import ADMIN_ROLES, BuddyAssignment, User
from onboarding.services import progress_service
from onboarding.services.helpers.scoped_queries import (
    ensure_organization_access,
    get_in_organization,
    get_or_raise,
)
from onboarding.utils.helpers import normalize_email, require_text, transaction

logger = logging.getLogger(__name__)


def preparations_available() -> bool:
    return get_capabilities().buddy_preparations


def require_preparations() -> None:
    if not preparations_available():
        raise CapabilityUnavailableError("Buddy preparations")


# ═════════════════════════════════════════════════════════════════════════════
# Buddy preparations (admin CRUD)
# ═════════════════════════════════════════════════════════════════════════════


def list_preparations(ctx, organization_id=None) -> dict:
    """Preparations visible to the caller plus {total, active, completed}.

    ADMIN sees its own organization; SUPER_ADMIN sees every organization or
    the one given by ``organization_id``.
    """
    require_preparations()
    q = BuddyPreparation.query
    if ctx.is_super_admin:
        if organization_id:
            q = q.filter_by(organization_id=organization_id)
    else:
        q = q.filter_by(organization_id=ctx.organization_id)
    preparations = q.order_by(
        BuddyPreparation.is_active.desc(), BuddyPreparation.created_at.desc(),
    ).all()

    completed = sum(1 for p in preparations if p.is_completed)
    return {
        "data": [p.to_dict() for p in preparations],
        "stats": {
            "total": len(preparations),
            "active": len(preparations) - completed,
            "completed": completed,
        },
    }


def _validate_buddy(buddy_id, organization: Organization) -> User:
    buddy = db.session.get(User, buddy_id) if buddy_id else None
    if buddy is None or buddy.organization_id != organization.id:
        raise ValidationError("Buddy not found or does not belong to the organization")
    return buddy


def _ensure_unique_active_email(email, organization_id, exclude_id=None) -> None:
    if not email:
        return
    q = BuddyPreparation.query_active().filter(
        BuddyPreparation.organization_id == organization_id,
        db.func.lower(BuddyPreparation.email) == email,
    )
    if exclude_id:
        q = q.filter(BuddyPreparation.id != exclude_id)
    if q.first() is not None:
        raise ValidationError(
            "Active buddy preparation already exists for this email in this organization",
        )


def _optional_email(data: dict):
    value = data.get("email")
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return normalize_email(value)


def create_preparation(ctx, data: dict) -> BuddyPreparation:
    require_preparations()
    first_name = require_text(data, "firstName")
    last_name = require_text(data, "lastName")
    if not data.get("buddyId"):
        raise ValidationError("buddyId is required", details={"buddyId": "missing"})

    organization_id = data.get("organizationId") or ctx.organization_id
    ensure_organization_access(ctx, organization_id, "Organization")
    organization = get_or_raise(Organization, organization_id, "Organization")
    buddy = _validate_buddy(data["buddyId"], organization)
    if not organization.buddy_enabled:
        raise ValidationError("Buddy system is not enabled for this organization")

    email = _optional_email(data)
    _ensure_unique_active_email(email, organization.id)

    with transaction():
        preparation = BuddyPreparation(
            first_name=first_name,
            last_name=last_name,
            email=email,
            buddy=buddy,
            organization=organization,
            notes=(data.get("notes") or "").strip() or None,
        )
        db.session.add(preparation)

    logger.info(
        "Created buddy preparation %s buddy=%s org=%s",
        preparation.id, buddy.id, organization.id,
    )
    return preparation


def get_preparation(ctx, preparation_id) -> BuddyPreparation:
    require_preparations()
    return get_in_organization(BuddyPreparation, preparation_id, ctx, "Buddy preparation")


def update_preparation(ctx, preparation_id, data: dict, *, partial: bool = True) -> BuddyPreparation:
    """Update a preparation; PUT (``partial=False``) requires the core fields."""
    preparation = get_preparation(ctx, preparation_id)
    organization = preparation.organization

    if not partial:
        for field in ("firstName", "lastName", "buddyId"):
            if not data.get(field):
                raise ValidationError("firstName, lastName, and buddyId are required")

    buddy = None
    if "buddyId" in data:
        buddy = _validate_buddy(data["buddyId"], organization)

    email = preparation.email
    if "email" in data:
        email = _optional_email(data)
        _ensure_unique_active_email(email, organization.id, exclude_id=preparation.id)

    is_active = data.get("isActive")
    if is_active is not None and not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean")

    with transaction():
        if "firstName" in data:
            preparation.first_name = require_text(data, "firstName")
        if "lastName" in data:
            preparation.last_name = require_text(data, "lastName")
        if buddy is not None:
            preparation.buddy = buddy
        preparation.email = email
        if "notes" in data:
            preparation.notes = (data.get("notes") or "").strip() or None
        if is_active is not None:
            preparation.is_active = is_active

    logger.info("Updated buddy preparation %s (user=%s)", preparation.id, ctx.user_id)
    return preparation


def delete_preparation(ctx, preparation_id) -> BuddyPreparation:
    """Soft delete: the preparation becomes inactive and keeps its progress."""
    preparation = get_preparation(ctx, preparation_id)
    with transaction():
        preparation.soft_delete()
    logger.info("Deactivated buddy preparation %s (user=%s)", preparation.id, ctx.user_id)
    return preparation


# ═════════════════════════════════════════════════════════════════════════════
# Linking
# ═════════════════════════════════════════════════════════════════════════════


def assign_buddy(user: User, buddy_id) -> None:
    """Record ``buddy_id`` as a buddy of ``user`` (idempotent). Caller commits."""
    exists = BuddyAssignment.query.filter_by(employee_id=user.id, buddy_id=buddy_id).first()
    if exists is None:
        db.session.add(BuddyAssignment(employee_id=user.id, buddy_id=buddy_id))


def link_preparations(user: User) -> BuddyPreparation | None:
    """Link a newly created user to the matching active preparation, if any.

    Matching is by email (case-insensitive) within the user's organization.
    On a match:
      - linked_user_id is set; the preparation stays active
      - the preparation's buddy becomes the user's buddy when it has none,
        and a BuddyAssignment row is recorded
      - completed preparation progress is copied to the user's TaskProgress

    Runs inside the caller's transaction; nothing here commits.
    """
    if not user.email or not preparations_available():
        return None

    preparation = (
        BuddyPreparation.query_active()
        .filter(
            BuddyPreparation.organization_id == user.organization_id,
            BuddyPreparation.linked_user_id.is_(None),
            db.func.lower(BuddyPreparation.email) == user.email.lower(),
        )
        .order_by(BuddyPreparation.created_at.desc())
        .first()
    )
    if preparation is None:
        return None

    preparation.linked_user_id = user.id
    if user.buddy_id is None:
        user.buddy_id = preparation.buddy_id
    assign_buddy(user, preparation.buddy_id)

    carried = 0
    for row in preparation.progress:
        if row.completed:
            progress_service.set_user_progress(user.id, row.task_id, True)
            carried += 1
    db.session.flush()

    logger.info(
        "Linked buddy preparation %s to user %s (buddy=%s, carried %d completed tasks)",
        preparation.id, user.id, preparation.buddy_id, carried,
    )
    return preparation


# ═════════════════════════════════════════════════════════════════════════════
# Buddy view of a person
# ═════════════════════════════════════════════════════════════════════════════


def _is_assigned_buddy(ctx, user: User) -> bool:
    if user.buddy_id == ctx.user_id:
        return True
    return BuddyAssignment.query.filter_by(
        employee_id=user.id, buddy_id=ctx.user_id,
    ).first() is not None


def resolve_person(ctx, person_id):
    """Return (person, organization, kind) after the buddy authorization checks.

    kind is "user" or "preparation".

    Raises:
        NotFoundError: no user or preparation has this id.
        ForbiddenError: caller is not the buddy, the person belongs to another
            organization, or buddy is disabled.
    """
    user = db.session.get(User, person_id) if person_id else None
    if user is not None:
        person, kind, allowed = user, "user", _is_assigned_buddy(ctx, user)
    else:
        preparation = None
        if person_id and preparations_available():
            preparation = db.session.get(BuddyPreparation, person_id)
        if preparation is None:
            raise NotFoundError(resource="Employee", resource_id=person_id)
        person, kind = preparation, "preparation"
        allowed = preparation.buddy_id == ctx.user_id
    allowed = allowed and person.organization_id == ctx.organization_id

    if not allowed:
        logger.warning(
            "Buddy access denied: user=%s is not buddy of %s %s", ctx.user_id, kind, person_id,
        )
        raise ForbiddenError("Not authorized to view this employee's checklist")
    if not person.organization.buddy_enabled:
        raise ForbiddenError("Buddy function not enabled for this organization")
    return person, person.organization, kind


def _person_brief(person, kind: str) -> dict:
    if kind == "user":
        return {"id": person.id, "name": person.name, "email": person.email, "type": kind}
    return {"id": person.id, "name": person.full_name, "email": person.email, "type": kind}


def _progress_map(person, kind: str) -> dict:
    if kind == "user":
        return progress_service.user_progress_map(person.id)
    return progress_service.preparation_progress_map(person.id)


def person_checklist(ctx, person_id) -> dict:
    """Buddy tasks of the person's organization, annotated with completion."""
    person, organization, kind = resolve_person(ctx, person_id)
    checklist = Checklist.query.filter_by(organization_id=organization.id).first()
    if checklist is None:
        raise NotFoundError(resource="Checklist", resource_id=organization.id)

    progress = _progress_map(person, kind)
    categories, visible = [], []
    for category in checklist.categories:
        tasks = [t for t in category.tasks if t.is_buddy_task]
        if not tasks:
            continue
        visible.extend(tasks)
        d = category.to_dict()
        d["tasks"] = [{**t.to_dict(), "completed": bool(progress.get(t.id))} for t in tasks]
        categories.append(d)

    return {
        "categories": categories,
        "employee": _person_brief(person, kind),
        "progress": progress_service.summarize(visible, progress),
    }


def set_person_progress(ctx, task_id, person_id, data: dict) -> dict:
    """Tick or untick a buddy task on behalf of a user or a preparation."""
    completed = data.get("completed")
    if not isinstance(completed, bool):
        raise ValidationError("Invalid input. 'completed' must be a boolean.")

    task = get_or_raise(Task, task_id)
    if not task.is_buddy_task:
        raise ForbiddenError("This is not a buddy task")
    person, organization, kind = resolve_person(ctx, person_id)
    if task.organization_id != organization.id:
        raise ForbiddenError("Task belongs to another organization")

    with transaction():
        if kind == "user":
            row = progress_service.set_user_progress(person.id, task.id, completed)
        else:
            row = progress_service.set_preparation_progress(person.id, task.id, completed)

    logger.info(
        "Buddy %s set task %s completed=%s for %s %s",
        ctx.user_id, task.id, completed, kind, person.id,
    )
    return {
        "success": True,
        "taskProgress": row.to_dict(),
        "employee": {"id": person.id, "name": _person_brief(person, kind)["name"]},
    }


# ═════════════════════════════════════════════════════════════════════════════
# Relationships
# ═════════════════════════════════════════════════════════════════════════════


def _mentored_users(buddy_id):
    assigned = db.session.query(BuddyAssignment.employee_id).filter(
        BuddyAssignment.buddy_id == buddy_id,
    )
    return (
        User.query.filter(or_(User.buddy_id == buddy_id, User.id.in_(assigned)))
        .order_by(User.created_at.desc())
        .all()
    )


def buddy_relationships(ctx) -> dict:
    """Everyone the caller mentors, split into three groups."""
    users = _mentored_users(ctx.user_id)
    active_preparations, completed_preparations = [], []
    if preparations_available():
        preparations = (
            BuddyPreparation.query.filter_by(buddy_id=ctx.user_id)
            .order_by(BuddyPreparation.updated_at.desc())
            .all()
        )
        for preparation in preparations:
            if preparation.is_completed:
                completed_preparations.append(preparation)
            else:
                active_preparations.append(preparation)

    return {
        "activeUsers": [
            {**u.to_brief(), "role": u.role, "createdAt": iso(u.created_at)} for u in users
        ],
        "activePreparations": [p.to_dict() for p in active_preparations],
        "completedPreparations": [p.to_dict() for p in completed_preparations],
        "stats": {
            "totalActiveUsers": len(users),
            "totalActivePreparations": len(active_preparations),
            "totalCompletedPreparations": len(completed_preparations),
            "totalAll": len(users) + len(active_preparations),
        },
    }


def is_buddy(ctx) -> dict:
    organization = db.session.get(Organization, ctx.organization_id)
    if organization is None or not organization.buddy_enabled:
        return {"isBuddy": False, "buddyFor": [], "buddyEnabled": False}

    users = _mentored_users(ctx.user_id)
    has_preparations = preparations_available() and BuddyPreparation.query_active().filter(
        BuddyPreparation.buddy_id == ctx.user_id,
        BuddyPreparation.linked_user_id.is_(None),
    ).first() is not None
    return {
        "isBuddy": bool(users) or has_preparations,
        "buddyFor": [u.to_brief() for u in users],
        "buddyEnabled": True,
    }


def list_buddies(ctx) -> list[dict]:
    """Users of the caller's organization eligible as buddies."""
    organization = db.session.get(Organization, ctx.organization_id)
    if organization is None or not organization.buddy_enabled:
        return []
    users = (
        User.query_for_organization(organization.id)
        .filter(User.role.in_(sorted(ADMIN_ROLES)))
        .order_by(User.name)
        .all()
    )
    return [{"id": u.id, "name": u.name} for u in users]
