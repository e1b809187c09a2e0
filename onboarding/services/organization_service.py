"""
Organization service — organization settings and SUPER_ADMIN management.

Covers:
  - buddy settings and user roles of the caller's organization (ADMIN+)
  - organization CRUD (with counts; new organizations get the default checklist)
  - user CRUD across organizations
  - pre-assigned roles (email → role applied at first sign-in)
"""

import logging

from onboarding.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from onboarding.models import db
from onboarding.models.buddy_preparation import BuddyPreparation
from onboarding.models.organization import Organization
from onboarding.models.user import EMPLOYEE, ROLES, SUPER_ADMIN, PreAssignedRole, User
from onboarding.services import buddy_service, employee_service, template_service
from onboarding.services.helpers.scoped_queries import get_in_organization, get_or_raise
from onboarding.utils.helpers import normalize_email, require_text, transaction

logger = logging.getLogger(__name__)


def _parse_role(value) -> str:
    if value not in ROLES:
        raise ValidationError(f"Invalid role; expected one of {', '.join(ROLES)}")
    return value


# ── Settings ─────────────────────────────────────────────────────────────────


def get_settings(ctx) -> dict:
    organization = get_or_raise(Organization, ctx.organization_id, "Organization")
    return organization.to_dict()


def update_settings(ctx, data: dict) -> dict:
    buddy_enabled = data.get("buddyEnabled")
    if not isinstance(buddy_enabled, bool):
        raise ValidationError("buddyEnabled must be a boolean")
    organization = get_or_raise(Organization, ctx.organization_id, "Organization")
    with transaction():
        organization.buddy_enabled = buddy_enabled
    logger.info(
        "Organization %s buddyEnabled=%s (user=%s)", organization.id, buddy_enabled, ctx.user_id,
    )
    return organization.to_dict()


# ── Users of the caller's organization ──────────────────────────────────────


def list_organization_users(ctx) -> list[dict]:
    """Every user of the caller's organization, all roles, with progress %."""
    users = User.query_for_organization(ctx.organization_id).order_by(User.name).all()
    result = []
    for user in users:
        rows = user.progress
        completed = sum(1 for p in rows if p.completed)
        result.append({
            **user.to_dict(),
            "progress": round(completed / len(rows) * 100) if rows else 0,
            "hasBuddy": user.buddy_id is not None,
        })
    return result


def update_organization_user_role(ctx, user_id, data: dict) -> dict:
    """Change the role of a user in the caller's organization.

    ADMIN cannot grant SUPER_ADMIN. Roles of identity-provider managed users
    are owned by the provider and cannot be changed here.
    """
    role = _parse_role(data.get("role"))
    if role == SUPER_ADMIN and not ctx.is_super_admin:
        raise ForbiddenError("ADMIN cannot promote users to SUPER_ADMIN")
    user = get_in_organization(User, user_id, ctx, "User")
    if user.is_azure_managed:
        raise ForbiddenError("Roles of identity-provider managed users cannot be changed")

    with transaction():
        user.role = role
    logger.info("User %s role set to %s (user=%s)", user.id, role, ctx.user_id)
    return user.to_dict()


# ═════════════════════════════════════════════════════════════════════════════
# Organizations (SUPER_ADMIN)
# ═════════════════════════════════════════════════════════════════════════════


def _organization_summary(organization: Organization) -> dict:
    d = organization.to_dict()
    checklist = organization.checklist
    d["usersCount"] = organization.users.count()
    d["checklistId"] = checklist.id if checklist else None
    d["categoriesCount"] = len(checklist.categories) if checklist else 0
    d["tasksCount"] = sum(len(c.tasks) for c in checklist.categories) if checklist else 0
    d["buddyPreparationsCount"] = (
        BuddyPreparation.query_for_organization(organization.id).count()
        if buddy_service.preparations_available() else 0
    )
    return d


def list_organizations() -> list[dict]:
    return [_organization_summary(o) for o in Organization.query.order_by(Organization.name).all()]


def create_organization(data: dict) -> dict:
    name = require_text(data, "name")
    buddy_enabled = data.get("buddyEnabled", True)
    if not isinstance(buddy_enabled, bool):
        raise ValidationError("buddyEnabled must be a boolean")

    with transaction():
        organization = Organization(name=name, buddy_enabled=buddy_enabled)
        db.session.add(organization)
        db.session.flush()
        template_service.create_default_checklist(organization)

    logger.info("Created organization %s (%s)", organization.id, name)
    return _organization_summary(organization)


def update_organization(organization_id, data: dict) -> dict:
    organization = get_or_raise(Organization, organization_id, "Organization")
    if "buddyEnabled" in data and not isinstance(data["buddyEnabled"], bool):
        raise ValidationError("buddyEnabled must be a boolean")
    with transaction():
        if "name" in data:
            organization.name = require_text(data, "name")
        if "buddyEnabled" in data:
            organization.buddy_enabled = data["buddyEnabled"]
    return _organization_summary(organization)


def delete_organization(ctx, organization_id) -> None:
    """Delete an organization with its checklist, users and preparations."""
    organization = get_or_raise(Organization, organization_id, "Organization")
    if organization.id == ctx.organization_id:
        raise ValidationError("You cannot delete your own organization")
    with transaction():
        for user in organization.users.all():
            employee_service.delete_user(user)
        db.session.flush()
        if buddy_service.preparations_available():
            BuddyPreparation.query_for_organization(organization.id).delete(
                synchronize_session="fetch",
            )
        db.session.delete(organization)
    logger.warning("Deleted organization %s (user=%s)", organization_id, ctx.user_id)


# ═════════════════════════════════════════════════════════════════════════════
# Users (SUPER_ADMIN)
# ═════════════════════════════════════════════════════════════════════════════


def list_users(organization_id=None) -> list[dict]:
    q = User.query
    if organization_id:
        q = q.filter_by(organization_id=organization_id)
    users = q.order_by(User.name).all()
    return [
        {**u.to_dict(include_buddy=True), "organizationName": u.organization.name}
        for u in users
    ]


def create_user(data: dict) -> dict:
    name = require_text(data, "name")
    email = normalize_email(data.get("email"))
    role = _parse_role(data.get("role") or EMPLOYEE)
    if not data.get("organizationId"):
        raise ValidationError("organizationId is required", details={"organizationId": "missing"})
    organization = get_or_raise(Organization, data["organizationId"], "Organization")
    if User.query.filter(db.func.lower(User.email) == email).first() is not None:
        raise ValidationError("A user with this email address already exists")

    with transaction():
        user = employee_service.create_user(organization.id, name, email, role)

    logger.info("Created user %s role=%s organization=%s", user.id, role, organization.id)
    return user.to_dict(include_buddy=True)


def update_user(user_id, data: dict) -> dict:
    user = get_or_raise(User, user_id, "User")

    organization_id = user.organization_id
    if data.get("organizationId"):
        organization_id = get_or_raise(Organization, data["organizationId"], "Organization").id

    email = user.email
    if "email" in data:
        email = normalize_email(data.get("email"))
        clash = User.query.filter(db.func.lower(User.email) == email, User.id != user.id).first()
        if clash is not None:
            raise ValidationError("A user with this email address already exists")

    with transaction():
        if "name" in data:
            user.name = require_text(data, "name")
        if "role" in data:
            user.role = _parse_role(data["role"])
        user.email = email
        if organization_id != user.organization_id:
            employee_service.move_user(user, organization_id)

    logger.info("Updated user %s (role=%s, organization=%s)", user.id, user.role, user.organization_id)
    return user.to_dict(include_buddy=True)


def delete_user(ctx, user_id) -> None:
    user = get_or_raise(User, user_id, "User")
    if user.id == ctx.user_id:
        raise ValidationError("You cannot delete your own account")
    with transaction():
        employee_service.delete_user(user)
    logger.info("Deleted user %s (user=%s)", user_id, ctx.user_id)


# ═════════════════════════════════════════════════════════════════════════════
# Pre-assigned roles (SUPER_ADMIN)
# ═════════════════════════════════════════════════════════════════════════════


def list_pre_assigned_roles() -> list[dict]:
    return [r.to_dict() for r in PreAssignedRole.query.order_by(PreAssignedRole.email).all()]


def upsert_pre_assigned_role(email, role) -> PreAssignedRole:
    """Create or update the role for ``email``; rejects emails that already have a user."""
    email = normalize_email(email)
    role = _parse_role(role)
    if User.query.filter(db.func.lower(User.email) == email).first() is not None:
        raise ValidationError(
            "A user with this email already exists; update the role on the user instead",
        )

    with transaction():
        row = PreAssignedRole.query.filter_by(email=email).first()
        if row is None:
            row = PreAssignedRole(email=email, role=role)
            db.session.add(row)
        else:
            row.role = role

    logger.info("Pre-assigned role %s for %s", role, email)
    return row


def delete_pre_assigned_role(email) -> None:
    if not email:
        raise ValidationError("email query parameter is required")
    row = PreAssignedRole.query.filter_by(email=email.strip().lower()).first()
    if row is None:
        raise NotFoundError(resource="Pre-assigned role", resource_id=email)
    with transaction():
        db.session.delete(row)
    logger.info("Removed pre-assigned role for %s", email)
