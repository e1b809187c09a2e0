"""
Organization-scoped lookup helpers.

Every get-by-id that serves an authenticated caller goes through these
helpers so the organization check cannot be forgotten.

Unlike a pure "not found" policy, cross-organization access answers 403:
the resource exists, the caller simply may not touch it. SUPER_ADMIN callers
bypass the organization check entirely.

Usage:
    task = get_in_organization(Task, task_id, ctx)
    ensure_organization_access(ctx, prep.organization_id, "BuddyPreparation")
"""

import logging

from onboarding.core.exceptions import ForbiddenError, NotFoundError
from onboarding.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk, label: str | None = None):
    """Fetch by primary key or raise NotFoundError."""
    label = label or model.__name__
    obj = db.session.get(model, pk) if pk else None
    if obj is None:
        logger.debug("get_or_raise: %s id=%s not found", label, pk)
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


def ensure_organization_access(ctx, organization_id, label: str = "Resource") -> None:
    """Raise ForbiddenError unless the caller may act on ``organization_id``."""
    if ctx.is_super_admin:
        return
    if organization_id != ctx.organization_id:
        logger.warning(
            "Cross-organization access denied: user=%s org=%s target_org=%s (%s)",
            ctx.user_id, ctx.organization_id, organization_id, label,
        )
        raise ForbiddenError(f"{label} belongs to another organization")


def get_in_organization(model, pk, ctx, label: str | None = None):
    """Fetch by primary key and verify the caller's organization.

    Works for any model exposing ``organization_id`` (a column or the
    transitive property on Category / Task).

    Raises:
        NotFoundError: the row does not exist.
        ForbiddenError: the row belongs to another organization.
    """
    label = label or model.__name__
    obj = get_or_raise(model, pk, label)
    ensure_organization_access(ctx, obj.organization_id, label)
    return obj
