"""
OrganizationModel — Abstract base class for organization-scoped models.

Models owned directly by an Organization (users, buddy preparations) inherit
from OrganizationModel instead of db.Model. This adds:
  - string UUID primary key
  - organization_id FK column with index
  - created_at / updated_at timestamps
  - query_for_organization(organization_id) classmethod

Categories and tasks are scoped transitively (task → category → checklist →
organization) and use the id/timestamp helpers only.
"""

import uuid
from datetime import datetime, timezone

from onboarding.models import db


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(value):
    return value.isoformat() if value else None


class OrganizationModel(db.Model):
    """Abstract base for organization-scoped tables."""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    organization_id = db.Column(
        db.String(36),
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @classmethod
    def query_for_organization(cls, organization_id):
        """Return a query filtered by organization_id."""
        return cls.query.filter_by(organization_id=organization_id)
