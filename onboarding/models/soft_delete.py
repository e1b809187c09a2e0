"""
Soft Delete Mixin — deactivation instead of physical removal.

Adds an `is_active` flag and query helpers. Buddy preparations use it: a
DELETE marks the placeholder inactive and keeps its history, so "completed"
preparations stay visible to the buddy.

Usage:
    class BuddyPreparation(SoftDeleteMixin, OrganizationModel):
        ...

    prep.soft_delete()
    BuddyPreparation.query_active().all()
"""

from onboarding.models import db


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def soft_delete(self):
        """Mark this record as inactive."""
        self.is_active = False

    def restore(self):
        """Reactivate a soft-deleted record."""
        self.is_active = True

    @property
    def is_deleted(self):
        return not self.is_active

    @classmethod
    def query_active(cls):
        """Return a query that excludes deactivated records."""
        return cls.query.filter(cls.is_active.is_(True))

    @classmethod
    def query_inactive(cls):
        """Return only deactivated records."""
        return cls.query.filter(cls.is_active.is_(False))
