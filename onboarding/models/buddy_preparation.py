"""
BuddyPreparation — placeholder for a new hire who has no account yet.

An admin creates the placeholder with a name, an optional email and the
assigned buddy. The buddy can start ticking off buddy tasks right away;
progress lives in BuddyPreparationTaskProgress. When a user with the same
email is created in the organization, ``linked_user_id`` is set.

State:
    active   is_active=True,  linked_user_id=None
    linked   linked_user_id set (reported as "completed")
    inactive is_active=False (soft deleted, reported as "completed")
"""

from onboarding.models import db
from onboarding.models.base import OrganizationModel, iso
from onboarding.models.soft_delete import SoftDeleteMixin


class BuddyPreparation(SoftDeleteMixin, OrganizationModel):
    __tablename__ = "buddy_preparations"

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), nullable=True)
    buddy_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    notes = db.Column(db.Text)
    linked_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    __table_args__ = (
        db.Index("ix_buddy_preparations_email_org", "email", "organization_id"),
    )

    buddy = db.relationship("User", foreign_keys=[buddy_id])
    linked_user = db.relationship("User", foreign_keys=[linked_user_id])
    organization = db.relationship("Organization")
    progress = db.relationship(
        "BuddyPreparationTaskProgress", back_populates="preparation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_completed(self):
        return self.linked_user_id is not None or not self.is_active

    def to_dict(self):
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "buddyId": self.buddy_id,
            "organizationId": self.organization_id,
            "notes": self.notes,
            "isActive": self.is_active,
            "linkedUserId": self.linked_user_id,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
            "buddy": {
                "id": self.buddy.id,
                "name": self.buddy.name,
                "email": self.buddy.email,
                "role": self.buddy.role,
            } if self.buddy else None,
            "organization": {
                "id": self.organization.id,
                "name": self.organization.name,
                "buddyEnabled": self.organization.buddy_enabled,
            } if self.organization else None,
            "user": self.linked_user.to_brief() if self.linked_user else None,
        }

    def __repr__(self):
        return f"<BuddyPreparation {self.id} {self.full_name!r} active={self.is_active}>"
