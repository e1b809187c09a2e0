"""
User Models — users, pre-assigned roles, buddy assignments.

Roles:
    EMPLOYEE     works through the organization's checklist
    ADMIN        manages the organization's checklist, employees, preparations
    SUPER_ADMIN  manages every organization; bypasses organization scoping
"""

from onboarding.models import db
from onboarding.models.base import OrganizationModel, iso, new_id, utcnow

EMPLOYEE = "EMPLOYEE"
ADMIN = "ADMIN"
SUPER_ADMIN = "SUPER_ADMIN"

ROLES = (EMPLOYEE, ADMIN, SUPER_ADMIN)
ADMIN_ROLES = frozenset({ADMIN, SUPER_ADMIN})


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(OrganizationModel):
    __tablename__ = "users"

    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(254), nullable=False, unique=True)
    role = db.Column(db.String(20), nullable=False, default=EMPLOYEE)
    # Legacy single-buddy link; BuddyAssignment holds the multi-buddy rows
    buddy_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    is_azure_managed = db.Column(db.Boolean, nullable=False, default=False)

    organization = db.relationship("Organization", back_populates="users")
    buddy = db.relationship("User", remote_side="User.id", foreign_keys=[buddy_id])
    progress = db.relationship(
        "TaskProgress", back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self):
        return self.role in ADMIN_ROLES

    def to_dict(self, include_buddy=False):
        d = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "organizationId": self.organization_id,
            "buddyId": self.buddy_id,
            "isAzureManaged": self.is_azure_managed,
            "createdAt": iso(self.created_at),
        }
        if include_buddy:
            d["buddy"] = self.buddy.to_brief() if self.buddy else None
        return d

    def to_brief(self):
        return {"id": self.id, "name": self.name, "email": self.email}

    def __repr__(self):
        return f"<User {self.id} {self.email} {self.role}>"


# ═══════════════════════════════════════════════════════════════
# 2. PRE-ASSIGNED ROLES
# ═══════════════════════════════════════════════════════════════
class PreAssignedRole(db.Model):
    """Email → role mapping applied when the matching user is first created."""
    __tablename__ = "pre_assigned_roles"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(254), nullable=False, unique=True)
    role = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


# ═══════════════════════════════════════════════════════════════
# 3. BUDDY ASSIGNMENTS
# ═══════════════════════════════════════════════════════════════
class BuddyAssignment(db.Model):
    __tablename__ = "buddy_assignments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    employee_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    buddy_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "buddy_id", name="uq_buddy_assignment_pair"),
    )

    employee = db.relationship("User", foreign_keys=[employee_id])
    buddy = db.relationship("User", foreign_keys=[buddy_id])

    def to_dict(self):
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "buddyId": self.buddy_id,
            "createdAt": iso(self.created_at),
        }
