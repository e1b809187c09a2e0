"""
Checklist Models — organizations, checklists, categories, tasks.

Hierarchy:
    Organization (1) ── (1) Checklist ── (N) Category ── (N) Task

Categories and tasks carry an integer ``order`` that is scoped to their
parent (checklist resp. category). Deleting a parent cascades to children
and to the TaskProgress rows hanging off each task. Preparation progress is
left to the database FK cascade (the table may not exist, see
middleware.diagnostics).
"""

from onboarding.models import db
from onboarding.models.base import iso, new_id, utcnow


# ═══════════════════════════════════════════════════════════════
# 1. ORGANIZATIONS
# ═══════════════════════════════════════════════════════════════
class Organization(db.Model):
    __tablename__ = "organizations"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False, index=True)
    buddy_enabled = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    checklist = db.relationship(
        "Checklist", back_populates="organization", uselist=False,
        cascade="all, delete-orphan",
    )
    users = db.relationship("User", back_populates="organization", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "buddyEnabled": self.buddy_enabled,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Organization {self.id} {self.name!r}>"


# ═══════════════════════════════════════════════════════════════
# 2. CHECKLISTS
# ═══════════════════════════════════════════════════════════════
class Checklist(db.Model):
    __tablename__ = "checklists"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    organization_id = db.Column(
        db.String(36),
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    organization = db.relationship("Organization", back_populates="checklist")
    categories = db.relationship(
        "Category", back_populates="checklist",
        order_by="Category.order",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_children=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "organizationId": self.organization_id,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if include_children:
            d["categories"] = [c.to_dict(include_tasks=True) for c in self.categories]
        return d

    def __repr__(self):
        return f"<Checklist {self.id} org={self.organization_id}>"


# ═══════════════════════════════════════════════════════════════
# 3. CATEGORIES
# ═══════════════════════════════════════════════════════════════
class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    checklist_id = db.Column(
        db.String(36),
        db.ForeignKey("checklists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    order = db.Column("order", db.Integer, nullable=False, default=0)
    is_buddy_category = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    checklist = db.relationship("Checklist", back_populates="categories")
    tasks = db.relationship(
        "Task", back_populates="category",
        order_by="Task.order",
        cascade="all, delete-orphan",
    )

    @property
    def organization_id(self):
        return self.checklist.organization_id if self.checklist else None

    def to_dict(self, include_tasks=False):
        d = {
            "id": self.id,
            "checklistId": self.checklist_id,
            "name": self.name,
            "order": self.order,
            "isBuddyCategory": self.is_buddy_category,
        }
        if include_tasks:
            d["tasks"] = [t.to_dict() for t in self.tasks]
        return d

    def __repr__(self):
        return f"<Category {self.id} {self.name!r} order={self.order}>"


# ═══════════════════════════════════════════════════════════════
# 4. TASKS
# ═══════════════════════════════════════════════════════════════
class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    category_id = db.Column(
        db.String(36),
        db.ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    link = db.Column(db.String(500))
    order = db.Column("order", db.Integer, nullable=False, default=0)
    is_buddy_task = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", back_populates="tasks")
    progress = db.relationship(
        "TaskProgress", back_populates="task",
        cascade="all, delete-orphan",
    )
    preparation_progress = db.relationship(
        "BuddyPreparationTaskProgress", back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def organization_id(self):
        return self.category.organization_id if self.category else None

    def to_dict(self):
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "order": self.order,
            "isBuddyTask": self.is_buddy_task,
        }

    def __repr__(self):
        return f"<Task {self.id} {self.title!r} order={self.order}>"
