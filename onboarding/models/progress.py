"""
Progress Models — completion state per (person × task).

TaskProgress tracks a real user; BuddyPreparationTaskProgress tracks a
pre-hire placeholder. Both carry exactly one row per pair.
"""

from onboarding.models import db
from onboarding.models.base import iso, new_id, utcnow


class TaskProgress(db.Model):
    __tablename__ = "task_progress"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint("user_id", "task_id", name="uq_task_progress_user_task"),
    )

    user = db.relationship("User", back_populates="progress")
    task = db.relationship("Task", back_populates="progress")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "taskId": self.task_id,
            "completed": self.completed,
            "updatedAt": iso(self.updated_at),
        }


class BuddyPreparationTaskProgress(db.Model):
    __tablename__ = "buddy_preparation_task_progress"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    buddy_preparation_id = db.Column(
        db.String(36),
        db.ForeignKey("buddy_preparations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint(
            "buddy_preparation_id", "task_id", name="uq_prep_progress_prep_task",
        ),
    )

    preparation = db.relationship("BuddyPreparation", back_populates="progress")
    task = db.relationship("Task", back_populates="preparation_progress")

    def to_dict(self):
        return {
            "id": self.id,
            "buddyPreparationId": self.buddy_preparation_id,
            "taskId": self.task_id,
            "completed": self.completed,
            "updatedAt": iso(self.updated_at),
        }
