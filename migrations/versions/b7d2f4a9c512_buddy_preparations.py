"""buddy_preparations

Pre-arrival buddy preparations and their task progress. Deployments that
have not applied this revision run with buddy preparations disabled.

Revision ID: b7d2f4a9c512
Revises: a1c0e7b3d201
Create Date: 2026-10-12 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "b7d2f4a9c512"
down_revision = "a1c0e7b3d201"
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "buddy_preparations" not in existing_tables:
        op.create_table(
            "buddy_preparations",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("organization_id", sa.String(length=36), nullable=False),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=254), nullable=True),
            sa.Column("buddy_id", sa.String(length=36), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("linked_user_id", sa.String(length=36), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["buddy_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["linked_user_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_buddy_preparations_organization_id", "buddy_preparations", ["organization_id"])
        op.create_index("ix_buddy_preparations_buddy_id", "buddy_preparations", ["buddy_id"])
        op.create_index("ix_buddy_preparations_is_active", "buddy_preparations", ["is_active"])
        op.create_index(
            "ix_buddy_preparations_email_org", "buddy_preparations", ["email", "organization_id"],
        )

    if "buddy_preparation_task_progress" not in existing_tables:
        op.create_table(
            "buddy_preparation_task_progress",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("buddy_preparation_id", sa.String(length=36), nullable=False),
            sa.Column("task_id", sa.String(length=36), nullable=False),
            sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(
                ["buddy_preparation_id"], ["buddy_preparations.id"], ondelete="CASCADE",
            ),
            sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("buddy_preparation_id", "task_id", name="uq_prep_progress_prep_task"),
        )
        op.create_index(
            "ix_buddy_preparation_task_progress_buddy_preparation_id",
            "buddy_preparation_task_progress",
            ["buddy_preparation_id"],
        )
        op.create_index(
            "ix_buddy_preparation_task_progress_task_id",
            "buddy_preparation_task_progress",
            ["task_id"],
        )


def downgrade():
    op.drop_table("buddy_preparation_task_progress")
    op.drop_table("buddy_preparations")
