"""
Onboarding Buddy
SQLAlchemy instance and model registry.

Every model module is imported at the bottom so that ``db.create_all()`` and
Alembic autogenerate see the full metadata.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from onboarding.models import (  # noqa: E402,F401
    buddy_preparation,
    organization,
    progress,
    user,
)
