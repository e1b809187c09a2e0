"""Shared utility functions used by services and blueprints.

transaction:      all-or-nothing unit of work around multi-row writes
normalize_email:  validated, lower-cased email or ValidationError
parse_order:      strict non-negative integer for ``order`` fields
slugify:          filename-safe organization slug for exports
"""
import logging
import re
from contextlib import contextmanager

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError

from onboarding.core.exceptions import ValidationError
from onboarding.models import db

logger = logging.getLogger(__name__)


# ── Database unit of work ────────────────────────────────────────────────────

@contextmanager
def transaction():
    """Commit everything done inside the block, or nothing.

    Usage::

        with transaction():
            task.category_id = target.id
            _resequence(source)
            _resequence(target)

    Any exception rolls back the session and is re-raised so the app-level
    error handlers map it to an HTTP response. IntegrityError is re-raised as
    ValidationError (400) because it always stems from client input here
    (duplicate email, dangling id).
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ValidationError("Duplicate or constraint violation") from exc
    except Exception:
        db.session.rollback()
        raise


# ── Input parsing ────────────────────────────────────────────────────────────

def normalize_email(value, field="email"):
    """Validate an email address and return it lower-cased."""
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field} is required")
    try:
        valid = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid {field}: {exc}") from exc
    return valid.normalized.lower()


def parse_order(value, field="order"):
    """Return ``value`` as a non-negative int; bools and floats are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ValidationError(f"{field} must be a non-negative integer")
    if value < 0:
        raise ValidationError(f"{field} must be a non-negative integer")
    return value


def require_text(data: dict, field: str) -> str:
    """Return a stripped, non-empty string field or raise ValidationError."""
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={field: "missing"})
    return value.strip()


_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    slug = _SLUG_RE.sub("-", (value or "").lower()).strip("-")
    return slug or "organization"
