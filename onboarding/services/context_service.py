"""
Request context derivation.

Every authenticated API request carries a bearer access token. The token
holds only the user id; role and organization are read from the database on
each request so role changes take effect immediately.

``derive_context`` is a pure function: it receives the decoded claims and a
lookup callable and returns an immutable RequestContext (or None). It never
mutates the claims. The jwt_auth middleware calls it once per request and
stores the result on ``g.ctx``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from onboarding.models.user import ADMIN_ROLES, ROLES, SUPER_ADMIN


@dataclass(frozen=True)
class RequestContext:
    user_id: str
    email: str
    role: str
    organization_id: str

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def derive_context(
    claims: Optional[dict],
    lookup: Callable[[str], Any],
) -> Optional[RequestContext]:
    """Build the per-request context from decoded access-token claims.

    Args:
        claims: Decoded JWT payload, or None when no valid token was sent.
        lookup: Callable taking a user id and returning an object with
                ``id``, ``email``, ``role`` and ``organization_id`` attributes,
                or None when the user does not exist.

    Returns:
        RequestContext, or None when the claims are missing, are not an
        access token, or reference a user that no longer exists.
    """
    if not claims or claims.get("type") != "access":
        return None
    user_id = claims.get("sub")
    if not user_id:
        return None

    user = lookup(str(user_id))
    if user is None or user.role not in ROLES or not user.organization_id:
        return None

    return RequestContext(
        user_id=user.id,
        email=user.email,
        role=user.role,
        organization_id=user.organization_id,
    )
