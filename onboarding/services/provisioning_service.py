"""
Provisioning service — identity-provider claims to a local user.

First sign-in flow:
    1. verify the id token (jwt_service.decode_identity_token)
    2. existing user (case-insensitive email) → sign in as is
    3. otherwise find or create the organization named by the company claim
       (DEFAULT_ORGANIZATION_NAME when absent); a new organization gets a
       checklist seeded with the default template
    4. role = PreAssignedRole for the email, else DEFAULT_ROLE
    5. create the user (is_azure_managed=True), initial progress, and
       link a matching buddy preparation

Steps 3-5 commit together.
"""

import logging

from flask import current_app

from onboarding.core.exceptions import ValidationError
from onboarding.models import db
from onboarding.models.organization import Organization
from onboarding.models.user import ADMIN, ROLES, PreAssignedRole, User
from onboarding.services import employee_service, jwt_service, template_service
from onboarding.utils.helpers import normalize_email, transaction

logger = logging.getLogger(__name__)

DEFAULT_ORGANIZATION_NAME = "Demo Company"


def find_or_create_organization(name: str) -> tuple[Organization, bool]:
    """Return (organization, created). A created organization gets the default checklist."""
    organization = Organization.query.filter(
        db.func.lower(Organization.name) == name.lower(),
    ).first()
    if organization is not None:
        return organization, False

    organization = Organization(name=name, buddy_enabled=True)
    db.session.add(organization)
    db.session.flush()
    template_service.create_default_checklist(organization)
    logger.info("Provisioned organization %s (%s)", organization.id, name)
    return organization, True


def resolve_role(email: str) -> str:
    pre_assigned = PreAssignedRole.query.filter(
        db.func.lower(PreAssignedRole.email) == email,
    ).first()
    if pre_assigned is not None and pre_assigned.role in ROLES:
        return pre_assigned.role
    role = current_app.config.get("DEFAULT_ROLE", ADMIN)
    return role if role in ROLES else ADMIN


def provision_user(claims: dict) -> tuple[User, bool]:
    """Find or create the local user for verified identity claims.

    Returns:
        (user, created)
    """
    email = normalize_email(claims.get("email") or claims.get("preferred_username"))
    existing = User.query.filter(db.func.lower(User.email) == email).first()
    if existing is not None:
        return existing, False

    name = (claims.get("name") or "").strip() or email.split("@")[0]
    company = (claims.get("companyName") or claims.get("company_name") or "").strip()
    company = company or current_app.config.get("DEFAULT_ORGANIZATION_NAME") or DEFAULT_ORGANIZATION_NAME

    with transaction():
        organization, _ = find_or_create_organization(company)
        role = resolve_role(email)
        user = employee_service.create_user(
            organization.id, name, email, role, is_azure_managed=True,
        )

    logger.info(
        "Provisioned user %s role=%s organization=%s", user.id, role, organization.id,
    )
    return user, True


def sign_in(id_token) -> dict:
    """Exchange an identity-provider id token for a local access token.

    Raises:
        ValidationError: no token given.
        jwt.InvalidTokenError: the token fails verification.
    """
    if not id_token or not isinstance(id_token, str):
        raise ValidationError("id_token is required", details={"id_token": "missing"})
    claims = jwt_service.decode_identity_token(id_token)
    user, created = provision_user(claims)

    response = jwt_service.issue_token_response(user.id)
    response["user"] = user.to_dict(include_buddy=True)
    response["organization"] = user.organization.to_dict()
    response["created"] = created
    return response
