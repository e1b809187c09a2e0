#!/usr/bin/env python3
"""
Onboarding Buddy — Demo Data Seed Script.

Company: Acme Corp (default checklist, buddy system on)

Creates an admin who acts as buddy, two employees (one with a buddy and
some completed tasks) and one buddy preparation for a person who has not
signed in yet. Safe to run repeatedly: existing records are left alone.

Usage:
    python scripts/seed_demo_data.py
    python scripts/seed_demo_data.py --organization "Globex"
    python scripts/seed_demo_data.py --verbose
"""

import argparse
import sys

sys.path.insert(0, ".")

from onboarding import create_app
from onboarding.models import db
from onboarding.models.buddy_preparation import BuddyPreparation
from onboarding.models.user import ADMIN, EMPLOYEE, User
from onboarding.services import buddy_service, employee_service, progress_service
from onboarding.services.provisioning_service import find_or_create_organization


DEMO_ADMIN = ("Alice Admin", "alice.admin@acme.com")
DEMO_EMPLOYEES = [
    ("Bob Builder", "bob.builder@acme.com"),
    ("Carol Chen", "carol.chen@acme.com"),
]
DEMO_PREPARATION = ("Dave", "Doe", "dave.doe@acme.com")


def _p(msg, verbose):
    if verbose:
        print(msg)


def _ensure_user(organization, name, email, role, verbose):
    user = User.query.filter(db.func.lower(User.email) == email).first()
    if user is not None:
        _p(f"   = {email} exists", verbose)
        return user, False
    user = employee_service.create_user(organization.id, name, email, role)
    _p(f"   + {email} ({role})", verbose)
    return user, True


# ═════════════════════════════════════════════════════════════════════════════
# SEED FUNCTION
# ═════════════════════════════════════════════════════════════════════════════

def seed_all(app, organization_name="Acme Corp", verbose=False):
    """Seed one demo organization; returns the number of records created."""
    created = 0
    with app.app_context():
        organization, org_created = find_or_create_organization(organization_name)
        created += int(org_created)
        print(f"🏢 {organization.name} ({'created' if org_created else 'existing'})")

        # ── 1. Users ─────────────────────────────────────────────────────
        admin, new = _ensure_user(organization, *DEMO_ADMIN, ADMIN, verbose)
        created += int(new)
        employees = []
        for name, email in DEMO_EMPLOYEES:
            user, new = _ensure_user(organization, name, email, EMPLOYEE, verbose)
            employees.append(user)
            created += int(new)

        # ── 2. Buddy + some progress for the first employee ──────────────
        first = employees[0]
        if first.buddy_id is None:
            first.buddy_id = admin.id
            buddy_service.assign_buddy(first, admin.id)
            regular = progress_service.organization_tasks(organization.id, buddy=False)
            for task in regular[:3]:
                progress_service.set_user_progress(first.id, task.id, True)
            _p(f"   ~ {first.email} buddy → {admin.email}", verbose)

        # ── 3. Buddy preparation ─────────────────────────────────────────
        first_name, last_name, email = DEMO_PREPARATION
        exists = BuddyPreparation.query_active().filter_by(
            organization_id=organization.id, email=email,
        ).first()
        if exists is None:
            db.session.add(BuddyPreparation(
                first_name=first_name,
                last_name=last_name,
                email=email,
                buddy=admin,
                organization=organization,
                notes="Starts next month",
            ))
            created += 1
            _p(f"   + preparation {email}", verbose)

        db.session.commit()

    print(f"\n{'='*60}")
    print(f"🎉 DEMO DATA SEED COMPLETE — {created} new records")
    print(f"{'='*60}\n")
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--organization", default="Acme Corp")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    app = create_app()
    print(f"🎯 DB: {app.config['SQLALCHEMY_DATABASE_URI']}\n")
    with app.app_context():
        db.create_all()
    seed_all(app, organization_name=args.organization, verbose=args.verbose)


if __name__ == "__main__":
    main()
