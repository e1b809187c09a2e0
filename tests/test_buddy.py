"""
Buddy tests — preparations, linking and the buddy's view of their people.

Tests cover:
  - Preparation CRUD: validation, duplicate active email, soft delete, stats
  - Linking a new user to a matching preparation (buddy + progress carried)
  - Buddy checklist for a user or a preparation (buddy tasks only)
  - Buddy progress updates and their authorization
  - Relationships, is-buddy and eligible buddies
  - Preparation endpoints answer 503 without the capability
  - Task, template, employee and organization operations work with the
    preparation tables dropped
"""

import pytest

from onboarding.middleware.diagnostics import (
    EXTENSION_KEY,
    SchemaCapabilities,
    resolve_capabilities,
)
from onboarding.models import db
from onboarding.models.buddy_preparation import BuddyPreparation
from onboarding.models.progress import BuddyPreparationTaskProgress, TaskProgress
from onboarding.models.user import ADMIN, BuddyAssignment, User
from onboarding.services import progress_service


def _buddy_tasks(org):
    return progress_service.organization_tasks(org.id, buddy=True)


def _regular_tasks(org):
    return progress_service.organization_tasks(org.id, buddy=False)


@pytest.fixture()
def preparation(client, admin_headers, admin):
    res = client.post(
        "/api/buddy-preparations",
        json={"firstName": "Pia", "lastName": "Prep", "email": "Pia@Acme.com", "buddyId": admin.id},
        headers=admin_headers,
    )
    assert res.status_code == 201
    return res.get_json()["data"]


@pytest.fixture()
def mentee(admin, employee):
    employee.buddy_id = admin.id
    db.session.add(BuddyAssignment(employee_id=employee.id, buddy_id=admin.id))
    db.session.commit()
    return employee


# ═══════════════════════════════════════════════════════════════
# PREPARATIONS
# ═══════════════════════════════════════════════════════════════

class TestPreparations:
    def test_create_preparation(self, preparation, admin, org):
        assert preparation["email"] == "pia@acme.com"
        assert preparation["buddyId"] == admin.id
        assert preparation["organizationId"] == org.id
        assert preparation["isActive"] is True
        assert preparation["linkedUserId"] is None

    def test_create_requires_fields(self, client, admin_headers, admin):
        res = client.post("/api/buddy-preparations", json={"firstName": "A", "buddyId": admin.id}, headers=admin_headers)
        assert res.status_code == 400

    def test_buddy_must_belong_to_org(self, client, admin_headers, other_admin):
        res = client.post(
            "/api/buddy-preparations",
            json={"firstName": "A", "lastName": "B", "buddyId": other_admin.id},
            headers=admin_headers,
        )
        assert res.status_code == 400

    def test_duplicate_active_email_rejected(self, client, admin_headers, admin, preparation):
        res = client.post(
            "/api/buddy-preparations",
            json={"firstName": "P", "lastName": "Two", "email": "pia@acme.com", "buddyId": admin.id},
            headers=admin_headers,
        )
        assert res.status_code == 400

    def test_buddy_disabled_rejects_create(self, client, admin_headers, admin, org):
        org.buddy_enabled = False
        db.session.commit()
        res = client.post(
            "/api/buddy-preparations",
            json={"firstName": "A", "lastName": "B", "buddyId": admin.id},
            headers=admin_headers,
        )
        assert res.status_code == 400

    def test_list_with_stats(self, client, admin_headers, preparation):
        res = client.get("/api/buddy-preparations", headers=admin_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert [p["id"] for p in body["data"]] == [preparation["id"]]
        assert body["stats"] == {"total": 1, "active": 1, "completed": 0}

    def test_patch_and_put(self, client, admin_headers, admin, preparation):
        url = f"/api/buddy-preparations/{preparation['id']}"
        res = client.patch(url, json={"notes": "Starts Monday"}, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["data"]["notes"] == "Starts Monday"

        res = client.put(url, json={"firstName": "Pia"}, headers=admin_headers)
        assert res.status_code == 400

        res = client.put(
            url, json={"firstName": "Pia", "lastName": "Renamed", "buddyId": admin.id}, headers=admin_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["data"]["lastName"] == "Renamed"

    def test_soft_delete(self, client, admin_headers, preparation):
        res = client.delete(f"/api/buddy-preparations/{preparation['id']}", headers=admin_headers)
        assert res.status_code == 200
        db.session.expire_all()
        row = db.session.get(BuddyPreparation, preparation["id"])
        assert row is not None and row.is_active is False
        stats = client.get("/api/buddy-preparations", headers=admin_headers).get_json()["stats"]
        assert stats == {"total": 1, "active": 0, "completed": 1}

    def test_foreign_preparation_forbidden(self, client, other_headers, preparation):
        res = client.get(f"/api/buddy-preparations/{preparation['id']}", headers=other_headers)
        assert res.status_code == 403


# ═══════════════════════════════════════════════════════════════
# LINKING
# ═══════════════════════════════════════════════════════════════

class TestLinking:
    def test_new_user_links_matching_preparation(self, client, admin_headers, admin, org, preparation):
        task = _buddy_tasks(org)[0]
        res = client.post(
            f"/api/buddy/tasks/{task.id}/progress/{preparation['id']}",
            json={"completed": True},
            headers=admin_headers,
        )
        assert res.status_code == 200

        res = client.post(
            "/api/employees", json={"name": "Pia Prep", "email": "PIA@acme.com"}, headers=admin_headers,
        )
        assert res.status_code == 201
        user_id = res.get_json()["id"]

        db.session.expire_all()
        prep = db.session.get(BuddyPreparation, preparation["id"])
        user = db.session.get(User, user_id)
        assert prep.linked_user_id == user_id
        assert prep.is_active is True
        assert user.buddy_id == admin.id
        assert BuddyAssignment.query.filter_by(employee_id=user_id, buddy_id=admin.id).count() == 1
        row = TaskProgress.query.filter_by(user_id=user_id, task_id=task.id).one()
        assert row.completed is True

    def test_no_link_across_organizations(self, client, other_headers, other_org, preparation):
        res = client.post(
            "/api/employees", json={"name": "Pia", "email": "pia@acme.com"}, headers=other_headers,
        )
        assert res.status_code == 201
        db.session.expire_all()
        assert db.session.get(BuddyPreparation, preparation["id"]).linked_user_id is None

    def test_linked_preparation_counts_as_completed(self, client, admin_headers, preparation):
        client.post("/api/employees", json={"name": "Pia", "email": "pia@acme.com"}, headers=admin_headers)
        stats = client.get("/api/buddy-preparations", headers=admin_headers).get_json()["stats"]
        assert stats["completed"] == 1


# ═══════════════════════════════════════════════════════════════
# BUDDY CHECKLIST
# ═══════════════════════════════════════════════════════════════

class TestBuddyChecklist:
    def test_checklist_for_mentee_has_only_buddy_tasks(self, client, admin_headers, mentee):
        res = client.get(f"/api/checklist/employee/{mentee.id}", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()
        tasks = [t for c in data["categories"] for t in c["tasks"]]
        assert tasks and all(t["isBuddyTask"] for t in tasks)
        assert data["employee"] == {
            "id": mentee.id, "name": mentee.name, "email": mentee.email, "type": "user",
        }

    def test_checklist_for_preparation(self, client, admin_headers, preparation):
        res = client.get(f"/api/checklist/employee/{preparation['id']}", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["employee"]["type"] == "preparation"
        assert res.get_json()["employee"]["name"] == "Pia Prep"

    def test_not_the_buddy_forbidden(self, client, admin_headers, employee):
        res = client.get(f"/api/checklist/employee/{employee.id}", headers=admin_headers)
        assert res.status_code == 403

    def test_unknown_person_is_404(self, client, admin_headers):
        assert client.get("/api/checklist/employee/nobody", headers=admin_headers).status_code == 404

    def test_buddy_disabled_forbidden(self, client, admin_headers, mentee, org):
        org.buddy_enabled = False
        db.session.commit()
        res = client.get(f"/api/checklist/employee/{mentee.id}", headers=admin_headers)
        assert res.status_code == 403


class TestBuddyProgress:
    def test_buddy_ticks_task_for_mentee(self, client, admin_headers, mentee, org):
        task = _buddy_tasks(org)[0]
        res = client.post(
            f"/api/buddy/tasks/{task.id}/progress/{mentee.id}", json={"completed": True}, headers=admin_headers,
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["taskProgress"]["completed"] is True
        assert body["employee"]["id"] == mentee.id

        data = client.get(f"/api/checklist/employee/{mentee.id}", headers=admin_headers).get_json()
        assert data["progress"]["completed"] == 1

    def test_regular_task_refused(self, client, admin_headers, mentee, org):
        task = _regular_tasks(org)[0]
        res = client.post(
            f"/api/buddy/tasks/{task.id}/progress/{mentee.id}", json={"completed": True}, headers=admin_headers,
        )
        assert res.status_code == 403

    def test_completed_must_be_boolean(self, client, admin_headers, mentee, org):
        task = _buddy_tasks(org)[0]
        res = client.post(
            f"/api/buddy/tasks/{task.id}/progress/{mentee.id}", json={"completed": 1}, headers=admin_headers,
        )
        assert res.status_code == 400

    def test_task_of_other_org_forbidden(self, client, admin_headers, mentee, other_org):
        task = _buddy_tasks(other_org)[0]
        res = client.post(
            f"/api/buddy/tasks/{task.id}/progress/{mentee.id}", json={"completed": True}, headers=admin_headers,
        )
        assert res.status_code == 403

    def test_preparation_progress(self, client, admin_headers, org, preparation):
        task = _buddy_tasks(org)[0]
        res = client.post(
            f"/api/buddy/tasks/{task.id}/progress/{preparation['id']}",
            json={"completed": True},
            headers=admin_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["taskProgress"]["buddyPreparationId"] == preparation["id"]


# ═══════════════════════════════════════════════════════════════
# RELATIONSHIPS & LOOKUPS
# ═══════════════════════════════════════════════════════════════

class TestRelationships:
    def test_relationships_groups(self, client, admin_headers, mentee, preparation):
        res = client.get("/api/user/buddy-relationships", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert [u["id"] for u in data["activeUsers"]] == [mentee.id]
        assert [p["id"] for p in data["activePreparations"]] == [preparation["id"]]
        assert data["completedPreparations"] == []
        assert data["stats"]["totalAll"] == 2

    def test_is_buddy(self, client, admin_headers, employee_headers, mentee):
        assert client.get("/api/user/is-buddy", headers=admin_headers).get_json()["isBuddy"] is True
        assert client.get("/api/user/is-buddy", headers=employee_headers).get_json()["isBuddy"] is False

    def test_buddies_lists_admins(self, client, employee_headers, admin, make_user, org):
        make_user(org, ADMIN, "zed@acme.com", "Zed Admin")
        res = client.get("/api/buddies", headers=employee_headers)
        assert res.status_code == 200
        assert [b["name"] for b in res.get_json()] == ["Ada Admin", "Zed Admin"]

    def test_buddies_empty_when_disabled(self, client, employee_headers, admin, org):
        org.buddy_enabled = False
        db.session.commit()
        assert client.get("/api/buddies", headers=employee_headers).get_json() == []


# ═══════════════════════════════════════════════════════════════
# CAPABILITY
# ═══════════════════════════════════════════════════════════════

class TestCapability:
    @pytest.fixture()
    def without_preparations(self, app, monkeypatch):
        monkeypatch.setitem(app.extensions, EXTENSION_KEY, SchemaCapabilities(buddy_preparations=False))

    def test_preparation_endpoints_unavailable(self, client, admin_headers, without_preparations):
        res = client.get("/api/buddy-preparations", headers=admin_headers)
        assert res.status_code == 503
        assert res.get_json()["code"] == "ERR_UNAVAILABLE"

    def test_relationships_omit_preparations(self, client, admin_headers, mentee, without_preparations):
        res = client.get("/api/user/buddy-relationships", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["activePreparations"] == []
        assert [u["id"] for u in data["activeUsers"]] == [mentee.id]

    def test_detection_from_schema(self, app, monkeypatch):
        monkeypatch.setitem(app.extensions, EXTENSION_KEY, app.extensions[EXTENSION_KEY])
        monkeypatch.setitem(app.config, "BUDDY_PREPARATIONS_ENABLED", None)
        assert resolve_capabilities(app).buddy_preparations is True

    def test_override_wins(self, app, monkeypatch):
        monkeypatch.setitem(app.extensions, EXTENSION_KEY, app.extensions[EXTENSION_KEY])
        monkeypatch.setitem(app.config, "BUDDY_PREPARATIONS_ENABLED", "false")
        assert resolve_capabilities(app).buddy_preparations is False
        assert app.extensions[EXTENSION_KEY] == SchemaCapabilities(buddy_preparations=False)


class TestWithoutPreparationTables:
    """Deployments whose schema predates buddy preparations."""

    @pytest.fixture()
    def tables_dropped(self, app, monkeypatch, admin, employee, super_admin, other_admin):
        db.session.commit()
        BuddyPreparationTaskProgress.__table__.drop(db.engine)
        BuddyPreparation.__table__.drop(db.engine)
        monkeypatch.setitem(app.extensions, EXTENSION_KEY, app.extensions[EXTENSION_KEY])
        monkeypatch.setitem(app.config, "BUDDY_PREPARATIONS_ENABLED", None)
        assert resolve_capabilities(app).buddy_preparations is False

    def test_preparation_endpoints_unavailable(self, client, admin_headers, tables_dropped):
        assert client.get("/api/buddy-preparations", headers=admin_headers).status_code == 503

    def test_delete_task_and_category(self, client, admin_headers, org, tables_dropped):
        task = _regular_tasks(org)[0]
        category_id = _buddy_tasks(org)[0].category_id
        assert client.delete(f"/api/tasks/{task.id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/categories/{category_id}", headers=admin_headers).status_code == 200

    def test_reset_and_import_template(self, client, admin_headers, checklist, tables_dropped):
        assert client.post(f"/api/templates/{checklist.id}/reset", headers=admin_headers).status_code == 200
        document = {
            "metadata": {"exportType": "all"},
            "checklist": {"categories": [{"name": "Only", "tasks": [{"title": "One"}]}]},
        }
        assert client.post("/api/templates/import", json=document, headers=admin_headers).status_code == 200

    def test_employee_lifecycle(self, client, admin_headers, admin, employee, tables_dropped):
        res = client.get(f"/api/employees/{admin.id}", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["isBuddyForSomeone"] is False

        res = client.post("/api/employees", json={"name": "Nia", "email": "nia@acme.com"}, headers=admin_headers)
        assert res.status_code == 201
        assert client.delete(f"/api/employees/{employee.id}", headers=admin_headers).status_code == 200

    def test_buddy_checklist_for_mentee(self, client, admin_headers, admin, employee, tables_dropped):
        res = client.patch(f"/api/employees/{employee.id}/buddy", json={"buddyId": admin.id}, headers=admin_headers)
        assert res.status_code == 200
        assert client.get(f"/api/checklist/employee/{employee.id}", headers=admin_headers).status_code == 200

    def test_super_admin_organizations(self, client, super_headers, other_org, tables_dropped):
        res = client.get("/api/super-admin/organizations", headers=super_headers)
        assert res.status_code == 200
        assert {o["buddyPreparationsCount"] for o in res.get_json()} == {0}
        assert client.delete(f"/api/super-admin/organizations/{other_org.id}", headers=super_headers).status_code == 200
