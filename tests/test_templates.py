"""
Template tests — the organization's checklist as an admin template.

Tests cover:
  - List / create (one per organization) / fetch / rename / delete (405)
  - Full reset and buddy-only reset to the default template
  - Acme scenario: regular tasks survive a buddy reset untouched
  - Export (all / regular / buddy) and import merge by export type,
    including malformed field types
"""

import json

import pytest

from onboarding.data.default_templates import (
    DEFAULT_BUDDY_CHECKLIST_CATEGORIES,
    DEFAULT_CHECKLIST_CATEGORIES,
)
from onboarding.models import db
from onboarding.models.organization import Category, Checklist, Task
from onboarding.models.user import ADMIN

DEFAULT_TASKS = sum(len(c["tasks"]) for c in DEFAULT_CHECKLIST_CATEGORIES)
DEFAULT_BUDDY_TASKS = sum(len(c["tasks"]) for c in DEFAULT_BUDDY_CHECKLIST_CATEGORIES)


# ═══════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════

@pytest.fixture()
def acme(make_org, make_user, auth_headers):
    """Acme with one category: T1 (0, regular), T2 (1, regular), T3 (2, buddy)."""
    org = make_org("Acme Corp", with_checklist=False)
    checklist = Checklist(name="Acme Corp", organization=org)
    category = Category(name="Getting started", order=0)
    checklist.categories.append(category)
    for order, (title, buddy) in enumerate([("T1", False), ("T2", False), ("T3", True)]):
        category.tasks.append(Task(title=title, order=order, is_buddy_task=buddy))
    db.session.add(checklist)
    db.session.commit()
    admin = make_user(org, ADMIN, "admin@acmecorp.com")
    return {"org": org, "checklist": checklist, "category": category, "headers": auth_headers(admin)}


# ═══════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════

class TestTemplateCrud:
    def test_list_own_templates(self, client, admin_headers, checklist, other_org):
        res = client.get("/api/templates", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert [t["id"] for t in data] == [checklist.id]
        assert data[0]["tasksCount"] == DEFAULT_TASKS

    def test_super_admin_lists_all(self, client, super_headers, checklist, other_org):
        res = client.get("/api/templates", headers=super_headers)
        assert {t["id"] for t in res.get_json()} == {checklist.id, other_org.checklist.id}

    def test_create_conflicts_when_checklist_exists(self, client, admin_headers, checklist):
        res = client.post("/api/templates", json={"name": "Second"}, headers=admin_headers)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"

    def test_create_for_organization_without_checklist(self, client, make_org, make_user, auth_headers):
        org = make_org("Initech", with_checklist=False)
        headers = auth_headers(make_user(org, ADMIN, "admin@initech.com"))
        res = client.post("/api/templates", json={"name": "Initech onboarding"}, headers=headers)
        assert res.status_code == 201
        assert res.get_json()["organizationId"] == org.id
        assert res.get_json()["tasksCount"] == 0

    def test_get_nested_template(self, client, admin_headers, checklist):
        res = client.get(f"/api/templates/{checklist.id}", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert len(data["categories"]) == len(DEFAULT_CHECKLIST_CATEGORIES)
        assert data["buddyEnabled"] is True
        assert all("tasks" in c for c in data["categories"])

    def test_rename_template(self, client, admin_headers, checklist):
        res = client.patch(
            f"/api/templates/{checklist.id}",
            json={"name": "Acme onboarding", "description": "Welcome!"},
            headers=admin_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["name"] == "Acme onboarding"
        assert res.get_json()["description"] == "Welcome!"

    def test_delete_is_not_allowed(self, client, admin_headers, checklist):
        res = client.delete(f"/api/templates/{checklist.id}", headers=admin_headers)
        assert res.status_code == 405
        assert db.session.get(Checklist, checklist.id) is not None

    def test_foreign_template_forbidden(self, client, other_headers, checklist):
        assert client.get(f"/api/templates/{checklist.id}", headers=other_headers).status_code == 403

    def test_employee_forbidden(self, client, employee_headers, checklist):
        assert client.get("/api/templates", headers=employee_headers).status_code == 403


# ═══════════════════════════════════════════════════════════════
# RESET
# ═══════════════════════════════════════════════════════════════

class TestReset:
    def test_full_reset_restores_defaults(self, client, admin_headers, checklist):
        client.post(
            "/api/categories", json={"name": "Custom", "checklistId": checklist.id}, headers=admin_headers,
        )
        res = client.post(f"/api/templates/{checklist.id}/reset", headers=admin_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        names = [c["name"] for c in body["data"]["categories"]]
        assert names == [c["name"] for c in DEFAULT_CHECKLIST_CATEGORIES]

    def test_acme_buddy_reset(self, client, acme):
        category = acme["category"]
        t1, t2, t3 = category.tasks
        t1_id, t2_id, t3_id = t1.id, t2.id, t3.id

        res = client.post(f"/api/templates/{acme['checklist'].id}/reset-buddy", headers=acme["headers"])
        assert res.status_code == 200

        db.session.expire_all()
        assert db.session.get(Task, t3_id) is None
        kept = db.session.get(Category, category.id)
        assert [(t.id, t.title, t.order) for t in kept.tasks] == [
            (t1_id, "T1", 0), (t2_id, "T2", 1),
        ]

        data = res.get_json()["data"]
        buddy_tasks = [t for c in data["categories"] for t in c["tasks"] if t["isBuddyTask"]]
        assert len(buddy_tasks) == DEFAULT_BUDDY_TASKS
        buddy_orders = [c["order"] for c in data["categories"] if c["isBuddyCategory"]]
        assert min(buddy_orders) > 0

    def test_buddy_reset_replaces_edited_buddy_tasks(self, client, admin_headers, checklist):
        regular_before = [
            (t.id, t.title, t.order)
            for c in checklist.categories for t in c.tasks if not t.is_buddy_task
        ]
        buddy_task = next(t for c in checklist.categories for t in c.tasks if t.is_buddy_task)
        client.patch(f"/api/tasks/{buddy_task.id}", json={"title": "Edited"}, headers=admin_headers)

        res = client.post(f"/api/templates/{checklist.id}/reset-buddy", headers=admin_headers)
        assert res.status_code == 200

        db.session.expire_all()
        cl = db.session.get(Checklist, checklist.id)
        regular_after = [(t.id, t.title, t.order) for c in cl.categories for t in c.tasks if not t.is_buddy_task]
        titles = [t.title for c in cl.categories for t in c.tasks if t.is_buddy_task]
        assert regular_after == regular_before
        assert "Edited" not in titles
        assert len(titles) == DEFAULT_BUDDY_TASKS


# ═══════════════════════════════════════════════════════════════
# EXPORT / IMPORT
# ═══════════════════════════════════════════════════════════════

class TestTransfer:
    def test_export_all(self, client, admin_headers, checklist):
        res = client.get(f"/api/templates/{checklist.id}/export", headers=admin_headers)
        assert res.status_code == 200
        assert "attachment" in res.headers["Content-Disposition"]
        assert "checklist-all-acme-" in res.headers["Content-Disposition"]
        doc = json.loads(res.data)
        assert doc["metadata"]["exportType"] == "all"
        assert doc["metadata"]["version"] == "1.0"
        assert doc["metadata"]["originalOrganization"] == "Acme"
        assert sum(len(c["tasks"]) for c in doc["checklist"]["categories"]) == DEFAULT_TASKS

    @pytest.mark.parametrize("export_type, buddy", [("regular", False), ("buddy", True)])
    def test_export_subset(self, client, admin_headers, checklist, export_type, buddy):
        res = client.get(f"/api/templates/{checklist.id}/export?type={export_type}", headers=admin_headers)
        doc = json.loads(res.data)
        tasks = [t for c in doc["checklist"]["categories"] for t in c["tasks"]]
        assert tasks
        assert all(t["isBuddyTask"] is buddy for t in tasks)
        assert all(c["tasks"] for c in doc["checklist"]["categories"])

    def test_export_invalid_type(self, client, admin_headers, checklist):
        res = client.get(f"/api/templates/{checklist.id}/export?type=secret", headers=admin_headers)
        assert res.status_code == 400

    def test_import_buddy_subset_keeps_regular(self, client, admin_headers, checklist):
        regular_ids = sorted(t.id for c in checklist.categories for t in c.tasks if not t.is_buddy_task)
        document = {
            "metadata": {"exportType": "buddy", "version": "1.0"},
            "checklist": {
                "name": "Imported",
                "categories": [{
                    "name": "Buddy basics", "order": 10, "isBuddyCategory": True,
                    "tasks": [{"title": "Say hello", "order": 0, "isBuddyTask": True}],
                }],
            },
        }
        res = client.post("/api/templates/import", json=document, headers=admin_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["checklistId"] == checklist.id
        assert (body["categoriesCount"], body["tasksCount"]) == (1, 1)

        db.session.expire_all()
        cl = db.session.get(Checklist, checklist.id)
        assert sorted(t.id for c in cl.categories for t in c.tasks if not t.is_buddy_task) == regular_ids
        assert [t.title for c in cl.categories for t in c.tasks if t.is_buddy_task] == ["Say hello"]

    def test_export_then_import_into_empty_organization(
        self, client, admin_headers, checklist, make_org, make_user, auth_headers,
    ):
        doc = json.loads(client.get(f"/api/templates/{checklist.id}/export", headers=admin_headers).data)
        org = make_org("Umbrella", with_checklist=False)
        headers = auth_headers(make_user(org, ADMIN, "admin@umbrella.com"))

        res = client.post("/api/templates/import", json=doc, headers=headers)
        assert res.status_code == 200
        assert res.get_json()["tasksCount"] == DEFAULT_TASKS
        db.session.expire_all()
        assert db.session.get(Checklist, res.get_json()["checklistId"]).organization_id == org.id

    def test_import_rejects_malformed(self, client, admin_headers, checklist):
        res = client.post("/api/templates/import", json={"checklist": {"categories": "x"}}, headers=admin_headers)
        assert res.status_code == 400
        res = client.post(
            "/api/templates/import",
            json={"checklist": {"categories": [{"name": "A", "tasks": [{"title": ""}]}]}},
            headers=admin_headers,
        )
        assert res.status_code == 400

    def test_admin_import_ignores_organization_id(self, client, admin_headers, checklist, other_org):
        document = {"organizationId": other_org.id, "checklist": {"categories": []}}
        res = client.post("/api/templates/import", json=document, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["checklistId"] != other_org.checklist.id

    def test_import_regular_subset_keeps_buddy(self, client, acme):
        buddy_id = next(t.id for t in acme["category"].tasks if t.is_buddy_task)
        document = {
            "metadata": {"exportType": "regular"},
            "checklist": {"categories": [{
                "name": "Paperwork", "order": 1,
                "tasks": [{"title": "R1", "order": 0}, {"title": "R2", "order": 1}],
            }]},
        }
        res = client.post("/api/templates/import", json=document, headers=acme["headers"])
        assert res.status_code == 200
        assert res.get_json()["exportType"] == "regular"

        db.session.expire_all()
        cl = db.session.get(Checklist, acme["checklist"].id)
        tasks = {t.title: t for c in cl.categories for t in c.tasks}
        assert set(tasks) == {"R1", "R2", "T3"}
        assert tasks["T3"].id == buddy_id
        assert [c.name for c in cl.categories] == ["Getting started", "Paperwork"]

    def test_import_all_replaces_existing_checklist(self, client, acme):
        document = {
            "metadata": {"exportType": "all"},
            "checklist": {"categories": [{
                "name": "Fresh start", "order": 0,
                "tasks": [
                    {"title": "F1", "order": 0},
                    {"title": "FB", "order": 1, "isBuddyTask": True},
                ],
            }]},
        }
        res = client.post("/api/templates/import", json=document, headers=acme["headers"])
        assert res.status_code == 200
        assert res.get_json()["checklistId"] == acme["checklist"].id

        db.session.expire_all()
        cl = db.session.get(Checklist, acme["checklist"].id)
        assert [c.name for c in cl.categories] == ["Fresh start"]
        assert [(t.title, t.is_buddy_task) for t in cl.categories[0].tasks] == [("F1", False), ("FB", True)]
        assert Task.query.filter(Task.title.in_(["T1", "T2", "T3"])).count() == 0

    @pytest.mark.parametrize("checklist_data", [
        {"categories": [{"name": 5, "tasks": []}]},
        {"categories": [{"name": "A", "tasks": [{"title": 7}]}]},
        {"categories": [{"name": "A", "tasks": [{"title": "T", "description": ["x"]}]}]},
        {"name": 5, "categories": []},
    ])
    def test_import_rejects_non_string_fields(self, client, admin_headers, checklist, checklist_data):
        res = client.post("/api/templates/import", json={"checklist": checklist_data}, headers=admin_headers)
        assert res.status_code == 400
