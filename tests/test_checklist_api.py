"""
Checklist API tests — categories, tasks, own checklist and own progress.

Tests cover:
  - Category & task CRUD with default ordering
  - Organization isolation (403 across organizations)
  - Cascade delete of tasks and progress rows
  - Own checklist hides buddy tasks
  - Own progress: boolean validation, buddy tasks refused
  - User dashboard: regular-task progress, buddy and recent completions
"""

from onboarding.models import db
from onboarding.models.organization import Category, Task
from onboarding.models.progress import TaskProgress
from onboarding.services import progress_service


def _regular_category(checklist):
    return next(c for c in checklist.categories if not c.is_buddy_category)


def _buddy_task(checklist):
    return next(t for c in checklist.categories for t in c.tasks if t.is_buddy_task)


# ═══════════════════════════════════════════════════════════════
# CATEGORIES
# ═══════════════════════════════════════════════════════════════

class TestCategories:
    def test_list_requires_checklist_id(self, client, admin_headers):
        res = client.get("/api/categories", headers=admin_headers)
        assert res.status_code == 400

    def test_list_categories(self, client, admin_headers, checklist):
        res = client.get(f"/api/categories?checklistId={checklist.id}", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert len(data) == len(checklist.categories)
        assert [c["order"] for c in data] == sorted(c["order"] for c in data)
        assert "tasks" in data[0]

    def test_create_appends_at_end(self, client, admin_headers, checklist):
        highest = max(c.order for c in checklist.categories)
        res = client.post(
            "/api/categories",
            json={"name": "Week one", "checklistId": checklist.id},
            headers=admin_headers,
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["order"] == highest + 1
        assert data["isBuddyCategory"] is False
        assert data["tasks"] == []

    def test_create_requires_name(self, client, admin_headers, checklist):
        res = client.post("/api/categories", json={"checklistId": checklist.id}, headers=admin_headers)
        assert res.status_code == 400

    def test_update_category(self, client, admin_headers, checklist):
        category = _regular_category(checklist)
        res = client.patch(
            f"/api/categories/{category.id}",
            json={"name": "Renamed", "isBuddyCategory": True},
            headers=admin_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["name"] == "Renamed"
        assert res.get_json()["isBuddyCategory"] is True

    def test_unknown_category_is_404(self, client, admin_headers):
        res = client.get("/api/categories/does-not-exist", headers=admin_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_delete_cascades_tasks_and_progress(self, client, admin_headers, employee, checklist):
        category = _regular_category(checklist)
        category_id = category.id
        task_ids = [t.id for t in category.tasks]
        assert TaskProgress.query.filter(TaskProgress.task_id.in_(task_ids)).count() > 0

        res = client.delete(f"/api/categories/{category_id}", headers=admin_headers)
        assert res.status_code == 200

        db.session.expire_all()
        assert db.session.get(Category, category_id) is None
        assert Task.query.filter(Task.id.in_(task_ids)).count() == 0
        assert TaskProgress.query.filter(TaskProgress.task_id.in_(task_ids)).count() == 0


# ═══════════════════════════════════════════════════════════════
# TASKS
# ═══════════════════════════════════════════════════════════════

class TestTasks:
    def test_list_requires_category_id(self, client, admin_headers):
        assert client.get("/api/tasks", headers=admin_headers).status_code == 400

    def test_create_task_defaults(self, client, admin_headers, checklist):
        category = _regular_category(checklist)
        res = client.post(
            "/api/tasks",
            json={"title": "Meet the CEO", "categoryId": category.id},
            headers=admin_headers,
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["order"] == len(category.tasks)
        assert data["isBuddyTask"] is False
        assert data["description"] == ""

    def test_create_in_buddy_category_defaults_to_buddy_task(self, client, admin_headers, checklist):
        category = next(c for c in checklist.categories if c.is_buddy_category)
        res = client.post(
            "/api/tasks", json={"title": "Coffee", "categoryId": category.id}, headers=admin_headers,
        )
        assert res.status_code == 201
        assert res.get_json()["isBuddyTask"] is True

    def test_update_task(self, client, admin_headers, checklist):
        task = _regular_category(checklist).tasks[0]
        res = client.patch(
            f"/api/tasks/{task.id}",
            json={"title": "New title", "link": "https://intranet.example/start"},
            headers=admin_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["title"] == "New title"
        assert res.get_json()["link"] == "https://intranet.example/start"

    def test_update_rejects_empty_title(self, client, admin_headers, checklist):
        task = _regular_category(checklist).tasks[0]
        res = client.patch(f"/api/tasks/{task.id}", json={"title": "  "}, headers=admin_headers)
        assert res.status_code == 400

    def test_delete_task_removes_progress(self, client, admin_headers, employee, checklist):
        task_id = _regular_category(checklist).tasks[0].id
        res = client.delete(f"/api/tasks/{task_id}", headers=admin_headers)
        assert res.status_code == 200
        db.session.expire_all()
        assert db.session.get(Task, task_id) is None
        assert TaskProgress.query.filter_by(task_id=task_id).count() == 0


# ═══════════════════════════════════════════════════════════════
# ORGANIZATION ISOLATION
# ═══════════════════════════════════════════════════════════════

class TestIsolation:
    def test_patch_foreign_category_forbidden(self, client, other_headers, checklist):
        category = _regular_category(checklist)
        res = client.patch(f"/api/categories/{category.id}", json={"name": "x"}, headers=other_headers)
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_delete_foreign_task_forbidden(self, client, other_headers, checklist):
        task_id = _regular_category(checklist).tasks[0].id
        res = client.delete(f"/api/tasks/{task_id}", headers=other_headers)
        assert res.status_code == 403
        assert db.session.get(Task, task_id) is not None

    def test_super_admin_bypasses_isolation(self, client, other_org, super_headers):
        category = other_org.checklist.categories[0]
        res = client.patch(f"/api/categories/{category.id}", json={"name": "Audited"}, headers=super_headers)
        assert res.status_code == 200

    def test_employee_cannot_edit_tasks(self, client, employee_headers, checklist):
        task = _regular_category(checklist).tasks[0]
        res = client.patch(f"/api/tasks/{task.id}", json={"title": "x"}, headers=employee_headers)
        assert res.status_code == 403


# ═══════════════════════════════════════════════════════════════
# OWN CHECKLIST & PROGRESS
# ═══════════════════════════════════════════════════════════════

class TestOwnChecklist:
    def test_own_checklist_excludes_buddy_tasks(self, client, employee_headers, checklist):
        res = client.get("/api/checklist", headers=employee_headers)
        assert res.status_code == 200
        data = res.get_json()
        tasks = [t for c in data["categories"] for t in c["tasks"]]
        assert tasks
        assert all(t["isBuddyTask"] is False for t in tasks)
        assert all(t["completed"] is False for t in tasks)
        assert data["progress"]["total"] == len(tasks)

    def test_set_and_read_progress(self, client, employee_headers, checklist):
        task = _regular_category(checklist).tasks[0]
        res = client.post(f"/api/tasks/{task.id}/progress", json={"completed": True}, headers=employee_headers)
        assert res.status_code == 200
        assert res.get_json()["completed"] is True

        res = client.get(f"/api/tasks/{task.id}/progress", headers=employee_headers)
        assert res.get_json() == {"taskId": task.id, "completed": True}

        own = client.get("/api/checklist", headers=employee_headers).get_json()
        assert own["progress"]["completed"] == 1

    def test_progress_requires_boolean(self, client, employee_headers, checklist):
        task = _regular_category(checklist).tasks[0]
        res = client.post(f"/api/tasks/{task.id}/progress", json={"completed": "yes"}, headers=employee_headers)
        assert res.status_code == 400

    def test_buddy_task_progress_refused(self, client, employee_headers, checklist):
        task = _buddy_task(checklist)
        res = client.post(f"/api/tasks/{task.id}/progress", json={"completed": True}, headers=employee_headers)
        assert res.status_code == 403

    def test_progress_on_foreign_task_forbidden(self, client, employee_headers, other_org):
        task = other_org.checklist.categories[0].tasks[0]
        res = client.post(f"/api/tasks/{task.id}/progress", json={"completed": True}, headers=employee_headers)
        assert res.status_code == 403


class TestUserDashboard:
    def test_dashboard_summarizes_regular_progress(self, client, employee_headers, employee, admin, org, checklist):
        employee.buddy_id = admin.id
        db.session.commit()
        regular = progress_service.organization_tasks(org.id, buddy=False)
        done = regular[:4]
        for task in done:
            res = client.post(f"/api/tasks/{task.id}/progress", json={"completed": True}, headers=employee_headers)
            assert res.status_code == 200
        progress_service.set_user_progress(employee.id, _buddy_task(checklist).id, True)
        db.session.commit()

        res = client.get("/api/user-dashboard", headers=employee_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert data["user"]["id"] == employee.id
        assert data["organization"]["id"] == org.id
        assert data["buddy"]["id"] == admin.id
        assert (data["completedTasks"], data["totalTasks"]) == (4, len(regular))
        assert data["progress"] == round(4 / len(regular) * 100)
        assert len(data["recentTasks"]) == 3
        assert {t["id"] for t in data["recentTasks"]} <= {t.id for t in done}

    def test_dashboard_without_buddy(self, client, employee_headers):
        data = client.get("/api/user-dashboard", headers=employee_headers).get_json()
        assert data["buddy"] is None
        assert data["completedTasks"] == 0
        assert data["recentTasks"] == []

    def test_dashboard_requires_auth(self, client):
        assert client.get("/api/user-dashboard").status_code == 401
