"""
Platform tests — health probes, middleware and error envelope.

Tests cover:
  - /api/health/live and /api/health/ready are public
  - Security headers and request id on every API response
  - JSON error envelope for unknown routes and wrong methods
  - CLI: seed-pre-assigned-roles, seed-buddy-checklist
"""

from onboarding.models import db
from onboarding.models.organization import Checklist
from onboarding.models.user import PreAssignedRole


class TestHealth:
    def test_live(self, client):
        res = client.get("/api/health/live")
        assert res.status_code == 200
        assert res.get_json() == {"status": "ok"}

    def test_ready(self, client):
        res = client.get("/api/health/ready")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "ok"
        assert body["checks"]["capabilities"]["buddyPreparations"] is True


class TestMiddleware:
    def test_security_headers(self, client):
        res = client.get("/api/health/live")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert "Content-Security-Policy" in res.headers

    def test_request_id_echoed(self, client, admin_headers):
        res = client.get("/api/checklist", headers={**admin_headers, "X-Request-ID": "req-123"})
        assert res.headers["X-Request-ID"] == "req-123"
        assert "X-Request-Duration-Ms" in res.headers


class TestErrorEnvelope:
    def test_unknown_route(self, client, admin_headers):
        res = client.get("/api/nope", headers=admin_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_error_carries_request_id(self, client):
        res = client.get("/api/checklist", headers={"X-Request-ID": "req-401"})
        assert res.status_code == 401
        assert res.get_json()["requestId"] == "req-401"

    def test_wrong_method(self, client, admin_headers):
        res = client.put("/api/checklist", json={}, headers=admin_headers)
        assert res.status_code == 405
        assert "error" in res.get_json()


class TestCli:
    def test_seed_pre_assigned_roles(self, app, employee):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "seed-pre-assigned-roles", "boss@initech.com:super_admin", f"{employee.email}:ADMIN",
        ])
        assert result.exit_code == 0
        assert "skipped" in result.output
        row = PreAssignedRole.query.filter_by(email="boss@initech.com").one()
        assert row.role == "SUPER_ADMIN"

    def test_seed_buddy_checklist(self, app, make_org):
        org = make_org("Blank", with_checklist=False)
        db.session.add(Checklist(name="Blank", organization=org))
        db.session.commit()

        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-buddy-checklist", "--organization", "Blank"])
        assert result.exit_code == 0

        db.session.expire_all()
        checklist = Checklist.query.filter_by(organization_id=org.id).one()
        assert any(t.is_buddy_task for c in checklist.categories for t in c.tasks)
