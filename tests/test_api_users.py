"""
tests/test_api_users.py -- Integration tests for the /api/users routes.

Coverage:
  - list: ADMIN only, content counts, search and role filters
  - get / stats: self or ADMIN, 403 for anyone else, 404 for unknown ids
  - role change: promotion takes effect on the next request, self-change refused
  - delete: cascades to owned content, old tokens stop working, self-delete refused
  - analytics overview
"""

from __future__ import annotations

from conftest import ApiHarness
from portfolio.store import ContentStore


class TestListUsers:
    def test_admin_lists_users_with_counts(self, api: ApiHarness) -> None:
        api.client.post("/api/blogs", headers=api.admin, json={"title": "Counted Blog", "content": "x"})
        resp = api.client.get("/api/users", headers=api.admin, params={"search": "Test Admin"})
        assert resp.status_code == 200
        users = resp.json()["data"]
        assert len(users) == 1
        assert users[0]["id"] == api.admin_id
        assert users[0]["counts"]["blogs"] >= 1
        assert set(users[0]["counts"]) == {"blogs", "projects", "resumes"}

    def test_users_without_content_get_zero_counts(self, api: ApiHarness) -> None:
        api.register("Zero Counts", "zero-counts@example.com")
        resp = api.client.get("/api/users", headers=api.admin, params={"search": "zero-counts"})
        assert resp.json()["data"][0]["counts"] == {"blogs": 0, "projects": 0, "resumes": 0}

    def test_role_filter(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/users", headers=api.admin, params={"role": "ADMIN"})
        assert all(u["role"] == "ADMIN" for u in resp.json()["data"])

    def test_user_forbidden(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/users", headers=api.user)
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    def test_never_exposes_password_hash(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/users", headers=api.admin)
        assert "hashedPassword" not in resp.text
        assert "$2b$" not in resp.text


class TestGetUser:
    def test_self(self, api: ApiHarness) -> None:
        resp = api.client.get(f"/api/users/{api.user_id}", headers=api.user)
        assert resp.status_code == 200
        assert resp.json()["data"]["user"]["email"] == "user@example.com"

    def test_admin_views_anyone(self, api: ApiHarness) -> None:
        assert api.client.get(f"/api/users/{api.user_id}", headers=api.admin).status_code == 200

    def test_other_user_forbidden(self, api: ApiHarness) -> None:
        resp = api.client.get(f"/api/users/{api.admin_id}", headers=api.user)
        assert resp.status_code == 403
        assert resp.json()["error"] == "Not authorized to view this profile"

    def test_unknown_user(self, api: ApiHarness) -> None:
        assert api.client.get("/api/users/999999", headers=api.admin).status_code == 404

    def test_stats(self, api: ApiHarness) -> None:
        _, headers = api.register("Stats Person", "stats@example.com")
        me = api.client.get("/api/auth/me", headers=headers).json()["data"]["user"]
        api.client.post(
            "/api/resumes",
            headers=headers,
            json={"title": "CV", "personalInfo": {"fullName": "Stats Person", "email": "stats@example.com"}},
        )
        resp = api.client.get(f"/api/users/{me['id']}/stats", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "blogs": {"total": 0, "totalViews": 0},
            "projects": {"total": 0, "completed": 0, "inProgress": 0, "archived": 0},
            "resumes": {"total": 1},
        }

    def test_stats_forbidden_for_others(self, api: ApiHarness) -> None:
        assert api.client.get(f"/api/users/{api.admin_id}/stats", headers=api.user).status_code == 403


class TestRoleChange:
    def test_promotion_applies_to_existing_token(self, api: ApiHarness) -> None:
        user_id, headers = api.register("Soon Admin", "soon-admin@example.com")
        assert api.client.get("/api/users", headers=headers).status_code == 403

        resp = api.client.patch(f"/api/users/{user_id}/role", headers=api.admin, json={"role": "ADMIN"})
        assert resp.status_code == 200
        assert resp.json()["data"]["user"]["role"] == "ADMIN"
        assert api.client.get("/api/users", headers=headers).status_code == 200

    def test_invalid_role(self, api: ApiHarness) -> None:
        resp = api.client.patch(f"/api/users/{api.user_id}/role", headers=api.admin, json={"role": "ROOT"})
        assert resp.status_code == 400

    def test_cannot_change_own_role(self, api: ApiHarness) -> None:
        resp = api.client.patch(f"/api/users/{api.admin_id}/role", headers=api.admin, json={"role": "USER"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Cannot change your own role"

    def test_unknown_user(self, api: ApiHarness) -> None:
        resp = api.client.patch("/api/users/999999/role", headers=api.admin, json={"role": "USER"})
        assert resp.status_code == 404


class TestDeleteUser:
    def test_delete_cascades_and_revokes(self, api: ApiHarness) -> None:
        user_id, headers = api.register("Leaving", "leaving@example.com")
        created = api.client.post(
            "/api/resumes",
            headers=headers,
            json={"title": "Gone", "personalInfo": {"fullName": "Leaving", "email": "leaving@example.com"}},
        )
        resume_id = created.json()["data"]["resume"]["id"]

        resp = api.client.delete(f"/api/users/{user_id}", headers=api.admin)
        assert resp.status_code == 200
        assert resp.json()["message"] == "User deleted successfully"

        assert ContentStore(api.db).get_resume(resume_id) is None
        me = api.client.get("/api/auth/me", headers=headers)
        assert me.status_code == 401
        assert me.json()["code"] == "AUTH_INVALID"

    def test_cannot_delete_self(self, api: ApiHarness) -> None:
        resp = api.client.delete(f"/api/users/{api.admin_id}", headers=api.admin)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Cannot delete your own account"

    def test_user_cannot_delete(self, api: ApiHarness) -> None:
        assert api.client.delete(f"/api/users/{api.admin_id}", headers=api.user).status_code == 403


class TestUserAnalytics:
    def test_overview(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/users/analytics/overview", headers=api.admin)
        assert resp.status_code == 200
        data = resp.json()["data"]
        stats = data["stats"]
        assert stats["totalUsers"] == stats["adminUsers"] + stats["regularUsers"]
        assert stats["totalUsers"] == stats["verifiedUsers"] + stats["unverifiedUsers"]
        assert len(data["recentUsers"]) <= 10
