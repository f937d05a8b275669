"""
tests/test_api_projects.py -- Integration tests for the /api/projects routes.

Coverage:
  - create: 201 with derived slug and defaults; USER 403; bad status / URL 400
  - list: ordering (featured, then display order), technology and status filters
  - get by slug, update, delete
  - reorder: happy path, duplicates 400, unknown ids 404, USER 403
  - technologies and analytics endpoints
"""

from __future__ import annotations

from conftest import ApiHarness


def _create(api: ApiHarness, **fields) -> dict:
    body = {"description": "A thing I built.", **fields}
    resp = api.client.post("/api/projects", headers=api.admin, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["project"]


class TestCreateProject:
    def test_create_with_defaults(self, api: ApiHarness) -> None:
        project = _create(api, title="Portfolio Site", technologies=["Next.js", "FastAPI"])
        assert project["slug"] == "portfolio-site"
        assert project["status"] == "COMPLETED"
        assert project["featured"] is False
        assert project["order"] == 0
        assert project["technologies"] == ["Next.js", "FastAPI"]
        assert project["images"] == []
        assert project["author"]["id"] == api.admin_id

    def test_accepts_snake_case_body(self, api: ApiHarness) -> None:
        project = _create(api, title="Snake Body", github_url="https://github.com/me/snake")
        assert project["githubUrl"] == "https://github.com/me/snake"

    def test_user_forbidden(self, api: ApiHarness) -> None:
        resp = api.client.post("/api/projects", headers=api.user, json={"title": "X", "description": "Y"})
        assert resp.status_code == 403

    def test_invalid_status_and_url(self, api: ApiHarness) -> None:
        resp = api.client.post(
            "/api/projects",
            headers=api.admin,
            json={"title": "Broken", "description": "d", "status": "DONE", "liveUrl": "not-a-url"},
        )
        assert resp.status_code == 400
        fields = {e.split(":", 1)[0] for e in resp.json()["errors"]}
        assert {"status", "liveUrl"} <= fields

    def test_duplicate_title(self, api: ApiHarness) -> None:
        _create(api, title="Twin Project")
        resp = api.client.post(
            "/api/projects", headers=api.admin, json={"title": "Twin Project", "description": "again"}
        )
        assert resp.status_code == 409


class TestListProjects:
    def test_featured_then_order(self, api: ApiHarness) -> None:
        _create(api, title="Heron Late", technologies=["heron-tech"], order=5)
        _create(api, title="Heron Early", technologies=["heron-tech"], order=1)
        _create(api, title="Heron Star", technologies=["heron-tech"], order=9, featured=True)
        resp = api.client.get("/api/projects", params={"technology": "heron-tech"})
        assert resp.status_code == 200
        assert [p["title"] for p in resp.json()["data"]] == ["Heron Star", "Heron Early", "Heron Late"]

    def test_status_filter(self, api: ApiHarness) -> None:
        _create(api, title="Ibis Active", status="IN_PROGRESS")
        _create(api, title="Ibis Done")
        resp = api.client.get("/api/projects", params={"search": "ibis", "status": "IN_PROGRESS"})
        assert [p["title"] for p in resp.json()["data"]] == ["Ibis Active"]

    def test_invalid_status_filter(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/projects", params={"status": "BOGUS"})
        assert resp.status_code == 400


class TestGetUpdateDeleteProject:
    def test_get_by_slug(self, api: ApiHarness) -> None:
        _create(api, title="Findable Project")
        resp = api.client.get("/api/projects/findable-project")
        assert resp.status_code == 200
        assert resp.json()["data"]["project"]["title"] == "Findable Project"

    def test_get_unknown(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/projects/nope-nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Project not found"

    def test_update(self, api: ApiHarness) -> None:
        project = _create(api, title="Evolving", technologies=["Go"])
        resp = api.client.patch(
            f"/api/projects/{project['id']}",
            headers=api.admin,
            json={"status": "ARCHIVED", "technologies": ["Go", "Rust"]},
        )
        assert resp.status_code == 200
        updated = resp.json()["data"]["project"]
        assert updated["status"] == "ARCHIVED"
        assert updated["technologies"] == ["Go", "Rust"]
        assert updated["description"] == "A thing I built."

    def test_delete(self, api: ApiHarness) -> None:
        project = _create(api, title="Short Lived")
        assert api.client.delete(f"/api/projects/{project['id']}", headers=api.admin).status_code == 200
        assert api.client.get("/api/projects/short-lived").status_code == 404


class TestReorder:
    def test_reorder_sets_positions(self, api: ApiHarness) -> None:
        a = _create(api, title="Kite A", technologies=["kite"])
        b = _create(api, title="Kite B", technologies=["kite"])
        c = _create(api, title="Kite C", technologies=["kite"])
        resp = api.client.post(
            "/api/projects/reorder", headers=api.admin, json={"projectIds": [c["id"], a["id"], b["id"]]}
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Projects reordered successfully"
        listed = api.client.get("/api/projects", params={"technology": "kite"}).json()["data"]
        assert [p["title"] for p in listed] == ["Kite C", "Kite A", "Kite B"]
        assert [p["order"] for p in listed] == [0, 1, 2]

    def test_duplicates_rejected(self, api: ApiHarness) -> None:
        a = _create(api, title="Lark A")
        resp = api.client.post("/api/projects/reorder", headers=api.admin, json={"projectIds": [a["id"], a["id"]]})
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION"

    def test_unknown_id_changes_nothing(self, api: ApiHarness) -> None:
        a = _create(api, title="Lynx A", order=3)
        resp = api.client.post("/api/projects/reorder", headers=api.admin, json={"projectIds": [a["id"], 987654]})
        assert resp.status_code == 404
        assert api.client.get("/api/projects/lynx-a").json()["data"]["project"]["order"] == 3

    def test_user_forbidden(self, api: ApiHarness) -> None:
        resp = api.client.post("/api/projects/reorder", headers=api.user, json={"projectIds": []})
        assert resp.status_code == 403


class TestTechnologiesAndAnalytics:
    def test_technologies_counts(self, api: ApiHarness) -> None:
        _create(api, title="Moth One", technologies=["mothlang"])
        _create(api, title="Moth Two", technologies=["mothlang", "other"])
        techs = api.client.get("/api/projects/technologies").json()["data"]["technologies"]
        assert {"name": "mothlang", "count": 2} in techs

    def test_analytics(self, api: ApiHarness) -> None:
        resp = api.client.get("/api/projects/analytics/overview", headers=api.admin)
        assert resp.status_code == 200
        stats = resp.json()["data"]["stats"]
        assert stats["totalProjects"] == (
            stats["completedProjects"] + stats["inProgressProjects"] + stats["archivedProjects"]
        )

    def test_analytics_anonymous(self, api: ApiHarness) -> None:
        assert api.client.get("/api/projects/analytics/overview").status_code == 401
