"""
tests/test_api_resumes.py -- Integration tests for the /api/resumes routes.

Resumes are private to their owner, so most tests use freshly registered
accounts. PDF export runs against FakeRenderer (see conftest.py); the real
Chromium path is covered by tests/test_render.py.

Coverage:
  - create / list / get / update / delete for the owner
  - another account (including an ADMIN) gets 404, not 403
  - nested section validation
  - PDF export headers, body and render failure
  - admin analytics
"""

from __future__ import annotations

from conftest import ApiHarness

_RESUME = {
    "title": "Backend Engineer",
    "personalInfo": {
        "fullName": "Rae Resume",
        "email": "rae@example.com",
        "location": "Remote",
        "github": "https://github.com/rae",
    },
    "experience": [
        {
            "position": "Engineer",
            "company": "Acme",
            "startDate": "2021-01",
            "current": True,
            "achievements": ["Shipped things"],
        }
    ],
    "skills": [{"name": "Python", "level": "Expert", "category": "Languages"}],
}


def _create(api: ApiHarness, headers: dict[str, str], **overrides) -> dict:
    resp = api.client.post("/api/resumes", headers=headers, json={**_RESUME, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["resume"]


class TestResumeCrud:
    def test_create_keeps_wire_keys(self, api: ApiHarness) -> None:
        owner_id, headers = api.register("Rae", "rae-create@example.com")
        resume = _create(api, headers)
        assert resume["userId"] == owner_id
        assert resume["template"] == "modern"
        assert resume["personalInfo"]["fullName"] == "Rae Resume"
        assert resume["experience"][0]["startDate"] == "2021-01"
        assert resume["education"] == []

    def test_list_only_own(self, api: ApiHarness) -> None:
        _, first = api.register("First Owner", "owner1@example.com")
        _, second = api.register("Second Owner", "owner2@example.com")
        _create(api, first, title="Mine")
        _create(api, second, title="Theirs")
        resp = api.client.get("/api/resumes", headers=first)
        assert resp.status_code == 200
        assert [r["title"] for r in resp.json()["data"]] == ["Mine"]
        assert resp.json()["pagination"]["totalItems"] == 1

    def test_list_requires_auth(self, api: ApiHarness) -> None:
        assert api.client.get("/api/resumes").status_code == 401

    def test_update_replaces_supplied_sections_only(self, api: ApiHarness) -> None:
        _, headers = api.register("Updater", "resume-update@example.com")
        resume = _create(api, headers)
        resp = api.client.patch(
            f"/api/resumes/{resume['id']}",
            headers=headers,
            json={"skills": [{"name": "Go", "category": "Languages"}]},
        )
        assert resp.status_code == 200
        updated = resp.json()["data"]["resume"]
        assert updated["skills"] == [{"name": "Go", "category": "Languages"}]
        assert updated["experience"] == resume["experience"]
        assert updated["title"] == "Backend Engineer"

    def test_delete(self, api: ApiHarness) -> None:
        _, headers = api.register("Deleter", "resume-delete@example.com")
        resume = _create(api, headers)
        assert api.client.delete(f"/api/resumes/{resume['id']}", headers=headers).status_code == 200
        assert api.client.get(f"/api/resumes/{resume['id']}", headers=headers).status_code == 404

    def test_nested_validation(self, api: ApiHarness) -> None:
        _, headers = api.register("Invalid", "resume-invalid@example.com")
        body = {**_RESUME, "personalInfo": {"fullName": "", "email": "nope"}}
        resp = api.client.post("/api/resumes", headers=headers, json=body)
        assert resp.status_code == 400
        errors = resp.json()["errors"]
        assert any(e.startswith("personalInfo.fullName") for e in errors)
        assert any(e.startswith("personalInfo.email") for e in errors)


class TestResumePrivacy:
    def test_other_user_gets_not_found(self, api: ApiHarness) -> None:
        _, owner = api.register("Private Owner", "private-owner@example.com")
        resume = _create(api, owner)
        resp = api.client.get(f"/api/resumes/{resume['id']}", headers=api.user)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Resume not found"

    def test_admin_gets_not_found(self, api: ApiHarness) -> None:
        _, owner = api.register("Private Two", "private-two@example.com")
        resume = _create(api, owner)
        assert api.client.get(f"/api/resumes/{resume['id']}", headers=api.admin).status_code == 404
        assert api.client.delete(f"/api/resumes/{resume['id']}", headers=api.admin).status_code == 404
        assert api.client.get(f"/api/resumes/{resume['id']}", headers=owner).status_code == 200


class TestResumePdf:
    def test_pdf_download(self, api: ApiHarness) -> None:
        _, headers = api.register("Pdf Owner", "pdf-owner@example.com")
        resume = _create(api, headers, title="My Great CV")
        resp = api.client.get(f"/api/resumes/{resume['id']}/pdf", headers=headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"] == 'attachment; filename="my-great-cv.pdf"'
        assert resp.content.startswith(b"%PDF")
        assert resume["id"] in api.renderer.rendered

    def test_pdf_other_user_not_found(self, api: ApiHarness) -> None:
        _, headers = api.register("Pdf Private", "pdf-private@example.com")
        resume = _create(api, headers)
        resp = api.client.get(f"/api/resumes/{resume['id']}/pdf", headers=api.user)
        assert resp.status_code == 404

    def test_render_failure(self, api: ApiHarness) -> None:
        _, headers = api.register("Pdf Fail", "pdf-fail@example.com")
        resume = _create(api, headers)
        api.renderer.fail = True
        try:
            resp = api.client.get(f"/api/resumes/{resume['id']}/pdf", headers=headers)
        finally:
            api.renderer.fail = False
        assert resp.status_code == 500
        assert resp.json()["code"] == "RENDER_FAILED"
        assert resp.json()["error"] == "Failed to generate PDF."


class TestResumeAnalytics:
    def test_admin_overview(self, api: ApiHarness) -> None:
        _, headers = api.register("Counted", "resume-counted@example.com")
        _create(api, headers, title="Counted CV")
        resp = api.client.get("/api/resumes/analytics/overview", headers=api.admin)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["stats"]["totalResumes"] >= 1
        assert data["recentResumes"][0]["user"]["email"] == "resume-counted@example.com"

    def test_user_forbidden(self, api: ApiHarness) -> None:
        assert api.client.get("/api/resumes/analytics/overview", headers=api.user).status_code == 403
