"""
tests/test_render.py -- Unit tests for portfolio/render.py.

HTML rendering is pure, so it is tested directly. The PDF stage is tested
only for its failure contract: the Playwright entry point is replaced so no
browser is launched.
"""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from core.errors import RenderFailedError
from core.models import Resume
from portfolio import render
from portfolio.render import ResumeRenderer, group_skills, render_resume_html


def _resume(**overrides) -> Resume:
    fields = {
        "id": 1,
        "title": "Engineer CV",
        "user_id": 1,
        "personal_info": {
            "fullName": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "+44 20 0000",
            "location": "London",
            "github": "https://github.com/ada",
            "summary": "Analyst of engines.",
        },
        "experience": [
            {
                "position": "Analyst",
                "company": "Babbage & Co",
                "startDate": "1842",
                "current": True,
                "achievements": ["Wrote the first program"],
            }
        ],
        "education": [],
        "skills": [
            {"name": "Mathematics", "level": "Expert", "category": "Science"},
            {"name": "Poetry", "category": "Arts"},
            {"name": "Logic", "category": "Science"},
        ],
        "projects": [{"name": "Note G", "description": "Bernoulli numbers", "technologies": ["Analytical Engine"]}],
    }
    fields.update(overrides)
    return Resume(**fields)


class TestGroupSkills:
    def test_groups_by_category_in_first_seen_order(self) -> None:
        groups = group_skills(_resume().skills)
        assert groups == [("Science", "Mathematics (Expert), Logic"), ("Arts", "Poetry")]

    def test_empty(self) -> None:
        assert group_skills([]) == []


class TestRenderHtml:
    def test_contains_header_and_sections(self) -> None:
        html = render_resume_html(_resume())
        assert "Ada Lovelace" in html
        assert "ada@example.com • +44 20 0000 • London" in html
        assert 'href="https://github.com/ada"' in html
        assert "Experience" in html
        assert "Present" in html
        assert "Mathematics (Expert), Logic" in html
        assert "Analytical Engine" in html

    def test_empty_sections_are_omitted(self) -> None:
        html = render_resume_html(_resume())
        assert "Education" not in html

    def test_user_text_is_escaped(self) -> None:
        info = {"fullName": "<script>alert(1)</script>", "email": "x@example.com"}
        html = render_resume_html(_resume(personal_info=info))
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    def test_unknown_template_falls_back_to_modern(self) -> None:
        assert render_resume_html(_resume(template="does-not-exist")) == render_resume_html(_resume())

    def test_deterministic(self) -> None:
        assert render_resume_html(_resume()) == render_resume_html(_resume())


class _BrokenPlaywright:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def __aenter__(self):
        raise self.exc

    async def __aexit__(self, *exc):
        return False


class TestRenderPdf:
    @pytest.mark.parametrize(
        "exc",
        [
            PlaywrightError("Executable doesn't exist"),
            OSError("driver subprocess could not start"),
            NotImplementedError(),
        ],
    )
    def test_engine_failure_raises_render_failed(self, monkeypatch, exc) -> None:
        monkeypatch.setattr(render, "async_playwright", lambda: _BrokenPlaywright(exc))
        with pytest.raises(RenderFailedError):
            asyncio.run(ResumeRenderer(timeout_ms=1000).render_pdf(_resume()))
