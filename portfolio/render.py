"""
portfolio/render.py -- Resume to HTML (Jinja2) to PDF (headless Chromium).

Two stages:
  render_resume_html() -- deterministic, pure: the same Resume always yields
      the same HTML. Template portfolio/templates/resume_<template>.html,
      falling back to the "modern" template for unknown names. Autoescaping
      is on, so user-supplied text can never inject markup.
  ResumeRenderer.render_pdf() -- prints that HTML through Playwright's
      Chromium: A4, 20px margins, backgrounds printed.

Any engine failure (browser missing, launch error, timeout) is logged with
its traceback and raised as RenderFailedError. No partial bytes are returned.

The renderer is built once in the api/main.py lifespan and stored on
app.state.renderer; tests substitute a fake with the same render_pdf()
coroutine.
"""

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from core.errors import RenderFailedError
from core.models import DEFAULT_RESUME_TEMPLATE, Resume

logger = logging.getLogger("portfolio.render")

TEMPLATE_DIR = Path(__file__).parent / "templates"

CONTACT_SEPARATOR = " • "
LIST_SEPARATOR = ", "

PDF_OPTIONS = {
    "format": "A4",
    "margin": {"top": "20px", "right": "20px", "bottom": "20px", "left": "20px"},
    "print_background": True,
}

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def group_skills(skills: list[dict]) -> list[tuple[str, str]]:
    """Group skills by category (first-seen order) into display strings.

        [{"name": "Python", "level": "Expert", "category": "Languages"},
         {"name": "Go", "category": "Languages"}]
        -> [("Languages", "Python (Expert), Go")]
    """
    grouped: dict[str, list[str]] = {}
    for skill in skills:
        label = skill["name"]
        if skill.get("level"):
            label = f"{label} ({skill['level']})"
        grouped.setdefault(skill["category"], []).append(label)
    return [(category, LIST_SEPARATOR.join(names)) for category, names in grouped.items()]


def _contact_line(info: dict) -> str:
    parts = [info.get("email"), info.get("phone"), info.get("location")]
    return CONTACT_SEPARATOR.join(p for p in parts if p)


def _links(info: dict) -> list[tuple[str, str]]:
    links = []
    if info.get("website"):
        links.append((info["website"], info["website"]))
    if info.get("linkedin"):
        links.append((info["linkedin"], "LinkedIn"))
    if info.get("github"):
        links.append((info["github"], "GitHub"))
    return links


def render_resume_html(resume: Resume) -> str:
    """Render a resume to a standalone HTML document."""
    try:
        template = _env.get_template(f"resume_{resume.template}.html")
    except TemplateNotFound:
        template = _env.get_template(f"resume_{DEFAULT_RESUME_TEMPLATE}.html")

    info = resume.personal_info
    return template.render(
        title=resume.title,
        info=info,
        contact_line=_contact_line(info),
        links=_links(info),
        link_separator=CONTACT_SEPARATOR,
        experience=resume.experience,
        education=resume.education,
        skill_groups=group_skills(resume.skills),
        projects=[
            {**project, "technologies_line": LIST_SEPARATOR.join(project.get("technologies") or [])}
            for project in resume.projects
        ],
    )


class ResumeRenderer:
    """Prints resumes to PDF with a short-lived headless Chromium per request."""

    def __init__(self, timeout_ms: int = 30000) -> None:
        self.timeout_ms = timeout_ms

    async def render_pdf(self, resume: Resume) -> bytes:
        html = render_resume_html(resume)
        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(headless=True, args=["--no-sandbox", "--disable-setuid-sandbox"])
                try:
                    page = await browser.new_page()
                    page.set_default_timeout(self.timeout_ms)
                    await page.set_content(html, wait_until="networkidle")
                    return await page.pdf(**PDF_OPTIONS)
                finally:
                    await browser.close()
        except (PlaywrightError, OSError, NotImplementedError) as e:
            logger.exception("PDF generation failed for resume %s", resume.id)
            raise RenderFailedError() from e
