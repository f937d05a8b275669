"""
portfolio/lifecycle.py -- Resource lifecycle services for blogs, projects and resumes.

Each service wraps a ContentStore and enforces the rules the store does not
know about:

  - slugs derived from titles, unique per kind (CONFLICT on create; a
    time-based suffix on rename collisions)
  - derived fields (blog read time and excerpt, SEO defaults)
  - the publishedAt transition rule: set on draft -> published, cleared on
    published -> draft, untouched when "published" is not in the patch
  - ownership checks through auth/policy.py before any write
  - page validation and page-size clamping for listings

Route handlers construct nothing here; the lifespan in api/main.py builds one
instance of each service and stores it on app.state.

Failures are raised as core.errors exceptions and translated to HTTP by the
handlers in api/main.py.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from auth.models import Identity
from auth.policy import authorize_ownership, authorize_role
from core.database import now_iso
from core.errors import ConflictError, NotFoundError, ValidationFailedError
from core.models import (
    DEFAULT_RESUME_TEMPLATE,
    ROLE_ADMIN,
    Blog,
    BlogFilters,
    BlogPatch,
    Page,
    Project,
    ProjectFilters,
    ProjectPatch,
    Resume,
    ResumePatch,
    clamp_page_size,
)
from core.text import disambiguate_slug, make_excerpt, read_time_minutes, slugify
from portfolio.store import ContentStore

logger = logging.getLogger("portfolio.lifecycle")


def _paging(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        raise ValidationFailedError("Page must be greater than 0")
    return page, clamp_page_size(limit)


def _slug_for(title: str) -> str:
    slug = slugify(title)
    if not slug:
        raise ValidationFailedError("Title must contain at least one letter or digit")
    return slug


class BlogService:
    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def list(self, filters: BlogFilters, page: int, limit: int, viewer: Optional[Identity] = None) -> Page[Blog]:
        """Return one page of blogs matching filters.

        ADMIN callers see every draft. A signed-in non-admin sees published
        posts plus their own drafts, still narrowed by the other filters. An
        anonymous caller always gets published posts. filters is not modified.
        """
        page, limit = _paging(page, limit)
        drafts_of = None
        if filters.published is not True and not (viewer and viewer.is_admin):
            if viewer is None:
                filters = replace(filters, published=True)
            else:
                drafts_of = viewer.id
        items, total = self.store.list_blogs(filters, page, limit, drafts_of=drafts_of)
        return Page(items=items, total=total, page=page, limit=limit)

    def get_by_slug(self, slug: str, viewer: Optional[Identity] = None) -> Blog:
        """Fetch a blog by slug. Every read of a published blog counts one view.

        A draft is visible to its author and to ADMIN callers only; anyone
        else gets NOT_FOUND and the view counter is untouched.
        """
        blog = self.store.get_blog_by_slug(slug)
        if blog is None:
            raise NotFoundError("Blog not found")
        if not blog.published:
            if viewer is None or not (viewer.is_admin or viewer.id == blog.author_id):
                raise NotFoundError("Blog not found")
            return blog
        self.store.increment_blog_views(blog.id)
        return self.store.get_blog(blog.id) or blog

    def get(self, blog_id: int) -> Blog:
        blog = self.store.get_blog(blog_id)
        if blog is None:
            raise NotFoundError("Blog not found")
        return blog

    def create(
        self,
        owner_id: int,
        *,
        title: str,
        content: str,
        excerpt: Optional[str] = None,
        cover_image: Optional[str] = None,
        published: bool = False,
        featured: bool = False,
        tags: Optional[list[str]] = None,
        seo_title: Optional[str] = None,
        seo_description: Optional[str] = None,
    ) -> Blog:
        slug = _slug_for(title)
        if self.store.blog_slug_taken(slug):
            raise ConflictError("A blog with this title already exists")

        blog = Blog(
            title=title,
            slug=slug,
            content=content,
            author_id=owner_id,
            excerpt=excerpt or make_excerpt(content),
            cover_image=cover_image,
            published=published,
            featured=featured,
            read_time=read_time_minutes(content),
            tags=list(tags or []),
            seo_title=seo_title or title,
            seo_description=seo_description or excerpt,
            published_at=now_iso() if published else None,
        )
        blog_id = self.store.create_blog(blog)
        logger.info("Blog %d (%s) created by user %d", blog_id, slug, owner_id)
        return self.get(blog_id)

    def update(self, identity: Identity, blog_id: int, patch: BlogPatch) -> Blog:
        """Apply a partial update. Only fields set on the patch change."""
        existing = self.get(blog_id)
        authorize_ownership(identity, existing.author_id)

        changes = patch.changes()
        if "title" in changes and changes["title"] != existing.title:
            slug = _slug_for(changes["title"])
            if self.store.blog_slug_taken(slug, exclude_id=blog_id):
                slug = disambiguate_slug(slug)
            if slug != existing.slug:
                changes["slug"] = slug
        if "content" in changes and changes["content"] != existing.content:
            changes["read_time"] = read_time_minutes(changes["content"])
        if "published" in changes:
            if changes["published"] and not existing.published:
                changes["published_at"] = now_iso()
            elif not changes["published"] and existing.published:
                changes["published_at"] = None

        self.store.update_blog(blog_id, **changes)
        logger.info("Blog %d updated by user %d (%s)", blog_id, identity.id, ", ".join(sorted(changes)) or "no fields")
        return self.get(blog_id)

    def delete(self, identity: Identity, blog_id: int) -> None:
        existing = self.get(blog_id)
        authorize_ownership(identity, existing.author_id)
        self.store.delete_blog(blog_id)
        logger.info("Blog %d deleted by user %d", blog_id, identity.id)


class ProjectService:
    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def list(self, filters: ProjectFilters, page: int, limit: int) -> Page[Project]:
        page, limit = _paging(page, limit)
        items, total = self.store.list_projects(filters, page, limit)
        return Page(items=items, total=total, page=page, limit=limit)

    def get_by_slug(self, slug: str) -> Project:
        project = self.store.get_project_by_slug(slug)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def get(self, project_id: int) -> Project:
        project = self.store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def create(
        self,
        owner_id: int,
        *,
        title: str,
        description: str,
        content: Optional[str] = None,
        thumbnail: Optional[str] = None,
        images: Optional[list[str]] = None,
        technologies: Optional[list[str]] = None,
        features: Optional[list[str]] = None,
        live_url: Optional[str] = None,
        github_url: Optional[str] = None,
        status: str = "COMPLETED",
        featured: bool = False,
        order: int = 0,
    ) -> Project:
        slug = _slug_for(title)
        if self.store.project_slug_taken(slug):
            raise ConflictError("A project with this title already exists")

        project = Project(
            title=title,
            slug=slug,
            description=description,
            author_id=owner_id,
            content=content,
            thumbnail=thumbnail,
            images=list(images or []),
            technologies=list(technologies or []),
            features=list(features or []),
            live_url=live_url,
            github_url=github_url,
            status=status,
            featured=featured,
            order=order,
        )
        project_id = self.store.create_project(project)
        logger.info("Project %d (%s) created by user %d", project_id, slug, owner_id)
        return self.get(project_id)

    def update(self, identity: Identity, project_id: int, patch: ProjectPatch) -> Project:
        existing = self.get(project_id)
        authorize_ownership(identity, existing.author_id)

        changes = patch.changes()
        if "title" in changes and changes["title"] != existing.title:
            slug = _slug_for(changes["title"])
            if self.store.project_slug_taken(slug, exclude_id=project_id):
                slug = disambiguate_slug(slug)
            if slug != existing.slug:
                changes["slug"] = slug

        self.store.update_project(project_id, **changes)
        logger.info(
            "Project %d updated by user %d (%s)", project_id, identity.id, ", ".join(sorted(changes)) or "no fields"
        )
        return self.get(project_id)

    def delete(self, identity: Identity, project_id: int) -> None:
        existing = self.get(project_id)
        authorize_ownership(identity, existing.author_id)
        self.store.delete_project(project_id)
        logger.info("Project %d deleted by user %d", project_id, identity.id)

    def reorder(self, identity: Identity, ordered_ids: list[int]) -> None:
        """Set each listed project's order to its 0-based position.

        Projects not listed keep their order. Every id is checked before the
        first write, then each project is updated on its own; there is no
        rollback if a later update fails.
        """
        authorize_role(identity, [ROLE_ADMIN])
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationFailedError("Project IDs must not contain duplicates")
        missing = set(ordered_ids) - self.store.existing_project_ids(ordered_ids)
        if missing:
            raise NotFoundError(f"Project not found: {', '.join(str(i) for i in sorted(missing))}")

        for index, project_id in enumerate(ordered_ids):
            self.store.set_project_order(project_id, index)
        logger.info("Reordered %d projects (user %d)", len(ordered_ids), identity.id)


class ResumeService:
    """Resumes are private: only the owner may read, change or delete one.

    Another user's resume is reported as NOT_FOUND, ADMIN included, so
    resume ids do not leak to other accounts.
    """

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def list(self, identity: Identity, page: int, limit: int) -> Page[Resume]:
        page, limit = _paging(page, limit)
        items, total = self.store.list_resumes(identity.id, page, limit)
        return Page(items=items, total=total, page=page, limit=limit)

    def get(self, identity: Identity, resume_id: int) -> Resume:
        resume = self.store.get_resume(resume_id)
        if resume is None or resume.user_id != identity.id:
            raise NotFoundError("Resume not found")
        return resume

    def create(
        self,
        owner_id: int,
        *,
        title: str,
        personal_info: dict,
        experience: Optional[list[dict]] = None,
        education: Optional[list[dict]] = None,
        skills: Optional[list[dict]] = None,
        projects: Optional[list[dict]] = None,
        template: Optional[str] = None,
    ) -> Resume:
        resume = Resume(
            title=title,
            personal_info=personal_info,
            user_id=owner_id,
            experience=list(experience or []),
            education=list(education or []),
            skills=list(skills or []),
            projects=list(projects or []),
            template=template or DEFAULT_RESUME_TEMPLATE,
        )
        resume_id = self.store.create_resume(resume)
        logger.info("Resume %d created by user %d", resume_id, owner_id)
        return self.store.get_resume(resume_id)

    def update(self, identity: Identity, resume_id: int, patch: ResumePatch) -> Resume:
        self.get(identity, resume_id)
        changes = patch.changes()
        self.store.update_resume(resume_id, **changes)
        logger.info("Resume %d updated by user %d", resume_id, identity.id)
        return self.store.get_resume(resume_id)

    def delete(self, identity: Identity, resume_id: int) -> None:
        self.get(identity, resume_id)
        self.store.delete_resume(resume_id)
        logger.info("Resume %d deleted by user %d", resume_id, identity.id)
