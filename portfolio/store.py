"""
portfolio/store.py -- SQLAlchemy Core persistence for blogs, projects and resumes.

Pattern: Repository + Data Mapper. ContentStore is the repository (one clean
interface per entity kind); the _row_to_* functions are the mappers that turn
rows into the dataclasses in core/models.py. The lifecycle services in
portfolio/lifecycle.py own the rules; this module only reads and writes.

Storage notes:
  List-valued fields (tags, technologies, images, features) and the resume
  sections are JSON arrays/objects serialized as text, same as the user
  tables. Membership filters (tag, technology) compare whole elements through
  SQLite's json_each, so they are exact and case-sensitive.

  Booleans are stored as 0/1 integers.

  Owner columns reference users.id with ON DELETE CASCADE, so deleting a
  user removes their content. core/database.py turns foreign keys on for
  SQLite.

  The project display rank lives in the "display_order" column; the domain
  field is Project.order.

Security: all queries use bound parameters. No f-strings in SQL.
"""

import json
from typing import Optional

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    case,
    func,
    or_,
    select,
)

from auth.store import users
from core.database import Database, metadata, now_iso
from core.models import (
    AuthorSummary,
    Blog,
    BlogFilters,
    Project,
    ProjectFilters,
    Resume,
)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

blogs = Table(
    "blogs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("slug", String(255), nullable=False, unique=True),
    Column("content", Text, nullable=False),
    Column("excerpt", Text),
    Column("cover_image", Text),
    Column("published", Integer, nullable=False, server_default="0"),
    Column("featured", Integer, nullable=False, server_default="0"),
    Column("views", Integer, nullable=False, server_default="0"),
    Column("read_time", Integer),
    Column("tags", Text, nullable=False, server_default="[]"),  # JSON array
    Column("seo_title", String(200)),
    Column("seo_description", Text),
    Column("published_at", String(32)),
    Column("author_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(100), nullable=False),
    Column("slug", String(255), nullable=False, unique=True),
    Column("description", Text, nullable=False),
    Column("content", Text),
    Column("thumbnail", Text),
    Column("images", Text, nullable=False, server_default="[]"),  # JSON array
    Column("technologies", Text, nullable=False, server_default="[]"),  # JSON array
    Column("features", Text, nullable=False, server_default="[]"),  # JSON array
    Column("live_url", Text),
    Column("github_url", Text),
    Column("status", String(20), nullable=False, server_default="COMPLETED"),
    Column("featured", Integer, nullable=False, server_default="0"),
    Column("display_order", Integer, nullable=False, server_default="0"),
    Column("author_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

resumes = Table(
    "resumes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(100), nullable=False),
    Column("personal_info", Text, nullable=False),  # JSON object
    Column("experience", Text, nullable=False, server_default="[]"),
    Column("education", Text, nullable=False, server_default="[]"),
    Column("skills", Text, nullable=False, server_default="[]"),
    Column("projects", Text, nullable=False, server_default="[]"),
    Column("template", String(50), nullable=False, server_default="modern"),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_BLOG_JSON = {"tags"}
_BLOG_BOOL = {"published", "featured"}
_BLOG_MUTABLE = {
    "title",
    "slug",
    "content",
    "excerpt",
    "cover_image",
    "published",
    "featured",
    "read_time",
    "tags",
    "seo_title",
    "seo_description",
    "published_at",
}

_PROJECT_JSON = {"images", "technologies", "features"}
_PROJECT_BOOL = {"featured"}
_PROJECT_MUTABLE = {
    "title",
    "slug",
    "description",
    "content",
    "thumbnail",
    "images",
    "technologies",
    "features",
    "live_url",
    "github_url",
    "status",
    "featured",
    "order",
}

_RESUME_JSON = {"personal_info", "experience", "education", "skills", "projects"}
_RESUME_MUTABLE = {"title", "personal_info", "experience", "education", "skills", "projects", "template"}

# Author columns joined onto blog/project reads.
_AUTHOR_COLUMNS = (
    users.c.name.label("author_name"),
    users.c.email.label("author_email"),
    users.c.avatar.label("author_avatar"),
)


def _encode(fields: dict, json_fields: set[str], bool_fields: set[str] = frozenset()) -> dict:
    """Translate domain values into column values (JSON text, 0/1 flags)."""
    values = {}
    for key, value in fields.items():
        if key in json_fields:
            value = json.dumps(value if value is not None else [])
        elif key in bool_fields:
            value = 1 if value else 0
        values[key] = value
    return values


def _check_fields(fields: dict, allowed: set[str], kind: str) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown {kind} fields: {unknown!r}")


def _json_member(column, value: str):
    """Condition: the JSON array stored in column has an element equal to value.

    Exact, case-sensitive element match via json_each. A LIKE over the JSON
    text would ignore ASCII case on SQLite.
    """
    elements = func.json_each(column).table_valued("value")
    return select(elements.c.value).where(elements.c.value == value).exists()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContentStore:
    """Repository for Blog, Project and Resume entities.

    Usage:
        store = ContentStore(db)
        blog_id = store.create_blog(blog)
        store.increment_blog_views(blog_id)
        items, total = store.list_blogs(BlogFilters(tag="python"), page=1, limit=10)
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        db.create_tables()

    @property
    def engine(self):
        return self.db.engine

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _insert(self, table: Table, values: dict) -> int:
        stamp = now_iso()
        values.setdefault("created_at", stamp)
        values.setdefault("updated_at", stamp)
        with self.engine.connect() as conn:
            result = conn.execute(table.insert().values(**values))
            conn.commit()
            return result.inserted_primary_key[0]

    def _update(self, table: Table, row_id: int, values: dict) -> bool:
        values["updated_at"] = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(table.update().where(table.c.id == row_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def _delete(self, table: Table, row_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(table.delete().where(table.c.id == row_id))
            conn.commit()
        return result.rowcount > 0

    def _slug_taken(self, table: Table, slug: str, exclude_id: Optional[int]) -> bool:
        query = select(table.c.id).where(table.c.slug == slug)
        if exclude_id is not None:
            query = query.where(table.c.id != exclude_id)
        with self.engine.connect() as conn:
            return conn.execute(query.limit(1)).first() is not None

    def _count(self, table: Table, *conditions) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(table).where(*conditions)).scalar() or 0

    # ------------------------------------------------------------------
    # Blogs
    # ------------------------------------------------------------------

    def _blog_select(self):
        return select(blogs, *_AUTHOR_COLUMNS).select_from(blogs.join(users, blogs.c.author_id == users.c.id))

    def create_blog(self, blog: Blog) -> int:
        """Insert a blog and return its id.

        Raises sqlalchemy.exc.IntegrityError if the slug already exists.
        """
        values = _encode(
            {
                "title": blog.title,
                "slug": blog.slug,
                "content": blog.content,
                "excerpt": blog.excerpt,
                "cover_image": blog.cover_image,
                "published": blog.published,
                "featured": blog.featured,
                "views": blog.views,
                "read_time": blog.read_time,
                "tags": blog.tags,
                "seo_title": blog.seo_title,
                "seo_description": blog.seo_description,
                "published_at": blog.published_at,
                "author_id": blog.author_id,
            },
            _BLOG_JSON,
            _BLOG_BOOL,
        )
        return self._insert(blogs, values)

    def update_blog(self, blog_id: int, **fields) -> bool:
        """Write the supplied fields and bump updated_at. author_id is not writable."""
        _check_fields(fields, _BLOG_MUTABLE, "blog")
        return self._update(blogs, blog_id, _encode(fields, _BLOG_JSON, _BLOG_BOOL))

    def delete_blog(self, blog_id: int) -> bool:
        return self._delete(blogs, blog_id)

    def get_blog(self, blog_id: int) -> Optional[Blog]:
        with self.engine.connect() as conn:
            row = conn.execute(self._blog_select().where(blogs.c.id == blog_id)).fetchone()
        return _row_to_blog(row) if row is not None else None

    def get_blog_by_slug(self, slug: str) -> Optional[Blog]:
        with self.engine.connect() as conn:
            row = conn.execute(self._blog_select().where(blogs.c.slug == slug)).fetchone()
        return _row_to_blog(row) if row is not None else None

    def blog_slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        return self._slug_taken(blogs, slug, exclude_id)

    def increment_blog_views(self, blog_id: int) -> None:
        """Atomically add one view. Does not touch updated_at."""
        with self.engine.connect() as conn:
            conn.execute(blogs.update().where(blogs.c.id == blog_id).values(views=blogs.c.views + 1))
            conn.commit()

    def list_blogs(
        self, filters: BlogFilters, page: int, limit: int, drafts_of: Optional[int] = None
    ) -> tuple[list[Blog], int]:
        """Return one page of blogs and the total match count.

        drafts_of restricts drafts to one author: a row matches only if it is
        published or written by that user. It combines with every filter.

        Order: featured first, newest publication first (drafts last), then
        newest creation. id breaks any remaining tie so pages never overlap.
        """
        conditions = []
        if filters.published is not None:
            conditions.append(blogs.c.published == (1 if filters.published else 0))
        if filters.featured:
            conditions.append(blogs.c.featured == 1)
        if filters.search:
            conditions.append(
                or_(
                    blogs.c.title.icontains(filters.search, autoescape=True),
                    blogs.c.excerpt.icontains(filters.search, autoescape=True),
                    blogs.c.content.icontains(filters.search, autoescape=True),
                )
            )
        if filters.tag:
            conditions.append(_json_member(blogs.c.tags, filters.tag))
        if filters.author_id is not None:
            conditions.append(blogs.c.author_id == filters.author_id)
        if drafts_of is not None:
            conditions.append(or_(blogs.c.published == 1, blogs.c.author_id == drafts_of))

        query = (
            self._blog_select()
            .where(*conditions)
            .order_by(
                blogs.c.featured.desc(),
                blogs.c.published_at.desc().nulls_last(),
                blogs.c.created_at.desc(),
                blogs.c.id.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_blog(r) for r in rows], self._count(blogs, *conditions)

    def get_blog_stats(self) -> dict[str, int]:
        """Blog counts by state plus the view sum, in one conditional-aggregate query."""
        stmt = select(
            func.count().label("total"),
            func.count(case((blogs.c.published == 1, 1))).label("published"),
            func.count(case((blogs.c.published == 0, 1))).label("draft"),
            func.count(case((blogs.c.featured == 1, 1))).label("featured"),
            func.coalesce(func.sum(blogs.c.views), 0).label("views"),
        ).select_from(blogs)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).one()
        return {
            "total": row.total,
            "published": row.published,
            "draft": row.draft,
            "featured": row.featured,
            "total_views": row.views,
        }

    def recent_blogs(self, limit: int = 10) -> list[Blog]:
        query = self._blog_select().order_by(blogs.c.created_at.desc(), blogs.c.id.desc()).limit(limit)
        with self.engine.connect() as conn:
            return [_row_to_blog(r) for r in conn.execute(query).fetchall()]

    def top_blogs(self, limit: int = 10) -> list[Blog]:
        """Published blogs ranked by views."""
        query = (
            self._blog_select()
            .where(blogs.c.published == 1)
            .order_by(blogs.c.views.desc(), blogs.c.id.desc())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            return [_row_to_blog(r) for r in conn.execute(query).fetchall()]

    def published_tag_lists(self) -> list[list[str]]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(blogs.c.tags).where(blogs.c.published == 1)).fetchall()
        return [json.loads(r.tags) if r.tags else [] for r in rows]

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def _project_select(self):
        return select(projects, *_AUTHOR_COLUMNS).select_from(
            projects.join(users, projects.c.author_id == users.c.id)
        )

    def create_project(self, project: Project) -> int:
        """Insert a project and return its id.

        Raises sqlalchemy.exc.IntegrityError if the slug already exists.
        """
        values = _encode(
            {
                "title": project.title,
                "slug": project.slug,
                "description": project.description,
                "content": project.content,
                "thumbnail": project.thumbnail,
                "images": project.images,
                "technologies": project.technologies,
                "features": project.features,
                "live_url": project.live_url,
                "github_url": project.github_url,
                "status": project.status,
                "featured": project.featured,
                "display_order": project.order,
                "author_id": project.author_id,
            },
            _PROJECT_JSON,
            _PROJECT_BOOL,
        )
        return self._insert(projects, values)

    def update_project(self, project_id: int, **fields) -> bool:
        _check_fields(fields, _PROJECT_MUTABLE, "project")
        if "order" in fields:
            fields["display_order"] = fields.pop("order")
        return self._update(projects, project_id, _encode(fields, _PROJECT_JSON, _PROJECT_BOOL))

    def delete_project(self, project_id: int) -> bool:
        return self._delete(projects, project_id)

    def get_project(self, project_id: int) -> Optional[Project]:
        with self.engine.connect() as conn:
            row = conn.execute(self._project_select().where(projects.c.id == project_id)).fetchone()
        return _row_to_project(row) if row is not None else None

    def get_project_by_slug(self, slug: str) -> Optional[Project]:
        with self.engine.connect() as conn:
            row = conn.execute(self._project_select().where(projects.c.slug == slug)).fetchone()
        return _row_to_project(row) if row is not None else None

    def project_slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        return self._slug_taken(projects, slug, exclude_id)

    def existing_project_ids(self, project_ids: list[int]) -> set[int]:
        """Return the subset of project_ids that exist."""
        if not project_ids:
            return set()
        with self.engine.connect() as conn:
            rows = conn.execute(select(projects.c.id).where(projects.c.id.in_(project_ids))).fetchall()
        return {r.id for r in rows}

    def set_project_order(self, project_id: int, order: int) -> bool:
        """Set one project's display rank. Each call is its own transaction."""
        return self._update(projects, project_id, {"display_order": order})

    def list_projects(self, filters: ProjectFilters, page: int, limit: int) -> tuple[list[Project], int]:
        """Return one page of projects: featured first, then display order, then newest."""
        conditions = []
        if filters.featured:
            conditions.append(projects.c.featured == 1)
        if filters.status:
            conditions.append(projects.c.status == filters.status)
        if filters.search:
            conditions.append(
                or_(
                    projects.c.title.icontains(filters.search, autoescape=True),
                    projects.c.description.icontains(filters.search, autoescape=True),
                    projects.c.content.icontains(filters.search, autoescape=True),
                )
            )
        if filters.technology:
            conditions.append(_json_member(projects.c.technologies, filters.technology))
        if filters.author_id is not None:
            conditions.append(projects.c.author_id == filters.author_id)

        query = (
            self._project_select()
            .where(*conditions)
            .order_by(
                projects.c.featured.desc(),
                projects.c.display_order.asc(),
                projects.c.created_at.desc(),
                projects.c.id.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_project(r) for r in rows], self._count(projects, *conditions)

    def get_project_stats(self) -> dict[str, int]:
        stmt = select(
            func.count().label("total"),
            func.count(case((projects.c.status == "COMPLETED", 1))).label("completed"),
            func.count(case((projects.c.status == "IN_PROGRESS", 1))).label("in_progress"),
            func.count(case((projects.c.status == "ARCHIVED", 1))).label("archived"),
            func.count(case((projects.c.featured == 1, 1))).label("featured"),
        ).select_from(projects)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).one()
        return {
            "total": row.total,
            "completed": row.completed,
            "in_progress": row.in_progress,
            "archived": row.archived,
            "featured": row.featured,
        }

    def recent_projects(self, limit: int = 10) -> list[Project]:
        query = self._project_select().order_by(projects.c.created_at.desc(), projects.c.id.desc()).limit(limit)
        with self.engine.connect() as conn:
            return [_row_to_project(r) for r in conn.execute(query).fetchall()]

    def technology_lists(self) -> list[list[str]]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(projects.c.technologies)).fetchall()
        return [json.loads(r.technologies) if r.technologies else [] for r in rows]

    # ------------------------------------------------------------------
    # Resumes
    # ------------------------------------------------------------------

    def create_resume(self, resume: Resume) -> int:
        values = _encode(
            {
                "title": resume.title,
                "personal_info": resume.personal_info,
                "experience": resume.experience,
                "education": resume.education,
                "skills": resume.skills,
                "projects": resume.projects,
                "template": resume.template,
                "user_id": resume.user_id,
            },
            _RESUME_JSON,
        )
        return self._insert(resumes, values)

    def update_resume(self, resume_id: int, **fields) -> bool:
        _check_fields(fields, _RESUME_MUTABLE, "resume")
        return self._update(resumes, resume_id, _encode(fields, _RESUME_JSON))

    def delete_resume(self, resume_id: int) -> bool:
        return self._delete(resumes, resume_id)

    def get_resume(self, resume_id: int) -> Optional[Resume]:
        with self.engine.connect() as conn:
            row = conn.execute(resumes.select().where(resumes.c.id == resume_id)).fetchone()
        return _row_to_resume(row) if row is not None else None

    def list_resumes(self, user_id: int, page: int, limit: int) -> tuple[list[Resume], int]:
        """One page of a user's resumes, most recently updated first."""
        query = (
            resumes.select()
            .where(resumes.c.user_id == user_id)
            .order_by(resumes.c.updated_at.desc(), resumes.c.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_resume(r) for r in rows], self._count(resumes, resumes.c.user_id == user_id)

    def count_resumes(self) -> int:
        return self._count(resumes)

    def recent_resumes(self, limit: int = 10) -> list[dict]:
        """Newest resumes with their owner's name and email (admin analytics)."""
        query = (
            select(resumes.c.id, resumes.c.title, resumes.c.created_at, users.c.name, users.c.email)
            .select_from(resumes.join(users, resumes.c.user_id == users.c.id))
            .order_by(resumes.c.created_at.desc(), resumes.c.id.desc())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [
            {
                "id": r.id,
                "title": r.title,
                "created_at": r.created_at,
                "user": {"name": r.name, "email": r.email},
            }
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Per-user aggregates
    # ------------------------------------------------------------------

    def content_counts(self, user_ids: list[int]) -> dict[int, dict[str, int]]:
        """Return {user_id: {"blogs", "projects", "resumes"}} in three grouped queries.

        Users with no content are absent -- callers default to zeros.
        """
        counts: dict[int, dict[str, int]] = {}
        if not user_ids:
            return counts
        sources = (
            ("blogs", blogs, blogs.c.author_id),
            ("projects", projects, projects.c.author_id),
            ("resumes", resumes, resumes.c.user_id),
        )
        with self.engine.connect() as conn:
            for name, table, owner in sources:
                stmt = select(owner.label("owner"), func.count().label("n")).where(owner.in_(user_ids)).group_by(owner)
                for row in conn.execute(stmt):
                    counts.setdefault(row.owner, {"blogs": 0, "projects": 0, "resumes": 0})[name] = row.n
        return counts

    def get_user_stats(self, user_id: int) -> dict:
        """Blog count and view sum, project counts by status, resume count for one user."""
        blog_stmt = (
            select(func.count().label("total"), func.coalesce(func.sum(blogs.c.views), 0).label("views"))
            .select_from(blogs)
            .where(blogs.c.author_id == user_id)
        )
        project_stmt = (
            select(projects.c.status, func.count().label("n"))
            .where(projects.c.author_id == user_id)
            .group_by(projects.c.status)
        )
        with self.engine.connect() as conn:
            blog_row = conn.execute(blog_stmt).one()
            by_status = {row.status: row.n for row in conn.execute(project_stmt)}
        return {
            "blogs": {"total": blog_row.total, "total_views": blog_row.views},
            "projects": {
                "total": sum(by_status.values()),
                "completed": by_status.get("COMPLETED", 0),
                "in_progress": by_status.get("IN_PROGRESS", 0),
                "archived": by_status.get("ARCHIVED", 0),
            },
            "resumes": {"total": self._count(resumes, resumes.c.user_id == user_id)},
        }


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _author(row, owner_id: int) -> Optional[AuthorSummary]:
    name = getattr(row, "author_name", None)
    if name is None:
        return None
    return AuthorSummary(id=owner_id, name=name, email=row.author_email, avatar=row.author_avatar)


def _row_to_blog(row) -> Blog:
    return Blog(
        id=row.id,
        title=row.title,
        slug=row.slug,
        content=row.content,
        excerpt=row.excerpt,
        cover_image=row.cover_image,
        published=bool(row.published),
        featured=bool(row.featured),
        views=row.views,
        read_time=row.read_time,
        tags=json.loads(row.tags) if row.tags else [],
        seo_title=row.seo_title,
        seo_description=row.seo_description,
        published_at=row.published_at,
        author_id=row.author_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        author=_author(row, row.author_id),
    )


def _row_to_project(row) -> Project:
    return Project(
        id=row.id,
        title=row.title,
        slug=row.slug,
        description=row.description,
        content=row.content,
        thumbnail=row.thumbnail,
        images=json.loads(row.images) if row.images else [],
        technologies=json.loads(row.technologies) if row.technologies else [],
        features=json.loads(row.features) if row.features else [],
        live_url=row.live_url,
        github_url=row.github_url,
        status=row.status,
        featured=bool(row.featured),
        order=row.display_order,
        author_id=row.author_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        author=_author(row, row.author_id),
    )


def _row_to_resume(row) -> Resume:
    return Resume(
        id=row.id,
        title=row.title,
        personal_info=json.loads(row.personal_info),
        experience=json.loads(row.experience) if row.experience else [],
        education=json.loads(row.education) if row.education else [],
        skills=json.loads(row.skills) if row.skills else [],
        projects=json.loads(row.projects) if row.projects else [],
        template=row.template,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
