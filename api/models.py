"""
API request and response models for the Portfolio REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in core/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two; the from_domain() factories keep that mapping colocated
with the output models.

Wire format:
  JSON keys are camelCase (alias_generator=to_camel). Request bodies accept
  camelCase or snake_case (populate_by_name=True).

Partial updates:
  *Update models give every field a default so omitted keys stay out of
  model_fields_set / model_dump(exclude_unset=True). Fields that may not be
  cleared are typed without Optional, so an explicit null fails validation
  instead of nulling the column.

Separation of concerns: core/ models = domain truth; api/ models = API contract.
"""

from typing import Annotated, Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from auth.models import User
from core.models import Blog, Page, Project, Resume

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

URL_PATTERN = r"^https?://[^\s/$.?#][^\s]*$"

# http(s) URL kept as a plain string so it stores and serializes unchanged.
HttpUrlStr = Annotated[str, Field(pattern=URL_PATTERN, max_length=2048)]

ProjectStatus = Literal["IN_PROGRESS", "COMPLETED", "ARCHIVED"]
Role = Literal["USER", "ADMIN"]

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for every wire model: camelCase aliases, snake_case accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _wire(value: Any) -> Any:
    """Dump nested sub-records by alias so stored resume sections keep wire keys."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_wire(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class PaginationInfo(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page: Page) -> "PaginationInfo":
        return cls(
            current_page=page.page,
            total_pages=page.total_pages,
            total_items=page.total,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )


class DataResponse(CamelModel, Generic[T]):
    """{"success": true, "message"?: str, "data": ...}"""

    success: bool = True
    message: Optional[str] = None
    data: T


class ListResponse(CamelModel, Generic[T]):
    """Paginated list envelope."""

    success: bool = True
    data: list[T]
    pagination: PaginationInfo


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """Error envelope returned on 4xx/5xx responses.

    errors lists field-level messages for VALIDATION failures; stack is only
    filled in outside production.
    """

    success: bool = False
    error: str
    code: str
    errors: Optional[list[str]] = None
    stack: Optional[str] = None


class HealthResponse(CamelModel):
    """Response for GET /health."""

    success: bool = True
    message: str = "Portfolio API is running"
    timestamp: str
    database: str = "ok"


# ---------------------------------------------------------------------------
# Auth and users
# ---------------------------------------------------------------------------


class RegisterRequest(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=100)


class GoogleAuthRequest(CamelModel):
    token: str = Field(min_length=1, description="Google ID token from the browser sign-in flow.")


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class ProfileUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default=None, min_length=2, max_length=50)
    avatar: Optional[HttpUrlStr] = None


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=100)


class RoleUpdate(CamelModel):
    role: Role


class ContentCounts(CamelModel):
    blogs: int = 0
    projects: int = 0
    resumes: int = 0


class UserOut(CamelModel):
    """Public view of an account. Never carries the password hash."""

    id: int
    name: str
    email: str
    role: str
    avatar: Optional[str] = None
    email_verified: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    counts: Optional[ContentCounts] = None

    @classmethod
    def from_domain(cls, user: User, counts: Optional[dict] = None) -> "UserOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            avatar=user.avatar,
            email_verified=user.email_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
            counts=ContentCounts(**counts) if counts is not None else None,
        )


class UserData(CamelModel):
    user: UserOut


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AuthData(CamelModel):
    user: UserOut
    access_token: str
    refresh_token: str


class UserStats(CamelModel):
    total_users: int
    admin_users: int
    regular_users: int
    verified_users: int
    unverified_users: int


class UserAnalytics(CamelModel):
    stats: UserStats
    recent_users: list[UserOut]


class BlogCounts(CamelModel):
    total: int
    total_views: int


class ProjectCounts(CamelModel):
    total: int
    completed: int
    in_progress: int
    archived: int


class ResumeCounts(CamelModel):
    total: int


class UserContentStats(CamelModel):
    blogs: BlogCounts
    projects: ProjectCounts
    resumes: ResumeCounts


# ---------------------------------------------------------------------------
# Blogs
# ---------------------------------------------------------------------------


class BlogCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    cover_image: Optional[HttpUrlStr] = None
    published: bool = False
    featured: bool = False
    tags: list[str] = Field(default_factory=list)
    seo_title: Optional[str] = Field(default=None, max_length=60)
    seo_description: Optional[str] = Field(default=None, max_length=160)


class BlogUpdate(CamelModel):
    title: str = Field(default=None, min_length=1, max_length=200)
    content: str = Field(default=None, min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    cover_image: Optional[HttpUrlStr] = None
    published: bool = None
    featured: bool = None
    tags: list[str] = None
    seo_title: Optional[str] = Field(default=None, max_length=60)
    seo_description: Optional[str] = Field(default=None, max_length=160)


class AuthorOut(CamelModel):
    id: int
    name: str
    email: str
    avatar: Optional[str] = None


class BlogOut(CamelModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool
    featured: bool
    views: int
    read_time: Optional[int] = None
    tags: list[str]
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    published_at: Optional[str] = None
    author_id: int
    author: Optional[AuthorOut] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, blog: Blog) -> "BlogOut":
        return cls(
            id=blog.id,
            title=blog.title,
            slug=blog.slug,
            content=blog.content,
            excerpt=blog.excerpt,
            cover_image=blog.cover_image,
            published=blog.published,
            featured=blog.featured,
            views=blog.views,
            read_time=blog.read_time,
            tags=blog.tags,
            seo_title=blog.seo_title,
            seo_description=blog.seo_description,
            published_at=blog.published_at,
            author_id=blog.author_id,
            author=AuthorOut(**vars(blog.author)) if blog.author else None,
            created_at=blog.created_at,
            updated_at=blog.updated_at,
        )


class BlogData(CamelModel):
    blog: BlogOut


class NameCount(CamelModel):
    name: str
    count: int


class TagsData(CamelModel):
    tags: list[NameCount]


class BlogStats(CamelModel):
    total_blogs: int
    published_blogs: int
    draft_blogs: int
    featured_blogs: int
    total_views: int


class RecentBlogRow(CamelModel):
    id: int
    title: str
    slug: str
    published: bool
    views: int
    created_at: str


class TopBlogRow(CamelModel):
    id: int
    title: str
    slug: str
    views: int
    published_at: Optional[str] = None


class BlogAnalytics(CamelModel):
    stats: BlogStats
    recent_blogs: list[RecentBlogRow]
    top_blogs: list[TopBlogRow]

    @classmethod
    def from_overview(cls, overview: dict) -> "BlogAnalytics":
        stats = overview["stats"]
        return cls(
            stats=BlogStats(
                total_blogs=stats["total"],
                published_blogs=stats["published"],
                draft_blogs=stats["draft"],
                featured_blogs=stats["featured"],
                total_views=stats["total_views"],
            ),
            recent_blogs=[
                RecentBlogRow(
                    id=b.id, title=b.title, slug=b.slug, published=b.published, views=b.views, created_at=b.created_at
                )
                for b in overview["recent"]
            ],
            top_blogs=[
                TopBlogRow(id=b.id, title=b.title, slug=b.slug, views=b.views, published_at=b.published_at)
                for b in overview["top"]
            ],
        )


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    content: Optional[str] = None
    thumbnail: Optional[HttpUrlStr] = None
    images: list[HttpUrlStr] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    live_url: Optional[HttpUrlStr] = None
    github_url: Optional[HttpUrlStr] = None
    status: ProjectStatus = "COMPLETED"
    featured: bool = False
    order: int = 0


class ProjectUpdate(CamelModel):
    title: str = Field(default=None, min_length=1, max_length=100)
    description: str = Field(default=None, min_length=1, max_length=500)
    content: Optional[str] = None
    thumbnail: Optional[HttpUrlStr] = None
    images: list[HttpUrlStr] = None
    technologies: list[str] = None
    features: list[str] = None
    live_url: Optional[HttpUrlStr] = None
    github_url: Optional[HttpUrlStr] = None
    status: ProjectStatus = None
    featured: bool = None
    order: int = None


class ReorderRequest(CamelModel):
    project_ids: list[int] = Field(description="Project ids in their new display order.")


class ProjectOut(CamelModel):
    id: int
    title: str
    slug: str
    description: str
    content: Optional[str] = None
    thumbnail: Optional[str] = None
    images: list[str]
    technologies: list[str]
    features: list[str]
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    status: str
    featured: bool
    order: int
    author_id: int
    author: Optional[AuthorOut] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectOut":
        return cls(
            id=project.id,
            title=project.title,
            slug=project.slug,
            description=project.description,
            content=project.content,
            thumbnail=project.thumbnail,
            images=project.images,
            technologies=project.technologies,
            features=project.features,
            live_url=project.live_url,
            github_url=project.github_url,
            status=project.status,
            featured=project.featured,
            order=project.order,
            author_id=project.author_id,
            author=AuthorOut(**vars(project.author)) if project.author else None,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectData(CamelModel):
    project: ProjectOut


class TechnologiesData(CamelModel):
    technologies: list[NameCount]


class ProjectStats(CamelModel):
    total_projects: int
    completed_projects: int
    in_progress_projects: int
    archived_projects: int
    featured_projects: int


class RecentProjectRow(CamelModel):
    id: int
    title: str
    slug: str
    status: str
    featured: bool
    created_at: str


class ProjectAnalytics(CamelModel):
    stats: ProjectStats
    recent_projects: list[RecentProjectRow]

    @classmethod
    def from_overview(cls, overview: dict) -> "ProjectAnalytics":
        stats = overview["stats"]
        return cls(
            stats=ProjectStats(
                total_projects=stats["total"],
                completed_projects=stats["completed"],
                in_progress_projects=stats["in_progress"],
                archived_projects=stats["archived"],
                featured_projects=stats["featured"],
            ),
            recent_projects=[
                RecentProjectRow(
                    id=p.id, title=p.title, slug=p.slug, status=p.status, featured=p.featured, created_at=p.created_at
                )
                for p in overview["recent"]
            ],
        )


# ---------------------------------------------------------------------------
# Resumes
# ---------------------------------------------------------------------------


class PersonalInfo(CamelModel):
    full_name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    location: Optional[str] = None
    website: Optional[HttpUrlStr] = None
    linkedin: Optional[HttpUrlStr] = None
    github: Optional[HttpUrlStr] = None
    summary: Optional[str] = None


class ExperienceEntry(CamelModel):
    position: str = Field(min_length=1)
    company: str = Field(min_length=1)
    location: Optional[str] = None
    start_date: str = Field(min_length=1)
    end_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None
    achievements: list[str] = Field(default_factory=list)


class EducationEntry(CamelModel):
    degree: str = Field(min_length=1)
    field: Optional[str] = None
    institution: str = Field(min_length=1)
    location: Optional[str] = None
    start_date: str = Field(min_length=1)
    end_date: Optional[str] = None
    current: bool = False
    gpa: Optional[str] = None
    achievements: list[str] = Field(default_factory=list)


class SkillEntry(CamelModel):
    name: str = Field(min_length=1)
    level: Optional[str] = None
    category: str = Field(min_length=1)


class ResumeProjectEntry(CamelModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    technologies: list[str] = Field(default_factory=list)
    url: Optional[HttpUrlStr] = None
    github: Optional[HttpUrlStr] = None
    highlights: list[str] = Field(default_factory=list)


class ResumeCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    personal_info: PersonalInfo
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[SkillEntry] = Field(default_factory=list)
    projects: list[ResumeProjectEntry] = Field(default_factory=list)
    template: str = Field(default="modern", min_length=1, max_length=50)

    def domain_fields(self) -> dict:
        """Keyword arguments for ResumeService.create()."""
        return {name: _wire(getattr(self, name)) for name in type(self).model_fields}


class ResumeUpdate(CamelModel):
    title: str = Field(default=None, min_length=1, max_length=100)
    personal_info: PersonalInfo = None
    experience: list[ExperienceEntry] = None
    education: list[EducationEntry] = None
    skills: list[SkillEntry] = None
    projects: list[ResumeProjectEntry] = None
    template: str = Field(default=None, min_length=1, max_length=50)

    def domain_fields(self) -> dict:
        """Only the fields the caller supplied, ready for ResumePatch."""
        return {name: _wire(getattr(self, name)) for name in self.model_fields_set}


class ResumeOut(CamelModel):
    """Resume payload. Section contents are returned exactly as stored."""

    id: int
    title: str
    personal_info: dict
    experience: list[dict]
    education: list[dict]
    skills: list[dict]
    projects: list[dict]
    template: str
    user_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, resume: Resume) -> "ResumeOut":
        return cls(
            id=resume.id,
            title=resume.title,
            personal_info=resume.personal_info,
            experience=resume.experience,
            education=resume.education,
            skills=resume.skills,
            projects=resume.projects,
            template=resume.template,
            user_id=resume.user_id,
            created_at=resume.created_at,
            updated_at=resume.updated_at,
        )


class ResumeData(CamelModel):
    resume: ResumeOut


class ResumeOwner(CamelModel):
    name: str
    email: str


class RecentResumeRow(CamelModel):
    id: int
    title: str
    created_at: str
    user: ResumeOwner


class ResumeStats(CamelModel):
    total_resumes: int


class ResumeAnalytics(CamelModel):
    stats: ResumeStats
    recent_resumes: list[RecentResumeRow]

    @classmethod
    def from_overview(cls, overview: dict) -> "ResumeAnalytics":
        return cls(
            stats=ResumeStats(total_resumes=overview["stats"]["total"]),
            recent_resumes=[RecentResumeRow(**row) for row in overview["recent"]],
        )
