"""
core/models.py -- Domain dataclasses for portfolio content.

Pure data containers. Stores map rows onto these; services in
portfolio/lifecycle.py do the work; api/models.py maps them to the wire
format. Nothing here imports from api/, auth/, or portfolio/.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any, Generic, Optional, TypeVar

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
ROLES = (ROLE_USER, ROLE_ADMIN)

PROJECT_STATUSES = ("IN_PROGRESS", "COMPLETED", "ARCHIVED")

DEFAULT_RESUME_TEMPLATE = "modern"

MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Patch sentinel
# ---------------------------------------------------------------------------


class _Unset:
    """Marker for "field not supplied" in a patch. Distinct from None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class _Patch:
    """Mixin for patch dataclasses: every field defaults to UNSET."""

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were supplied (None included)."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class AuthorSummary:
    """Public projection of a content owner, embedded in blog/project payloads."""

    id: int
    name: str
    email: str
    avatar: Optional[str] = None


@dataclass
class Blog:
    title: str
    slug: str
    content: str
    author_id: int
    id: Optional[int] = None
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool = False
    featured: bool = False
    views: int = 0
    read_time: Optional[int] = None
    tags: list[str] = field(default_factory=list)
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    published_at: Optional[str] = None  # ISO 8601; set iff published
    created_at: str = ""
    updated_at: str = ""
    author: Optional[AuthorSummary] = None


@dataclass
class Project:
    title: str
    slug: str
    description: str
    author_id: int
    id: Optional[int] = None
    content: Optional[str] = None
    thumbnail: Optional[str] = None
    images: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    status: str = "COMPLETED"  # IN_PROGRESS | COMPLETED | ARCHIVED
    featured: bool = False
    order: int = 0
    created_at: str = ""
    updated_at: str = ""
    author: Optional[AuthorSummary] = None


@dataclass
class Resume:
    """A user's resume. Section payloads keep their wire (camelCase) keys.

    personal_info is a dict with fullName, email, phone, location, website,
    linkedin, github, summary. The list sections hold dicts shaped like the
    request sub-schemas in api/models.py.
    """

    title: str
    personal_info: dict
    user_id: int
    id: Optional[int] = None
    experience: list[dict] = field(default_factory=list)
    education: list[dict] = field(default_factory=list)
    skills: list[dict] = field(default_factory=list)
    projects: list[dict] = field(default_factory=list)
    template: str = DEFAULT_RESUME_TEMPLATE
    created_at: str = ""
    updated_at: str = ""


# ---------------------------------------------------------------------------
# Patches (tri-state partial updates: UNSET / None / value)
# ---------------------------------------------------------------------------


@dataclass
class BlogPatch(_Patch):
    title: Any = UNSET
    content: Any = UNSET
    excerpt: Any = UNSET
    cover_image: Any = UNSET
    published: Any = UNSET
    featured: Any = UNSET
    tags: Any = UNSET
    seo_title: Any = UNSET
    seo_description: Any = UNSET


@dataclass
class ProjectPatch(_Patch):
    title: Any = UNSET
    description: Any = UNSET
    content: Any = UNSET
    thumbnail: Any = UNSET
    images: Any = UNSET
    technologies: Any = UNSET
    features: Any = UNSET
    live_url: Any = UNSET
    github_url: Any = UNSET
    status: Any = UNSET
    featured: Any = UNSET
    order: Any = UNSET


@dataclass
class ResumePatch(_Patch):
    title: Any = UNSET
    personal_info: Any = UNSET
    experience: Any = UNSET
    education: Any = UNSET
    skills: Any = UNSET
    projects: Any = UNSET
    template: Any = UNSET


@dataclass
class ProfilePatch(_Patch):
    name: Any = UNSET
    avatar: Any = UNSET


# ---------------------------------------------------------------------------
# Filters and pagination
# ---------------------------------------------------------------------------


@dataclass
class BlogFilters:
    search: Optional[str] = None
    tag: Optional[str] = None
    featured: bool = False  # True filters to featured only; False applies no filter
    published: Optional[bool] = True  # None means drafts and published alike
    author_id: Optional[int] = None


@dataclass
class ProjectFilters:
    search: Optional[str] = None
    technology: Optional[str] = None
    status: Optional[str] = None
    featured: bool = False
    author_id: Optional[int] = None


@dataclass
class UserFilters:
    search: Optional[str] = None
    role: Optional[str] = None


T = TypeVar("T")


def clamp_page_size(limit: int) -> int:
    """Clamp a requested page size into 1..MAX_PAGE_SIZE."""
    return max(1, min(limit, MAX_PAGE_SIZE))


@dataclass
class Page(Generic[T]):
    """One page of a filtered, ordered listing."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
