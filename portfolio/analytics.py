"""
portfolio/analytics.py -- Read-only aggregates over users and content.

Everything is computed on demand from the stores; nothing is cached or
maintained incrementally. Overview functions are for ADMIN callers (the
routes enforce that); the frequency tables back public endpoints.

Return values are plain dicts and domain objects. api/models.py shapes them
for the wire.
"""

from auth.store import UserStore
from core.text import count_frequencies
from portfolio.store import ContentStore

RECENT_LIMIT = 10


def blog_overview(store: ContentStore) -> dict:
    """Blog counts, the most recent blogs, and the most viewed published blogs."""
    return {
        "stats": store.get_blog_stats(),
        "recent": store.recent_blogs(RECENT_LIMIT),
        "top": store.top_blogs(RECENT_LIMIT),
    }


def project_overview(store: ContentStore) -> dict:
    return {
        "stats": store.get_project_stats(),
        "recent": store.recent_projects(RECENT_LIMIT),
    }


def resume_overview(store: ContentStore) -> dict:
    return {
        "stats": {"total": store.count_resumes()},
        "recent": store.recent_resumes(RECENT_LIMIT),
    }


def user_overview(user_store: UserStore) -> dict:
    overview = user_store.get_overview(RECENT_LIMIT)
    recent = overview.pop("recent_users")
    return {"stats": overview, "recent": recent}


def tag_frequencies(store: ContentStore) -> list[dict]:
    """[{"name", "count"}] over published blogs, most used first.

    A tag repeated within one blog counts once for that blog.
    """
    return count_frequencies(store.published_tag_lists())


def technology_frequencies(store: ContentStore) -> list[dict]:
    """[{"name", "count"}] over all projects, most used first."""
    return count_frequencies(store.technology_lists())


def user_stats(store: ContentStore, user_id: int) -> dict:
    """Per-user content statistics (self or ADMIN, enforced by the route)."""
    return store.get_user_stats(user_id)
