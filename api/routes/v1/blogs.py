"""
api/routes/v1/blogs.py -- Blog REST endpoints.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /api/blogs                      -- paginated list (optional auth)
  GET    /api/blogs/tags                 -- tag frequency table over published blogs
  GET    /api/blogs/analytics/overview   -- admin analytics
  GET    /api/blogs/{slug}               -- one blog; published reads count a view
  POST   /api/blogs                      -- create (admin)
  PATCH  /api/blogs/{blog_id}            -- partial update (admin, ownership checked)
  DELETE /api/blogs/{blog_id}            -- delete (admin, ownership checked)

The static paths /tags and /analytics/overview are registered before
/{slug} so they are not captured as slugs.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    BlogAnalytics,
    BlogCreate,
    BlogData,
    BlogOut,
    BlogUpdate,
    DataResponse,
    ListResponse,
    MessageResponse,
    NameCount,
    PaginationInfo,
    TagsData,
)
from auth.dependencies import require_admin, try_get_identity
from auth.models import Identity
from core.models import BlogFilters, BlogPatch
from portfolio import analytics
from portfolio.lifecycle import BlogService

# Auth policy:
# - GET    /blogs, /blogs/{slug}:       optional auth -- drafts only for owner/admin
# - GET    /blogs/tags:                 public
# - GET    /blogs/analytics/overview:   requires admin
# - POST/PATCH/DELETE:                  requires admin; update/delete also check ownership
router = APIRouter()

_PUBLISHED_FILTER = {"true": True, "false": False, "all": None}


def _service(request: Request) -> BlogService:
    return request.app.state.blog_service


@router.get("/blogs", response_model=ListResponse[BlogOut])
def list_blogs(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, description="Page size, clamped to 1..100."),
    search: Optional[str] = None,
    tag: Optional[str] = None,
    featured: bool = False,
    published: Literal["true", "false", "all"] = "true",
    author: Optional[int] = None,
    viewer: Optional[Identity] = Depends(try_get_identity),
) -> ListResponse[BlogOut]:
    """List blogs: featured first, then newest published, then newest created."""
    filters = BlogFilters(
        search=search or None,
        tag=tag or None,
        featured=featured,
        published=_PUBLISHED_FILTER[published],
        author_id=author,
    )
    result = _service(request).list(filters, page, limit, viewer)
    return ListResponse(
        data=[BlogOut.from_domain(b) for b in result.items],
        pagination=PaginationInfo.from_page(result),
    )


@router.get("/blogs/tags", response_model=DataResponse[TagsData])
def list_tags(request: Request) -> DataResponse[TagsData]:
    """How many published blogs use each tag, most used first."""
    rows = analytics.tag_frequencies(request.app.state.content_store)
    return DataResponse(data=TagsData(tags=[NameCount(**r) for r in rows]))


@router.get("/blogs/analytics/overview", response_model=DataResponse[BlogAnalytics])
def blog_analytics(request: Request, _admin: Identity = Depends(require_admin)) -> DataResponse[BlogAnalytics]:
    overview = analytics.blog_overview(request.app.state.content_store)
    return DataResponse(data=BlogAnalytics.from_overview(overview))


@router.get("/blogs/{slug}", response_model=DataResponse[BlogData])
def get_blog(
    request: Request,
    slug: str,
    viewer: Optional[Identity] = Depends(try_get_identity),
) -> DataResponse[BlogData]:
    """Fetch one blog. Each read of a published blog adds one view."""
    blog = _service(request).get_by_slug(slug, viewer)
    return DataResponse(data=BlogData(blog=BlogOut.from_domain(blog)))


@router.post("/blogs", response_model=DataResponse[BlogData], status_code=201)
def create_blog(
    request: Request,
    body: BlogCreate,
    identity: Identity = Depends(require_admin),
) -> DataResponse[BlogData]:
    blog = _service(request).create(identity.id, **body.model_dump())
    return DataResponse(message="Blog created successfully", data=BlogData(blog=BlogOut.from_domain(blog)))


@router.patch("/blogs/{blog_id}", response_model=DataResponse[BlogData])
def update_blog(
    request: Request,
    blog_id: int,
    body: BlogUpdate,
    identity: Identity = Depends(require_admin),
) -> DataResponse[BlogData]:
    """Partial update: only the fields present in the body change."""
    patch = BlogPatch(**body.model_dump(exclude_unset=True))
    blog = _service(request).update(identity, blog_id, patch)
    return DataResponse(message="Blog updated successfully", data=BlogData(blog=BlogOut.from_domain(blog)))


@router.delete("/blogs/{blog_id}", response_model=MessageResponse)
def delete_blog(request: Request, blog_id: int, identity: Identity = Depends(require_admin)) -> MessageResponse:
    _service(request).delete(identity, blog_id)
    return MessageResponse(message="Blog deleted successfully")
