"""
api/routes/v1/users.py -- User administration REST endpoints.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /api/users                      -- paginated user list with content counts (admin)
  GET    /api/users/analytics/overview   -- user analytics (admin)
  GET    /api/users/{user_id}            -- one user with content counts (self or admin)
  GET    /api/users/{user_id}/stats      -- per-user content statistics (self or admin)
  PATCH  /api/users/{user_id}/role       -- change role (admin, not on self)
  DELETE /api/users/{user_id}            -- delete account and owned content (admin, not on self)

Deleting a user cascades to their blogs, projects and resumes at the
database level (ON DELETE CASCADE).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    DataResponse,
    ListResponse,
    MessageResponse,
    PaginationInfo,
    Role,
    RoleUpdate,
    UserAnalytics,
    UserContentStats,
    UserData,
    UserOut,
    UserStats,
)
from auth.dependencies import get_identity, require_admin
from auth.models import Identity, User
from auth.policy import authorize_ownership
from auth.store import UserStore
from core.errors import NotFoundError, ValidationFailedError
from core.models import Page, UserFilters, clamp_page_size
from portfolio import analytics
from portfolio.store import ContentStore

logger = logging.getLogger("portfolio.api")

# Auth policy:
# - GET    /users, /users/analytics/overview:   requires admin
# - GET    /users/{id}, /users/{id}/stats:      self or admin
# - PATCH  /users/{id}/role, DELETE /users/{id}: requires admin, never on the caller's own account
router = APIRouter()


def _user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def _content_store(request: Request) -> ContentStore:
    return request.app.state.content_store


def _load_user(request: Request, user_id: int) -> User:
    user = _user_store(request).get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/users", response_model=ListResponse[UserOut])
def list_users(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, description="Page size, clamped to 1..100."),
    search: Optional[str] = None,
    role: Optional[Role] = None,
    _admin: Identity = Depends(require_admin),
) -> ListResponse[UserOut]:
    """List users newest first. search matches name or email, case-insensitive."""
    limit = clamp_page_size(limit)
    users, total = _user_store(request).list_users(UserFilters(search=search or None, role=role), page, limit)
    counts = _content_store(request).content_counts([u.id for u in users])
    return ListResponse(
        data=[UserOut.from_domain(u, counts.get(u.id, {})) for u in users],
        pagination=PaginationInfo.from_page(Page(items=users, total=total, page=page, limit=limit)),
    )


@router.get("/users/analytics/overview", response_model=DataResponse[UserAnalytics])
def user_analytics(request: Request, _admin: Identity = Depends(require_admin)) -> DataResponse[UserAnalytics]:
    overview = analytics.user_overview(_user_store(request))
    return DataResponse(
        data=UserAnalytics(
            stats=UserStats(**overview["stats"]),
            recent_users=[UserOut.from_domain(u) for u in overview["recent"]],
        )
    )


@router.get("/users/{user_id}", response_model=DataResponse[UserData])
def get_user(request: Request, user_id: int, identity: Identity = Depends(get_identity)) -> DataResponse[UserData]:
    authorize_ownership(identity, user_id, "Not authorized to view this profile")
    user = _load_user(request, user_id)
    counts = _content_store(request).content_counts([user.id])
    return DataResponse(data=UserData(user=UserOut.from_domain(user, counts.get(user.id, {}))))


@router.get("/users/{user_id}/stats", response_model=DataResponse[UserContentStats])
def get_user_stats(
    request: Request,
    user_id: int,
    identity: Identity = Depends(get_identity),
) -> DataResponse[UserContentStats]:
    authorize_ownership(identity, user_id, "Not authorized to view these statistics")
    _load_user(request, user_id)
    stats = analytics.user_stats(_content_store(request), user_id)
    return DataResponse(data=UserContentStats(**stats))


@router.patch("/users/{user_id}/role", response_model=DataResponse[UserData])
def update_user_role(
    request: Request,
    user_id: int,
    body: RoleUpdate,
    identity: Identity = Depends(require_admin),
) -> DataResponse[UserData]:
    """Promote or demote an account. Admins cannot change their own role."""
    if user_id == identity.id:
        raise ValidationFailedError("Cannot change your own role")
    _load_user(request, user_id)
    _user_store(request).update_user(user_id, role=body.role)
    logger.info("User %d role set to %s by admin %d", user_id, body.role, identity.id)
    return DataResponse(
        message="User role updated successfully",
        data=UserData(user=UserOut.from_domain(_load_user(request, user_id))),
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(request: Request, user_id: int, identity: Identity = Depends(require_admin)) -> MessageResponse:
    """Delete an account and everything it owns. Admins cannot delete themselves."""
    if user_id == identity.id:
        raise ValidationFailedError("Cannot delete your own account")
    _load_user(request, user_id)
    _user_store(request).delete_user(user_id)
    logger.info("User %d deleted by admin %d", user_id, identity.id)
    return MessageResponse(message="User deleted successfully")
