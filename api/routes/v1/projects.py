"""
api/routes/v1/projects.py -- Project showcase REST endpoints.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /api/projects                        -- paginated list
  GET    /api/projects/technologies           -- technology frequency table
  GET    /api/projects/analytics/overview     -- admin analytics
  POST   /api/projects/reorder                -- bulk display order (admin)
  GET    /api/projects/{slug}                 -- one project
  POST   /api/projects                        -- create (admin)
  PATCH  /api/projects/{project_id}           -- partial update (admin, ownership checked)
  DELETE /api/projects/{project_id}           -- delete (admin, ownership checked)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    DataResponse,
    ListResponse,
    MessageResponse,
    NameCount,
    PaginationInfo,
    ProjectAnalytics,
    ProjectCreate,
    ProjectData,
    ProjectOut,
    ProjectStatus,
    ProjectUpdate,
    ReorderRequest,
    TechnologiesData,
)
from auth.dependencies import require_admin
from auth.models import Identity
from core.models import ProjectFilters, ProjectPatch
from portfolio import analytics
from portfolio.lifecycle import ProjectService

# Auth policy:
# - GET    /projects, /projects/{slug}, /projects/technologies: public
# - GET    /projects/analytics/overview:                        requires admin
# - POST   /projects/reorder:                                   requires admin
# - POST/PATCH/DELETE:                                          requires admin; update/delete also check ownership
router = APIRouter()


def _service(request: Request) -> ProjectService:
    return request.app.state.project_service


@router.get("/projects", response_model=ListResponse[ProjectOut])
def list_projects(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, description="Page size, clamped to 1..100."),
    search: Optional[str] = None,
    technology: Optional[str] = None,
    status: Optional[ProjectStatus] = None,
    featured: bool = False,
    author: Optional[int] = None,
) -> ListResponse[ProjectOut]:
    """List projects: featured first, then display order, then newest."""
    filters = ProjectFilters(
        search=search or None,
        technology=technology or None,
        status=status,
        featured=featured,
        author_id=author,
    )
    result = _service(request).list(filters, page, limit)
    return ListResponse(
        data=[ProjectOut.from_domain(p) for p in result.items],
        pagination=PaginationInfo.from_page(result),
    )


@router.get("/projects/technologies", response_model=DataResponse[TechnologiesData])
def list_technologies(request: Request) -> DataResponse[TechnologiesData]:
    """How many projects use each technology, most used first."""
    rows = analytics.technology_frequencies(request.app.state.content_store)
    return DataResponse(data=TechnologiesData(technologies=[NameCount(**r) for r in rows]))


@router.get("/projects/analytics/overview", response_model=DataResponse[ProjectAnalytics])
def project_analytics(request: Request, _admin: Identity = Depends(require_admin)) -> DataResponse[ProjectAnalytics]:
    overview = analytics.project_overview(request.app.state.content_store)
    return DataResponse(data=ProjectAnalytics.from_overview(overview))


@router.post("/projects/reorder", response_model=MessageResponse)
def reorder_projects(
    request: Request,
    body: ReorderRequest,
    identity: Identity = Depends(require_admin),
) -> MessageResponse:
    """Set each listed project's order to its position in projectIds.

    Unlisted projects keep their order. Unknown or duplicate ids fail the
    whole request before anything is written.
    """
    _service(request).reorder(identity, body.project_ids)
    return MessageResponse(message="Projects reordered successfully")


@router.get("/projects/{slug}", response_model=DataResponse[ProjectData])
def get_project(request: Request, slug: str) -> DataResponse[ProjectData]:
    project = _service(request).get_by_slug(slug)
    return DataResponse(data=ProjectData(project=ProjectOut.from_domain(project)))


@router.post("/projects", response_model=DataResponse[ProjectData], status_code=201)
def create_project(
    request: Request,
    body: ProjectCreate,
    identity: Identity = Depends(require_admin),
) -> DataResponse[ProjectData]:
    project = _service(request).create(identity.id, **body.model_dump())
    return DataResponse(
        message="Project created successfully", data=ProjectData(project=ProjectOut.from_domain(project))
    )


@router.patch("/projects/{project_id}", response_model=DataResponse[ProjectData])
def update_project(
    request: Request,
    project_id: int,
    body: ProjectUpdate,
    identity: Identity = Depends(require_admin),
) -> DataResponse[ProjectData]:
    patch = ProjectPatch(**body.model_dump(exclude_unset=True))
    project = _service(request).update(identity, project_id, patch)
    return DataResponse(
        message="Project updated successfully", data=ProjectData(project=ProjectOut.from_domain(project))
    )


@router.delete("/projects/{project_id}", response_model=MessageResponse)
def delete_project(request: Request, project_id: int, identity: Identity = Depends(require_admin)) -> MessageResponse:
    _service(request).delete(identity, project_id)
    return MessageResponse(message="Project deleted successfully")
