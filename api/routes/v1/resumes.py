"""
api/routes/v1/resumes.py -- Resume REST endpoints and PDF export.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /api/resumes                      -- caller's resumes, newest first
  GET    /api/resumes/analytics/overview   -- admin analytics
  GET    /api/resumes/{resume_id}          -- one resume (owner only)
  GET    /api/resumes/{resume_id}/pdf      -- rendered PDF download (owner only)
  POST   /api/resumes                      -- create
  PATCH  /api/resumes/{resume_id}          -- partial update (owner only)
  DELETE /api/resumes/{resume_id}          -- delete (owner only)

Resumes are private. A resume owned by someone else is reported as not found.
"""

from fastapi import APIRouter, Depends, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from api.models import (
    DataResponse,
    ListResponse,
    MessageResponse,
    PaginationInfo,
    ResumeAnalytics,
    ResumeCreate,
    ResumeData,
    ResumeOut,
    ResumeUpdate,
)
from auth.dependencies import get_identity, require_admin
from auth.models import Identity
from core.models import ResumePatch
from core.text import slugify
from portfolio import analytics
from portfolio.lifecycle import ResumeService
from portfolio.render import ResumeRenderer

# Auth policy:
# - GET    /resumes/analytics/overview: requires admin
# - everything else:                   requires auth, owner only
router = APIRouter()


def _service(request: Request) -> ResumeService:
    return request.app.state.resume_service


@router.get("/resumes", response_model=ListResponse[ResumeOut])
def list_resumes(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, description="Page size, clamped to 1..100."),
    identity: Identity = Depends(get_identity),
) -> ListResponse[ResumeOut]:
    result = _service(request).list(identity, page, limit)
    return ListResponse(
        data=[ResumeOut.from_domain(r) for r in result.items],
        pagination=PaginationInfo.from_page(result),
    )


@router.get("/resumes/analytics/overview", response_model=DataResponse[ResumeAnalytics])
def resume_analytics(request: Request, _admin: Identity = Depends(require_admin)) -> DataResponse[ResumeAnalytics]:
    overview = analytics.resume_overview(request.app.state.content_store)
    return DataResponse(data=ResumeAnalytics.from_overview(overview))


@router.get("/resumes/{resume_id}", response_model=DataResponse[ResumeData])
def get_resume(request: Request, resume_id: int, identity: Identity = Depends(get_identity)) -> DataResponse[ResumeData]:
    resume = _service(request).get(identity, resume_id)
    return DataResponse(data=ResumeData(resume=ResumeOut.from_domain(resume)))


@router.get(
    "/resumes/{resume_id}/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}, "description": "Rendered resume PDF."}},
)
async def export_resume_pdf(request: Request, resume_id: int, identity: Identity = Depends(get_identity)) -> Response:
    """Render the resume through its template and return it as an A4 PDF attachment.

    The store lookup is blocking, so it runs in the threadpool; the browser
    work is awaited directly.
    """
    resume = await run_in_threadpool(_service(request).get, identity, resume_id)
    renderer: ResumeRenderer = request.app.state.renderer
    pdf = await renderer.render_pdf(resume)
    filename = f"{slugify(resume.title) or 'resume'}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/resumes", response_model=DataResponse[ResumeData], status_code=201)
def create_resume(
    request: Request,
    body: ResumeCreate,
    identity: Identity = Depends(get_identity),
) -> DataResponse[ResumeData]:
    resume = _service(request).create(identity.id, **body.domain_fields())
    return DataResponse(message="Resume created successfully", data=ResumeData(resume=ResumeOut.from_domain(resume)))


@router.patch("/resumes/{resume_id}", response_model=DataResponse[ResumeData])
def update_resume(
    request: Request,
    resume_id: int,
    body: ResumeUpdate,
    identity: Identity = Depends(get_identity),
) -> DataResponse[ResumeData]:
    """Replace the supplied sections wholesale; omitted sections are kept."""
    patch = ResumePatch(**body.domain_fields())
    resume = _service(request).update(identity, resume_id, patch)
    return DataResponse(message="Resume updated successfully", data=ResumeData(resume=ResumeOut.from_domain(resume)))


@router.delete("/resumes/{resume_id}", response_model=MessageResponse)
def delete_resume(request: Request, resume_id: int, identity: Identity = Depends(get_identity)) -> MessageResponse:
    _service(request).delete(identity, resume_id)
    return MessageResponse(message="Resume deleted successfully")
