"""On-demand resource curation."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teachmate.agents import content_curator
from teachmate.database import get_db
from teachmate.errors import raise_for_result
from teachmate.middleware.auth import require_teacher
from teachmate.models.teacher import Teacher
from teachmate.schemas.content import CurateRequest, CurateResponse
from teachmate.services import lesson_plan_service

router = APIRouter(prefix="/api/content", tags=["content"])


@router.post("/curate", response_model=CurateResponse)
async def curate(req: CurateRequest, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    """Find videos and simulations for topics, saving them onto the plan when given."""
    lesson_plan = lesson_plan_service.get_lesson_plan(db, req.lesson_plan_id) if req.lesson_plan_id else None
    result = raise_for_result(
        await content_curator.curate(req.topics, req.subject, req.grade),
        "Failed to curate content",
    )
    saved = None
    if lesson_plan is not None:
        saved = lesson_plan_service.apply_curated_resources(db, lesson_plan, result["videos"], result["simulations"])
    return CurateResponse(
        videos=result["videos"],
        simulations=result["simulations"],
        summary=result["summary"],
        saved=saved,
    )
