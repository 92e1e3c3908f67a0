"""Lesson plan router: generation, lifecycle and session completion."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user, require_teacher
from teachmate.models.teacher import Teacher
from teachmate.schemas.assessment import AssessmentResponse
from teachmate.schemas.job import JobRef
from teachmate.schemas.lesson_plan import (
    LessonPlanCreated,
    LessonPlanGenerate,
    LessonPlanPreview,
    LessonPlanResponse,
    LessonPlanStatusResponse,
    LessonPlanStatusUpdate,
    LessonPlanSummary,
    SessionAssessmentCreate,
    SessionCompleteResponse,
)
from teachmate.services import assessment_service, jobs, lesson_plan_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lesson-plan", tags=["lesson-plans"])


@router.post("/generate", response_model=LessonPlanCreated, status_code=201)
async def generate_lesson_plan(
    req: LessonPlanGenerate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    """Generate and save a Draft plan, then curate its content in the background."""
    lesson_plan = await lesson_plan_service.generate(db, req.model_dump())
    job = jobs.launch(db, "curation", lesson_plan.id)
    return LessonPlanCreated(lesson_plan=LessonPlanResponse.model_validate(lesson_plan), job_id=job.id)


@router.post("/preview", response_model=LessonPlanPreview)
async def preview_lesson_plan(
    req: LessonPlanGenerate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return await lesson_plan_service.preview(db, req.model_dump())


@router.get("/teacher/{teacher_id}", response_model=list[LessonPlanSummary])
def list_teacher_plans(
    teacher_id: str,
    status: Optional[str] = None,
    subject_id: Optional[str] = None,
    grade_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return lesson_plan_service.list_for_teacher(db, teacher_id, status, subject_id, grade_id)


@router.get("/{plan_id}", response_model=LessonPlanResponse)
def get_lesson_plan(plan_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return lesson_plan_service.get_lesson_plan(db, plan_id)


@router.delete("/{plan_id}", status_code=204)
def delete_lesson_plan(plan_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    lesson_plan_service.delete_lesson_plan(db, plan_id)


@router.patch("/{plan_id}/status", response_model=LessonPlanStatusResponse)
async def update_status(
    plan_id: str,
    req: LessonPlanStatusUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    """Move the plan forward; entering Completed queues the chapter assessment."""
    lesson_plan = lesson_plan_service.update_status(db, plan_id, req.status)
    job_id = None
    if lesson_plan.status == "Completed":
        job_id = jobs.launch(db, "chapter_assessment", lesson_plan.id).id
    return LessonPlanStatusResponse(lesson_plan=LessonPlanResponse.model_validate(lesson_plan), job_id=job_id)


# ── Sessions ──────────────────────────────────────────────────────────────────

@router.patch("/{plan_id}/session/{session_number}/complete", response_model=SessionCompleteResponse)
def complete_session(
    plan_id: str,
    session_number: int,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    session, all_completed = lesson_plan_service.complete_session(db, plan_id, session_number)
    return SessionCompleteResponse(
        session_number=session.session_number,
        status=session.status,
        completed_at=session.completed_at,
        all_sessions_completed=all_completed,
    )


@router.post(
    "/{plan_id}/session/{session_number}/create-assessment",
    response_model=AssessmentResponse,
    status_code=201,
)
async def create_session_assessment(
    plan_id: str,
    session_number: int,
    req: SessionAssessmentCreate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return await assessment_service.create_session_assessment(
        db, plan_id, session_number, req.opens_on, req.due_date, req.duration, req.class_id
    )


# ── Background workflow ───────────────────────────────────────────────────────

@router.post("/{plan_id}/workflow", response_model=JobRef, status_code=202)
async def run_workflow(plan_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    """Curate content and, for Completed plans, generate the chapter assessment."""
    lesson_plan = lesson_plan_service.get_lesson_plan(db, plan_id)
    job = jobs.launch(db, "full_workflow", lesson_plan.id)
    return JobRef(job_id=job.id, status=job.status)


@router.post("/{plan_id}/curate", response_model=JobRef, status_code=202)
async def curate(plan_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    lesson_plan = lesson_plan_service.get_lesson_plan(db, plan_id)
    job = jobs.launch(db, "curation", lesson_plan.id)
    return JobRef(job_id=job.id, status=job.status)
