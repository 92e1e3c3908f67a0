"""Assessment router: generation, questions and status."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user, require_teacher
from teachmate.models.teacher import Teacher
from teachmate.schemas.assessment import (
    AssessmentGenerate,
    AssessmentResponse,
    AssessmentStatusUpdate,
    QuestionsResponse,
    SweepResponse,
)
from teachmate.services import assessment_service, scheduler

router = APIRouter(prefix="/api/assessment", tags=["assessments"])

HIDDEN_FROM_STUDENTS = ("is_correct", "explanation")


@router.post("/generate", response_model=AssessmentResponse, status_code=201)
async def generate_assessment(
    req: AssessmentGenerate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return await assessment_service.generate(db, **req.model_dump())


@router.post("/scheduler/run", response_model=SweepResponse)
def run_scheduler(db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    """Run one assessment status sweep now."""
    return scheduler.sweep(db)


@router.get("/teacher/{teacher_id}", response_model=list[AssessmentResponse])
def list_teacher_assessments(
    teacher_id: str,
    status: Optional[str] = None,
    subject_id: Optional[str] = None,
    grade_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return assessment_service.list_for_teacher(db, teacher_id, status, subject_id, grade_id)


@router.get("/{assessment_id}", response_model=AssessmentResponse)
def get_assessment(assessment_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return assessment_service.get_assessment(db, assessment_id)


@router.get("/{assessment_id}/questions", response_model=QuestionsResponse, response_model_exclude_none=True)
def get_questions(
    assessment_id: str,
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    """Question list; answer keys are stripped for students and parents."""
    question_set = assessment_service.get_questions(db, assessment_id)
    questions = question_set.questions
    if current_user.role != "teacher":
        for question in questions:
            question["answers"] = [
                {k: v for k, v in option.items() if k not in HIDDEN_FROM_STUDENTS}
                for option in question["answers"]
            ]
    return QuestionsResponse(
        assessment_id=assessment_id,
        total_marks=question_set.total_marks,
        questions=questions,
    )


@router.patch("/{assessment_id}/status", response_model=AssessmentResponse)
def update_status(
    assessment_id: str,
    req: AssessmentStatusUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return assessment_service.update_status(db, assessment_id, req.status)
