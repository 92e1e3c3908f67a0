"""Submission router: student answers and grading."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.errors import raise_for_result
from teachmate.middleware.auth import Account, get_current_user, require_teacher
from teachmate.models.teacher import Teacher
from teachmate.schemas.submission import (
    GradeResult,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionStatusResponse,
)
from teachmate.services import grading_service, submission_service
from teachmate.services.scheduler import grading_scheduler

router = APIRouter(prefix="/api/submission", tags=["submissions"])


def _check_can_view(current_user: Account, student_id: str) -> None:
    """Students see their own submissions, parents their children's, teachers all."""
    if current_user.role == "student" and current_user.id != student_id:
        raise HTTPException(status_code=403, detail="Students can only view their own submissions")
    if current_user.role == "parent" and student_id not in {c.id for c in current_user.children}:
        raise HTTPException(status_code=403, detail="Student is not linked to this parent")


@router.post("/submit", response_model=SubmissionResponse, status_code=201)
def submit(
    req: SubmissionCreate,
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    """Store a student's answers; grading runs later."""
    if current_user.role == "student" and current_user.id != req.student_id:
        raise HTTPException(status_code=403, detail="Students can only submit their own answers")
    if current_user.role == "parent":
        raise HTTPException(status_code=403, detail="Parents cannot submit assessments")
    answers = [a.model_dump() for a in req.answers]
    return submission_service.submit(db, req.assessment_id, req.student_id, answers, req.time_taken)


@router.get("/ungraded/all", response_model=list[SubmissionResponse])
def list_ungraded(db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return submission_service.list_ungraded(db)


@router.post("/grade/trigger")
async def trigger_grading(_: Teacher = Depends(require_teacher)):
    """Run one grading sweep now and report the counts."""
    result = await grading_scheduler.run()
    result.pop("results", None)
    return result


@router.get("/assessment/{assessment_id}", response_model=list[SubmissionResponse])
def list_for_assessment(
    assessment_id: str,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return submission_service.list_for_assessment(db, assessment_id, status)


@router.get("/student/{student_id}", response_model=list[SubmissionResponse])
def list_for_student(
    student_id: str,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    _check_can_view(current_user, student_id)
    return submission_service.list_for_student(db, student_id, status)


@router.get("/status/{assessment_id}/{student_id}", response_model=SubmissionStatusResponse)
def submission_status(
    assessment_id: str,
    student_id: str,
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    _check_can_view(current_user, student_id)
    return submission_service.submission_status(db, assessment_id, student_id)


@router.post("/{submission_id}/grade", response_model=GradeResult)
async def grade_now(submission_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    result = await grading_service.grade_submission(db, submission_id)
    return raise_for_result(result, "Failed to grade submission")


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: str,
    db: Session = Depends(get_db),
    current_user: Account = Depends(get_current_user),
):
    submission = submission_service.get_submission(db, submission_id)
    _check_can_view(current_user, submission.student_id)
    return submission
