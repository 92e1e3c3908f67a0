"""Storing student answers and reading them back."""

import json
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from teachmate.errors import NotFoundError, StateConflictError, ValidationError
from teachmate.models.assessment import Assessment
from teachmate.models.student import Student
from teachmate.models.submission import Submission
from teachmate.services.catalog_service import get_or_404

ALREADY_SUBMITTED = "You have already submitted this assessment"


def submit(
    db: Session,
    assessment_id: str,
    student_id: str,
    answers: list[dict],
    time_taken: Optional[int] = None,
) -> Submission:
    """Store ungraded answers; grading happens later.

    ``answers`` is a list of ``{question_id, student_answer}``.
    """
    assessment = get_or_404(db, Assessment, assessment_id, "Assessment")
    if assessment.status != "Active":
        raise ValidationError(f"Assessment is not active. Current status: {assessment.status}")
    get_or_404(db, Student, student_id, "Student")

    existing = (
        db.query(Submission)
        .filter(Submission.assessment_id == assessment_id, Submission.student_id == student_id)
        .first()
    )
    if existing:
        raise StateConflictError(ALREADY_SUBMITTED)

    if assessment.question_set is None or not assessment.question_set.questions:
        raise NotFoundError("Questions not found for this assessment")
    questions = assessment.question_set.question_map()

    stored = []
    seen = set()
    total_marks = 0.0
    for answer in answers:
        qid = answer.get("question_id")
        question = questions.get(qid)
        if question is None:
            raise ValidationError(f"Question {qid} not found")
        if qid in seen:
            raise ValidationError(f"Question {qid} answered more than once")
        seen.add(qid)
        total_marks += question["marks"]
        stored.append({
            "question_id": question["question_id"],
            "question_text": question["question"],
            "student_answer": answer.get("student_answer"),
            "correct_answer": None,
            "marks_obtained": 0,
            "max_marks": question["marks"],
            "is_correct": False,
            "ai_feedback": None,
        })

    submission = Submission(
        assessment_id=assessment_id,
        student_id=student_id,
        answers_json=json.dumps(stored),
        total_marks=total_marks,
        status="Submitted",
        time_taken=time_taken or 0,
    )
    db.add(submission)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent submit for the same pair
        db.rollback()
        raise StateConflictError(ALREADY_SUBMITTED) from e
    db.refresh(submission)
    return submission


def get_submission(db: Session, submission_id: str) -> Submission:
    return get_or_404(db, Submission, submission_id, "Submission")


def list_for_assessment(db: Session, assessment_id: str, status: Optional[str] = None) -> list[Submission]:
    q = db.query(Submission).filter(Submission.assessment_id == assessment_id)
    if status:
        q = q.filter(Submission.status == status)
    return q.order_by(Submission.submitted_at.desc()).all()


def list_for_student(db: Session, student_id: str, status: Optional[str] = None) -> list[Submission]:
    q = db.query(Submission).filter(Submission.student_id == student_id)
    if status:
        q = q.filter(Submission.status == status)
    return q.order_by(Submission.submitted_at.desc()).all()


def list_ungraded(db: Session) -> list[Submission]:
    """Submitted (not yet graded) submissions, oldest first."""
    return (
        db.query(Submission)
        .filter(Submission.status == "Submitted")
        .order_by(Submission.submitted_at.asc())
        .all()
    )


def submission_status(db: Session, assessment_id: str, student_id: str) -> dict:
    submission = (
        db.query(Submission)
        .filter(Submission.assessment_id == assessment_id, Submission.student_id == student_id)
        .first()
    )
    if not submission:
        return {"submitted": False, "submission": None}
    return {
        "submitted": True,
        "submission": {
            "id": submission.id,
            "status": submission.status,
            "submitted_at": submission.submitted_at,
            "total_marks_obtained": submission.total_marks_obtained,
            "total_marks": submission.total_marks,
            "percentage": submission.percentage,
        },
    }
