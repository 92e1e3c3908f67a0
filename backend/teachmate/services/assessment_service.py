"""Assessment service: generated question sets tied to lesson plans."""

import json
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from teachmate.agents import assessment_generator
from teachmate.clock import as_utc, utcnow
from teachmate.errors import NotFoundError, StateConflictError, ValidationError, raise_for_result
from teachmate.models.assessment import ASSESSMENT_STATUSES, ASSESSMENT_TYPES, Assessment, AssessmentQuestions
from teachmate.models.lesson_plan import SESSION_COMPLETED, LessonPlan
from teachmate.services.catalog_service import get_or_404

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 30
DEFAULT_WINDOW = timedelta(days=7)


def check_window(opens_on: Optional[datetime], due_date: Optional[datetime]) -> tuple[datetime, datetime]:
    """Fill defaults (now, now + 7 days) and require due_date after opens_on."""
    opens_on = as_utc(opens_on) or utcnow()
    due_date = as_utc(due_date) or utcnow() + DEFAULT_WINDOW
    if due_date <= opens_on:
        raise ValidationError("Due date must be after opening date")
    return opens_on, due_date


async def generate(
    db: Session,
    lesson_plan_id: str,
    assessment_type: str = "chapter",
    session_number: Optional[int] = None,
    topics: Optional[list[str]] = None,
    opens_on: Optional[datetime] = None,
    due_date: Optional[datetime] = None,
    duration: Optional[int] = None,
    title: Optional[str] = None,
    class_id: Optional[str] = None,
) -> Assessment:
    """Generate and save a Draft assessment for a whole chapter or one session."""
    if assessment_type not in ASSESSMENT_TYPES:
        raise ValidationError(f"assessment_type must be one of: {', '.join(ASSESSMENT_TYPES)}")
    opens_on, due_date = check_window(opens_on, due_date)

    lesson_plan = get_or_404(db, LessonPlan, lesson_plan_id, "Lesson plan")
    session = None
    if assessment_type == "session":
        if session_number is None:
            raise ValidationError("session_number is required for session assessments")
        session = lesson_plan.get_session(session_number)
        if session is None:
            raise NotFoundError(f"Session {session_number} not found in lesson plan")
        topics = topics or session.topics_covered
        title = title or f"Session {session_number} Assessment - {lesson_plan.chapter_name}"
    else:
        topics = topics or lesson_plan.all_topics()
        title = title or f"Chapter Assessment - {lesson_plan.chapter_name}"
    if not topics:
        raise ValidationError("No topics to assess")

    result = await assessment_generator.generate_questions(
        lesson_plan.subject_name, lesson_plan.grade_name, lesson_plan.chapter_number, topics
    )
    raise_for_result(result, "Failed to generate assessment")

    assessment = Assessment(
        title=title,
        assessment_type=assessment_type,
        lesson_plan_id=lesson_plan.id,
        session_id=session.id if session else None,
        teacher_id=lesson_plan.teacher_id,
        class_id=class_id,
        grade_id=lesson_plan.grade_id,
        subject_id=lesson_plan.subject_id,
        topics_json=json.dumps(topics),
        opens_on=opens_on,
        due_date=due_date,
        status="Draft",
        total_marks=result["total_marks"],
        duration=duration or DEFAULT_DURATION,
        instructions=f"Answer all questions. Total marks: {result['total_marks']:g}",
    )
    question_set = AssessmentQuestions()
    question_set.set_questions(result["questions"])
    assessment.question_set = question_set
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    logger.info(
        "Created %s assessment %s (%d questions, %g marks)",
        assessment_type, assessment.id, len(result["questions"]), assessment.total_marks,
    )
    return assessment


async def create_session_assessment(
    db: Session,
    lesson_plan_id: str,
    session_number: int,
    opens_on: datetime,
    due_date: datetime,
    duration: Optional[int] = None,
    class_id: Optional[str] = None,
) -> Assessment:
    """Session assessments need an explicit window and a Completed session."""
    if opens_on is None or due_date is None:
        raise ValidationError("opens_on and due_date are required")
    check_window(opens_on, due_date)

    lesson_plan = get_or_404(db, LessonPlan, lesson_plan_id, "Lesson plan")
    session = lesson_plan.get_session(session_number)
    if session is None:
        raise NotFoundError(f"Session {session_number} not found in lesson plan")
    if session.status != SESSION_COMPLETED:
        raise StateConflictError(f"Session {session_number} must be completed before creating its assessment")

    return await generate(
        db,
        lesson_plan_id,
        assessment_type="session",
        session_number=session_number,
        opens_on=opens_on,
        due_date=due_date,
        duration=duration,
        class_id=class_id,
    )


def get_assessment(db: Session, assessment_id: str) -> Assessment:
    return get_or_404(db, Assessment, assessment_id, "Assessment")


def get_questions(db: Session, assessment_id: str) -> AssessmentQuestions:
    question_set = get_assessment(db, assessment_id).question_set
    if question_set is None:
        raise NotFoundError("Questions not found for this assessment")
    return question_set


def list_for_teacher(
    db: Session,
    teacher_id: str,
    status: Optional[str] = None,
    subject_id: Optional[str] = None,
    grade_id: Optional[str] = None,
) -> list[Assessment]:
    q = db.query(Assessment).filter(Assessment.teacher_id == teacher_id)
    if status:
        q = q.filter(Assessment.status == status)
    if subject_id:
        q = q.filter(Assessment.subject_id == subject_id)
    if grade_id:
        q = q.filter(Assessment.grade_id == grade_id)
    return q.order_by(Assessment.created_at.desc()).all()


def update_status(db: Session, assessment_id: str, status: str) -> Assessment:
    """Manual override; any declared status is accepted."""
    if status not in ASSESSMENT_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(ASSESSMENT_STATUSES)}")
    assessment = get_assessment(db, assessment_id)
    assessment.status = status
    db.commit()
    db.refresh(assessment)
    return assessment
