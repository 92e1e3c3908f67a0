"""Lesson plan service: persistence and lifecycle of generated plans."""

import json
import logging
from typing import Optional

from sqlalchemy.orm import Session

from teachmate.agents import content_curator, lesson_planner
from teachmate.clock import utcnow
from teachmate.errors import NotFoundError, StateConflictError, ValidationError, raise_for_result
from teachmate.models.chapter import Chapter
from teachmate.models.grade import Grade
from teachmate.models.lesson_plan import LESSON_PLAN_STATUSES, SESSION_COMPLETED, LessonPlan, LessonSession
from teachmate.models.subject import Subject
from teachmate.models.teacher import Teacher
from teachmate.services.catalog_service import get_or_404

logger = logging.getLogger(__name__)

# Forward-only; anything not listed (including staying put) is a conflict.
ALLOWED_TRANSITIONS = {
    "Draft": ("Active", "Completed", "Archived"),
    "Active": ("Completed", "Archived"),
    "Completed": ("Archived",),
    "Archived": (),
}


def _planner_inputs(db: Session, data: dict) -> dict:
    get_or_404(db, Teacher, data["teacher_id"], "Teacher")
    subject = get_or_404(db, Subject, data["subject_id"], "Subject")
    grade = get_or_404(db, Grade, data["grade_id"], "Grade")
    chapter = get_or_404(db, Chapter, data["chapter_id"], "Chapter")
    return {
        "grade_name": grade.grade_name,
        "subject_name": subject.subject_name,
        "chapter_name": chapter.chapter_name,
        "sessions": data["sessions"],
        "session_duration": data.get("session_duration"),
    }


async def preview(db: Session, data: dict) -> dict:
    """Run the planner without saving anything."""
    result = await lesson_planner.generate_plan(_planner_inputs(db, data))
    raise_for_result(result, "Failed to generate lesson plan")
    return {**result["plan"], "chunks_used": result["chunks_used"]}


def create_from_plan(db: Session, data: dict, plan: dict) -> LessonPlan:
    """Save a planner result as a Draft plan with one row per session."""
    details = plan["session_details"]
    if len(details) != data["sessions"]:
        raise ValidationError(
            f"Lesson plan has {len(details)} sessions but total_sessions is {data['sessions']}"
        )

    lesson_plan = LessonPlan(
        teacher_id=data["teacher_id"],
        subject_id=data["subject_id"],
        grade_id=data["grade_id"],
        chapter_id=data["chapter_id"],
        chapter_number=data["chapter_number"],
        total_sessions=data["sessions"],
        session_duration=data.get("session_duration") or lesson_planner.DEFAULT_DURATION,
        overall_objectives_json=json.dumps(plan.get("overall_objectives", [])),
        prerequisites_json=json.dumps(plan.get("prerequisites", [])),
        learning_outcomes_json=json.dumps(plan.get("learning_outcomes", [])),
        status="Draft",
    )
    lesson_plan.sessions = [
        LessonSession(
            session_number=d["session_number"],
            learning_objectives_json=json.dumps(d.get("learning_objectives", [])),
            topics_covered_json=json.dumps(d.get("topics_covered", [])),
            teaching_flow_json=json.dumps(d.get("teaching_flow", [])),
        )
        for d in details
    ]
    db.add(lesson_plan)
    db.commit()
    db.refresh(lesson_plan)
    logger.info("Lesson plan %s saved with %d sessions", lesson_plan.id, lesson_plan.total_sessions)
    return lesson_plan


async def generate(db: Session, data: dict) -> LessonPlan:
    result = await lesson_planner.generate_plan(_planner_inputs(db, data))
    raise_for_result(result, "Failed to generate lesson plan")
    return create_from_plan(db, data, result["plan"])


def get_lesson_plan(db: Session, plan_id: str) -> LessonPlan:
    return get_or_404(db, LessonPlan, plan_id, "Lesson plan")


def list_for_teacher(
    db: Session,
    teacher_id: str,
    status: Optional[str] = None,
    subject_id: Optional[str] = None,
    grade_id: Optional[str] = None,
) -> list[LessonPlan]:
    q = db.query(LessonPlan).filter(LessonPlan.teacher_id == teacher_id)
    if status:
        q = q.filter(LessonPlan.status == status)
    if subject_id:
        q = q.filter(LessonPlan.subject_id == subject_id)
    if grade_id:
        q = q.filter(LessonPlan.grade_id == grade_id)
    return q.order_by(LessonPlan.created_at.desc()).all()


def delete_lesson_plan(db: Session, plan_id: str) -> None:
    db.delete(get_lesson_plan(db, plan_id))
    db.commit()


def update_status(db: Session, plan_id: str, status: str) -> LessonPlan:
    if status not in LESSON_PLAN_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(LESSON_PLAN_STATUSES)}")

    lesson_plan = get_lesson_plan(db, plan_id)
    if status not in ALLOWED_TRANSITIONS[lesson_plan.status]:
        raise StateConflictError(f"Cannot change lesson plan status from {lesson_plan.status} to {status}")

    lesson_plan.status = status
    db.commit()
    db.refresh(lesson_plan)
    return lesson_plan


def complete_session(db: Session, plan_id: str, session_number: int) -> tuple[LessonSession, bool]:
    """Mark one session Completed.

    Returns ``(session, all_completed)``; re-completing raises
    StateConflictError and leaves the row untouched.
    """
    lesson_plan = get_lesson_plan(db, plan_id)
    session = lesson_plan.get_session(session_number)
    if session is None:
        raise NotFoundError(f"Session {session_number} not found in lesson plan")
    if session.status == SESSION_COMPLETED:
        raise StateConflictError(f"Session {session_number} is already completed")

    session.status = SESSION_COMPLETED
    session.completed_at = utcnow()
    db.commit()
    db.refresh(lesson_plan)
    return session, lesson_plan.all_sessions_completed()


def apply_curated_resources(db: Session, lesson_plan: LessonPlan, videos: list[dict], simulations: list[dict]) -> dict:
    """Distribute curated resources onto matching sessions and persist them."""
    per_session = content_curator.distribute_to_sessions(
        {s.session_number: s.topics_covered for s in lesson_plan.sessions},
        videos,
        simulations,
    )
    for session in lesson_plan.sessions:
        session.resources_json = json.dumps(per_session[session.session_number])
    lesson_plan.recommended_videos_json = json.dumps(videos)
    db.commit()
    logger.info(
        "Lesson plan %s: stored %d videos and %d simulations",
        lesson_plan.id, len(videos), len(simulations),
    )
    return {
        "total_videos": len(videos),
        "total_simulations": len(simulations),
        "sessions_updated": len(per_session),
    }
