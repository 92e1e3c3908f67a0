"""Voice service: Retell web calls and the speech-sized assistant tools."""

import json
import logging
import uuid
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from teachmate.agents import learner_tools, parent_assistant, student_assistant
from teachmate.clock import utcnow
from teachmate.config import settings
from teachmate.errors import NotFoundError
from teachmate.models.parent import Parent
from teachmate.models.student import Student
from teachmate.models.voice_call import VoiceCall
from teachmate.services import retell
from teachmate.services.catalog_service import get_or_404
from teachmate.services.chat_service import learner_profile
from teachmate.services.curriculum import extract_chapters, grade_number

logger = logging.getLogger(__name__)

VOICE_RESULT_LIMIT = 500
NO_CALL_CONTEXT = "I don't have your student information yet. Please start a proper call session first."


async def _start_call(db: Session, user_type: str, agent_id: str, student: Student,
                      parent: Optional[Parent], meta: dict) -> VoiceCall:
    call_id = str(uuid.uuid4())
    call_metadata = {"call_id": call_id, "user_type": user_type, "student_id": student.id, **meta}
    if parent:
        call_metadata["parent_id"] = parent.id
    web_call = await retell.create_web_call(agent_id, call_metadata)

    call = VoiceCall(
        call_id=call_id,
        retell_call_id=web_call["call_id"],
        access_token=web_call["access_token"],
        user_type=user_type,
        student_id=student.id,
        parent_id=parent.id if parent else None,
        status="initiated",
        meta_json=json.dumps(meta),
    )
    db.add(call)
    db.commit()
    db.refresh(call)
    logger.info("Started %s voice call %s", user_type, call_id)
    return call


async def start_student_call(db: Session, student_id: str, subject: Optional[str] = None,
                             selected_chapters: Optional[list] = None) -> VoiceCall:
    student = get_or_404(db, Student, student_id, "Student")
    meta = {
        "subject": subject,
        "selected_chapters": selected_chapters or [],
        "grade": student.grade_name,
        "class": student.class_name,
    }
    return await _start_call(db, "student", settings.RETELL_AGENT_ID_STUDENT, student, None, meta)


async def start_parent_call(db: Session, parent_id: str, student_id: str,
                            subject: Optional[str] = None) -> VoiceCall:
    parent = get_or_404(db, Parent, parent_id, "Parent")
    student = get_or_404(db, Student, student_id, "Student")
    meta = {"subject": subject, "child_name": student.full_name, "grade": student.grade_name}
    return await _start_call(db, "parent", settings.RETELL_AGENT_ID_PARENT, student, parent, meta)


def find_call(db: Session, call_id: Optional[str]) -> Optional[VoiceCall]:
    """Look a call up by our id or by the provider's id."""
    if not call_id:
        return None
    return (
        db.query(VoiceCall)
        .filter(or_(VoiceCall.call_id == call_id, VoiceCall.retell_call_id == call_id))
        .first()
    )


async def handle_webhook(db: Session, call_id: Optional[str], transcript: str) -> str:
    """Answer the latest caller utterance with the matching assistant."""
    call = find_call(db, call_id)
    if call is None:
        raise NotFoundError("Call not found")
    student = get_or_404(db, Student, call.student_id, "Student")
    meta = call.meta

    if call.user_type == "student":
        result = await student_assistant.chat(
            db, transcript, learner_profile(student, meta.get("subject")), [], meta.get("selected_chapters") or []
        )
    else:
        parent = get_or_404(db, Parent, call.parent_id, "Parent")
        result = await parent_assistant.chat(
            db, transcript, parent.name, learner_profile(student, meta.get("subject")), []
        )

    if call.status == "initiated":
        call.status = "ongoing"
        db.commit()
    return result["response"]


def call_history(db: Session, student_id: str, limit: int = 10) -> list[VoiceCall]:
    return (
        db.query(VoiceCall)
        .filter(VoiceCall.student_id == student_id)
        .order_by(VoiceCall.started_at.desc())
        .limit(limit)
        .all()
    )


def end_call(db: Session, call_id: str) -> VoiceCall:
    call = find_call(db, call_id)
    if call is None:
        raise NotFoundError("Call not found")
    call.status = "ended"
    call.ended_at = utcnow()
    db.commit()
    return call


# ── Voice functions ──────────────────────────────────────────────────────────
# Retell invokes these mid-call; every answer is a short sentence for TTS.

async def voice_search(db: Session, call_id: Optional[str], query: str, subject: Optional[str] = None) -> str:
    call = find_call(db, call_id)
    meta = call.meta if call else {}
    subject = subject or meta.get("subject") or "Science"
    chapters = extract_chapters(query, subject) or meta.get("selected_chapters") or []
    results = await learner_tools.search_knowledge_base(query, subject, grade_number(meta.get("grade")), chapters)
    if not results:
        return "I couldn't find specific information about that in the textbook. Let me explain it in general terms."
    return " ".join(r["content"] for r in results[:2])[:VOICE_RESULT_LIMIT]


def voice_progress(db: Session, call_id: Optional[str], subject: Optional[str] = None) -> str:
    call = find_call(db, call_id)
    if call is None or not call.student_id:
        return NO_CALL_CONTEXT
    progress = learner_tools.student_progress(db, call.student_id, subject or call.meta.get("subject"))
    if "message" in progress:
        return (
            "I don't have your assessment history yet. Once you complete some assessments, "
            "I can show you your progress."
        )
    weak = progress["weak_topics"][:2]
    advice = f"You might want to review: {', '.join(weak)}." if weak else "You're doing well overall!"
    return (
        f"You've completed {progress['total_assessments']} assessments with an average score of "
        f"{progress['average_score']}%. {advice}"
    )


def voice_upcoming(db: Session, call_id: Optional[str]) -> str:
    call = find_call(db, call_id)
    if call is None or not call.student_id:
        return NO_CALL_CONTEXT
    assessments = learner_tools.upcoming_assessments(db, call.student_id)
    if not isinstance(assessments, list) or not assessments:
        return "You don't have any upcoming assessments scheduled right now."

    upcoming = assessments[:3]
    plural = "s" if len(upcoming) > 1 else ""
    items = ". ".join(
        f"{a['subject']} on {a['opens_on'][:10]}, covering {' and '.join(a['topics'][:2])}"
        for a in upcoming
    )
    return f"You have {len(upcoming)} upcoming assessment{plural}. {items}"
