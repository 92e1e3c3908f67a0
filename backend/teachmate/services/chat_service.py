"""Chat service: conversation persistence around the two assistants."""

import json
import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from teachmate.agents import parent_assistant, student_assistant
from teachmate.clock import utcnow
from teachmate.errors import ExternalDependencyError, NotFoundError, StateConflictError, ValidationError
from teachmate.models.chat_conversation import ChatConversation
from teachmate.models.parent import Parent
from teachmate.models.student import Student
from teachmate.services.catalog_service import get_or_404

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10


def learner_profile(student: Student, subject: Optional[str] = None) -> dict:
    """Plain-dict view of a student handed to the assistants."""
    return {
        "student_id": student.id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "grade_name": student.grade_name,
        "grade_id": student.grade_id,
        "class_name": student.class_name,
        "class_id": student.class_id,
        "subject": subject,
    }


def start_student_chat(
    db: Session,
    student_id: str,
    subject: Optional[str] = None,
    selected_chapters: Optional[list] = None,
) -> ChatConversation:
    get_or_404(db, Student, student_id, "Student")
    conversation = ChatConversation(
        session_id=str(uuid.uuid4()),
        user_type="student",
        student_id=student_id,
        subject_context=subject,
        selected_chapters_json=json.dumps(selected_chapters or []),
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


def start_parent_chat(db: Session, parent_id: str, student_id: str, subject: Optional[str] = None) -> ChatConversation:
    parent = get_or_404(db, Parent, parent_id, "Parent")
    student = get_or_404(db, Student, student_id, "Student")
    if student not in parent.children:
        raise ValidationError("Student is not linked to this parent")
    conversation = ChatConversation(
        session_id=str(uuid.uuid4()),
        user_type="parent",
        parent_id=parent_id,
        student_id=student_id,
        subject_context=subject,
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


def get_conversation(db: Session, session_id: str) -> ChatConversation:
    conversation = db.query(ChatConversation).filter(ChatConversation.session_id == session_id).first()
    if not conversation:
        raise NotFoundError("Chat session not found")
    return conversation


async def send_message(
    db: Session,
    session_id: str,
    message: str,
    subject: Optional[str] = None,
    chapter: Optional[str] = None,
) -> dict:
    if not message or not message.strip():
        raise ValidationError("Message cannot be empty")
    conversation = get_conversation(db, session_id)
    if conversation.status != "Active":
        raise StateConflictError(f"Chat session is {conversation.status}")
    student = get_or_404(db, Student, conversation.student_id, "Student")

    messages = conversation.messages
    history = [{"role": m["role"], "content": m["content"]} for m in messages[-HISTORY_WINDOW:]]

    if conversation.user_type == "student":
        chapters = [chapter] if chapter else conversation.selected_chapters
        profile = learner_profile(student, subject or conversation.subject_context)
        result = await student_assistant.chat(db, message, profile, history, chapters)
        if student_assistant.needs_attention(message):
            conversation.needs_teacher_attention = True
    else:
        parent = get_or_404(db, Parent, conversation.parent_id, "Parent")
        profile = learner_profile(student, conversation.subject_context)
        result = await parent_assistant.chat(db, message, parent.name, profile, history)

    if not result["success"]:
        logger.error("Assistant failed for chat %s: %s", session_id, result.get("error"))
        raise ExternalDependencyError("Failed to generate response")

    now = utcnow().isoformat()
    messages.append({"role": "user", "content": message, "timestamp": now})
    messages.append({
        "role": "assistant",
        "content": result["response"],
        "timestamp": now,
        "sources": result.get("sources", []),
    })
    conversation.messages_json = json.dumps(messages)
    conversation.last_activity = utcnow()
    db.commit()

    return {
        "session_id": session_id,
        "response": result["response"],
        "tools_used": result.get("tools_used", []),
        "sources": result.get("sources", []),
        "needs_teacher_attention": conversation.needs_teacher_attention,
    }


def student_sessions(db: Session, student_id: str) -> list[dict]:
    conversations = (
        db.query(ChatConversation)
        .filter(ChatConversation.student_id == student_id)
        .order_by(ChatConversation.last_activity.desc())
        .all()
    )
    sessions = []
    for conv in conversations:
        messages = conv.messages
        sessions.append({
            "session_id": conv.session_id,
            "user_type": conv.user_type,
            "status": conv.status,
            "last_activity": conv.last_activity,
            "message_count": len(messages),
            "subject_context": conv.subject_context,
            "needs_teacher_attention": conv.needs_teacher_attention,
            "last_message": messages[-1]["content"][:100] if messages else None,
        })
    return sessions


def close_session(db: Session, session_id: str) -> ChatConversation:
    conversation = get_conversation(db, session_id)
    conversation.status = "Closed"
    db.commit()
    return conversation


def sessions_needing_attention(db: Session) -> list[dict]:
    conversations = (
        db.query(ChatConversation)
        .filter(
            ChatConversation.needs_teacher_attention.is_(True),
            ChatConversation.teacher_notified.is_(False),
            ChatConversation.status == "Active",
        )
        .order_by(ChatConversation.last_activity.desc())
        .all()
    )
    return [
        {
            "session_id": conv.session_id,
            "student": {
                "id": conv.student.id,
                "name": conv.student.full_name,
                "grade": conv.student.grade_name,
                "class": conv.student.class_name,
            },
            "last_activity": conv.last_activity,
            "message_count": len(conv.messages),
            "recent_messages": conv.messages[-5:],
        }
        for conv in conversations
    ]
