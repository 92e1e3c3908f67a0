"""Chat router: student and parent assistant conversations."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user, require_teacher
from teachmate.middleware.rate_limit import CHAT_LIMIT, limiter
from teachmate.models.teacher import Teacher
from teachmate.schemas.chat import (
    AttentionSession,
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatSessionSummary,
    ChatStartResponse,
    ParentChatStart,
    StudentChatStart,
)
from teachmate.services import chat_service

router = APIRouter(prefix="/api/chat", tags=["chat"])


def _started(conversation) -> ChatStartResponse:
    return ChatStartResponse(
        session_id=conversation.session_id,
        user_type=conversation.user_type,
        student_id=conversation.student_id,
        subject_context=conversation.subject_context,
        selected_chapters=conversation.selected_chapters,
    )


@router.post("/student/start", response_model=ChatStartResponse, status_code=201)
def start_student_chat(req: StudentChatStart, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    conversation = chat_service.start_student_chat(db, req.student_id, req.subject, req.selected_chapters)
    return _started(conversation)


@router.post("/parent/start", response_model=ChatStartResponse, status_code=201)
def start_parent_chat(req: ParentChatStart, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    conversation = chat_service.start_parent_chat(db, req.parent_id, req.student_id, req.subject)
    return _started(conversation)


@router.post("/message", response_model=ChatMessageResponse)
@limiter.limit(CHAT_LIMIT)
async def send_message(
    request: Request,
    req: ChatMessageRequest,
    db: Session = Depends(get_db),
    _: Account = Depends(get_current_user),
):
    """One chat turn: the assistant may call tools before it answers."""
    return await chat_service.send_message(db, req.session_id, req.message, req.subject, req.chapter)


@router.get("/history/{session_id}", response_model=ChatHistoryResponse)
def history(session_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    conversation = chat_service.get_conversation(db, session_id)
    return ChatHistoryResponse(
        session_id=conversation.session_id,
        status=conversation.status,
        messages=conversation.messages,
    )


@router.get("/student/{student_id}/sessions", response_model=list[ChatSessionSummary])
def student_sessions(student_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return chat_service.student_sessions(db, student_id)


@router.patch("/close/{session_id}")
def close_session(session_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    conversation = chat_service.close_session(db, session_id)
    return {"session_id": conversation.session_id, "status": conversation.status}


@router.get("/attention", response_model=list[AttentionSession])
def needs_attention(db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    """Active student chats flagged for a teacher and not yet notified."""
    return chat_service.sessions_needing_attention(db)
