"""Chat schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class StudentChatStart(BaseModel):
    student_id: str
    subject: Optional[str] = None
    selected_chapters: list[str] = []


class ParentChatStart(BaseModel):
    parent_id: str
    student_id: str
    subject: Optional[str] = None


class ChatStartResponse(BaseModel):
    session_id: str
    user_type: str
    student_id: str
    subject_context: Optional[str] = None
    selected_chapters: list[str]


class ChatMessageRequest(BaseModel):
    session_id: str
    message: str
    subject: Optional[str] = None
    chapter: Optional[str] = None


class ChatMessageResponse(BaseModel):
    session_id: str
    response: str
    tools_used: list[dict]
    sources: list[dict]
    needs_teacher_attention: bool


class ChatHistoryResponse(BaseModel):
    session_id: str
    status: str
    messages: list[dict]


class ChatSessionSummary(BaseModel):
    session_id: str
    user_type: str
    status: str
    last_activity: datetime
    message_count: int
    subject_context: Optional[str] = None
    needs_teacher_attention: bool
    last_message: Optional[str] = None


class AttentionSession(BaseModel):
    session_id: str
    student: dict
    last_activity: datetime
    message_count: int
    recent_messages: list[dict]
