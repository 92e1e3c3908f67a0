"""Chat conversation model for the student and parent assistants."""

import json
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base

CHAT_STATUSES = ("Active", "Closed", "Archived")


class ChatConversation(Base):
    __tablename__ = "chat_conversations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String(36), unique=True, nullable=False, index=True)
    user_type = Column(String(20), nullable=False)  # student | parent
    student_id = Column(String(36), ForeignKey("students.id"), nullable=True, index=True)
    parent_id = Column(String(36), ForeignKey("parents.id"), nullable=True)
    messages_json = Column(Text, nullable=False, default="[]")  # [{role, content, timestamp, sources}]
    selected_chapters_json = Column(Text, nullable=False, default="[]")
    subject_context = Column(String(100), nullable=True)
    topic_context = Column(String(255), nullable=True)
    needs_teacher_attention = Column(Boolean, nullable=False, default=False)
    teacher_notified = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="Active")
    last_activity = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    student = relationship("Student")
    parent = relationship("Parent")

    @property
    def messages(self) -> list[dict]:
        return json.loads(self.messages_json or "[]")

    @property
    def selected_chapters(self) -> list:
        return json.loads(self.selected_chapters_json or "[]")
