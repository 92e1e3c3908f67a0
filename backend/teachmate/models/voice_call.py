"""One Retell web call."""

import json
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base

VOICE_CALL_STATUSES = ("initiated", "ongoing", "ended", "failed")


class VoiceCall(Base):
    __tablename__ = "voice_calls"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    call_id = Column(String(36), unique=True, nullable=False, index=True)
    retell_call_id = Column(String(255), nullable=True)
    access_token = Column(Text, nullable=True)
    user_type = Column(String(20), nullable=False)  # student | parent
    student_id = Column(String(36), ForeignKey("students.id"), nullable=True, index=True)
    parent_id = Column(String(36), ForeignKey("parents.id"), nullable=True)
    status = Column(String(20), nullable=False, default="initiated")
    meta_json = Column(Text, nullable=False, default="{}")
    started_at = Column(DateTime, nullable=False, default=utcnow)
    ended_at = Column(DateTime, nullable=True)

    # Relationships
    student = relationship("Student")
    parent = relationship("Parent")

    @property
    def meta(self) -> dict:
        return json.loads(self.meta_json or "{}")
