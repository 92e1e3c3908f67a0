"""Voice call schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class StudentCallStart(BaseModel):
    student_id: str
    subject: Optional[str] = None
    selected_chapters: list[str] = []


class ParentCallStart(BaseModel):
    parent_id: str
    student_id: str
    subject: Optional[str] = None


class CallStartResponse(BaseModel):
    call_id: str
    access_token: str


class WebhookRequest(BaseModel):
    call_id: Optional[str] = None
    transcript: str = ""
    metadata: dict = {}


class WebhookResponse(BaseModel):
    response: str
    end_call: bool = False


class VoiceCallResponse(BaseModel):
    call_id: str
    user_type: str
    status: str
    started_at: datetime
    ended_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FunctionResult(BaseModel):
    result: str
