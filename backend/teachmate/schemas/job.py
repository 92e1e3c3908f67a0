"""Workflow job schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class JobResponse(BaseModel):
    id: str
    kind: str
    lesson_plan_id: Optional[str] = None
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobRef(BaseModel):
    job_id: str
    status: str
