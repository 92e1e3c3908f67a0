"""Content curation schemas."""

from typing import Optional

from pydantic import BaseModel


class CurateRequest(BaseModel):
    lesson_plan_id: Optional[str] = None
    subject: str
    grade: str
    topics: list[str]


class CurateResponse(BaseModel):
    videos: list[dict]
    simulations: list[dict]
    summary: dict
    saved: Optional[dict] = None
