"""Lesson plan schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LessonPlanGenerate(BaseModel):
    teacher_id: str
    subject_id: str
    grade_id: str
    chapter_id: str
    chapter_number: int
    sessions: int
    session_duration: Optional[int] = None


class SessionResources(BaseModel):
    videos: list[dict] = []
    simulations: list[dict] = []


class LessonSessionResponse(BaseModel):
    session_number: int
    learning_objectives: list[str]
    topics_covered: list[str]
    teaching_flow: list[dict]
    resources: SessionResources
    assessment_ids: list[str]
    status: Optional[str] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LessonPlanResponse(BaseModel):
    id: str
    teacher_id: str
    subject_id: str
    subject_name: Optional[str] = None
    grade_id: str
    grade_name: Optional[str] = None
    chapter_id: str
    chapter_name: Optional[str] = None
    chapter_number: int
    total_sessions: int
    session_duration: int
    sessions: list[LessonSessionResponse]
    overall_objectives: list[str]
    prerequisites: list[str]
    learning_outcomes: list[str]
    recommended_videos: list[dict]
    chapter_assessment_ids: list[str]
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LessonPlanSummary(BaseModel):
    id: str
    subject_name: Optional[str] = None
    grade_name: Optional[str] = None
    chapter_name: Optional[str] = None
    chapter_number: int
    total_sessions: int
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class LessonPlanPreview(BaseModel):
    session_details: list[dict]
    overall_objectives: list[str]
    prerequisites: list[str]
    learning_outcomes: list[str]
    chunks_used: int


class LessonPlanCreated(BaseModel):
    lesson_plan: LessonPlanResponse
    job_id: str


class LessonPlanStatusUpdate(BaseModel):
    status: str


class LessonPlanStatusResponse(BaseModel):
    lesson_plan: LessonPlanResponse
    job_id: Optional[str] = None


class SessionCompleteResponse(BaseModel):
    session_number: int
    status: str
    completed_at: datetime
    all_sessions_completed: bool


class SessionAssessmentCreate(BaseModel):
    opens_on: Optional[datetime] = None
    due_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=1)
    class_id: Optional[str] = None
