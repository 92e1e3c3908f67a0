"""Assessment and question schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AssessmentGenerate(BaseModel):
    lesson_plan_id: str
    assessment_type: str = "chapter"  # session | chapter
    session_number: Optional[int] = None
    topics: Optional[list[str]] = None
    opens_on: Optional[datetime] = None
    due_date: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=1)
    title: Optional[str] = None
    class_id: Optional[str] = None


class AssessmentResponse(BaseModel):
    id: str
    title: str
    assessment_type: str
    lesson_plan_id: Optional[str] = None
    session_number: Optional[int] = None
    teacher_id: Optional[str] = None
    class_id: Optional[str] = None
    class_name: Optional[str] = None
    grade_id: str
    grade_name: Optional[str] = None
    subject_id: str
    subject_name: Optional[str] = None
    topics: list[str]
    opens_on: datetime
    due_date: datetime
    status: str
    total_marks: float
    duration: int
    instructions: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QuestionOption(BaseModel):
    option: str
    is_correct: Optional[bool] = None
    explanation: Optional[str] = None


class Question(BaseModel):
    question_id: str
    question: str
    input_type: str
    answers: list[QuestionOption]
    marks: float
    difficulty: str
    topic: str
    order: int


class QuestionsResponse(BaseModel):
    assessment_id: str
    total_marks: float
    questions: list[Question]


class AssessmentStatusUpdate(BaseModel):
    status: str


class SweepResponse(BaseModel):
    opened: int
    closed: int
    graded: int
