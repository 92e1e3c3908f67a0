"""Submission schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class AnswerIn(BaseModel):
    question_id: str
    student_answer: Any = None


class SubmissionCreate(BaseModel):
    assessment_id: str
    student_id: str
    answers: list[AnswerIn]
    time_taken: Optional[int] = Field(default=None, ge=0)


class AnswerOut(BaseModel):
    question_id: str
    question_text: str
    student_answer: Any = None
    correct_answer: Optional[str] = None
    marks_obtained: float
    max_marks: float
    is_correct: bool
    ai_feedback: Optional[str] = None


class SubmissionResponse(BaseModel):
    id: str
    assessment_id: str
    student_id: str
    answers: list[AnswerOut]
    total_marks_obtained: float
    total_marks: float
    percentage: float
    status: str
    submitted_at: datetime
    graded_at: Optional[datetime] = None
    time_taken: Optional[int] = None
    ai_grading_notes: Optional[str] = None

    class Config:
        from_attributes = True


class SubmissionBrief(BaseModel):
    id: str
    status: str
    submitted_at: datetime
    total_marks_obtained: float
    total_marks: float
    percentage: float


class SubmissionStatusResponse(BaseModel):
    submitted: bool
    submission: Optional[SubmissionBrief] = None


class GradeResult(BaseModel):
    success: bool
    submission_id: Optional[str] = None
    skipped: bool = False
    reason: Optional[str] = None
    marks: Optional[str] = None
    percentage: Optional[float] = None
