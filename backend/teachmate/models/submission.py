"""Submission model: one student's answers to one assessment."""

import json
import uuid

from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base

SUBMISSION_STATUSES = ("Submitted", "Grading", "Graded")


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("assessment_id", "student_id", name="uq_submission_per_student"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=False, index=True)
    # [{question_id, question_text, student_answer, correct_answer, marks_obtained, max_marks, is_correct, ai_feedback}]
    answers_json = Column(Text, nullable=False, default="[]")
    total_marks_obtained = Column(Float, nullable=False, default=0.0)
    total_marks = Column(Float, nullable=False, default=0.0)
    percentage = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default="Submitted", index=True)  # Submitted | Grading | Graded
    submitted_at = Column(DateTime, nullable=False, default=utcnow)
    graded_at = Column(DateTime, nullable=True)
    time_taken = Column(Integer, nullable=True)  # minutes
    ai_grading_notes = Column(Text, nullable=True)

    # Relationships
    assessment = relationship("Assessment", back_populates="submissions")
    student = relationship("Student", back_populates="submissions")

    @property
    def answers(self) -> list[dict]:
        return json.loads(self.answers_json or "[]")
