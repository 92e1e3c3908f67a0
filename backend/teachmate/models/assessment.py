"""Assessment and question-set models."""

import json
import uuid

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Text, event
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base
from teachmate.errors import ValidationError

ASSESSMENT_STATUSES = ("Draft", "Scheduled", "Active", "Closed", "Graded")
ASSESSMENT_TYPES = ("session", "chapter")

QUESTION_TYPES = ("MCQ", "Multiple Select", "Short Answer", "Long Answer", "True/False", "Fill in the Blank")
DIFFICULTIES = ("Easy", "Medium", "Hard")


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(500), nullable=False)
    assessment_type = Column(String(20), nullable=False, default="chapter")  # session | chapter
    lesson_plan_id = Column(String(36), ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = Column(String(36), ForeignKey("lesson_sessions.id"), nullable=True)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=True, index=True)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=True)
    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False, index=True)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)
    topics_json = Column(Text, nullable=False, default="[]")
    opens_on = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="Draft", index=True)  # see ASSESSMENT_STATUSES
    total_marks = Column(Float, nullable=False, default=0.0)
    duration = Column(Integer, nullable=False, default=30)  # minutes
    instructions = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    lesson_plan = relationship("LessonPlan", back_populates="assessments")
    session = relationship("LessonSession", back_populates="assessments")
    grade = relationship("Grade")
    subject = relationship("Subject")
    school_class = relationship("SchoolClass")
    question_set = relationship(
        "AssessmentQuestions",
        back_populates="assessment",
        uselist=False,
        cascade="all, delete-orphan",
    )
    submissions = relationship("Submission", back_populates="assessment", cascade="all, delete-orphan")

    @property
    def topics(self) -> list:
        return json.loads(self.topics_json or "[]")

    @property
    def session_number(self):
        return self.session.session_number if self.session else None

    @property
    def grade_name(self):
        return self.grade.grade_name if self.grade else None

    @property
    def subject_name(self):
        return self.subject.subject_name if self.subject else None

    @property
    def class_name(self):
        return self.school_class.class_name if self.school_class else None


class AssessmentQuestions(Base):
    """Ordered question list for one assessment.

    Each question is a dict: {question_id, question, input_type, answers:
    [{option, is_correct, explanation}], marks, difficulty, topic, order}.
    """

    __tablename__ = "assessment_questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assessment_id = Column(
        String(36), ForeignKey("assessments.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    questions_json = Column(Text, nullable=False, default="[]")
    total_marks = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    assessment = relationship("Assessment", back_populates="question_set")

    @property
    def questions(self) -> list[dict]:
        return json.loads(self.questions_json or "[]")

    def set_questions(self, questions: list[dict]) -> None:
        self.questions_json = json.dumps(questions)
        self.recompute_total_marks()

    def recompute_total_marks(self) -> float:
        self.total_marks = float(sum(q.get("marks", 0) or 0 for q in self.questions))
        return self.total_marks

    def question_map(self) -> dict[str, dict]:
        return {q["question_id"]: q for q in self.questions}


# ── Save-time invariants ─────────────────────────────────────────────────────

@event.listens_for(Assessment, "before_insert")
@event.listens_for(Assessment, "before_update")
def _check_assessment_window(mapper, connection, target):
    if target.opens_on and target.due_date and target.due_date <= target.opens_on:
        raise ValidationError("Due date must be after opening date")


@event.listens_for(AssessmentQuestions, "before_insert")
@event.listens_for(AssessmentQuestions, "before_update")
def _sync_total_marks(mapper, connection, target):
    target.recompute_total_marks()
