"""Lesson plan and per-session detail models."""

import json
import uuid

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base

LESSON_PLAN_STATUSES = ("Draft", "Active", "Completed", "Archived")

SESSION_COMPLETED = "Completed"


class LessonPlan(Base):
    __tablename__ = "lesson_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=False, index=True)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)
    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False)
    chapter_id = Column(String(36), ForeignKey("chapters.id"), nullable=False)
    chapter_number = Column(Integer, nullable=False)
    total_sessions = Column(Integer, nullable=False)
    session_duration = Column(Integer, nullable=False, default=45)  # minutes
    overall_objectives_json = Column(Text, nullable=False, default="[]")
    prerequisites_json = Column(Text, nullable=False, default="[]")
    learning_outcomes_json = Column(Text, nullable=False, default="[]")
    recommended_videos_json = Column(Text, nullable=False, default="[]")
    status = Column(String(20), nullable=False, default="Draft")  # Draft | Active | Completed | Archived
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    teacher = relationship("Teacher", back_populates="lesson_plans")
    subject = relationship("Subject")
    grade = relationship("Grade")
    chapter = relationship("Chapter")
    sessions = relationship(
        "LessonSession",
        back_populates="lesson_plan",
        order_by="LessonSession.session_number",
        cascade="all, delete-orphan",
    )
    assessments = relationship("Assessment", back_populates="lesson_plan", cascade="all, delete-orphan")

    @property
    def subject_name(self):
        return self.subject.subject_name if self.subject else None

    @property
    def grade_name(self):
        return self.grade.grade_name if self.grade else None

    @property
    def chapter_name(self):
        return self.chapter.chapter_name if self.chapter else None

    @property
    def overall_objectives(self) -> list:
        return json.loads(self.overall_objectives_json or "[]")

    @property
    def prerequisites(self) -> list:
        return json.loads(self.prerequisites_json or "[]")

    @property
    def learning_outcomes(self) -> list:
        return json.loads(self.learning_outcomes_json or "[]")

    @property
    def recommended_videos(self) -> list:
        return json.loads(self.recommended_videos_json or "[]")

    @property
    def chapter_assessment_ids(self) -> list[str]:
        return [a.id for a in self.assessments if a.assessment_type == "chapter"]

    def get_session(self, session_number: int):
        for s in self.sessions:
            if s.session_number == session_number:
                return s
        return None

    def all_sessions_completed(self) -> bool:
        return bool(self.sessions) and all(s.status == SESSION_COMPLETED for s in self.sessions)

    def all_topics(self) -> list[str]:
        """Topics across every session, de-duplicated, first occurrence wins."""
        seen = []
        for s in self.sessions:
            for topic in s.topics_covered:
                if topic not in seen:
                    seen.append(topic)
        return seen


class LessonSession(Base):
    __tablename__ = "lesson_sessions"
    __table_args__ = (UniqueConstraint("lesson_plan_id", "session_number", name="uq_lesson_session_number"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    lesson_plan_id = Column(String(36), ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    session_number = Column(Integer, nullable=False)
    learning_objectives_json = Column(Text, nullable=False, default="[]")
    topics_covered_json = Column(Text, nullable=False, default="[]")
    teaching_flow_json = Column(Text, nullable=False, default="[]")  # [{time_slot, activity, description}]
    resources_json = Column(Text, nullable=False, default='{"videos": [], "simulations": []}')
    status = Column(String(20), nullable=True)  # None (active) | Completed
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    lesson_plan = relationship("LessonPlan", back_populates="sessions")
    assessments = relationship("Assessment", back_populates="session")

    @property
    def learning_objectives(self) -> list:
        return json.loads(self.learning_objectives_json or "[]")

    @property
    def topics_covered(self) -> list:
        return json.loads(self.topics_covered_json or "[]")

    @property
    def teaching_flow(self) -> list:
        return json.loads(self.teaching_flow_json or "[]")

    @property
    def resources(self) -> dict:
        return json.loads(self.resources_json or "{}")

    @property
    def assessment_ids(self) -> list[str]:
        return [a.id for a in self.assessments]
