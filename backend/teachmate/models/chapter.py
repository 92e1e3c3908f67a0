"""Chapter model."""

import uuid

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base


class Chapter(Base):
    __tablename__ = "chapters"
    __table_args__ = (UniqueConstraint("chapter_name", "subject_id", name="uq_chapter_subject"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    chapter_name = Column(String(255), nullable=False)
    chapter_number = Column(Integer, nullable=True)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)
    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    subject = relationship("Subject", back_populates="chapters")
    grade = relationship("Grade")

    @property
    def subject_name(self):
        return self.subject.subject_name if self.subject else None

    @property
    def grade_name(self):
        return self.grade.grade_name if self.grade else None
