"""School class (section) model."""

import uuid

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_name = Column(String(50), nullable=False, index=True)
    class_strength = Column(Integer, nullable=False, default=1)
    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    grade = relationship("Grade", back_populates="classes")
    students = relationship("Student", back_populates="school_class")

    @property
    def grade_name(self):
        return self.grade.grade_name if self.grade else None
