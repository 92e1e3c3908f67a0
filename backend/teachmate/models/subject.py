"""Subject model."""

import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_name = Column(String(100), nullable=False, index=True)
    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    grade = relationship("Grade", back_populates="subjects")
    school_class = relationship("SchoolClass")
    chapters = relationship("Chapter", back_populates="subject")

    @property
    def grade_name(self):
        return self.grade.grade_name if self.grade else None

    @property
    def class_name(self):
        return self.school_class.class_name if self.school_class else None
