"""Student model."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base


class Student(Base):
    __tablename__ = "students"
    role = "student"
    __table_args__ = (UniqueConstraint("class_id", "roll_number", name="uq_student_roll_in_class"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    father_name = Column(String(255), nullable=True)
    mother_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False)
    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False)
    roll_number = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    school_class = relationship("SchoolClass", back_populates="students")
    grade = relationship("Grade")
    submissions = relationship("Submission", back_populates="student")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def class_name(self):
        return self.school_class.class_name if self.school_class else None

    @property
    def grade_name(self):
        return self.grade.grade_name if self.grade else None
