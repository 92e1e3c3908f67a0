"""Grade model."""

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base


class Grade(Base):
    __tablename__ = "grades"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    grade_name = Column(String(50), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    classes = relationship("SchoolClass", back_populates="grade")
    subjects = relationship("Subject", back_populates="grade")
