"""Parent model and parent-child links."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship

from teachmate.clock import utcnow
from teachmate.database import Base

parent_children = Table(
    "parent_children",
    Base.metadata,
    Column("parent_id", String(36), ForeignKey("parents.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", String(36), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
)


class Parent(Base):
    __tablename__ = "parents"
    role = "parent"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    father_name = Column(String(255), nullable=True)
    mother_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    primary_number = Column(String(20), nullable=False)
    secondary_number = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    children = relationship("Student", secondary=parent_children)

    @property
    def name(self) -> str:
        return self.father_name or self.mother_name or ""
