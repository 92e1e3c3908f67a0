"""Teacher, student and parent schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


# ── Students ──────────────────────────────────────────────────────────────────

class StudentRegister(BaseModel):
    first_name: str
    last_name: str
    email: str
    password: str
    class_name: str
    grade_name: str
    roll_number: str
    father_name: Optional[str] = None
    mother_name: Optional[str] = None


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    class_name: Optional[str] = None
    grade_name: Optional[str] = None
    roll_number: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    is_active: Optional[bool] = None


class StudentResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    roll_number: str
    class_id: str
    class_name: Optional[str] = None
    grade_id: str
    grade_name: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# ── Teachers ──────────────────────────────────────────────────────────────────

class TeacherRegister(BaseModel):
    name: str
    email: str
    password: str
    phone: str
    class_names: list[str] = []
    grade_names: list[str] = []
    subject_names: list[str] = []


class TeacherUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    class_names: Optional[list[str]] = None
    grade_names: Optional[list[str]] = None
    subject_names: Optional[list[str]] = None
    is_active: Optional[bool] = None


class TeacherResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    class_names: list[str]
    grade_names: list[str]
    subject_names: list[str]
    is_active: bool
    created_at: datetime

    @classmethod
    def from_teacher(cls, teacher) -> "TeacherResponse":
        return cls(
            id=teacher.id,
            name=teacher.name,
            email=teacher.email,
            phone=teacher.phone,
            class_names=[c.class_name for c in teacher.classes],
            grade_names=[g.grade_name for g in teacher.grades],
            subject_names=sorted({s.subject_name for s in teacher.subjects}),
            is_active=teacher.is_active,
            created_at=teacher.created_at,
        )


# ── Parents ───────────────────────────────────────────────────────────────────

class ChildRef(BaseModel):
    name: str
    class_name: str
    grade_name: str


class ParentRegister(BaseModel):
    email: str
    password: str
    primary_number: str
    secondary_number: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    children: list[ChildRef]


class ParentUpdate(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    primary_number: Optional[str] = None
    secondary_number: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    children: Optional[list[ChildRef]] = None
    is_active: Optional[bool] = None


class ChildSummary(BaseModel):
    id: str
    full_name: str
    class_name: Optional[str] = None
    grade_name: Optional[str] = None

    class Config:
        from_attributes = True


class ParentResponse(BaseModel):
    id: str
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    email: str
    primary_number: str
    secondary_number: Optional[str] = None
    children: list[ChildSummary]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
