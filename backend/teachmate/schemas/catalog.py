"""Grade, class, subject and chapter schemas."""

from typing import Optional

from pydantic import BaseModel


class GradeCreate(BaseModel):
    grade_name: str


class GradeResponse(BaseModel):
    id: str
    grade_name: str

    class Config:
        from_attributes = True


class ClassCreate(BaseModel):
    class_name: str
    class_strength: int
    grade_id: Optional[str] = None
    grade_name: Optional[str] = None


class ClassUpdate(BaseModel):
    class_name: Optional[str] = None
    class_strength: Optional[int] = None
    grade_id: Optional[str] = None


class ClassResponse(BaseModel):
    id: str
    class_name: str
    class_strength: int
    grade_id: str
    grade_name: Optional[str] = None

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    subject_name: str
    grade_id: str
    class_id: Optional[str] = None


class SubjectUpdate(BaseModel):
    subject_name: Optional[str] = None
    grade_id: Optional[str] = None
    class_id: Optional[str] = None


class SubjectResponse(BaseModel):
    id: str
    subject_name: str
    grade_id: str
    grade_name: Optional[str] = None
    class_id: Optional[str] = None
    class_name: Optional[str] = None

    class Config:
        from_attributes = True


class ChapterCreate(BaseModel):
    chapter_name: str
    chapter_number: Optional[int] = None
    subject_id: str
    grade_id: str


class ChapterUpdate(BaseModel):
    chapter_name: Optional[str] = None
    chapter_number: Optional[int] = None


class ChapterResponse(BaseModel):
    id: str
    chapter_name: str
    chapter_number: Optional[int] = None
    subject_id: str
    subject_name: Optional[str] = None
    grade_id: str
    grade_name: Optional[str] = None

    class Config:
        from_attributes = True
