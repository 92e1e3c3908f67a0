"""Catalog router: grades, classes, subjects and chapters.

Reads need any signed-in account; writes are teacher only.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user, require_teacher
from teachmate.models.chapter import Chapter
from teachmate.models.class_ import SchoolClass
from teachmate.models.grade import Grade
from teachmate.models.subject import Subject
from teachmate.models.teacher import Teacher
from teachmate.schemas.catalog import (
    ChapterCreate,
    ChapterResponse,
    ChapterUpdate,
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    GradeCreate,
    GradeResponse,
    SubjectCreate,
    SubjectResponse,
    SubjectUpdate,
)
from teachmate.services import catalog_service

router = APIRouter(prefix="/api", tags=["catalog"])


# ── Grades ───────────────────────────────────────────────────────────────────

@router.post("/grades", response_model=GradeResponse, status_code=201)
def create_grade(req: GradeCreate, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return catalog_service.create_grade(db, req.grade_name)


@router.get("/grades", response_model=list[GradeResponse])
def list_grades(db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return catalog_service.list_grades(db)


@router.get("/grades/{grade_id}", response_model=GradeResponse)
def get_grade(grade_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return catalog_service.get_or_404(db, Grade, grade_id, "Grade")


@router.put("/grades/{grade_id}", response_model=GradeResponse)
def update_grade(
    grade_id: str,
    req: GradeCreate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return catalog_service.update_grade(db, grade_id, req.grade_name)


@router.delete("/grades/{grade_id}", status_code=204)
def delete_grade(grade_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    catalog_service.delete(db, Grade, grade_id, "Grade")


# ── Classes ──────────────────────────────────────────────────────────────────

@router.post("/classes", response_model=ClassResponse, status_code=201)
def create_class(req: ClassCreate, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return catalog_service.create_class(db, req.class_name, req.class_strength, req.grade_id, req.grade_name)


@router.get("/classes", response_model=list[ClassResponse])
def list_classes(
    grade_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Account = Depends(get_current_user),
):
    return catalog_service.list_classes(db, grade_id)


@router.get("/classes/{class_id}", response_model=ClassResponse)
def get_class(class_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return catalog_service.get_or_404(db, SchoolClass, class_id, "Class")


@router.put("/classes/{class_id}", response_model=ClassResponse)
def update_class(
    class_id: str,
    req: ClassUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return catalog_service.update_class(db, class_id, req.class_name, req.class_strength, req.grade_id)


@router.delete("/classes/{class_id}", status_code=204)
def delete_class(class_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    catalog_service.delete(db, SchoolClass, class_id, "Class")


# ── Subjects ─────────────────────────────────────────────────────────────────

@router.post("/subjects", response_model=SubjectResponse, status_code=201)
def create_subject(req: SubjectCreate, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return catalog_service.create_subject(db, req.subject_name, req.grade_id, req.class_id)


@router.get("/subjects", response_model=list[SubjectResponse])
def list_subjects(
    grade_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Account = Depends(get_current_user),
):
    return catalog_service.list_subjects(db, grade_id)


@router.get("/subjects/{subject_id}", response_model=SubjectResponse)
def get_subject(subject_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return catalog_service.get_or_404(db, Subject, subject_id, "Subject")


@router.put("/subjects/{subject_id}", response_model=SubjectResponse)
def update_subject(
    subject_id: str,
    req: SubjectUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return catalog_service.update_subject(db, subject_id, req.subject_name, req.grade_id, req.class_id)


@router.delete("/subjects/{subject_id}", status_code=204)
def delete_subject(subject_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    catalog_service.delete(db, Subject, subject_id, "Subject")


# ── Chapters ─────────────────────────────────────────────────────────────────

@router.post("/chapters", response_model=ChapterResponse, status_code=201)
def create_chapter(req: ChapterCreate, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return catalog_service.create_chapter(db, req.chapter_name, req.subject_id, req.grade_id, req.chapter_number)


@router.get("/chapters", response_model=list[ChapterResponse])
def list_chapters(
    subject_id: Optional[str] = None,
    grade_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Account = Depends(get_current_user),
):
    return catalog_service.list_chapters(db, subject_id, grade_id)


@router.get("/chapters/{chapter_id}", response_model=ChapterResponse)
def get_chapter(chapter_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return catalog_service.get_or_404(db, Chapter, chapter_id, "Chapter")


@router.put("/chapters/{chapter_id}", response_model=ChapterResponse)
def update_chapter(
    chapter_id: str,
    req: ChapterUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return catalog_service.update_chapter(db, chapter_id, req.chapter_name, req.chapter_number)


@router.delete("/chapters/{chapter_id}", status_code=204)
def delete_chapter(chapter_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    catalog_service.delete(db, Chapter, chapter_id, "Chapter")
