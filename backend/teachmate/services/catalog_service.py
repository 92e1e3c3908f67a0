"""Catalog service: grades, classes, subjects and chapters, plus name lookups."""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from teachmate.errors import NotFoundError, StateConflictError, ValidationError
from teachmate.models.chapter import Chapter
from teachmate.models.class_ import SchoolClass
from teachmate.models.grade import Grade
from teachmate.models.subject import Subject


def get_or_404(db: Session, model, entity_id: str, label: str):
    obj = db.query(model).filter(model.id == entity_id).first()
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


def _commit(db: Session, obj, conflict_message: str):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise StateConflictError(conflict_message) from e
    db.refresh(obj)
    return obj


# ── Name resolution ──────────────────────────────────────────────────────────

def resolve_grade(db: Session, grade_name: str) -> Grade:
    grade = db.query(Grade).filter(Grade.grade_name == grade_name).first()
    if not grade:
        raise NotFoundError(f"Grade with name '{grade_name}' not found")
    return grade


def resolve_class(db: Session, class_name: str, grade_id: Optional[str] = None) -> SchoolClass:
    q = db.query(SchoolClass).filter(SchoolClass.class_name == class_name)
    if grade_id:
        q = q.filter(SchoolClass.grade_id == grade_id)
    school_class = q.first()
    if not school_class:
        raise NotFoundError(f"Class with name '{class_name}' not found")
    return school_class


def resolve_subjects(db: Session, subject_name: str, grade_ids: Optional[list[str]] = None) -> list[Subject]:
    """All subjects with this name, optionally limited to the given grades."""
    q = db.query(Subject).filter(Subject.subject_name == subject_name)
    if grade_ids:
        q = q.filter(Subject.grade_id.in_(grade_ids))
    subjects = q.all()
    if not subjects:
        raise NotFoundError(f"Subject with name '{subject_name}' not found")
    return subjects


# ── Grades ───────────────────────────────────────────────────────────────────

def create_grade(db: Session, grade_name: str) -> Grade:
    if not grade_name or not grade_name.strip():
        raise ValidationError("grade_name is required")
    grade = Grade(grade_name=grade_name.strip())
    db.add(grade)
    return _commit(db, grade, f"Grade '{grade_name}' already exists")


def list_grades(db: Session) -> list[Grade]:
    return db.query(Grade).order_by(Grade.grade_name).all()


def update_grade(db: Session, grade_id: str, grade_name: str) -> Grade:
    grade = get_or_404(db, Grade, grade_id, "Grade")
    grade.grade_name = grade_name.strip()
    return _commit(db, grade, f"Grade '{grade_name}' already exists")


# ── Classes ──────────────────────────────────────────────────────────────────

def create_class(
    db: Session,
    class_name: str,
    class_strength: int,
    grade_id: Optional[str] = None,
    grade_name: Optional[str] = None,
) -> SchoolClass:
    if class_strength < 1:
        raise ValidationError("Class strength must be at least 1")
    grade = get_or_404(db, Grade, grade_id, "Grade") if grade_id else resolve_grade(db, grade_name or "")
    school_class = SchoolClass(class_name=class_name, class_strength=class_strength, grade_id=grade.id)
    db.add(school_class)
    return _commit(db, school_class, f"Class '{class_name}' already exists")


def list_classes(db: Session, grade_id: Optional[str] = None) -> list[SchoolClass]:
    q = db.query(SchoolClass)
    if grade_id:
        q = q.filter(SchoolClass.grade_id == grade_id)
    return q.order_by(SchoolClass.class_name).all()


def update_class(
    db: Session,
    class_id: str,
    class_name: Optional[str] = None,
    class_strength: Optional[int] = None,
    grade_id: Optional[str] = None,
) -> SchoolClass:
    school_class = get_or_404(db, SchoolClass, class_id, "Class")
    if class_name is not None:
        school_class.class_name = class_name
    if class_strength is not None:
        if class_strength < 1:
            raise ValidationError("Class strength must be at least 1")
        school_class.class_strength = class_strength
    if grade_id is not None:
        school_class.grade_id = get_or_404(db, Grade, grade_id, "Grade").id
    return _commit(db, school_class, "Class update conflicts with an existing class")


# ── Subjects ─────────────────────────────────────────────────────────────────

def create_subject(
    db: Session,
    subject_name: str,
    grade_id: str,
    class_id: Optional[str] = None,
) -> Subject:
    get_or_404(db, Grade, grade_id, "Grade")
    if class_id:
        get_or_404(db, SchoolClass, class_id, "Class")
    subject = Subject(subject_name=subject_name, grade_id=grade_id, class_id=class_id)
    db.add(subject)
    return _commit(db, subject, f"Subject '{subject_name}' already exists")


def list_subjects(db: Session, grade_id: Optional[str] = None) -> list[Subject]:
    q = db.query(Subject)
    if grade_id:
        q = q.filter(Subject.grade_id == grade_id)
    return q.order_by(Subject.subject_name).all()


def update_subject(
    db: Session,
    subject_id: str,
    subject_name: Optional[str] = None,
    grade_id: Optional[str] = None,
    class_id: Optional[str] = None,
) -> Subject:
    subject = get_or_404(db, Subject, subject_id, "Subject")
    if subject_name is not None:
        subject.subject_name = subject_name
    if grade_id is not None:
        subject.grade_id = get_or_404(db, Grade, grade_id, "Grade").id
    if class_id is not None:
        subject.class_id = get_or_404(db, SchoolClass, class_id, "Class").id
    return _commit(db, subject, "Subject update conflicts with an existing subject")


# ── Chapters ─────────────────────────────────────────────────────────────────

def create_chapter(
    db: Session,
    chapter_name: str,
    subject_id: str,
    grade_id: str,
    chapter_number: Optional[int] = None,
) -> Chapter:
    get_or_404(db, Subject, subject_id, "Subject")
    get_or_404(db, Grade, grade_id, "Grade")
    chapter = Chapter(
        chapter_name=chapter_name,
        chapter_number=chapter_number,
        subject_id=subject_id,
        grade_id=grade_id,
    )
    db.add(chapter)
    return _commit(db, chapter, f"Chapter '{chapter_name}' already exists for this subject")


def list_chapters(
    db: Session,
    subject_id: Optional[str] = None,
    grade_id: Optional[str] = None,
) -> list[Chapter]:
    q = db.query(Chapter)
    if subject_id:
        q = q.filter(Chapter.subject_id == subject_id)
    if grade_id:
        q = q.filter(Chapter.grade_id == grade_id)
    return q.order_by(Chapter.chapter_number, Chapter.chapter_name).all()


def update_chapter(
    db: Session,
    chapter_id: str,
    chapter_name: Optional[str] = None,
    chapter_number: Optional[int] = None,
) -> Chapter:
    chapter = get_or_404(db, Chapter, chapter_id, "Chapter")
    if chapter_name is not None:
        chapter.chapter_name = chapter_name
    if chapter_number is not None:
        chapter.chapter_number = chapter_number
    return _commit(db, chapter, f"Chapter '{chapter_name}' already exists for this subject")


def delete(db: Session, model, entity_id: str, label: str) -> None:
    """Delete a catalog row; rows still referenced elsewhere are a conflict."""
    obj = get_or_404(db, model, entity_id, label)
    db.delete(obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise StateConflictError(f"{label} is still in use") from e
