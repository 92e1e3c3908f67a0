"""People router: teacher, student and parent accounts (teacher only)."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import require_teacher
from teachmate.models.parent import Parent
from teachmate.models.student import Student
from teachmate.models.teacher import Teacher
from teachmate.schemas.people import (
    ParentRegister,
    ParentResponse,
    ParentUpdate,
    StudentRegister,
    StudentResponse,
    StudentUpdate,
    TeacherRegister,
    TeacherResponse,
    TeacherUpdate,
)
from teachmate.services import people_service
from teachmate.services.catalog_service import get_or_404

router = APIRouter(prefix="/api", tags=["people"])


# ── Students ─────────────────────────────────────────────────────────────────

@router.post("/students", response_model=StudentResponse, status_code=201)
def register_student(req: StudentRegister, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return people_service.register_student(db, **req.model_dump())


@router.get("/students", response_model=list[StudentResponse])
def list_students(
    grade_id: Optional[str] = None,
    class_id: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return people_service.list_students(db, grade_id, class_id, search)


@router.get("/students/{student_id}", response_model=StudentResponse)
def get_student(student_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return get_or_404(db, Student, student_id, "Student")


@router.put("/students/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: str,
    req: StudentUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return people_service.update_student(db, student_id, **req.model_dump(exclude_none=True))


@router.delete("/students/{student_id}", status_code=204)
def delete_student(student_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    people_service.delete_account(db, Student, student_id)


# ── Teachers ─────────────────────────────────────────────────────────────────

@router.post("/teachers", response_model=TeacherResponse, status_code=201)
def register_teacher(req: TeacherRegister, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return TeacherResponse.from_teacher(people_service.register_teacher(db, **req.model_dump()))


@router.get("/teachers", response_model=list[TeacherResponse])
def list_teachers(
    subject_name: Optional[str] = None,
    grade_name: Optional[str] = None,
    class_name: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    teachers = people_service.list_teachers(db, subject_name, grade_name, class_name)
    return [TeacherResponse.from_teacher(t) for t in teachers]


@router.get("/teachers/{teacher_id}", response_model=TeacherResponse)
def get_teacher(teacher_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return TeacherResponse.from_teacher(get_or_404(db, Teacher, teacher_id, "Teacher"))


@router.put("/teachers/{teacher_id}", response_model=TeacherResponse)
def update_teacher(
    teacher_id: str,
    req: TeacherUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    teacher = people_service.update_teacher(db, teacher_id, **req.model_dump(exclude_none=True))
    return TeacherResponse.from_teacher(teacher)


@router.delete("/teachers/{teacher_id}", status_code=204)
def delete_teacher(teacher_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    people_service.delete_account(db, Teacher, teacher_id)


# ── Parents ──────────────────────────────────────────────────────────────────

@router.post("/parents", response_model=ParentResponse, status_code=201)
def register_parent(req: ParentRegister, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return people_service.register_parent(db, **req.model_dump())


@router.get("/parents", response_model=list[ParentResponse])
def list_parents(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return people_service.list_parents(db, search)


@router.get("/parents/{parent_id}", response_model=ParentResponse)
def get_parent(parent_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    return get_or_404(db, Parent, parent_id, "Parent")


@router.put("/parents/{parent_id}", response_model=ParentResponse)
def update_parent(
    parent_id: str,
    req: ParentUpdate,
    db: Session = Depends(get_db),
    _: Teacher = Depends(require_teacher),
):
    return people_service.update_parent(db, parent_id, **req.model_dump(exclude_none=True))


@router.delete("/parents/{parent_id}", status_code=204)
def delete_parent(parent_id: str, db: Session = Depends(get_db), _: Teacher = Depends(require_teacher)):
    people_service.delete_account(db, Parent, parent_id)
