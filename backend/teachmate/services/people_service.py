"""People service: teacher, student and parent registration and lookups."""

import re
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from teachmate.errors import NotFoundError, StateConflictError, ValidationError
from teachmate.middleware.auth import hash_password
from teachmate.models.parent import Parent
from teachmate.models.student import Student
from teachmate.models.teacher import Teacher
from teachmate.services import catalog_service

EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&_#\-])")
PHONE_RE = re.compile(r"^[0-9]{10,15}$")


# ── Validation ───────────────────────────────────────────────────────────────

def validate_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Please provide a valid email address")
    return email


def validate_password(password: str) -> str:
    if not password or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")
    if not PASSWORD_RE.match(password):
        raise ValidationError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )
    return password


def validate_phone(phone: Optional[str], required: bool = True) -> Optional[str]:
    if not phone:
        if required:
            raise ValidationError("Phone number is required")
        return None
    if not PHONE_RE.match(phone):
        raise ValidationError("Please provide a valid phone number")
    return phone


def _ensure_email_free(db: Session, model, email: str) -> None:
    if db.query(model).filter(model.email == email).first():
        raise StateConflictError(f"A {model.role} with this email already exists")


def _save(db: Session, obj):
    db.add(obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise StateConflictError("Record conflicts with an existing account") from e
    db.refresh(obj)
    return obj


# ── Students ─────────────────────────────────────────────────────────────────

def register_student(
    db: Session,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    class_name: str,
    grade_name: str,
    roll_number: str,
    father_name: Optional[str] = None,
    mother_name: Optional[str] = None,
) -> Student:
    email = validate_email(email)
    validate_password(password)
    _ensure_email_free(db, Student, email)

    grade = catalog_service.resolve_grade(db, grade_name)
    school_class = catalog_service.resolve_class(db, class_name, grade.id)

    taken = (
        db.query(Student)
        .filter(Student.class_id == school_class.id, Student.roll_number == roll_number)
        .first()
    )
    if taken:
        raise StateConflictError(f"Roll number {roll_number} already exists in class {class_name}")

    student = Student(
        first_name=first_name,
        last_name=last_name,
        father_name=father_name,
        mother_name=mother_name,
        email=email,
        password_hash=hash_password(password),
        class_id=school_class.id,
        grade_id=grade.id,
        roll_number=roll_number,
    )
    return _save(db, student)


def list_students(
    db: Session,
    grade_id: Optional[str] = None,
    class_id: Optional[str] = None,
    search: Optional[str] = None,
) -> list[Student]:
    q = db.query(Student)
    if grade_id:
        q = q.filter(Student.grade_id == grade_id)
    if class_id:
        q = q.filter(Student.class_id == class_id)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(or_(
            func.lower(Student.first_name).like(pattern),
            func.lower(Student.last_name).like(pattern),
            func.lower(Student.email).like(pattern),
            Student.roll_number.like(pattern),
        ))
    return q.order_by(Student.first_name, Student.last_name).all()


def update_student(db: Session, student_id: str, **fields) -> Student:
    student = catalog_service.get_or_404(db, Student, student_id, "Student")
    if fields.get("password"):
        student.password_hash = hash_password(validate_password(fields.pop("password")))
    if fields.get("email"):
        student.email = validate_email(fields.pop("email"))
    if fields.get("grade_name"):
        student.grade_id = catalog_service.resolve_grade(db, fields.pop("grade_name")).id
    if fields.get("class_name"):
        student.class_id = catalog_service.resolve_class(db, fields.pop("class_name"), student.grade_id).id
    for key in ("first_name", "last_name", "father_name", "mother_name", "roll_number", "is_active"):
        if fields.get(key) is not None:
            setattr(student, key, fields[key])
    return _save(db, student)


# ── Teachers ─────────────────────────────────────────────────────────────────

def register_teacher(
    db: Session,
    name: str,
    email: str,
    password: str,
    phone: str,
    class_names: list[str],
    grade_names: list[str],
    subject_names: list[str],
) -> Teacher:
    """Register a teacher; subjects are resolved within the teacher's grades."""
    email = validate_email(email)
    validate_password(password)
    validate_phone(phone)
    _ensure_email_free(db, Teacher, email)

    grades = [catalog_service.resolve_grade(db, g) for g in grade_names]
    grade_ids = [g.id for g in grades]
    classes = [catalog_service.resolve_class(db, c) for c in class_names]
    subjects = []
    for subject_name in subject_names:
        subjects.extend(catalog_service.resolve_subjects(db, subject_name, grade_ids or None))

    teacher = Teacher(
        name=name,
        email=email,
        password_hash=hash_password(password),
        phone=phone,
        classes=classes,
        grades=grades,
        subjects=subjects,
    )
    return _save(db, teacher)


def list_teachers(
    db: Session,
    subject_name: Optional[str] = None,
    grade_name: Optional[str] = None,
    class_name: Optional[str] = None,
) -> list[Teacher]:
    teachers = db.query(Teacher).order_by(Teacher.name).all()
    if subject_name:
        teachers = [t for t in teachers if any(s.subject_name == subject_name for s in t.subjects)]
    if grade_name:
        teachers = [t for t in teachers if any(g.grade_name == grade_name for g in t.grades)]
    if class_name:
        teachers = [t for t in teachers if any(c.class_name == class_name for c in t.classes)]
    return teachers


def update_teacher(db: Session, teacher_id: str, **fields) -> Teacher:
    teacher = catalog_service.get_or_404(db, Teacher, teacher_id, "Teacher")
    if fields.get("password"):
        teacher.password_hash = hash_password(validate_password(fields["password"]))
    if fields.get("email"):
        teacher.email = validate_email(fields["email"])
    if fields.get("phone"):
        teacher.phone = validate_phone(fields["phone"])
    if fields.get("grade_names") is not None:
        teacher.grades = [catalog_service.resolve_grade(db, g) for g in fields["grade_names"]]
    if fields.get("class_names") is not None:
        teacher.classes = [catalog_service.resolve_class(db, c) for c in fields["class_names"]]
    if fields.get("subject_names") is not None:
        grade_ids = [g.id for g in teacher.grades] or None
        teacher.subjects = [
            s for name in fields["subject_names"] for s in catalog_service.resolve_subjects(db, name, grade_ids)
        ]
    for key in ("name", "is_active"):
        if fields.get(key) is not None:
            setattr(teacher, key, fields[key])
    return _save(db, teacher)


# ── Parents ──────────────────────────────────────────────────────────────────

def _resolve_child(db: Session, child: dict) -> Student:
    """Find a student by full name within the named class and grade."""
    grade = catalog_service.resolve_grade(db, child["grade_name"])
    school_class = catalog_service.resolve_class(db, child["class_name"], grade.id)
    full_name = child["name"].strip().lower()
    candidates = (
        db.query(Student)
        .filter(Student.class_id == school_class.id, Student.grade_id == grade.id)
        .all()
    )
    for student in candidates:
        if student.full_name.lower() == full_name:
            return student
    raise NotFoundError(
        f"Student '{child['name']}' not found in class {child['class_name']}, grade {child['grade_name']}"
    )


def register_parent(
    db: Session,
    email: str,
    password: str,
    primary_number: str,
    children: list[dict],
    father_name: Optional[str] = None,
    mother_name: Optional[str] = None,
    secondary_number: Optional[str] = None,
) -> Parent:
    """Register a parent account linked to existing students.

    Each child dict names the student as ``{name, class_name, grade_name}``.
    """
    if not father_name and not mother_name:
        raise ValidationError("At least one of father_name or mother_name is required")
    email = validate_email(email)
    validate_password(password)
    validate_phone(primary_number)
    validate_phone(secondary_number, required=False)
    if not children:
        raise ValidationError("At least one child is required")
    _ensure_email_free(db, Parent, email)

    parent = Parent(
        father_name=father_name,
        mother_name=mother_name,
        email=email,
        password_hash=hash_password(password),
        primary_number=primary_number,
        secondary_number=secondary_number,
        children=[_resolve_child(db, c) for c in children],
    )
    return _save(db, parent)


def list_parents(db: Session, search: Optional[str] = None) -> list[Parent]:
    q = db.query(Parent)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(or_(
            func.lower(Parent.father_name).like(pattern),
            func.lower(Parent.mother_name).like(pattern),
            func.lower(Parent.email).like(pattern),
        ))
    return q.order_by(Parent.created_at).all()


def update_parent(db: Session, parent_id: str, **fields) -> Parent:
    parent = catalog_service.get_or_404(db, Parent, parent_id, "Parent")
    if fields.get("password"):
        parent.password_hash = hash_password(validate_password(fields["password"]))
    if fields.get("email"):
        parent.email = validate_email(fields["email"])
    if fields.get("primary_number"):
        parent.primary_number = validate_phone(fields["primary_number"])
    if fields.get("secondary_number"):
        parent.secondary_number = validate_phone(fields["secondary_number"])
    if fields.get("children") is not None:
        parent.children = [_resolve_child(db, c) for c in fields["children"]]
    for key in ("father_name", "mother_name", "is_active"):
        if fields.get(key) is not None:
            setattr(parent, key, fields[key])
    return _save(db, parent)


def delete_account(db: Session, model, account_id: str) -> None:
    account = catalog_service.get_or_404(db, model, account_id, model.role.capitalize())
    db.delete(account)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise StateConflictError(f"{model.role.capitalize()} still has linked records") from e
