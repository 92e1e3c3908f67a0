"""Shared fixtures: in-memory database, seeded school and an API client."""

import json
import os
import sys
from datetime import timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULERS_ENABLED", "false")
os.environ.setdefault("GRADING_ITEM_DELAY_SECONDS", "0")
os.environ.setdefault("CURATION_TOPIC_DELAY_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import teachmate.models  # noqa: F401
from teachmate.clock import utcnow
from teachmate.database import Base, get_db
from teachmate.middleware.auth import create_access_token
from teachmate.middleware.rate_limit import limiter
from teachmate.models.assessment import Assessment, AssessmentQuestions
from teachmate.services import catalog_service, jobs, lesson_plan_service, people_service

PASSWORD = "Passw0rd!"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def school(db):
    """One grade, class, subject and chapter plus a teacher, student and parent."""
    grade = catalog_service.create_grade(db, "Grade 8")
    school_class = catalog_service.create_class(db, "8A", 30, grade_id=grade.id)
    subject = catalog_service.create_subject(db, "Science", grade.id)
    chapter = catalog_service.create_chapter(db, "Crop Production", subject.id, grade.id, chapter_number=1)
    teacher = people_service.register_teacher(
        db, "Asha Rao", "asha@school.edu", PASSWORD, "9876543210", ["8A"], ["Grade 8"], ["Science"]
    )
    student = people_service.register_student(
        db, "Ravi", "Kumar", "ravi@school.edu", PASSWORD, "8A", "Grade 8", "12"
    )
    parent = people_service.register_parent(
        db,
        "kumar.family@home.com",
        PASSWORD,
        "9123456780",
        [{"name": "Ravi Kumar", "class_name": "8A", "grade_name": "Grade 8"}],
        father_name="Suresh Kumar",
    )
    return {
        "grade": grade,
        "class": school_class,
        "subject": subject,
        "chapter": chapter,
        "teacher": teacher,
        "student": student,
        "parent": parent,
    }


def token_for(account) -> dict:
    token = create_access_token({"sub": account.id, "email": account.email, "role": account.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def teacher_headers(school):
    return token_for(school["teacher"])


@pytest.fixture
def student_headers(school):
    return token_for(school["student"])


@pytest.fixture
def spawned(monkeypatch):
    """Records background jobs instead of starting them."""
    calls = []
    monkeypatch.setattr(jobs, "_spawn", lambda *args: calls.append(args))
    return calls


@pytest.fixture
def client(session_factory, spawned):
    from teachmate.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.enabled = True


# ── Builders ──────────────────────────────────────────────────────────────────

def plan_dict(sessions: int = 3) -> dict:
    return {
        "session_details": [
            {
                "session_number": n,
                "learning_objectives": [f"Objective {n}"],
                "topics_covered": [f"Topic {n}", "Crop Production"] if n == 1 else [f"Topic {n}"],
                "teaching_flow": [
                    {"time_slot": "0-10 min", "activity": "Introduction", "description": "Warm up"},
                ],
            }
            for n in range(1, sessions + 1)
        ],
        "overall_objectives": ["Understand crops"],
        "prerequisites": ["Plants"],
        "learning_outcomes": ["Explain crop production"],
    }


def make_lesson_plan(db, school, sessions: int = 3):
    data = {
        "teacher_id": school["teacher"].id,
        "subject_id": school["subject"].id,
        "grade_id": school["grade"].id,
        "chapter_id": school["chapter"].id,
        "chapter_number": 1,
        "sessions": sessions,
        "session_duration": 45,
    }
    return lesson_plan_service.create_from_plan(db, data, plan_dict(sessions))


def sample_questions() -> list[dict]:
    return [
        {
            "question_id": "q-mcq",
            "question": "Which process do plants use to make food?",
            "input_type": "MCQ",
            "answers": [
                {"option": "Photosynthesis", "is_correct": True, "explanation": "Uses sunlight"},
                {"option": "Respiration", "is_correct": False, "explanation": ""},
            ],
            "marks": 2,
            "difficulty": "Easy",
            "topic": "Topic 1",
            "order": 1,
        },
        {
            "question_id": "q-blank",
            "question": "Kharif crops are sown in the ____ season.",
            "input_type": "Fill in the Blank",
            "answers": [{"option": "rainy", "is_correct": True, "explanation": ""}],
            "marks": 1,
            "difficulty": "Easy",
            "topic": "Topic 1",
            "order": 2,
        },
        {
            "question_id": "q-long",
            "question": "Describe the steps of crop production.",
            "input_type": "Long Answer",
            "answers": [{"option": "Soil preparation, sowing, irrigation, harvesting", "is_correct": True}],
            "marks": 4,
            "difficulty": "Hard",
            "topic": "Topic 2",
            "order": 3,
        },
    ]


def make_assessment(db, school, lesson_plan=None, status="Active", opens_on=None, due_date=None, questions=None):
    now = utcnow()
    assessment = Assessment(
        title="Chapter Assessment - Crop Production",
        assessment_type="chapter",
        lesson_plan_id=lesson_plan.id if lesson_plan else None,
        teacher_id=school["teacher"].id,
        grade_id=school["grade"].id,
        subject_id=school["subject"].id,
        topics_json=json.dumps(["Topic 1", "Topic 2"]),
        opens_on=opens_on or now - timedelta(hours=1),
        due_date=due_date or now + timedelta(days=1),
        status=status,
        duration=30,
    )
    question_set = AssessmentQuestions()
    question_set.set_questions(sample_questions() if questions is None else questions)
    assessment.question_set = question_set
    assessment.total_marks = question_set.total_marks
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    return assessment
