"""Tests for lesson plan persistence, status transitions and sessions."""

import asyncio
from datetime import timedelta

import pytest

from conftest import make_lesson_plan, plan_dict, sample_questions
from teachmate.agents import assessment_generator, lesson_planner
from teachmate.clock import utcnow
from teachmate.errors import ExternalDependencyError, NotFoundError, StateConflictError, ValidationError
from teachmate.models.lesson_plan import LessonPlan
from teachmate.services import assessment_service, lesson_plan_service


class TestCreatePlan:
    """Saved plans always have exactly total_sessions sessions."""

    def test_sessions_saved(self, db, school):
        plan = make_lesson_plan(db, school, sessions=3)
        assert plan.status == "Draft"
        assert plan.total_sessions == 3
        assert [s.session_number for s in plan.sessions] == [1, 2, 3]
        assert plan.sessions[0].teaching_flow[0]["activity"] == "Introduction"
        assert plan.subject_name == "Science"
        assert plan.chapter_name == "Crop Production"

    def test_session_count_mismatch_rejected(self, db, school):
        data = {
            "teacher_id": school["teacher"].id,
            "subject_id": school["subject"].id,
            "grade_id": school["grade"].id,
            "chapter_id": school["chapter"].id,
            "chapter_number": 1,
            "sessions": 4,
        }
        with pytest.raises(ValidationError):
            lesson_plan_service.create_from_plan(db, data, plan_dict(3))
        assert db.query(LessonPlan).count() == 0

    def test_generate_uses_planner(self, db, school, monkeypatch):
        seen = {}

        async def fake_plan(inputs):
            seen.update(inputs)
            return {"success": True, "plan": plan_dict(2), "chunks_used": 7}

        monkeypatch.setattr(lesson_planner, "generate_plan", fake_plan)
        data = {
            "teacher_id": school["teacher"].id,
            "subject_id": school["subject"].id,
            "grade_id": school["grade"].id,
            "chapter_id": school["chapter"].id,
            "chapter_number": 1,
            "sessions": 2,
            "session_duration": None,
        }

        plan = asyncio.run(lesson_plan_service.generate(db, data))

        assert seen["chapter_name"] == "Crop Production"
        assert seen["grade_name"] == "Grade 8"
        assert plan.session_duration == 45
        assert len(plan.sessions) == 2

    def test_generate_missing_chapter(self, db, school):
        data = {
            "teacher_id": school["teacher"].id,
            "subject_id": school["subject"].id,
            "grade_id": school["grade"].id,
            "chapter_id": "missing",
            "chapter_number": 1,
            "sessions": 2,
        }
        with pytest.raises(NotFoundError, match="Chapter not found"):
            asyncio.run(lesson_plan_service.generate(db, data))


class TestPlannerValidation:
    def test_sessions_range(self):
        with pytest.raises(ValidationError, match="Sessions must be between 1 and 20"):
            lesson_planner.validate_inputs(
                {"grade_name": "Grade 8", "subject_name": "Science", "chapter_name": "Cells", "sessions": 21}
            )

    def test_duration_default(self):
        inputs = lesson_planner.validate_inputs(
            {"grade_name": "Grade 8", "subject_name": "Science", "chapter_name": "Cells", "sessions": 2}
        )
        assert inputs["session_duration"] == 45

    def test_wrong_session_count_from_model(self):
        with pytest.raises(ExternalDependencyError):
            lesson_planner.normalize_plan(plan_dict(2), 3)

    def test_sessions_renumbered(self):
        raw = plan_dict(2)
        raw["session_details"][0]["session_number"] = 9
        plan = lesson_planner.normalize_plan(raw, 2)
        assert [s["session_number"] for s in plan["session_details"]] == [1, 2]


class TestStatusTransitions:
    """Forward-only: Draft -> Active -> Completed -> Archived."""

    def test_forward_path(self, db, school):
        plan = make_lesson_plan(db, school)
        for status in ("Active", "Completed", "Archived"):
            assert lesson_plan_service.update_status(db, plan.id, status).status == status

    def test_draft_can_skip_to_completed(self, db, school):
        plan = make_lesson_plan(db, school)
        assert lesson_plan_service.update_status(db, plan.id, "Completed").status == "Completed"

    def test_backwards_rejected(self, db, school):
        plan = make_lesson_plan(db, school)
        lesson_plan_service.update_status(db, plan.id, "Completed")
        with pytest.raises(StateConflictError):
            lesson_plan_service.update_status(db, plan.id, "Active")

    def test_repeat_rejected(self, db, school):
        plan = make_lesson_plan(db, school)
        lesson_plan_service.update_status(db, plan.id, "Active")
        with pytest.raises(StateConflictError):
            lesson_plan_service.update_status(db, plan.id, "Active")

    def test_unknown_status(self, db, school):
        plan = make_lesson_plan(db, school)
        with pytest.raises(ValidationError):
            lesson_plan_service.update_status(db, plan.id, "Done")


class TestCompleteSession:
    """Completing a session is one-way."""

    def test_complete_reports_progress(self, db, school):
        plan = make_lesson_plan(db, school, sessions=2)
        session, all_done = lesson_plan_service.complete_session(db, plan.id, 1)
        assert session.status == "Completed"
        assert session.completed_at is not None
        assert all_done is False

        _, all_done = lesson_plan_service.complete_session(db, plan.id, 2)
        assert all_done is True

    def test_recomplete_rejected_without_change(self, db, school):
        plan = make_lesson_plan(db, school)
        session, _ = lesson_plan_service.complete_session(db, plan.id, 1)
        first_completed_at = session.completed_at

        with pytest.raises(StateConflictError):
            lesson_plan_service.complete_session(db, plan.id, 1)

        db.refresh(session)
        assert session.completed_at == first_completed_at
        assert session.status == "Completed"

    def test_unknown_session(self, db, school):
        plan = make_lesson_plan(db, school)
        with pytest.raises(NotFoundError):
            lesson_plan_service.complete_session(db, plan.id, 9)

    def test_unknown_plan(self, db):
        with pytest.raises(NotFoundError):
            lesson_plan_service.complete_session(db, "missing", 1)


class TestSessionAssessment:
    """A session assessment needs a window and a Completed session."""

    def _fake_generator(self, monkeypatch):
        async def fake(subject, grade, chapter_number, topics):
            return {"success": True, "questions": sample_questions(), "total_marks": 7, "chunks_used": 3}

        monkeypatch.setattr(assessment_generator, "generate_questions", fake)

    def test_requires_completed_session(self, db, school, monkeypatch):
        self._fake_generator(monkeypatch)
        plan = make_lesson_plan(db, school)
        now = utcnow()
        with pytest.raises(StateConflictError):
            asyncio.run(assessment_service.create_session_assessment(db, plan.id, 1, now, now + timedelta(hours=1)))

    def test_requires_dates(self, db, school):
        plan = make_lesson_plan(db, school)
        with pytest.raises(ValidationError):
            asyncio.run(assessment_service.create_session_assessment(db, plan.id, 1, None, None))

    def test_created_for_session(self, db, school, monkeypatch):
        self._fake_generator(monkeypatch)
        plan = make_lesson_plan(db, school)
        lesson_plan_service.complete_session(db, plan.id, 1)
        now = utcnow()

        assessment = asyncio.run(
            assessment_service.create_session_assessment(db, plan.id, 1, now, now + timedelta(hours=1))
        )

        assert assessment.assessment_type == "session"
        assert assessment.session_number == 1
        assert assessment.title == "Session 1 Assessment - Crop Production"
        assert assessment.topics == ["Topic 1", "Crop Production"]
        db.refresh(plan)
        assert plan.sessions[0].assessment_ids == [assessment.id]


class TestCuratedResources:
    def test_resources_land_on_matching_sessions(self, db, school):
        plan = make_lesson_plan(db, school)
        videos = [
            {"title": "Crops", "url": "u1", "duration": "8:00", "source": "Khan Academy", "topic": "Topic 2"},
        ]
        simulations = [
            {"title": "Sim", "url": "s1", "type": "PhET Simulation", "topic": "Crop Production"},
        ]

        summary = lesson_plan_service.apply_curated_resources(db, plan, videos, simulations)

        assert summary == {"total_videos": 1, "total_simulations": 1, "sessions_updated": 3}
        db.refresh(plan)
        first, second, third = plan.sessions
        assert first.resources["simulations"][0]["url"] == "s1"
        assert first.resources["videos"] == []
        assert second.resources["videos"][0]["url"] == "u1"
        assert third.resources == {"videos": [], "simulations": []}
        assert plan.recommended_videos[0]["title"] == "Crops"
