"""Tests for assessment invariants, submissions and the status sweep."""

import asyncio
import json
from datetime import timedelta

import pytest

from conftest import make_assessment, make_lesson_plan, sample_questions
from teachmate.agents import assessment_generator
from teachmate.clock import utcnow
from teachmate.errors import ExternalDependencyError, NotFoundError, ServiceError, StateConflictError, ValidationError
from teachmate.models.assessment import Assessment
from teachmate.services import assessment_service, scheduler, submission_service


class TestTotalMarks:
    """AssessmentQuestions.total_marks always equals the sum of question marks."""

    def test_total_after_create(self, db, school):
        assessment = make_assessment(db, school)
        assert assessment.question_set.total_marks == 7

    def test_total_recomputed_on_save(self, db, school):
        """Editing the raw question list is picked up at flush time."""
        assessment = make_assessment(db, school)
        question_set = assessment.question_set
        questions = question_set.questions
        questions[0]["marks"] = 10
        question_set.questions_json = json.dumps(questions)
        db.commit()
        db.refresh(question_set)

        assert question_set.total_marks == sum(q["marks"] for q in question_set.questions) == 15


class TestAssessmentWindow:
    """due_date must be after opens_on."""

    def test_defaults(self):
        opens_on, due_date = assessment_service.check_window(None, None)
        assert due_date - opens_on > timedelta(days=6)

    def test_due_before_open_rejected(self):
        now = utcnow()
        with pytest.raises(ValidationError, match="Due date must be after opening date"):
            assessment_service.check_window(now, now - timedelta(hours=1))

    def test_equal_dates_rejected(self):
        now = utcnow()
        with pytest.raises(ValidationError):
            assessment_service.check_window(now, now)

    def test_generate_rejects_bad_window_before_calling_ai(self, db, school, monkeypatch):
        async def must_not_run(*args, **kwargs):
            raise AssertionError("generator should not be called")

        monkeypatch.setattr(assessment_generator, "generate_questions", must_not_run)
        plan = make_lesson_plan(db, school)
        now = utcnow()
        with pytest.raises(ValidationError):
            asyncio.run(assessment_service.generate(db, plan.id, opens_on=now, due_date=now - timedelta(days=1)))

    def test_model_rejects_bad_window_on_save(self, db, school):
        assessment = make_assessment(db, school)
        assessment.due_date = assessment.opens_on - timedelta(minutes=5)
        with pytest.raises(ValidationError):
            db.commit()
        db.rollback()


class TestGenerate:
    """Generated assessments are saved as Draft with their question set."""

    def _fake_generator(self, calls):
        async def fake(subject, grade, chapter_number, topics):
            calls.append({"subject": subject, "grade": grade, "chapter_number": chapter_number, "topics": topics})
            return {"success": True, "questions": sample_questions(), "total_marks": 7, "chunks_used": 4}

        return fake

    def test_chapter_assessment(self, db, school, monkeypatch):
        calls = []
        monkeypatch.setattr(assessment_generator, "generate_questions", self._fake_generator(calls))
        plan = make_lesson_plan(db, school)

        assessment = asyncio.run(assessment_service.generate(db, plan.id))

        assert assessment.status == "Draft"
        assert assessment.title == "Chapter Assessment - Crop Production"
        assert assessment.total_marks == 7
        assert assessment.instructions == "Answer all questions. Total marks: 7"
        assert calls[0]["topics"] == ["Topic 1", "Crop Production", "Topic 2", "Topic 3"]
        assert assessment.id in plan.chapter_assessment_ids

    def test_session_assessment_needs_number(self, db, school):
        plan = make_lesson_plan(db, school)
        with pytest.raises(ValidationError):
            asyncio.run(assessment_service.generate(db, plan.id, assessment_type="session"))

    def test_generator_failure_is_generic(self, db, school, monkeypatch):
        """Provider errors surface as a fixed message, not the raw error text."""

        async def failing(*args):
            return {"success": False, "error": "secret upstream detail", "status_code": 500}

        monkeypatch.setattr(assessment_generator, "generate_questions", failing)
        plan = make_lesson_plan(db, school)
        with pytest.raises(ExternalDependencyError) as excinfo:
            asyncio.run(assessment_service.generate(db, plan.id))
        assert "secret" not in str(excinfo.value)
        assert excinfo.value.status_code == 500

    def test_no_content_is_not_found(self, db, school, monkeypatch):
        async def no_content(*args):
            return {"success": False, "error": "No content found for these topics", "status_code": 404}

        monkeypatch.setattr(assessment_generator, "generate_questions", no_content)
        plan = make_lesson_plan(db, school)
        with pytest.raises(ServiceError) as excinfo:
            asyncio.run(assessment_service.generate(db, plan.id))
        assert excinfo.value.status_code == 404


class TestSubmit:
    """A student may submit once, only while the assessment is Active."""

    def _answers(self):
        return [{"question_id": "q-mcq", "student_answer": "Photosynthesis"}]

    def test_submit_stores_answers(self, db, school):
        assessment = make_assessment(db, school)
        submission = submission_service.submit(db, assessment.id, school["student"].id, self._answers(), 12)

        assert submission.status == "Submitted"
        assert submission.total_marks == 2
        assert submission.time_taken == 12
        assert submission.answers[0]["question_text"] == "Which process do plants use to make food?"
        assert submission.answers[0]["max_marks"] == 2

    def test_duplicate_rejected(self, db, school):
        assessment = make_assessment(db, school)
        submission_service.submit(db, assessment.id, school["student"].id, self._answers())

        with pytest.raises(StateConflictError, match="already submitted"):
            submission_service.submit(db, assessment.id, school["student"].id, self._answers())

    def test_inactive_rejected(self, db, school):
        assessment = make_assessment(db, school, status="Draft")
        with pytest.raises(ValidationError, match="Current status: Draft"):
            submission_service.submit(db, assessment.id, school["student"].id, self._answers())

    def test_unknown_question_rejected(self, db, school):
        assessment = make_assessment(db, school)
        with pytest.raises(ValidationError, match="Question nope not found"):
            submission_service.submit(
                db, assessment.id, school["student"].id, [{"question_id": "nope", "student_answer": "x"}]
            )

    def test_repeated_question_rejected(self, db, school):
        assessment = make_assessment(db, school)
        answers = [{"question_id": "q-mcq", "student_answer": "Photosynthesis"}] * 3
        with pytest.raises(ValidationError, match="Question q-mcq answered more than once"):
            submission_service.submit(db, assessment.id, school["student"].id, answers)
        assert submission_service.submission_status(db, assessment.id, school["student"].id)["submitted"] is False

    def test_missing_assessment(self, db, school):
        with pytest.raises(NotFoundError):
            submission_service.submit(db, "missing", school["student"].id, self._answers())

    def test_status_lookup(self, db, school):
        assessment = make_assessment(db, school)
        assert submission_service.submission_status(db, assessment.id, school["student"].id)["submitted"] is False
        submission_service.submit(db, assessment.id, school["student"].id, self._answers())
        status = submission_service.submission_status(db, assessment.id, school["student"].id)
        assert status["submitted"] is True
        assert status["submission"]["status"] == "Submitted"


class TestAssessmentSweep:
    """Automated transitions only ever move forward."""

    def test_opens_draft_and_scheduled(self, db, school):
        now = utcnow()
        draft = make_assessment(db, school, status="Draft", opens_on=now - timedelta(minutes=1))
        scheduled = make_assessment(db, school, status="Scheduled", opens_on=now - timedelta(minutes=1))
        future = make_assessment(
            db, school, status="Draft", opens_on=now + timedelta(hours=1), due_date=now + timedelta(hours=2)
        )

        counts = scheduler.sweep(db, now)

        assert counts["opened"] == 2
        for assessment in (draft, scheduled, future):
            db.refresh(assessment)
        assert draft.status == "Active"
        assert scheduled.status == "Active"
        assert future.status == "Draft"

    def test_closes_overdue(self, db, school):
        now = utcnow()
        overdue = make_assessment(
            db, school, status="Active", opens_on=now - timedelta(days=2), due_date=now - timedelta(minutes=1)
        )
        scheduler.sweep(db, now)
        db.refresh(overdue)
        assert overdue.status == "Closed"

    def test_closed_never_reopens(self, db, school):
        """A Closed assessment inside its window stays Closed."""
        closed = make_assessment(db, school, status="Closed")
        counts = scheduler.sweep(db)
        db.refresh(closed)
        assert closed.status == "Closed"
        assert counts["opened"] == 0

    def test_idempotent(self, db, school):
        now = utcnow()
        make_assessment(db, school, status="Draft", opens_on=now - timedelta(minutes=1))
        scheduler.sweep(db, now)
        assert scheduler.sweep(db, now) == {"opened": 0, "closed": 0, "graded": 0}

    def test_marks_graded_when_all_submissions_graded(self, db, school):
        closed = make_assessment(db, school, status="Active")
        stored = submission_service.submit(
            db, closed.id, school["student"].id, [{"question_id": "q-mcq", "student_answer": "x"}]
        )
        closed.status = "Closed"
        db.commit()

        assert scheduler.mark_graded(db) == 0
        stored.status = "Graded"
        db.commit()
        assert scheduler.mark_graded(db) == 1
        db.refresh(closed)
        assert closed.status == "Graded"

    def test_closed_without_submissions_stays_closed(self, db, school):
        closed = make_assessment(db, school, status="Closed")
        assert scheduler.mark_graded(db) == 0
        db.refresh(closed)
        assert closed.status == "Closed"

    def test_inactive_flag_is_ignored(self, db, school):
        now = utcnow()
        hidden = make_assessment(db, school, status="Draft", opens_on=now - timedelta(minutes=1))
        hidden.is_active = False
        db.commit()
        scheduler.sweep(db, now)
        db.refresh(hidden)
        assert hidden.status == "Draft"


class TestManualStatus:
    def test_any_declared_status(self, db, school):
        assessment = make_assessment(db, school, status="Closed")
        assert assessment_service.update_status(db, assessment.id, "Scheduled").status == "Scheduled"

    def test_unknown_status(self, db, school):
        assessment = make_assessment(db, school)
        with pytest.raises(ValidationError):
            assessment_service.update_status(db, assessment.id, "Finished")

    def test_lookup_missing(self, db):
        with pytest.raises(NotFoundError):
            assessment_service.get_assessment(db, "missing")
        assert db.query(Assessment).count() == 0
