"""Tests for answer grading and the submission grading lifecycle."""

import asyncio
import json

import pytest

from conftest import make_assessment
from teachmate.agents import submission_grader
from teachmate.errors import ExternalDependencyError
from teachmate.models.submission import Submission
from teachmate.services import ai_client, grading_service, scheduler, submission_service


class TestBandMarks:
    """Accuracy bands: >= 90 full, >= 50 half, otherwise zero."""

    def test_high_accuracy_full_marks(self):
        """95% accuracy earns full marks."""
        assert submission_grader.band_marks(95, 4) == 4

    def test_mid_accuracy_half_marks(self):
        """70% accuracy earns exactly half, not rounded."""
        assert submission_grader.band_marks(70, 3) == 1.5

    def test_low_accuracy_zero(self):
        """30% accuracy earns nothing."""
        assert submission_grader.band_marks(30, 4) == 0

    def test_boundary_fifty_is_half(self):
        """Exactly 50 resolves to the higher (half) band."""
        assert submission_grader.band_marks(50, 4) == 2

    def test_boundary_ninety_is_full(self):
        """Exactly 90 resolves to the higher (full) band."""
        assert submission_grader.band_marks(90, 4) == 4

    def test_just_below_boundaries(self):
        assert submission_grader.band_marks(89.9, 4) == 2
        assert submission_grader.band_marks(49.9, 4) == 0


class TestObjectiveScoring:
    """Objective questions are scored locally without the LLM."""

    def _mcq(self):
        return {
            "input_type": "MCQ",
            "answers": [
                {"option": "Photosynthesis", "is_correct": True},
                {"option": "Respiration", "is_correct": False},
            ],
        }

    def test_mcq_correct_ignores_case_and_spacing(self):
        result = submission_grader.score_objective(self._mcq(), "  photosynthesis ", 2)
        assert result["marks"] == 2
        assert result["accuracy_percentage"] == 100

    def test_mcq_wrong(self):
        result = submission_grader.score_objective(self._mcq(), "Respiration", 2)
        assert result["marks"] == 0
        assert "Photosynthesis" in result["feedback"]

    def test_multiple_select_needs_exact_set(self):
        """Multiple Select awards marks only when the full correct set is chosen."""
        question = {
            "input_type": "Multiple Select",
            "answers": [
                {"option": "Wheat", "is_correct": True},
                {"option": "Rice", "is_correct": True},
                {"option": "Cotton", "is_correct": False},
            ],
        }
        assert submission_grader.score_objective(question, ["rice", "wheat"], 2)["marks"] == 2
        assert submission_grader.score_objective(question, "Wheat, Rice", 2)["marks"] == 2
        assert submission_grader.score_objective(question, ["Wheat"], 2)["marks"] == 0

    def test_empty_answer_scores_zero(self):
        result = asyncio.run(submission_grader.grade_answer({"input_type": "Long Answer", "marks": 4}, "  "))
        assert result["marks"] == 0
        assert result["feedback"] == "No answer provided."


class TestSubjectiveScoring:
    """The LLM judges accuracy; local banding owns the mark."""

    def test_model_mark_is_ignored(self, monkeypatch):
        """A 70% judgment yields half marks even if the model proposes full marks."""

        async def fake_chat(**kwargs):
            return json.dumps({"marks": 4, "accuracy_percentage": 70, "feedback": "Mostly right"})

        monkeypatch.setattr(ai_client, "chat", fake_chat)
        result = asyncio.run(submission_grader.grade_subjective("Q", "A", "answer", 4))
        assert result["marks"] == 2
        assert result["feedback"] == "Mostly right"

    def test_missing_accuracy_is_external_failure(self, monkeypatch):
        async def fake_chat(**kwargs):
            return json.dumps({"marks": 4, "feedback": "ok"})

        monkeypatch.setattr(ai_client, "chat", fake_chat)
        with pytest.raises(ExternalDependencyError):
            asyncio.run(submission_grader.grade_subjective("Q", "A", "answer", 4))


def _submit(db, school, assessment, long_answer="Soil preparation, sowing and harvesting"):
    return submission_service.submit(
        db,
        assessment.id,
        school["student"].id,
        [
            {"question_id": "q-mcq", "student_answer": "Photosynthesis"},
            {"question_id": "q-blank", "student_answer": "Rainy"},
            {"question_id": "q-long", "student_answer": long_answer},
        ],
        time_taken=20,
    )


class TestGradeSubmission:
    """Submitted -> Grading -> Graded, with rollback on failure."""

    def test_grades_and_totals(self, db, school, monkeypatch):
        async def fake_chat(**kwargs):
            return json.dumps({"accuracy_percentage": 95, "feedback": "Complete answer"})

        monkeypatch.setattr(ai_client, "chat", fake_chat)
        submission = _submit(db, school, make_assessment(db, school))

        result = asyncio.run(grading_service.grade_submission(db, submission.id))

        assert result["success"] is True
        assert result["marks"] == "7/7"
        db.refresh(submission)
        assert submission.status == "Graded"
        assert submission.total_marks_obtained == 7
        assert submission.percentage == 100.0
        assert submission.graded_at is not None
        assert all(a["is_correct"] for a in submission.answers)

    def test_failure_rolls_back_to_submitted(self, db, school, monkeypatch):
        """A grader exception must never leave the submission in Grading."""

        async def broken_chat(**kwargs):
            raise ExternalDependencyError("LLM timed out")

        monkeypatch.setattr(ai_client, "chat", broken_chat)
        submission = _submit(db, school, make_assessment(db, school))

        result = asyncio.run(grading_service.grade_submission(db, submission.id))

        assert result["success"] is False
        assert result["submission_id"] == submission.id
        db.expire_all()
        stored = db.query(Submission).filter(Submission.id == submission.id).one()
        assert stored.status == "Submitted"
        assert stored.total_marks_obtained == 0
        assert stored.graded_at is None

    def test_already_graded_is_skipped(self, db, school):
        submission = _submit(db, school, make_assessment(db, school))
        submission.status = "Graded"
        db.commit()

        result = asyncio.run(grading_service.grade_submission(db, submission.id))

        assert result["skipped"] is True

    def test_sweep_counts(self, db, school, session_factory, monkeypatch):
        async def fake_chat(**kwargs):
            return json.dumps({"accuracy_percentage": 60, "feedback": "Partly right"})

        monkeypatch.setattr(ai_client, "chat", fake_chat)
        _submit(db, school, make_assessment(db, school))

        summary = asyncio.run(grading_service.grade_all_ungraded(session_factory))

        assert summary["total"] == 1
        assert summary["graded"] == 1
        assert summary["failed"] == 0
        graded = db.query(Submission).one()
        db.refresh(graded)
        # 2 + 1 objective marks plus half of the 4-mark long answer
        assert graded.total_marks_obtained == 5


class TestGradingScheduler:
    """Only one grading sweep runs at a time."""

    def test_overlapping_run_is_skipped(self, session_factory, monkeypatch):
        calls = []

        async def fake_grade_all(factory):
            calls.append(factory)
            return {"total": 0, "graded": 0, "failed": 0}

        monkeypatch.setattr(grading_service, "grade_all_ungraded", fake_grade_all)
        grading = scheduler.GradingScheduler(session_factory)
        grading.is_grading = True

        result = asyncio.run(grading.run())

        assert result == {"skipped": True, "total": 0, "graded": 0, "failed": 0}
        assert calls == []
        assert grading.is_grading is True

    def test_flag_cleared_after_failure(self, session_factory, monkeypatch):
        async def broken_grade_all(factory):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(grading_service, "grade_all_ungraded", broken_grade_all)
        grading = scheduler.GradingScheduler(session_factory)

        with pytest.raises(RuntimeError):
            asyncio.run(grading.run())

        assert grading.is_grading is False

    def test_flag_cleared_after_success(self, session_factory, monkeypatch):
        async def fake_grade_all(factory):
            return {"total": 2, "graded": 2, "failed": 0}

        monkeypatch.setattr(grading_service, "grade_all_ungraded", fake_grade_all)
        grading = scheduler.GradingScheduler(session_factory)

        assert asyncio.run(grading.run())["graded"] == 2
        assert grading.is_grading is False
