"""A lesson plan from first session to a graded session assessment."""

import asyncio
import json
from datetime import timedelta

from conftest import make_lesson_plan, sample_questions
from teachmate.agents import assessment_generator
from teachmate.clock import utcnow
from teachmate.services import (
    ai_client,
    assessment_service,
    grading_service,
    lesson_plan_service,
    scheduler,
    submission_service,
)


class TestSessionAssessmentLifecycle:
    def test_plan_to_graded_submission(self, db, school, session_factory, monkeypatch):
        async def generate_questions(subject, grade, chapter_number, topics):
            return {"success": True, "questions": sample_questions(), "total_marks": 7, "chunks_used": 5}

        async def judge(**kwargs):
            return json.dumps({"accuracy_percentage": 70, "feedback": "Misses harvesting"})

        monkeypatch.setattr(assessment_generator, "generate_questions", generate_questions)
        monkeypatch.setattr(ai_client, "chat", judge)

        plan = make_lesson_plan(db, school, sessions=3)
        lesson_plan_service.update_status(db, plan.id, "Active")
        _, all_done = lesson_plan_service.complete_session(db, plan.id, 1)
        assert all_done is False

        now = utcnow()
        assessment = asyncio.run(
            assessment_service.create_session_assessment(db, plan.id, 1, now, now + timedelta(hours=1))
        )
        assert assessment.status == "Draft"

        assert scheduler.sweep(db, now + timedelta(minutes=1)) == {"opened": 1, "closed": 0, "graded": 0}
        db.refresh(assessment)
        assert assessment.status == "Active"

        submission = submission_service.submit(
            db,
            assessment.id,
            school["student"].id,
            [
                {"question_id": "q-mcq", "student_answer": "photosynthesis"},
                {"question_id": "q-blank", "student_answer": "Rainy"},
                {"question_id": "q-long", "student_answer": "Prepare soil, sow and irrigate"},
            ],
            time_taken=900,
        )
        assert submission.status == "Submitted"

        summary = asyncio.run(grading_service.grade_all_ungraded(session_factory))
        assert summary["graded"] == 1

        db.refresh(submission)
        assert submission.status == "Graded"
        assert submission.total_marks_obtained == 5
        assert submission.percentage == 71.43
        long_answer = submission.answers[2]
        assert long_answer["marks_obtained"] == 2
        assert long_answer["is_correct"] is False

        assert scheduler.sweep(db, now + timedelta(hours=2)) == {"opened": 0, "closed": 1, "graded": 1}
        db.refresh(assessment)
        assert assessment.status == "Graded"
