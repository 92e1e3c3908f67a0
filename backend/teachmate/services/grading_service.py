"""Grading service: runs the grader over stored submissions.

A submission moves Submitted -> Grading -> Graded. If any answer cannot be
graded the submission goes back to Submitted untouched, so the next sweep
picks it up again.
"""

import asyncio
import json
import logging

from sqlalchemy.orm import Session

from teachmate.agents import submission_grader
from teachmate.clock import utcnow
from teachmate.config import settings
from teachmate.database import SessionLocal
from teachmate.errors import NotFoundError, failure
from teachmate.models.submission import Submission
from teachmate.services.catalog_service import get_or_404

logger = logging.getLogger(__name__)


async def _grade_answers(submission: Submission) -> tuple[list[dict], float, list[str]]:
    question_set = submission.assessment.question_set
    if question_set is None:
        raise NotFoundError("Assessment questions not found")
    questions = question_set.question_map()

    graded = []
    total = 0.0
    notes = []
    for index, answer in enumerate(submission.answers, start=1):
        question = questions.get(answer["question_id"])
        if question is None:
            notes.append(f"Q{index}: question no longer exists, skipped")
            graded.append(answer)
            continue

        result = await submission_grader.grade_answer(question, answer.get("student_answer"))
        graded.append({
            **answer,
            "correct_answer": submission_grader.expected_answer(question),
            "marks_obtained": result["marks"],
            "is_correct": result["marks"] == answer["max_marks"],
            "ai_feedback": result["feedback"],
        })
        total += result["marks"]
        notes.append(f"Q{index}: {result['accuracy_percentage']:g}% accurate - {result['feedback']}")
    return graded, total, notes


async def grade_submission(db: Session, submission_id: str) -> dict:
    """Grade one submission now.

    Returns ``{success, submission_id, marks, percentage}``, ``{skipped}`` for
    submissions that are not in Submitted, or a failure result.
    """
    submission = get_or_404(db, Submission, submission_id, "Submission")
    if submission.status != "Submitted":
        return {"success": True, "skipped": True, "reason": f"Already {submission.status}"}

    submission.status = "Grading"
    db.commit()

    try:
        answers, total, notes = await _grade_answers(submission)
    except Exception as e:
        logger.error("Grading failed for submission %s: %s", submission_id, e)
        db.rollback()
        submission = get_or_404(db, Submission, submission_id, "Submission")
        submission.status = "Submitted"
        db.commit()
        return {**failure(e), "submission_id": submission_id}

    submission.answers_json = json.dumps(answers)
    submission.total_marks_obtained = total
    submission.percentage = round(total / submission.total_marks * 100, 2) if submission.total_marks > 0 else 0.0
    submission.status = "Graded"
    submission.graded_at = utcnow()
    submission.ai_grading_notes = "\n".join(notes)
    db.commit()
    logger.info("Graded submission %s: %g/%g", submission_id, total, submission.total_marks)

    return {
        "success": True,
        "submission_id": submission_id,
        "marks": f"{total:g}/{submission.total_marks:g}",
        "percentage": submission.percentage,
    }


async def grade_all_ungraded(session_factory=SessionLocal) -> dict:
    """Grade every Submitted submission, oldest first, one at a time."""
    db = session_factory()
    try:
        ids = [
            sid for (sid,) in db.query(Submission.id)
            .filter(Submission.status == "Submitted")
            .order_by(Submission.submitted_at.asc())
            .all()
        ]
        results = []
        for index, submission_id in enumerate(ids):
            if index:
                await asyncio.sleep(settings.GRADING_ITEM_DELAY_SECONDS)
            results.append(await grade_submission(db, submission_id))
    finally:
        db.close()

    graded = sum(1 for r in results if r.get("success") and not r.get("skipped"))
    failed = sum(1 for r in results if not r.get("success"))
    if ids:
        logger.info("Grading sweep: %d submissions, %d graded, %d failed", len(ids), graded, failed)
    return {"total": len(ids), "graded": graded, "failed": failed, "results": results}
