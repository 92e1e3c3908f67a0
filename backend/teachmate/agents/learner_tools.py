"""Data tools the assistants (chat and voice) call on a learner's behalf.

Every tool returns JSON-serialisable data. Lookups that find nothing return
``{"message": ...}``; provider failures return ``{"error": ...}`` or an empty
list.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from teachmate.clock import utcnow
from teachmate.errors import ExternalDependencyError
from teachmate.models.assessment import Assessment
from teachmate.models.student import Student
from teachmate.models.submission import Submission
from teachmate.services import vector_store
from teachmate.services.curriculum import canonical_subject, grade_number, index_subject

logger = logging.getLogger(__name__)

WEAK_TOPIC_THRESHOLD = 60
TIME_PERIOD_DAYS = {"last_month": 30, "last_3_months": 90}


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


# ── Knowledge base ───────────────────────────────────────────────────────────

async def search_knowledge_base(
    query: str,
    subject: Optional[str] = None,
    grade=8,
    chapters: Optional[list[str]] = None,
    top_k: int = 5,
) -> list[dict]:
    """Textbook chunks for a question; chapter filter is dropped if it finds nothing."""
    filter: dict = {"grade": grade if isinstance(grade, int) else grade_number(grade)}
    if subject:
        filter["subject"] = index_subject(subject)

    try:
        matches = []
        if chapters:
            matches = await vector_store.search(query, top_k, {**filter, "chapter": {"$in": chapters}})
        if not matches:
            matches = await vector_store.search(query, top_k, filter)
    except ExternalDependencyError as e:
        logger.warning("Knowledge base search failed: %s", e)
        return []

    return [
        {
            "content": m["metadata"].get("textPreview") or m["metadata"].get("text", ""),
            "chapter": m["metadata"].get("chapter"),
            "topic": m["metadata"].get("topic"),
            "score": m.get("score"),
        }
        for m in matches
    ]


async def understand_topic(topic: str, grade) -> list[dict]:
    """Two short textbook passages explaining a topic, for parents."""
    results = await search_knowledge_base(topic, grade=grade, top_k=2)
    return [{"content": r["content"], "chapter": r["chapter"], "topic": r["topic"]} for r in results]


# ── Assessment history ───────────────────────────────────────────────────────

def _graded_submissions(db: Session, student_id: str, subject: Optional[str] = None, since=None, limit=None):
    q = (
        db.query(Submission)
        .filter(Submission.student_id == student_id, Submission.status == "Graded")
        .order_by(Submission.submitted_at.desc())
    )
    if since is not None:
        q = q.filter(Submission.submitted_at >= since)
    if limit:
        q = q.limit(limit)
    submissions = q.all()
    if subject:
        submissions = [s for s in submissions if canonical_subject(s.assessment.subject_name) == canonical_subject(subject)]
    return submissions


def student_progress(db: Session, student_id: str, subject: Optional[str] = None) -> dict:
    """Last five graded results, average percentage and weakest questions."""
    submissions = _graded_submissions(db, student_id, subject, limit=5)
    if not submissions:
        return {"message": "No assessment history found"}

    weak: dict[str, int] = {}
    for sub in submissions:
        for ans in sub.answers:
            if not ans.get("is_correct") and ans.get("marks_obtained", 0) < ans.get("max_marks", 0) * 0.5:
                key = ans.get("question_text", "")[:50]
                weak[key] = weak.get(key, 0) + 1

    return {
        "total_assessments": len(submissions),
        "average_score": round(sum(s.percentage for s in submissions) / len(submissions), 1),
        "weak_topics": list(weak)[:3],
        "recent_scores": [
            {"title": s.assessment.title, "score": s.percentage, "date": _iso(s.submitted_at)}
            for s in submissions
        ],
    }


def child_progress(db: Session, student_id: str, subject: Optional[str] = None, time_period: str = "all") -> dict:
    """Score statistics with a simple improving/declining/stable trend."""
    days = TIME_PERIOD_DAYS.get(time_period)
    since = utcnow() - timedelta(days=days) if days else None
    submissions = _graded_submissions(db, student_id, subject, since=since)
    if not submissions:
        return {"message": "No assessment history found for this time period"}

    scores = [s.total_marks_obtained for s in submissions]
    recent = scores[:3]
    older = scores[3:6]
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older) if older else recent_avg
    if recent_avg > older_avg + 5:
        trend = "improving"
    elif recent_avg < older_avg - 5:
        trend = "declining"
    else:
        trend = "stable"

    return {
        "total_assessments": len(submissions),
        "average_score": round(sum(scores) / len(scores), 1),
        "highest_score": max(scores),
        "lowest_score": min(scores),
        "trend": trend,
        "recent_assessments": [
            {
                "title": s.assessment.title,
                "subject": s.assessment.subject_name,
                "score": s.total_marks_obtained,
                "out_of_total_marks": s.total_marks,
                "date": _iso(s.submitted_at),
                "topics": s.assessment.topics,
            }
            for s in submissions[:5]
        ],
    }


def weak_areas(db: Session, student_id: str, subject: Optional[str] = None) -> dict:
    """Assessment topics whose average percentage is under 60, weakest first."""
    submissions = _graded_submissions(db, student_id, subject, limit=10)
    if not submissions:
        return {"message": "No assessment data available"}

    by_topic: dict[str, list[float]] = {}
    for sub in submissions:
        for topic in sub.assessment.topics:
            by_topic.setdefault(topic, []).append(sub.percentage)

    weak = [
        {"topic": topic, "average_score": round(sum(s) / len(s), 1), "attempts": len(s)}
        for topic, s in by_topic.items()
        if sum(s) / len(s) < WEAK_TOPIC_THRESHOLD
    ]
    weak.sort(key=lambda w: w["average_score"])
    return {"weak_topics": weak[:5], "total_topics_analyzed": len(by_topic)}


def upcoming_assessments(
    db: Session,
    student_id: str,
    grade_id: Optional[str] = None,
    class_id: Optional[str] = None,
):
    """Next five Scheduled/Active assessments for the student's grade."""
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        return {"message": "Student not found"}

    q = db.query(Assessment).filter(
        Assessment.grade_id == (grade_id or student.grade_id),
        Assessment.opens_on >= utcnow(),
        Assessment.status.in_(("Scheduled", "Active")),
    )
    if class_id:
        q = q.filter(or_(Assessment.class_id == class_id, Assessment.class_id.is_(None)))
    return [
        {
            "title": a.title,
            "subject": a.subject_name,
            "opens_on": _iso(a.opens_on),
            "due_date": _iso(a.due_date),
            "topics": a.topics,
        }
        for a in q.order_by(Assessment.opens_on).limit(5).all()
    ]


def study_recommendations(db: Session, student_id: str) -> dict:
    weak = weak_areas(db, student_id)
    upcoming = upcoming_assessments(db, student_id)
    return {
        "weak_areas": weak.get("weak_topics", []),
        "upcoming_assessments": upcoming[:3] if isinstance(upcoming, list) else [],
        "recommendations": [
            "Focus on topics with lowest scores first",
            "Practice regularly for 30 minutes daily",
            "Review mistakes from past assessments",
            "Prepare for upcoming assessments in advance",
        ],
    }
