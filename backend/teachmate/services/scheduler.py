"""Periodic assessment and grading sweeps.

Both loops run inside the API process and assume exactly one running
instance: the only guard against overlapping grading runs is an in-process
flag.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from teachmate.clock import utcnow
from teachmate.config import settings
from teachmate.database import SessionLocal
from teachmate.models.assessment import Assessment
from teachmate.models.submission import Submission
from teachmate.services import grading_service

logger = logging.getLogger(__name__)


# ── Assessment status sweeps ─────────────────────────────────────────────────
# Forward-only: Draft/Scheduled -> Active -> Closed -> Graded.

def _transition(db: Session, assessments: list[Assessment], status: str) -> int:
    for assessment in assessments:
        assessment.status = status
    db.commit()
    return len(assessments)


def open_due(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    found = (
        db.query(Assessment)
        .filter(
            Assessment.status.in_(("Draft", "Scheduled")),
            Assessment.is_active.is_(True),
            Assessment.opens_on <= now,
        )
        .all()
    )
    return _transition(db, found, "Active")


def close_overdue(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    found = (
        db.query(Assessment)
        .filter(
            Assessment.status == "Active",
            Assessment.is_active.is_(True),
            Assessment.due_date <= now,
        )
        .all()
    )
    return _transition(db, found, "Closed")


def mark_graded(db: Session) -> int:
    """Closed assessments whose submissions (at least one) are all Graded."""
    found = (
        db.query(Assessment)
        .filter(
            Assessment.status == "Closed",
            Assessment.is_active.is_(True),
            Assessment.submissions.any(),
            ~Assessment.submissions.any(Submission.status != "Graded"),
        )
        .all()
    )
    return _transition(db, found, "Graded")


def sweep(db: Session, now: Optional[datetime] = None) -> dict:
    counts = {
        "opened": open_due(db, now),
        "closed": close_overdue(db, now),
        "graded": mark_graded(db),
    }
    if any(counts.values()):
        logger.info("Assessment sweep: %s", counts)
    return counts


def run_assessment_sweep(session_factory=SessionLocal, now: Optional[datetime] = None) -> dict:
    db = session_factory()
    try:
        return sweep(db, now)
    finally:
        db.close()


# ── Grading sweep ────────────────────────────────────────────────────────────

class GradingScheduler:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self.is_grading = False

    async def run(self) -> dict:
        if self.is_grading:
            logger.info("Grading sweep already running, skipping")
            return {"skipped": True, "total": 0, "graded": 0, "failed": 0}
        self.is_grading = True
        try:
            return await grading_service.grade_all_ungraded(self.session_factory)
        finally:
            self.is_grading = False


grading_scheduler = GradingScheduler()


# ── Loops ────────────────────────────────────────────────────────────────────

class PeriodicTask:
    """Runs ``func`` every ``interval`` seconds until stopped."""

    def __init__(self, name: str, interval: float, func):
        self.name = name
        self.interval = interval
        self.func = func
        self._task: Optional[asyncio.Task] = None

    async def _loop(self):
        while True:
            try:
                await self.func()
            except Exception:
                logger.exception("%s sweep failed", self.name)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._loop())
            logger.info("%s scheduler started (every %ss)", self.name, self.interval)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("%s scheduler stopped", self.name)


async def _assessment_tick():
    run_assessment_sweep()


assessment_loop = PeriodicTask("Assessment", settings.ASSESSMENT_SWEEP_INTERVAL_SECONDS, _assessment_tick)
grading_loop = PeriodicTask("Grading", settings.GRADING_SWEEP_INTERVAL_SECONDS, grading_scheduler.run)
