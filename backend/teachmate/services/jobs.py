"""Background workflow jobs.

A handler enqueues a job row and gets its id back immediately; the work
runs as an asyncio task with its own DB session and records the outcome on
the row. Clients poll ``GET /api/jobs/{id}``.
"""

import asyncio
import json
import logging
from typing import Optional

from sqlalchemy.orm import Session

from teachmate.clock import utcnow
from teachmate.database import SessionLocal
from teachmate.models.workflow_job import WorkflowJob
from teachmate.services.catalog_service import get_or_404
from teachmate.workflow.graph import run_workflow

logger = logging.getLogger(__name__)

# kind -> (run_curation, run_assessment)
JOB_KINDS = {
    "curation": (True, False),
    "chapter_assessment": (False, True),
    "full_workflow": (True, True),
}

# Pending tasks, dropped once done
_tasks: set[asyncio.Task] = set()


def enqueue(db: Session, kind: str, lesson_plan_id: str) -> WorkflowJob:
    job = WorkflowJob(kind=kind, lesson_plan_id=lesson_plan_id, status="pending")
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def _set_status(session_factory, job_id: str, **fields) -> None:
    db = session_factory()
    try:
        job = db.query(WorkflowJob).filter(WorkflowJob.id == job_id).first()
        if job is None:
            return
        for key, value in fields.items():
            setattr(job, key, value)
        db.commit()
    finally:
        db.close()


async def run_job(
    job_id: str,
    kind: str,
    lesson_plan_id: str,
    assessment_config: Optional[dict] = None,
    session_factory=SessionLocal,
) -> None:
    """Run one job to completion. All args are plain values, not ORM objects."""
    run_curation, run_assessment = JOB_KINDS[kind]
    _set_status(session_factory, job_id, status="running", started_at=utcnow())
    try:
        result = await run_workflow(
            lesson_plan_id,
            run_curation=run_curation,
            run_assessment=run_assessment,
            assessment_config=assessment_config,
            session_factory=session_factory,
        )
    except Exception as e:
        logger.exception("Job %s (%s) crashed", job_id, kind)
        _set_status(session_factory, job_id, status="failed", error=str(e), finished_at=utcnow())
        return

    errors = [step["error"] for step in (result["curation"], result["assessment"]) if step and not step["success"]]
    _set_status(
        session_factory,
        job_id,
        status="succeeded" if result["success"] else "failed",
        result_json=json.dumps(result),
        error="; ".join(errors) or None,
        finished_at=utcnow(),
    )
    logger.info("Job %s (%s) finished: %s", job_id, kind, "ok" if result["success"] else errors)


def _spawn(job_id: str, kind: str, lesson_plan_id: str, assessment_config: Optional[dict]) -> None:
    task = asyncio.create_task(run_job(job_id, kind, lesson_plan_id, assessment_config))
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)


def launch(db: Session, kind: str, lesson_plan_id: str, assessment_config: Optional[dict] = None) -> WorkflowJob:
    """Enqueue a job and start it on the running event loop."""
    if kind not in JOB_KINDS:
        raise ValueError(f"Unknown job kind: {kind}")
    job = enqueue(db, kind, lesson_plan_id)
    _spawn(job.id, kind, lesson_plan_id, assessment_config)
    logger.info("Launched %s job %s for lesson plan %s", kind, job.id, lesson_plan_id)
    return job


def get_job(db: Session, job_id: str) -> WorkflowJob:
    return get_or_404(db, WorkflowJob, job_id, "Job")
