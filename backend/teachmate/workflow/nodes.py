"""Workflow graph nodes.

Every node opens its own DB session from the ``session_factory`` passed in
the run config, so the graph can run detached from any request.
"""

from __future__ import annotations

import logging

from langchain_core.runnables import RunnableConfig

from teachmate.agents import content_curator
from teachmate.errors import ServiceError
from teachmate.models.lesson_plan import LessonPlan
from teachmate.services import assessment_service, lesson_plan_service
from teachmate.workflow.state import WorkflowState

logger = logging.getLogger(__name__)


def _session(config: RunnableConfig):
    return config["configurable"]["session_factory"]()


# ── load_plan ─────────────────────────────────────────────────────────────────

async def load_plan(state: WorkflowState, config: RunnableConfig) -> dict:
    db = _session(config)
    try:
        lesson_plan = db.query(LessonPlan).filter(LessonPlan.id == state["lesson_plan_id"]).first()
        if lesson_plan is None:
            return {"error": "Lesson plan not found"}
        return {
            "plan_status": lesson_plan.status,
            "subject": lesson_plan.subject_name,
            "grade": lesson_plan.grade_name,
            "topics": lesson_plan.all_topics(),
        }
    finally:
        db.close()


# ── curate_content ────────────────────────────────────────────────────────────

async def curate_content(state: WorkflowState, config: RunnableConfig) -> dict:
    result = await content_curator.curate(state["topics"], state["subject"], state["grade"])
    if not result["success"]:
        logger.warning("Curation failed for lesson plan %s: %s", state["lesson_plan_id"], result["error"])
        return {"curation": {"success": False, "error": result["error"]}}

    db = _session(config)
    try:
        lesson_plan = lesson_plan_service.get_lesson_plan(db, state["lesson_plan_id"])
        summary = lesson_plan_service.apply_curated_resources(
            db, lesson_plan, result["videos"], result["simulations"]
        )
    except ServiceError as e:
        logger.warning("Could not store curated resources for %s: %s", state["lesson_plan_id"], e)
        return {"curation": {"success": False, "error": e.message}}
    finally:
        db.close()
    return {"curation": {"success": True, "summary": summary}}


# ── generate_chapter_assessment ───────────────────────────────────────────────

async def generate_chapter_assessment(state: WorkflowState, config: RunnableConfig) -> dict:
    db = _session(config)
    try:
        assessment = await assessment_service.generate(
            db,
            state["lesson_plan_id"],
            assessment_type="chapter",
            **(state.get("assessment_config") or {}),
        )
    except ServiceError as e:
        logger.error("Chapter assessment failed for lesson plan %s: %s", state["lesson_plan_id"], e)
        return {"assessment": {"success": False, "error": e.message}}
    finally:
        db.close()
    return {"assessment": {"success": True, "assessment_id": assessment.id}}
