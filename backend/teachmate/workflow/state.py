"""Workflow graph state."""

from __future__ import annotations

from typing import Optional

from typing_extensions import TypedDict


class StepResult(TypedDict, total=False):
    success: bool
    error: str
    summary: dict
    assessment_id: str


class WorkflowState(TypedDict, total=False):
    # Input
    lesson_plan_id: str
    run_curation: bool
    run_assessment: bool
    assessment_config: dict

    # load_plan
    plan_status: str
    subject: str
    grade: str
    topics: list[str]

    # curate_content / generate_chapter_assessment
    curation: Optional[StepResult]
    assessment: Optional[StepResult]

    error: Optional[str]
