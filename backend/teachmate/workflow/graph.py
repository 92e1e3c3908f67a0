"""Lesson plan workflow graph.

load_plan → [curate_content] → [generate_chapter_assessment]

Curation is best-effort: its failure is recorded and the chapter assessment
still runs. The assessment step only runs for Completed plans.
"""

from __future__ import annotations

from typing import Literal, Optional

from langgraph.graph import END, START, StateGraph

from teachmate.database import SessionLocal
from teachmate.errors import NotFoundError
from teachmate.workflow.nodes import curate_content, generate_chapter_assessment, load_plan
from teachmate.workflow.state import WorkflowState


def _route_after_load(state: WorkflowState) -> Literal["curate_content", "generate_chapter_assessment", "__end__"]:
    if state.get("error"):
        return "__end__"
    if state.get("run_curation"):
        return "curate_content"
    return _route_after_curation(state)


def _route_after_curation(state: WorkflowState) -> Literal["generate_chapter_assessment", "__end__"]:
    if state.get("run_assessment") and state.get("plan_status") == "Completed":
        return "generate_chapter_assessment"
    return "__end__"


def build_graph():
    graph = StateGraph(WorkflowState)

    graph.add_node("load_plan", load_plan)
    graph.add_node("curate_content", curate_content)
    graph.add_node("generate_chapter_assessment", generate_chapter_assessment)

    graph.add_edge(START, "load_plan")
    graph.add_conditional_edges(
        "load_plan",
        _route_after_load,
        {
            "curate_content": "curate_content",
            "generate_chapter_assessment": "generate_chapter_assessment",
            "__end__": END,
        },
    )
    graph.add_conditional_edges(
        "curate_content",
        _route_after_curation,
        {
            "generate_chapter_assessment": "generate_chapter_assessment",
            "__end__": END,
        },
    )
    graph.add_edge("generate_chapter_assessment", END)

    return graph.compile()


_graph = None


def get_graph():
    global _graph
    if _graph is None:
        _graph = build_graph()
    return _graph


async def run_workflow(
    lesson_plan_id: str,
    run_curation: bool = True,
    run_assessment: bool = True,
    assessment_config: Optional[dict] = None,
    session_factory=SessionLocal,
) -> dict:
    """Run the requested steps for one lesson plan.

    Returns ``{success, lesson_plan_id, plan_status, curation, assessment}``.
    ``success`` is False when any step that ran failed; a step that did not
    run is reported as None.
    """
    final = await get_graph().ainvoke(
        {
            "lesson_plan_id": lesson_plan_id,
            "run_curation": run_curation,
            "run_assessment": run_assessment,
            "assessment_config": assessment_config or {},
            "curation": None,
            "assessment": None,
            "error": None,
        },
        config={"configurable": {"session_factory": session_factory}},
    )
    if final.get("error"):
        raise NotFoundError(final["error"])

    steps = [final.get("curation"), final.get("assessment")]
    return {
        "success": all(step["success"] for step in steps if step),
        "lesson_plan_id": lesson_plan_id,
        "plan_status": final.get("plan_status"),
        "curation": final.get("curation"),
        "assessment": final.get("assessment"),
    }
