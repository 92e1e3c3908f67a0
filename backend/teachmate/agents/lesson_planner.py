"""Lesson planning agent: curriculum retrieval + LLM session planning."""

import logging

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError, ServiceError, ValidationError, failure
from teachmate.services import ai_client, vector_store
from teachmate.services.curriculum import curriculum_type, grade_number, index_subject

logger = logging.getLogger(__name__)

MIN_SESSIONS, MAX_SESSIONS = 1, 20
MIN_DURATION, MAX_DURATION = 30, 120
DEFAULT_DURATION = 45

CONTEXT_LIMITS = {"explanation": 10, "example": 5, "activity": 5, "exercise": 5, "definition": 5}

PLANNER_SYSTEM = (
    "You are an expert curriculum designer for Indian CBSE schools. "
    "You write practical, grade-appropriate lesson plans and answer with JSON only."
)


def validate_inputs(inputs: dict) -> dict:
    """Check required fields and ranges; returns inputs with defaults filled."""
    errors = []
    if not inputs.get("grade_name"):
        errors.append("Grade is required")
    if not inputs.get("subject_name"):
        errors.append("Subject is required")
    if not inputs.get("chapter_name"):
        errors.append("Chapter is required")

    sessions = inputs.get("sessions")
    if not isinstance(sessions, int) or not MIN_SESSIONS <= sessions <= MAX_SESSIONS:
        errors.append(f"Sessions must be between {MIN_SESSIONS} and {MAX_SESSIONS}")

    duration = inputs.get("session_duration") or DEFAULT_DURATION
    if not MIN_DURATION <= duration <= MAX_DURATION:
        errors.append(f"Session duration must be between {MIN_DURATION} and {MAX_DURATION} minutes")

    if errors:
        raise ValidationError("; ".join(errors))
    return {**inputs, "session_duration": duration}


async def retrieve_chapter_content(grade_name: str, subject_name: str, chapter_name: str, sessions: int) -> list[dict]:
    """Chapter-filtered search, falling back to the whole subject for the grade."""
    query_text = (
        f"{subject_name} {chapter_name} grade {grade_name} education learning teaching "
        f"curriculum {sessions} sessions"
    )
    base_filter = {"grade": grade_number(grade_name), "subject": index_subject(subject_name)}
    chapter_filter = {
        **base_filter,
        "$or": [
            {"chapter": chapter_name},
            {"topic": chapter_name},
            {"chapter_name": chapter_name},
        ],
    }

    vector = await ai_client.embed(query_text)
    matches = await vector_store.query(vector, top_k=200, filter=chapter_filter)
    if not matches:
        logger.info("No chapter-level chunks for %s / %s, widening search", subject_name, chapter_name)
        matches = await vector_store.query(vector, top_k=100, filter=base_filter)
    return matches


def build_prompt(inputs: dict, matches: list[dict]) -> str:
    grouped = vector_store.group_by_content_type(matches, CONTEXT_LIMITS)
    explanations = "\n\n".join(c["text"] for c in grouped["explanation"])[:2000]
    curriculum = curriculum_type(inputs["subject_name"])
    grade = inputs["grade_name"]
    chapter = inputs["chapter_name"]
    sessions = inputs["sessions"]
    duration = inputs["session_duration"]

    def has(kind: str) -> str:
        return "Yes" if grouped[kind] else "No"

    return f"""Create a detailed lesson plan using ALL the provided information:

REQUIRED INPUTS:
- Grade: {grade}
- Subject: {inputs["subject_name"]}
- Chapter: {chapter}
- Total Sessions: {sessions}
- Session Duration: {duration} minutes
- Curriculum: {curriculum}

CHAPTER CONTENT:
{explanations or "No specific content found - use general curriculum knowledge"}

AVAILABLE RESOURCES:
- Examples: {has("example")}
- Activities: {has("activity")}
- Exercises: {has("exercise")}
- Definitions: {has("definition")}
- Total Content Chunks: {len(matches)}

TASK:
Plan "{chapter}" for Grade {grade} in exactly {sessions} sessions of {duration} minutes each.
Each session needs learning objectives aligned with {curriculum} standards, the specific
topics it covers, and a teaching flow with time slots adding up to {duration} minutes.
Sessions must cover different aspects of the chapter with progressive difficulty.

OUTPUT FORMAT (JSON only, no other text):
{{
  "session_details": [
    {{
      "session_number": 1,
      "learning_objectives": ["objective 1", "objective 2"],
      "topics_covered": ["topic 1", "topic 2"],
      "teaching_flow": [
        {{"time_slot": "0-10 min", "activity": "Introduction", "description": "..."}}
      ]
    }}
  ],
  "overall_objectives": ["..."],
  "prerequisites": ["..."],
  "learning_outcomes": ["..."]
}}

Do NOT include assessments or videos; other tools add them later."""


def _as_str_list(value) -> list[str]:
    if isinstance(value, str):
        return [value]
    return [str(v) for v in (value or []) if v]


def normalize_plan(raw: dict, sessions: int) -> dict:
    """Validate the LLM plan shape and renumber sessions 1..n."""
    details = raw.get("session_details")
    if not isinstance(details, list) or len(details) != sessions:
        got = len(details) if isinstance(details, list) else 0
        raise ExternalDependencyError(f"AI returned {got} sessions, expected {sessions}")

    session_details = []
    for number, session in enumerate(details, start=1):
        flow = session.get("teaching_flow") or []
        session_details.append({
            "session_number": number,
            "learning_objectives": _as_str_list(session.get("learning_objectives")),
            "topics_covered": _as_str_list(session.get("topics_covered")),
            "teaching_flow": [
                {
                    "time_slot": str(step.get("time_slot", "")),
                    "activity": str(step.get("activity", "")),
                    "description": str(step.get("description", "")),
                }
                for step in flow
                if isinstance(step, dict)
            ],
        })

    return {
        "session_details": session_details,
        "overall_objectives": _as_str_list(raw.get("overall_objectives")),
        "prerequisites": _as_str_list(raw.get("prerequisites")),
        "learning_outcomes": _as_str_list(raw.get("learning_outcomes")),
    }


async def generate_plan(inputs: dict) -> dict:
    """Produce a plan dict for ``{grade_name, subject_name, chapter_name, sessions, session_duration}``.

    Returns ``{"success": True, "plan": {...}, "chunks_used": n}`` or a failure
    result. Nothing is persisted here.
    """
    try:
        inputs = validate_inputs(inputs)
        matches = await retrieve_chapter_content(
            inputs["grade_name"], inputs["subject_name"], inputs["chapter_name"], inputs["sessions"]
        )
        raw = await ai_client.chat(
            system=PLANNER_SYSTEM,
            messages=[{"role": "user", "content": build_prompt(inputs, matches)}],
            max_tokens=4000,
            temperature=0.7,
            model=settings.GENERATION_MODEL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
        plan = normalize_plan(ai_client.extract_json(raw), inputs["sessions"])
        return {"success": True, "plan": plan, "chunks_used": len(matches)}
    except ServiceError as e:
        logger.error("Lesson planning failed for %s: %s", inputs.get("chapter_name"), e)
        return failure(e)
    except Exception as e:
        logger.exception("Unexpected lesson planning error")
        return failure(e)
