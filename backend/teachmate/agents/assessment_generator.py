"""Assessment generation agent: textbook-grounded question sets."""

import logging
import uuid

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError, NotFoundError, ServiceError, failure
from teachmate.models.assessment import DIFFICULTIES, QUESTION_TYPES
from teachmate.services import ai_client, vector_store
from teachmate.services.curriculum import grade_number, index_chapter, index_subject

logger = logging.getLogger(__name__)

# (input_type, count, marks each, difficulty)
QUESTION_BLUEPRINT = (
    ("MCQ", 5, 2, "Easy/Medium"),
    ("Fill in the Blank", 2, 1, "Easy"),
    ("Short Answer", 2, 2, "Medium"),
    ("Long Answer", 1, 4, "Hard"),
)
BLUEPRINT_TOTAL_MARKS = sum(count * marks for _, count, marks, _ in QUESTION_BLUEPRINT)

CONTEXT_LIMITS = {"explanation": 10, "example": 10, "definition": 10, "exercise": 10}

GENERATOR_SYSTEM = (
    "You write school assessment questions strictly from the textbook excerpts you are given. "
    "Answer with JSON only."
)


async def retrieve_content(subject: str, grade: str, chapter_number, topics: list[str]) -> list[dict]:
    query_text = f"{' '.join(topics)} {subject} grade {grade}"
    return await vector_store.search(
        query_text,
        top_k=100,
        filter={
            "subject": index_subject(subject),
            "grade": grade_number(grade),
            "chapter": index_chapter(subject, chapter_number),
        },
    )


def build_prompt(grouped: dict, topics: list[str]) -> str:
    def joined(kind: str, limit: int) -> str:
        return "\n\n".join(c["text"] for c in grouped[kind])[:limit]

    blueprint = "\n".join(
        f"- {count} {kind} question(s), {marks} mark(s) each, {difficulty} difficulty"
        for kind, count, marks, difficulty in QUESTION_BLUEPRINT
    )
    return f"""Generate assessment questions based ONLY on the following textbook content.

TOPICS TO ASSESS:
{", ".join(topics)}

TEXTBOOK CONTENT:

Definitions:
{joined("definition", 1000)}

Explanations:
{joined("explanation", 1500)}

Examples:
{joined("example", 1000)}

REQUIREMENTS ({BLUEPRINT_TOTAL_MARKS} marks in total):
{blueprint}

MCQs have 4 options with exactly one marked correct. Fill in the Blank answers are a single
word or short phrase. Short and Long Answer questions carry the expected answer as their only
option. Questions MUST be answerable from the given content and test understanding.

OUTPUT FORMAT (JSON only):
{{
  "questions": [
    {{
      "question": "Question text",
      "input_type": "MCQ",
      "answers": [
        {{"option": "Option A", "is_correct": true, "explanation": "Why this is correct"}},
        {{"option": "Option B", "is_correct": false, "explanation": ""}}
      ],
      "marks": 2,
      "difficulty": "Easy",
      "topic": "Topic name"
    }}
  ]
}}"""


def normalize_questions(raw: dict) -> list[dict]:
    """Give every question an id and 1-based order; coerce enum fields."""
    items = raw.get("questions")
    if not isinstance(items, list) or not items:
        raise ExternalDependencyError("AI returned no questions")

    questions = []
    for order, q in enumerate(items, start=1):
        input_type = q.get("input_type") if q.get("input_type") in QUESTION_TYPES else "Short Answer"
        difficulty = q.get("difficulty") if q.get("difficulty") in DIFFICULTIES else "Medium"
        try:
            marks = max(float(q.get("marks", 0)), 0.0)
        except (TypeError, ValueError):
            marks = 0.0
        questions.append({
            "question_id": str(uuid.uuid4()),
            "question": str(q.get("question", "")).strip(),
            "input_type": input_type,
            "answers": [
                {
                    "option": str(a.get("option", "")),
                    "is_correct": bool(a.get("is_correct", False)),
                    "explanation": str(a.get("explanation", "") or ""),
                }
                for a in (q.get("answers") or [])
                if isinstance(a, dict)
            ],
            "marks": marks,
            "difficulty": difficulty,
            "topic": str(q.get("topic", "") or ""),
            "order": order,
        })
    return questions


async def generate_questions(subject: str, grade: str, chapter_number, topics: list[str]) -> dict:
    """Returns ``{success, questions, total_marks, chunks_used}`` or a failure result."""
    try:
        matches = await retrieve_content(subject, grade, chapter_number, topics)
        if not matches:
            raise NotFoundError("No content found for these topics")
        grouped = vector_store.group_by_content_type(matches, CONTEXT_LIMITS)

        raw = await ai_client.chat(
            system=GENERATOR_SYSTEM,
            messages=[{"role": "user", "content": build_prompt(grouped, topics)}],
            max_tokens=4000,
            temperature=0.7,
            model=settings.GENERATION_MODEL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
        questions = normalize_questions(ai_client.extract_json(raw))
        return {
            "success": True,
            "questions": questions,
            "total_marks": sum(q["marks"] for q in questions),
            "chunks_used": len(matches),
        }
    except ServiceError as e:
        logger.error("Assessment generation failed (%s ch.%s): %s", subject, chapter_number, e)
        return failure(e)
    except Exception as e:
        logger.exception("Unexpected assessment generation error")
        return failure(e)
