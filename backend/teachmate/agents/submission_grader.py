"""Answer grading agent.

Objective questions are checked against their correct options locally.
Subjective answers get an accuracy judgment from the LLM, and ``band_marks``
turns that accuracy into the awarded mark. The model's own mark suggestion
is ignored; only its feedback text is kept.
"""

import logging

from teachmate.config import settings
from teachmate.errors import ExternalDependencyError
from teachmate.services import ai_client

logger = logging.getLogger(__name__)

OBJECTIVE_TYPES = ("MCQ", "Multiple Select", "True/False", "Fill in the Blank")

FULL_MARKS_ACCURACY = 90
HALF_MARKS_ACCURACY = 50

GRADER_SYSTEM = "You are an expert CBSE teacher. Always respond with valid JSON only."


def band_marks(accuracy: float, max_marks: float) -> float:
    """>= 90 -> full marks, >= 50 -> half marks, otherwise zero."""
    if accuracy >= FULL_MARKS_ACCURACY:
        return max_marks
    if accuracy >= HALF_MARKS_ACCURACY:
        return max_marks / 2
    return 0


def correct_options(question: dict) -> list[str]:
    return [a["option"] for a in question.get("answers", []) if a.get("is_correct")]


def expected_answer(question: dict) -> str:
    options = correct_options(question)
    if options:
        return options[0]
    answers = question.get("answers") or []
    if answers and answers[0].get("option"):
        return answers[0]["option"]
    return "No expected answer provided"


def _norm(text) -> str:
    return " ".join(str(text).split()).casefold()


def _selected(student_answer) -> set[str]:
    if isinstance(student_answer, list):
        parts = student_answer
    else:
        parts = str(student_answer).split(",")
    return {_norm(p) for p in parts if str(p).strip()}


def score_objective(question: dict, student_answer, max_marks: float) -> dict:
    expected = {_norm(o) for o in correct_options(question)}
    if question.get("input_type") == "Multiple Select":
        right = bool(expected) and _selected(student_answer) == expected
    else:
        right = _norm(student_answer) in expected
    return {
        "marks": max_marks if right else 0,
        "accuracy_percentage": 100 if right else 0,
        "feedback": "Correct." if right else f"Incorrect. Expected: {', '.join(correct_options(question))}",
    }


def build_prompt(question_text: str, expected: str, student_answer: str, max_marks: float) -> str:
    return f"""You are an expert CBSE teacher grading a student's answer.

QUESTION:
{question_text}

EXPECTED ANSWER:
{expected}

STUDENT'S ANSWER:
{student_answer}

MAXIMUM MARKS: {max_marks}

GRADING CRITERIA:
- If the answer is >= 90% accurate: Award FULL marks ({max_marks})
- If the answer is >= 50% accurate but < 90%: Award HALF marks ({max_marks / 2})
- If the answer is < 50% accurate: Award 0 marks

Evaluate correctness of key concepts, completeness, clarity and relevance.

Respond ONLY with valid JSON in this exact format:
{{
  "marks": <number>,
  "accuracy_percentage": <number>,
  "feedback": "<brief feedback explaining the marks>"
}}"""


async def grade_subjective(question_text: str, expected: str, student_answer: str, max_marks: float) -> dict:
    """LLM accuracy judgment, banded locally. Raises ExternalDependencyError."""
    raw = await ai_client.chat(
        system=GRADER_SYSTEM,
        messages=[{"role": "user", "content": build_prompt(question_text, expected, student_answer, max_marks)}],
        max_tokens=500,
        temperature=0.2,
        model=settings.GRADING_MODEL,
        timeout=settings.GRADING_TIMEOUT_SECONDS,
    )
    result = ai_client.extract_json(raw)
    try:
        accuracy = min(max(float(result["accuracy_percentage"]), 0.0), 100.0)
    except (KeyError, TypeError, ValueError) as e:
        raise ExternalDependencyError("Grader response had no usable accuracy_percentage") from e

    return {
        "marks": band_marks(accuracy, max_marks),
        "accuracy_percentage": accuracy,
        "feedback": str(result.get("feedback", "")),
    }


async def grade_answer(question: dict, student_answer) -> dict:
    """Grade one answer against its question; returns marks, accuracy and feedback."""
    max_marks = float(question.get("marks", 0) or 0)
    if student_answer is None or not str(student_answer).strip():
        return {"marks": 0, "accuracy_percentage": 0, "feedback": "No answer provided."}
    if question.get("input_type") in OBJECTIVE_TYPES:
        return score_objective(question, student_answer, max_marks)
    return await grade_subjective(
        question.get("question", ""),
        expected_answer(question),
        str(student_answer),
        max_marks,
    )
