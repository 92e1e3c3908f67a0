"""Parent assistant: progress, weak areas and study advice for one child."""

import logging

from sqlalchemy.orm import Session

from teachmate.agents import learner_tools
from teachmate.agents.student_assistant import FALLBACK_REPLY, run_tool_loop

logger = logging.getLogger(__name__)

_STUDENT_ID = {"type": "string", "description": "The child's student ID"}
_SUBJECT = {"type": "string", "description": "Optional: filter by specific subject"}


def _tool(name: str, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required},
        },
    }


TOOLS = [
    _tool(
        "get_child_progress",
        "Get the child's assessment scores, averages and performance trend.",
        {
            "student_id": _STUDENT_ID,
            "subject": _SUBJECT,
            "time_period": {
                "type": "string",
                "enum": ["last_month", "last_3_months", "all"],
                "description": "Time period to analyse",
            },
        },
        ["student_id"],
    ),
    _tool(
        "get_weak_areas",
        "Identify topics where the child is scoring below 60%.",
        {"student_id": _STUDENT_ID, "subject": _SUBJECT},
        ["student_id"],
    ),
    _tool(
        "get_study_recommendations",
        "Get personalised study recommendations for the child.",
        {"student_id": _STUDENT_ID},
        ["student_id"],
    ),
    _tool(
        "get_upcoming_assessments",
        "Get the list of upcoming tests and assessments for the child.",
        {"student_id": _STUDENT_ID},
        ["student_id"],
    ),
    _tool(
        "understand_topic",
        "Look up a textbook explanation of a topic the child is learning.",
        {
            "topic": {"type": "string", "description": "The topic to understand"},
            "grade": {"type": "number", "description": "Grade level"},
        },
        ["topic", "grade"],
    ),
]


def build_system_prompt(parent_name: str, child: dict) -> str:
    child_name = f"{child.get('first_name')} {child.get('last_name')}"
    return f"""You are a helpful AI assistant for {parent_name}, a parent of {child_name} ({child.get("grade_name")}).

Child Information:
- Student ID: {child.get("student_id")}
- Full name: {child_name}
- Grade: {child.get("grade_name")}
- Class: {child.get("class_name")}

Your role:
- Help parents understand their child's academic progress
- Explain what topics their child is learning
- Identify areas where the child needs improvement
- Provide actionable suggestions for supporting their child's learning

Guidelines:
- Use clear, non-technical language and focus on constructive feedback
- Never share other students' information

Response Rule: Response should always be in markdown format

Remember: You're helping parents support their child's education, not replacing the teacher."""


async def execute_tool(db: Session, name: str, args: dict):
    student_id = args.get("student_id")
    if name == "get_child_progress":
        return learner_tools.child_progress(db, student_id, args.get("subject"), args.get("time_period") or "all")
    if name == "get_weak_areas":
        return learner_tools.weak_areas(db, student_id, args.get("subject"))
    if name == "get_study_recommendations":
        return learner_tools.study_recommendations(db, student_id)
    if name == "get_upcoming_assessments":
        return learner_tools.upcoming_assessments(db, student_id)
    if name == "understand_topic":
        return await learner_tools.understand_topic(args.get("topic", ""), args.get("grade") or 8)
    return {"error": "Unknown tool"}


async def chat(db: Session, query: str, parent_name: str, child: dict, history: list[dict]) -> dict:
    messages = [
        {"role": "system", "content": build_system_prompt(parent_name, child)},
        *history,
        {"role": "user", "content": query},
    ]

    async def executor(name, args):
        # Tools only ever see this parent's child
        if "student_id" in args:
            args["student_id"] = child.get("student_id")
        return await execute_tool(db, name, args)

    try:
        return await run_tool_loop(db, messages, TOOLS, executor, {"student_id": child.get("student_id")})
    except Exception as e:
        logger.exception("Parent assistant failed")
        return {"success": False, "response": FALLBACK_REPLY, "error": str(e)}
