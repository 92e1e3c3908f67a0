"""Student tutor assistant: OpenRouter tool calling over the learner tools."""

import json
import logging

from sqlalchemy.orm import Session

from teachmate.agents import learner_tools
from teachmate.config import settings
from teachmate.services import ai_client
from teachmate.services.curriculum import extract_chapters, grade_number

logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 3
FALLBACK_REPLY = "I'm having trouble right now. Please try again in a moment."

CONCERN_KEYWORDS = ("don't understand", "confused", "struggling", "difficult", "hard", "help me")

TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "search_knowledge_base",
            "description": (
                "Search the textbook for content about a topic or concept. Use this for "
                "questions about lessons, definitions or explanations."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The question or topic to look up"},
                    "subject": {"type": "string", "description": "Optional subject name"},
                },
                "required": ["query"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_student_progress",
            "description": "Get the student's recent assessment scores and weak topics.",
            "parameters": {
                "type": "object",
                "properties": {
                    "student_id": {"type": "string", "description": "The student's ID"},
                    "subject": {"type": "string", "description": "Optional subject filter"},
                },
                "required": ["student_id"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_upcoming_assessments",
            "description": "List the student's upcoming assessments.",
            "parameters": {
                "type": "object",
                "properties": {
                    "student_id": {"type": "string", "description": "The student's ID"},
                },
                "required": ["student_id"],
            },
        },
    },
]


def needs_attention(message: str) -> bool:
    """True when a student message reads like they are stuck."""
    lowered = message.lower()
    return any(keyword in lowered for keyword in CONCERN_KEYWORDS)


def build_system_prompt(student: dict, selected_chapters: list) -> str:
    grade = student.get("grade_name", "")
    prompt = f"""You are a helpful, patient, and encouraging AI tutor for {student.get("first_name")}, a {grade} student.

Your role:
- Answer questions about lessons, homework, and concepts
- Provide clear, age-appropriate explanations
- Never give direct answers to homework or test questions; guide the student to find them

Guidelines:
- Use simple language appropriate for {grade} level
- Break complex topics into smaller steps and ask guiding questions
- Politely redirect questions that are off-topic or inappropriate
- Never discuss personal, emotional, or non-academic topics

Student Context:
- Name: {student.get("first_name")} {student.get("last_name")}
- Grade: {grade}
- Class: {student.get("class_name")}"""
    if student.get("subject"):
        prompt += f"\n- Current Subject: {student['subject']}"
    if selected_chapters:
        chapters = ", ".join(str(c) for c in selected_chapters)
        prompt += (
            f"\n- Focused Chapters: {chapters}\n\nThe student is currently studying chapters {chapters}. "
            "Prioritize content from these chapters when answering and searching the knowledge base."
        )
    return prompt


async def execute_tool(db: Session, name: str, args: dict, context: dict):
    if name == "search_knowledge_base":
        subject = context.get("subject") or args.get("subject")
        chapters = context.get("selected_chapters") or extract_chapters(args.get("query", ""), subject)
        return await learner_tools.search_knowledge_base(
            args.get("query", ""), subject, context.get("grade", 8), chapters
        )
    if name == "get_student_progress":
        return learner_tools.student_progress(db, args["student_id"], context.get("subject") or args.get("subject"))
    if name == "get_upcoming_assessments":
        return learner_tools.upcoming_assessments(
            db, args["student_id"], context.get("grade_id"), context.get("class_id")
        )
    return {"error": "Unknown tool"}


async def run_tool_loop(db: Session, messages: list[dict], tools: list[dict], executor, fill_args: dict) -> dict:
    """Call the model until it answers without tools, at most MAX_TOOL_ROUNDS times.

    ``executor(name, args)`` runs one tool; ``fill_args`` are defaults merged
    into every tool call the model makes (the model does not know ids).
    """
    tools_used = []
    sources = []
    for _ in range(MAX_TOOL_ROUNDS):
        message = await ai_client.chat_completion(
            messages,
            tools=tools,
            model=settings.CHAT_MODEL,
            max_tokens=1000,
            temperature=0.7,
        )
        tool_calls = message.get("tool_calls") or []
        if not tool_calls:
            return {
                "success": True,
                "response": message.get("content") or "",
                "tools_used": tools_used,
                "sources": sources,
            }

        messages.append(message)
        for call in tool_calls:
            name = call["function"]["name"]
            try:
                args = json.loads(call["function"].get("arguments") or "{}")
            except json.JSONDecodeError:
                args = {}
            for key, value in fill_args.items():
                if value and not args.get(key):
                    args[key] = value

            logger.info("Assistant tool call: %s %s", name, args)
            result = await executor(name, args)
            tools_used.append({"name": name, "args": args})
            if name == "search_knowledge_base" and isinstance(result, list):
                sources.extend({"chapter": r["chapter"], "topic": r["topic"]} for r in result)
            messages.append({"role": "tool", "tool_call_id": call.get("id"), "content": json.dumps(result)})

    return {
        "success": True,
        "response": messages[-1].get("content") or "I need more information to help you.",
        "tools_used": tools_used,
        "sources": sources,
    }


async def chat(db: Session, query: str, student: dict, history: list[dict], selected_chapters: list) -> dict:
    """Answer one student message.

    ``student`` carries ``student_id, first_name, last_name, grade_name,
    class_name, grade_id, class_id`` and an optional ``subject``.
    """
    messages = [
        {"role": "system", "content": build_system_prompt(student, selected_chapters)},
        *history,
        {"role": "user", "content": query},
    ]
    context = {
        "grade": grade_number(student.get("grade_name")),
        "grade_id": student.get("grade_id"),
        "class_id": student.get("class_id"),
        "subject": student.get("subject"),
        "selected_chapters": selected_chapters,
    }

    async def executor(name, args):
        return await execute_tool(db, name, args, context)

    try:
        return await run_tool_loop(db, messages, TOOLS, executor, {"student_id": student.get("student_id")})
    except Exception as e:
        logger.exception("Student assistant failed")
        return {"success": False, "response": FALLBACK_REPLY, "error": str(e)}
