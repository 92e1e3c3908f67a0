"""Voice router: Retell web calls, the transcript webhook and mid-call functions.

The webhook and function endpoints are called by Retell, not by a signed-in
user, so they take no bearer token.
"""

import logging

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user
from teachmate.middleware.rate_limit import VOICE_WEBHOOK_LIMIT, limiter
from teachmate.schemas.voice import (
    CallStartResponse,
    FunctionResult,
    ParentCallStart,
    StudentCallStart,
    VoiceCallResponse,
    WebhookRequest,
    WebhookResponse,
)
from teachmate.services import voice_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"])

WEBHOOK_APOLOGY = "I'm sorry, I'm having trouble processing that right now. Could you please repeat?"
FUNCTION_APOLOGY = "I'm having trouble looking that up right now."


@router.post("/student/start", response_model=CallStartResponse, status_code=201)
async def start_student_call(req: StudentCallStart, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    call = await voice_service.start_student_call(db, req.student_id, req.subject, req.selected_chapters)
    return CallStartResponse(call_id=call.call_id, access_token=call.access_token)


@router.post("/parent/start", response_model=CallStartResponse, status_code=201)
async def start_parent_call(req: ParentCallStart, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    call = await voice_service.start_parent_call(db, req.parent_id, req.student_id, req.subject)
    return CallStartResponse(call_id=call.call_id, access_token=call.access_token)


@router.post("/webhook", response_model=WebhookResponse)
@limiter.limit(VOICE_WEBHOOK_LIMIT)
async def webhook(request: Request, req: WebhookRequest, db: Session = Depends(get_db)):
    """Answer the caller's latest transcript."""
    call_id = req.metadata.get("call_id") or req.call_id
    try:
        response = await voice_service.handle_webhook(db, call_id, req.transcript)
    except Exception:
        logger.exception("Voice webhook failed for call %s", call_id)
        return JSONResponse(status_code=500, content={"response": WEBHOOK_APOLOGY, "end_call": False})
    return WebhookResponse(response=response)


@router.get("/history/{student_id}", response_model=list[VoiceCallResponse])
def call_history(student_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return voice_service.call_history(db, student_id)


@router.post("/end/{call_id}", response_model=VoiceCallResponse)
def end_call(call_id: str, db: Session = Depends(get_db), _: Account = Depends(get_current_user)):
    return voice_service.end_call(db, call_id)


# ── Functions invoked by Retell mid-call ─────────────────────────────────────
# Body: {"call": {"call_id": ...}, "args": {...}}; bare args are accepted too.

def _function_input(body: dict) -> tuple:
    args = body.get("args") or body
    call = body.get("call") or {}
    metadata = call.get("metadata") or {}
    return metadata.get("call_id") or call.get("call_id"), args


@router.post("/functions/search_knowledge_base", response_model=FunctionResult)
async def fn_search_knowledge_base(body: dict = Body(...), db: Session = Depends(get_db)):
    call_id, args = _function_input(body)
    try:
        result = await voice_service.voice_search(db, call_id, args.get("query", ""), args.get("subject"))
    except Exception:
        logger.exception("Voice knowledge search failed")
        result = FUNCTION_APOLOGY
    return FunctionResult(result=result)


@router.post("/functions/get_student_progress", response_model=FunctionResult)
def fn_get_student_progress(body: dict = Body(...), db: Session = Depends(get_db)):
    call_id, args = _function_input(body)
    try:
        result = voice_service.voice_progress(db, call_id, args.get("subject"))
    except Exception:
        logger.exception("Voice progress lookup failed")
        result = FUNCTION_APOLOGY
    return FunctionResult(result=result)


@router.post("/functions/get_upcoming_assessments", response_model=FunctionResult)
def fn_get_upcoming_assessments(body: dict = Body(...), db: Session = Depends(get_db)):
    call_id, _ = _function_input(body)
    try:
        result = voice_service.voice_upcoming(db, call_id)
    except Exception:
        logger.exception("Voice upcoming assessments lookup failed")
        result = FUNCTION_APOLOGY
    return FunctionResult(result=result)
