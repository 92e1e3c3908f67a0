"""TeachMate FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

import teachmate.models  # noqa: F401  registers every table on Base.metadata
from teachmate.config import settings
from teachmate.database import Base, engine
from teachmate.errors import ServiceError
from teachmate.middleware.rate_limit import limiter
from teachmate.routers import (
    assessments,
    auth,
    catalog,
    chat,
    content,
    jobs,
    lesson_plans,
    people,
    submissions,
    voice,
)
from teachmate.services.ai_client import ai_health_check, ai_provider_name
from teachmate.services.scheduler import assessment_loop, grading_loop

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("teachmate")

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env ────────────────────────────────────────────────────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="TeachMate",
    description="School management backend with AI lesson planning, assessments and tutoring.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Service errors carry their own status code
async def _service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_exception_handler(ServiceError, _service_error_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(people.router)
app.include_router(lesson_plans.router)
app.include_router(assessments.router)
app.include_router(submissions.router)
app.include_router(content.router)
app.include_router(jobs.router)
app.include_router(chat.router)
app.include_router(voice.router)


@app.on_event("startup")
async def on_startup():
    """Log the AI provider and start the in-process schedulers."""
    provider = ai_provider_name()
    if provider == "none":
        logger.warning(
            "AI not configured: set OPENROUTER_API_KEY or ANTHROPIC_API_KEY in backend/.env "
            "and visit /api/health/ai to verify"
        )
    else:
        logger.info("AI provider: %s", provider)

    if settings.SCHEDULERS_ENABLED:
        assessment_loop.start()
        grading_loop.start()


@app.on_event("shutdown")
async def on_shutdown():
    await assessment_loop.stop()
    await grading_loop.stop()


@app.get("/")
def root():
    return {
        "name": "TeachMate API",
        "version": "1.0.0",
        "docs": "/docs",
        "ai_provider": ai_provider_name(),
    }


@app.get("/health")
def health():
    return {"status": "ok", "ai_provider": ai_provider_name()}


@app.get("/api/health/ai")
async def health_ai():
    """Live connectivity test for the configured AI provider.

    Returns:
        provider: which AI is active
        status:   "ok" | "error" | "unconfigured"
        test_reply / error: result of a tiny test call
    """
    return await ai_health_check()
