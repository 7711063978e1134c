"""
Essay Tutor — 621 Art History Grading Assistant
================================================
FastAPI entry point.
  • Global exception handler — never crashes, always returns JSON
  • /api/v1/tutor/* — submit, report, practice, mind map
  • Per-browser session state keyed by the X-Session-ID header
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from essay_tutor.api.deps import SESSION_HEADER
from essay_tutor.api.v1.endpoints.tutor import router as tutor_router
from essay_tutor.core.config import settings
from essay_tutor.schemas.api import ErrorResponse

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)

# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Essay Tutor — 621 Art History Grading Assistant",
    description=(
        "Submit an essay (typed or photographed) and receive a structured grading report,\n"
        "targeted practice questions and answer mind maps."
    ),
    version="1.0.0",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


# ── Global Exception Handler ────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    body = ErrorResponse(
        status="error",
        message="An internal server error occurred.",
        detail=str(exc),
    )
    return JSONResponse(status_code=500, content=body.model_dump())


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER],
)

app.include_router(tutor_router, prefix="/api/v1", tags=["Tutor"])


# ── Health Check ─────────────────────────────────────────────────────────────
@app.get("/", tags=["System"])
async def health_check():
    return {
        "status": "operational",
        "service": "Essay Tutor",
        "version": app.version,
        "ai_provider": settings.AI_PROVIDER,
    }
