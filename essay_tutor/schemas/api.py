"""
Essay Tutor — API Envelopes
============================
Every response from this API is wrapped in one of these shapes.
Errors always come back as ErrorResponse.
"""

from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from essay_tutor.schemas.grading import GradingReport, QuestionType
from essay_tutor.schemas.practice import Question
from essay_tutor.schemas.session import SessionState, View


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ─────────────────────────────────────────────────────────────────

class NavigateRequest(BaseModel):
    view: View


# ── Responses ────────────────────────────────────────────────────────────────

class SessionResponse(CamelModel):
    """Standard success envelope carrying the whole session state."""
    status: str = "success"
    session_id: str
    state: SessionState


class ReportResponse(CamelModel):
    """Current report plus the figures the report view derives from it."""
    status: str = "success"
    report: GradingReport
    score_band: str = Field(..., description="good (>=24) | fair (>=18) | poor")
    model_essay_type: QuestionType

    model_config = ConfigDict(protected_namespaces=())


class PracticeResponse(CamelModel):
    status: str = "success"
    questions: List[Question]


class ErrorResponse(BaseModel):
    """Standard error envelope."""
    status: str = "error"
    message: str
    detail: Optional[str] = None
