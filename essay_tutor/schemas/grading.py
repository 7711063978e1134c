"""
Essay Tutor — Grading Schemas
==============================
Typed contract for one grading round trip.
Python attributes are snake_case; the JSON exchanged with the AI provider
and the browser uses the camelCase aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MAX_OVERALL_SCORE = 30


class Persona(str, Enum):
    professor = "professor"
    senior = "senior"
    analyst = "analyst"


class LogicStatus(str, Enum):
    good = "good"
    average = "average"
    poor = "poor"


class ErrorKind(str, Enum):
    fact = "fact"
    date = "date"
    style = "style"
    grammar = "grammar"


class ComparativeLevel(str, Enum):
    excellent = "Excellent"
    good = "Good"
    passing = "Pass"
    fail = "Fail"


class QuestionType(str, Enum):
    noun_explanation = "noun_explanation"
    short_answer = "short_answer"
    essay = "essay"


class ReportModel(BaseModel):
    """Frozen camelCase base shared by every report fragment."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )


# ── Request ──────────────────────────────────────────────────────────────────

class GradingRequest(BaseModel):
    """One submission. Built per call and discarded afterwards."""
    topic: str = Field(..., min_length=1)
    answer_text: Optional[str] = None
    answer_image: Optional[bytes] = None
    persona: Persona = Persona.professor

    @model_validator(mode="after")
    def _require_answer(self) -> GradingRequest:
        if not self.has_text and not self.has_image:
            raise ValueError("answer_text or answer_image is required")
        return self

    @property
    def has_text(self) -> bool:
        return bool(self.answer_text and self.answer_text.strip())

    @property
    def has_image(self) -> bool:
        return bool(self.answer_image)


# ── Report fragments ─────────────────────────────────────────────────────────

class KnowledgePoint(ReportModel):
    point: str
    covered: bool = Field(..., strict=True)
    missing_detail: Optional[str] = None


class LogicNode(ReportModel):
    section: str
    evaluation: str
    status: LogicStatus


class ErrorItem(ReportModel):
    kind: ErrorKind = Field(..., alias="type")
    original: str
    correction: str
    explanation: str


class RadarMetric(ReportModel):
    subject: str
    user_score: int = Field(..., alias="A", ge=0, le=100, strict=True)
    reference_score: int = Field(..., alias="B", ge=0, le=100, strict=True)
    full_mark: Literal[100] = 100


class Optimization(ReportModel):
    original_segment: str
    improved_segment: str
    reason: str


class WritingTemplateItem(ReportModel):
    technique: str
    template: str
    example: str


class WritingTemplates(ReportModel):
    brainstorming: Tuple[WritingTemplateItem, ...]
    intro: Tuple[WritingTemplateItem, ...]
    conclusion: Tuple[WritingTemplateItem, ...]


class HandwritingEvaluation(ReportModel):
    legibility: str
    estimated_word_count: int = Field(..., ge=0, strict=True)
    time_management_advice: str


# ── Report ───────────────────────────────────────────────────────────────────

class GradingReport(ReportModel):
    """Immutable result of one successful grading call."""
    overall_score: int = Field(..., ge=0, le=MAX_OVERALL_SCORE, strict=True)
    summary: str
    knowledge_points: Tuple[KnowledgePoint, ...]
    logic_structure: Tuple[LogicNode, ...]
    keywords_detected: Tuple[str, ...]
    errors: Tuple[ErrorItem, ...]
    radar_data: Tuple[RadarMetric, ...]
    optimization: Optimization
    writing_templates: WritingTemplates
    academic_language_score: int = Field(..., ge=0, le=100, strict=True)
    handwriting_evaluation: Optional[HandwritingEvaluation] = None
    comparative_level: ComparativeLevel
    comparative_comment: str
    model_essay: str

    @field_validator("keywords_detected")
    @classmethod
    def _dedupe_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(v))

    @property
    def weak_points(self) -> Tuple[str, ...]:
        """Knowledge points the answer did not cover, in report order."""
        return tuple(kp.point for kp in self.knowledge_points if not kp.covered)

    @property
    def score_band(self) -> str:
        if self.overall_score >= 24:
            return "good"
        if self.overall_score >= 18:
            return "fair"
        return "poor"

    @property
    def model_essay_type(self) -> QuestionType:
        """Guess the question type from the model essay's length band."""
        length = len(self.model_essay)
        if length < 300:
            return QuestionType.noun_explanation
        if length < 700:
            return QuestionType.short_answer
        return QuestionType.essay
