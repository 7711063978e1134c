"""
Practice suggestions
====================
Every provider answers one question: given the weak points of the last
report, which questions should the student practise next?

  - StaticSuggestionProvider     fixed set, ignores its input
  - GeneratedSuggestionProvider  asks the AI provider, targets the weak points
"""

import abc
import logging
from typing import List, Sequence

from pydantic import BaseModel

from essay_tutor.core.config import Settings, settings
from essay_tutor.schemas.grading import QuestionType
from essay_tutor.schemas.practice import Question
from essay_tutor.services.ai_provider import AIProvider
from essay_tutor.services.result import parse_reply

logger = logging.getLogger(__name__)

STATIC_QUESTIONS = (
    Question(
        id="1",
        type=QuestionType.noun_explanation,
        content="解释“气韵生动”及其在六法论中的地位",
        topic="中国画论",
    ),
    Question(
        id="2",
        type=QuestionType.short_answer,
        content="简述包豪斯的设计教育体系及其影响",
        topic="现代设计史",
    ),
    Question(
        id="3",
        type=QuestionType.essay,
        content="论述现实主义美术在19世纪法国的发展",
        topic="外国美术史",
    ),
)

# Shown on the practice view before any grading has produced suggestions.
PLACEHOLDER_QUESTIONS = (
    Question(
        id="1",
        type=QuestionType.short_answer,
        content="请先完成一次批改以获取推荐试题",
        topic="系统提示",
    ),
)


class SuggestionProvider(abc.ABC):
    @abc.abstractmethod
    async def suggest(self, weak_points: Sequence[str]) -> List[Question]:
        ...


class StaticSuggestionProvider(SuggestionProvider):
    async def suggest(self, weak_points: Sequence[str]) -> List[Question]:
        return [q.model_copy() for q in STATIC_QUESTIONS]


# ── Generated ────────────────────────────────────────────────────────────────

SUGGESTION_SYSTEM_PROMPT = (
    "You are an exam coach for the Tsinghua Academy of Arts & Design 621 exam "
    "(Art History & Theory).\n"
    "Write practice questions that drill the knowledge points the student missed.\n"
    "Mix the three exam question types: noun_explanation (名词解释), "
    "short_answer (简答题), essay (论述题).\n"
    "Write questions in Chinese, in the style of past 621 papers. "
    "topic is the course area, e.g. 中国美术史, 外国美术史, 现代设计史."
)

SUGGESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": [t.value for t in QuestionType]},
                    "content": {"type": "string"},
                    "topic": {"type": "string"},
                    "year": {"type": "string", "description": "Exam year if modelled on a past paper"},
                },
                "required": ["type", "content", "topic"],
            },
        },
    },
    "required": ["questions"],
}


class _DraftQuestion(BaseModel):
    type: QuestionType
    content: str
    topic: str
    year: str | None = None


class _DraftQuestions(BaseModel):
    questions: List[_DraftQuestion]


class GeneratedSuggestionProvider(SuggestionProvider):
    """Input-driven questions. Raises GradingError subclasses on failure."""

    def __init__(self, provider: AIProvider, count: int = 3, fallback: SuggestionProvider | None = None):
        self.provider = provider
        self.count = count
        self.fallback = fallback or StaticSuggestionProvider()

    async def suggest(self, weak_points: Sequence[str]) -> List[Question]:
        if not weak_points:
            return await self.fallback.suggest(weak_points)

        logger.info(f"[PRACTICE] Generating {self.count} question(s) for {len(weak_points)} weak point(s)")
        points = "\n".join(f"- {p}" for p in weak_points)
        raw = await self.provider.generate_json(
            system_instruction=SUGGESTION_SYSTEM_PROMPT,
            prompt=f"Generate exactly {self.count} questions targeting these weak points:\n{points}",
            response_schema=SUGGESTION_SCHEMA,
        )
        drafts = parse_reply(raw, _DraftQuestions).unwrap().questions[: self.count]
        return [
            Question(id=str(i), **draft.model_dump())
            for i, draft in enumerate(drafts, start=1)
        ]


def build_suggestion_provider(provider: AIProvider, config: Settings = settings) -> SuggestionProvider:
    if config.SUGGESTION_PROVIDER == "generated":
        return GeneratedSuggestionProvider(provider, count=config.SUGGESTION_COUNT)
    return StaticSuggestionProvider()
