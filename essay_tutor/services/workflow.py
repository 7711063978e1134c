"""
Essay Tutor — Workflow Controller
==================================
Per-session state machine behind the three views:

    submitting --submit ok--> reporting --navigate--> practicing
        ^            |
        +--failure---+

A submission runs grading, then practice suggestions, strictly in sequence.
The loading flag brackets both calls and is always released.
"""

import logging
from typing import List, Optional, Union

from essay_tutor.core.errors import (
    GradingError,
    NavigationError,
    SubmissionInProgressError,
    ValidationError,
)
from essay_tutor.schemas.grading import Persona
from essay_tutor.schemas.mindmap import MindMapNode
from essay_tutor.schemas.practice import Question
from essay_tutor.schemas.session import Notice, NoticeLevel, SessionState, View
from essay_tutor.services.grading_client import GradingClient, build_grading_request
from essay_tutor.services.mindmap_client import MindMapClient
from essay_tutor.services.practice import PLACEHOLDER_QUESTIONS, SuggestionProvider

logger = logging.getLogger(__name__)

GRADING_FAILED_NOTICE = "批改过程中出现问题，请稍后重试"


class WorkflowController:
    def __init__(
        self,
        grading_client: GradingClient,
        suggestion_provider: SuggestionProvider,
        mind_map_client: MindMapClient,
    ):
        self.grading_client = grading_client
        self.suggestion_provider = suggestion_provider
        self.mind_map_client = mind_map_client
        self.state = SessionState()

    # ── Submission ───────────────────────────────────────────────────────────

    async def submit(
        self,
        topic: Optional[str],
        answer_text: Optional[str] = None,
        answer_image: Optional[bytes] = None,
        persona: Union[Persona, str] = Persona.professor,
    ) -> SessionState:
        """
        Grade one answer and move to the report view.

        Raises SubmissionInProgressError while another submission is loading,
        ValidationError for bad input (no network call made) and GradingError
        when the grading call fails. A notice is left on the state either way.
        """
        if self.state.loading:
            raise SubmissionInProgressError("A submission is already being graded.")

        self.state.notice = None
        try:
            request = build_grading_request(topic, answer_text, answer_image, persona)
        except ValidationError as e:
            self.state.view = View.submitting
            self.state.notice = Notice(level=NoticeLevel.warning, message=str(e))
            raise

        self.state.loading = True
        try:
            report = await self.grading_client.grade_request(request)
            suggestions = await self._suggest(report.weak_points)

            self.state.report = report
            self.state.suggestions = suggestions
            self.state.view = View.reporting
            logger.info(f"[WORKFLOW] ✓ Report ready, {len(suggestions)} suggestion(s)")
        except GradingError as e:
            logger.error(f"[WORKFLOW] Grading failed: {e}")
            self.state.view = View.submitting
            self.state.notice = Notice(level=NoticeLevel.error, message=GRADING_FAILED_NOTICE)
            raise
        finally:
            self.state.loading = False

        return self.state

    async def _suggest(self, weak_points) -> List[Question]:
        try:
            return await self.suggestion_provider.suggest(weak_points)
        except Exception as e:
            # Suggestions are optional; the report still stands.
            logger.warning(f"[WORKFLOW] Suggestions unavailable: {e}")
            return []

    # ── Navigation ───────────────────────────────────────────────────────────

    def navigate(self, view: Union[View, str]) -> SessionState:
        view = View(view)
        if view is View.reporting and self.state.report is None:
            raise NavigationError("No report yet. Submit an answer first.")
        self.state.view = view
        return self.state

    @property
    def practice_questions(self) -> List[Question]:
        return self.state.suggestions or list(PLACEHOLDER_QUESTIONS)

    # ── Mind map ─────────────────────────────────────────────────────────────

    async def build_mind_map(self, topic: Optional[str]) -> Optional[MindMapNode]:
        """Independent of the submission flow; leaves view and report alone."""
        mind_map = await self.mind_map_client.build_mind_map(topic)
        self.state.mind_map = mind_map
        return mind_map
