import logging
import uuid
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from essay_tutor.core.config import Settings, settings
from essay_tutor.services.ai_provider import AIProvider, build_provider
from essay_tutor.services.grading_client import GradingClient
from essay_tutor.services.mindmap_client import MindMapClient
from essay_tutor.services.practice import build_suggestion_provider
from essay_tutor.services.workflow import WorkflowController

logger = logging.getLogger(__name__)


def controller_factory(provider: AIProvider, config: Settings = settings) -> Callable[[], WorkflowController]:
    """All sessions share one provider; each gets its own controller and state."""
    grading_client = GradingClient(provider, temperature=config.GRADING_TEMPERATURE)
    mind_map_client = MindMapClient(provider)
    suggestion_provider = build_suggestion_provider(provider, config)

    def create() -> WorkflowController:
        return WorkflowController(grading_client, suggestion_provider, mind_map_client)

    return create


class SessionStore:
    """In-memory sessions keyed by id, least recently used evicted past `limit`."""

    def __init__(self, factory: Callable[[], WorkflowController], limit: int = 1000):
        self.factory = factory
        self.limit = limit
        self._sessions: "OrderedDict[str, WorkflowController]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get_or_create(self, session_id: Optional[str]) -> Tuple[str, WorkflowController]:
        if session_id and session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return session_id, self._sessions[session_id]

        session_id = uuid.uuid4().hex
        self._sessions[session_id] = self.factory()
        while len(self._sessions) > self.limit:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"[SESSION] Evicted idle session {evicted}")
        return session_id, self._sessions[session_id]


def build_session_store(config: Settings = settings) -> SessionStore:
    return SessionStore(controller_factory(build_provider(config), config), limit=config.SESSION_LIMIT)
