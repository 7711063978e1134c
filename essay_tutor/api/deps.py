from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from essay_tutor.services.sessions import SessionStore, build_session_store
from essay_tutor.services.workflow import WorkflowController

SESSION_HEADER = "X-Session-ID"


@lru_cache
def get_session_store() -> SessionStore:
    return build_session_store()


@dataclass
class Session:
    id: str
    controller: WorkflowController

    @property
    def headers(self) -> dict:
        return {SESSION_HEADER: self.id}


def get_session(
    x_session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
    store: SessionStore = Depends(get_session_store),
) -> Session:
    session_id, controller = store.get_or_create(x_session_id)
    return Session(id=session_id, controller=controller)
