from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from essay_tutor.schemas.grading import GradingReport
from essay_tutor.schemas.mindmap import MindMapNode
from essay_tutor.schemas.practice import Question


class View(str, Enum):
    submitting = "submitting"
    reporting = "reporting"
    practicing = "practicing"


class NoticeLevel(str, Enum):
    warning = "warning"
    error = "error"


class Notice(BaseModel):
    """User-facing message left behind by the last action."""
    level: NoticeLevel
    message: str


class SessionState(BaseModel):
    """Everything one browser session sees. Owned by its WorkflowController."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    view: View = View.submitting
    loading: bool = False
    report: Optional[GradingReport] = None
    suggestions: List[Question] = []
    mind_map: Optional[MindMapNode] = None
    notice: Optional[Notice] = None
