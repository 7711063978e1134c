from pydantic import BaseModel
from typing import Optional

from essay_tutor.schemas.grading import QuestionType


class Question(BaseModel):
    """A follow-up practice question."""
    id: str
    type: QuestionType
    content: str
    topic: str
    year: Optional[str] = None
