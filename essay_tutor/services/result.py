import logging
from dataclasses import dataclass
from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from essay_tutor.core.errors import SchemaError
from essay_tutor.services.ai_provider import clean_and_parse_json

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Either a validated model (ok) or the SchemaError explaining why not."""
    value: Optional[T] = None
    error: Optional[SchemaError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SchemaError) -> "ParseResult[T]":
        return cls(error=error)


def parse_reply(raw_text: Optional[str], model: Type[T]) -> ParseResult[T]:
    """Parse raw AI text into `model` without ever raising."""
    try:
        payload = clean_and_parse_json(raw_text)
    except SchemaError as e:
        return ParseResult.failure(e)

    try:
        return ParseResult.success(model.model_validate(payload))
    except PydanticValidationError as e:
        logger.warning(
            f"[AI] Reply does not match {model.__name__}: {e.error_count()} error(s), "
            f"first: {e.errors()[0]['loc']} {e.errors()[0]['msg']}"
        )
        return ParseResult.failure(SchemaError(f"Reply does not match {model.__name__}: {e}"))
