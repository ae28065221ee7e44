"""Shared schema helpers - turn pydantic failures into domain ValidationErrors."""

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def describe_errors(exc: PydanticValidationError) -> str:
    """Compact 'field: message; ...' summary for API responses."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "body"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


def validate_or_raise(model: type[ModelT], data: Any) -> ModelT:
    """model_validate that raises ValidationError (400) instead of pydantic's error."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(describe_errors(exc)) from exc
