"""
Boundary validation for raw form input.

Raw dicts (strings from HTML forms, JSON-encoded item lists) are parsed
once into typed pydantic inputs. `validate` reports failures as a value;
`parse` raises ValidationError for code paths that propagate.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


@dataclass(frozen=True)
class Ok(Generic[ModelT]):
    value: ModelT


@dataclass(frozen=True)
class Err:
    errors: dict[str, str]


Result = Union[Ok, Err]


def field_errors(exc: PydanticValidationError) -> dict[str, str]:
    """
    Flatten pydantic errors to {dotted path: message}.

    The first message per path wins. Model-level errors key on "__root__".
    """
    errors: dict[str, str] = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "__root__"
        message = error["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        errors.setdefault(path, message)
    return errors


def validate(model_cls: type[ModelT], data: Any) -> Result:
    """Parse data into model_cls. Ok(model) or Err(field errors)."""
    try:
        return Ok(model_cls.model_validate(data))
    except PydanticValidationError as e:
        return Err(field_errors(e))


def parse(model_cls: type[ModelT], data: Any) -> ModelT:
    """Parse data into model_cls or raise core ValidationError."""
    result = validate(model_cls, data)
    if isinstance(result, Err):
        raise ValidationError.from_errors(result)
    return result.value
