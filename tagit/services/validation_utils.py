"""Turn pydantic validation failures into the tagger's own ValidationError."""

from typing import Type, TypeVar

import pydantic
from pydantic import BaseModel

from ..exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


def parse_input(model: Type[ModelT], **data) -> ModelT:
    """Build ``model`` from ``data``, raising ValidationError on the first problem."""
    try:
        return model(**data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        message = str(first.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(message, field=field) from e
