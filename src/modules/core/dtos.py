"""DTO helpers shared by every module.

``parse_dto`` is the single place where a Pydantic validation failure is
turned into the domain ``ValidationError`` so services and views only ever
see the fulfillment error taxonomy.
"""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from modules.core.exceptions import ValidationError

DTO = TypeVar("DTO", bound=BaseModel)


def parse_dto(dto_class: Type[DTO], data: Mapping[str, Any]) -> DTO:
    """Build ``dto_class`` from ``data``.

    Raises:
        ValidationError: first failing field, with its location as ``attr``.
    """
    try:
        payload = data.dict() if hasattr(data, "dict") else dict(data)
        return dto_class.model_validate(payload)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        attr = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "Invalid input.")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        raise ValidationError(message, attr=attr) from exc
