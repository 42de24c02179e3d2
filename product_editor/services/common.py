"""
Helpers shared by the rule modules.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, TypeVar

from product_editor.core.exceptions import MalformedConfigurationError
from product_editor.core.logging import get_logger
from product_editor.schemas.results import Rejected

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: type[E], value: Any) -> E:
    """Accept an enum member or its raw value; anything else is a caller bug."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise MalformedConfigurationError(
            f"Unknown {enum_cls.__name__}: {value!r}",
            code="unknown_enum_value",
            extra={"enum": enum_cls.__name__, "value": repr(value)},
        ) from e


def reject(reason: str, code: str, field: Optional[str] = None, **context: Any) -> Rejected:
    logger.info("rule_rejected", reason=reason, code=code, field=field, **context)
    return Rejected(reason=reason, code=code, field=field)


__all__ = ["coerce_enum", "reject"]
