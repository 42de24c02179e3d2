"""
Outcome records returned by rule and validation functions.

Expected constraint violations are values, not exceptions: a rule returns
either a new configuration or a ``Rejected``; the validator returns ``Ok`` or
``Err``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Rejected:
    """A rule refused a mutation; the configuration was not changed."""

    reason: str
    code: str = "rejected"
    field: Optional[str] = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return False

    def __contains__(self, key: Any) -> bool:
        return key in self.errors


def is_rejected(outcome: Any) -> bool:
    return isinstance(outcome, Rejected)


__all__ = ["Rejected", "Ok", "Err", "is_rejected"]
