# product_editor/core/exceptions.py
from __future__ import annotations

"""
Exceptions for the product editor engine.

Rule rejections and validation failures are values, never exceptions; the
classes below cover programmer errors, collaborator (network/API) failures and
misuse of the editing session.
"""

from typing import Any, Dict, Optional

from product_editor.core.logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Domain exceptions
# -----------------------------------------------------------------------------


class ProductEditorException(Exception):
    """Base domain exception."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        *,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.extra:
            body["extra"] = self.extra
        return {k: v for k, v in body.items() if v is not None}


class MalformedConfigurationError(ProductEditorException):
    """A rule was called with a structurally invalid configuration (programmer error)."""


class CollaboratorError(ProductEditorException):
    """Network/storage failure reported by an external collaborator."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, extra=extra)
        self.status_code = status_code


class NotFoundError(CollaboratorError):
    """Resource not found on the product API."""


class SessionStateError(ProductEditorException):
    """Editing session used out of order (e.g. submit while hydrating)."""


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

_GENERIC_MESSAGE = "Something went wrong. Please try again."


def user_message(exc: BaseException) -> str:
    """Single message the host shows for a failure."""
    if isinstance(exc, NotFoundError):
        return exc.message or "Product not found"
    if isinstance(exc, ProductEditorException):
        return exc.message or _GENERIC_MESSAGE
    logger.error("unexpected_error", error=repr(exc))
    return _GENERIC_MESSAGE


__all__ = [
    "ProductEditorException",
    "MalformedConfigurationError",
    "CollaboratorError",
    "NotFoundError",
    "SessionStateError",
    "user_message",
]
