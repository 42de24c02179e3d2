# product_editor/core/logging.py
"""
Logging for the product editor engine.

- Stdlib logging (dictConfig console handler) + structlog on top of it.
- JSON rendering in production or with LOG_FORMAT=json, dev console otherwise.
- Sensitive fields redaction (API tokens never reach the log sink).
- Editing context (session_id, product_id, store_id) via contextvars, so every
  rule and gateway event emitted while a session works carries it.
"""

from __future__ import annotations

import logging
import logging.config
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional, Tuple

import structlog

from product_editor.core.config import settings

# ---------- Context vars ----------
_ctx_session_id: ContextVar[str] = ContextVar("session_id", default="")
_ctx_product_id: ContextVar[str] = ContextVar("product_id", default="")
_ctx_store_id: ContextVar[str] = ContextVar("store_id", default="")

_CONFIGURED = False

# ---------- Secrets redaction ----------
_SECRET_KEYS = ("secret", "password", "token", "authorization", "api_key")


def _mask_secret_value(v: Any) -> Any:
    s = str(v)
    if len(s) <= 6:
        return "***"
    return s[:3] + "***" + s[-3:]


def redact_secrets(data: Any) -> Any:
    if isinstance(data, dict):
        out: Dict[str, Any] = {}
        for k, v in data.items():
            lk = str(k).lower()
            if any(x in lk for x in _SECRET_KEYS):
                out[k] = _mask_secret_value(v)
            else:
                out[k] = redact_secrets(v)
        return out
    if isinstance(data, list):
        return [redact_secrets(v) for v in data]
    if isinstance(data, tuple):
        return tuple(redact_secrets(v) for v in data)
    return data


# ---------- structlog processors ----------
def _inject_context(_, __, event_dict):
    sid = _ctx_session_id.get()
    pid = _ctx_product_id.get()
    st = _ctx_store_id.get()
    if sid:
        event_dict["session_id"] = sid
    if pid:
        event_dict["product_id"] = pid
    if st:
        event_dict["store_id"] = st
    return event_dict


def _redact_processor(_, __, event_dict):
    return redact_secrets(event_dict)


def _add_app(_, __, event_dict):
    event_dict["app"] = settings.APP_NAME
    event_dict["version"] = settings.VERSION
    return event_dict


# ---------- Stdlib dictConfig ----------
def _build_stdlib_dict_config() -> dict:
    level = settings.LOG_LEVEL
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": level, "propagate": False},
            "httpx": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
    }


def _configure_structlog() -> None:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context,
        _redact_processor,
        _add_app,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_as_json
        else structlog.dev.ConsoleRenderer()
    )
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# ---------- Public API ----------
def setup_logging() -> None:
    """
    Centralized logging setup: stdlib dictConfig + structlog.
    Idempotent; hosts call it once at startup.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logging.config.dictConfig(_build_stdlib_dict_config())
    _configure_structlog()

    lg = logging.getLogger(__name__)
    lg.info("Logging initialized")
    settings.log_summary()

    _CONFIGURED = True


def get_logger(name: str):
    return structlog.get_logger(name)


# ---------- Context helpers ----------
def clear_context() -> None:
    """Clear all logging context variables."""
    _ctx_session_id.set("")
    _ctx_product_id.set("")
    _ctx_store_id.set("")


def bind_context(
    session_id: Optional[str] = None,
    product_id: Optional[str] = None,
    store_id: Optional[str] = None,
) -> None:
    """Bind context values for subsequent logs (until clear_context() or override)."""
    if session_id is not None:
        _ctx_session_id.set(str(session_id))
    if product_id is not None:
        _ctx_product_id.set(str(product_id))
    if store_id is not None:
        _ctx_store_id.set(str(store_id))


@contextmanager
def bound_context(
    session_id: Optional[str] = None,
    product_id: Optional[str] = None,
    store_id: Optional[str] = None,
):
    tokens: list[Tuple[ContextVar[str], Token]] = []
    if session_id is not None:
        tokens.append((_ctx_session_id, _ctx_session_id.set(str(session_id))))
    if product_id is not None:
        tokens.append((_ctx_product_id, _ctx_product_id.set(str(product_id))))
    if store_id is not None:
        tokens.append((_ctx_store_id, _ctx_store_id.set(str(store_id))))
    try:
        yield
    finally:
        for var, tok in reversed(tokens):
            var.reset(tok)


def set_level_for(logger_name: str, level: str | int) -> None:
    logging.getLogger(logger_name).setLevel(level)


__all__ = [
    "setup_logging",
    "get_logger",
    "bind_context",
    "bound_context",
    "clear_context",
    "set_level_for",
    "redact_secrets",
]
