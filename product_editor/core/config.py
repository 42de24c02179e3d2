# product_editor/core/config.py
from __future__ import annotations

import os
import json
import logging
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ================================
# ВСПОМОГАТЕЛЬНЫЕ ХЕЛПЕРЫ
# ================================
def _under_pytest() -> bool:
    return "PYTEST_CURRENT_TEST" in os.environ


def _mask_secret(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    s = str(val)
    if not s:
        return s
    if len(s) <= 6:
        return "***"
    return s[:3] + "***" + s[-3:]


def _is_secret_key_name(key: str) -> bool:
    lk = key.lower()
    if any(s in lk for s in ("secret", "password", "token", "dsn")):
        return True
    if "key" in lk and "public" not in lk:
        return True
    return False


def _mask_nested(obj: Any, key_hint: Optional[str] = None) -> Any:
    """
    Рекурсивная маскировка секретов в dict/list/tuple.
    """
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if isinstance(k, str) and _is_secret_key_name(k):
                if isinstance(v, (dict, list, tuple)):
                    out[k] = _mask_nested(v, key_hint=k)
                else:
                    out[k] = _mask_secret(v)
            else:
                out[k] = _mask_nested(v, key_hint=None)
        return out
    if isinstance(obj, list):
        return [_mask_nested(v, key_hint=key_hint) for v in obj]
    if isinstance(obj, tuple):
        return tuple(_mask_nested(v, key_hint=key_hint) for v in obj)
    if key_hint and _is_secret_key_name(key_hint):
        return _mask_secret(obj)
    return obj


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


# ================================
# НАСТРОЙКИ (Pydantic v2)
# ================================
class Settings(BaseSettings):
    """
    Settings for the product editor engine.

    - Rule constants (option limits, default discount, field lengths) live here
      so hosts can tune them per deployment without touching the rules.
    - Product API connection parameters for the httpx gateway.
    - Logging knobs consumed by product_editor.core.logging.
    """

    model_config = SettingsConfigDict(
        env_file=(".env.test", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    # ---- базовые
    APP_NAME: str = Field(default="ProductEditor", description="Application name")
    VERSION: str = Field(default="0.1.0", description="Application version")
    ENVIRONMENT: str = Field(default="development", description="Environment")
    DEBUG: bool = Field(default=False, description="Debug mode")
    TESTING: bool = Field(default=False, description="Testing mode")

    # ---- логи
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="text", description="Logging format (json|text)")

    # ---- правила конфигурации товара
    MAX_VARIANT_OPTIONS: int = Field(default=3, ge=1, description="Max variant option axes")
    DEFAULT_DISCOUNT_PERCENT: Decimal = Field(
        default=Decimal("10"), ge=0, le=100, description="Default discount when one is enabled"
    )
    DEFAULT_LOW_STOCK_THRESHOLD: int = Field(default=10, ge=0, description="Default low stock threshold")
    NAME_MAX_LENGTH: int = Field(default=200, description="Max product name length")
    DESCRIPTION_MAX_LENGTH: int = Field(default=5000, description="Max description length")
    SKU_MAX_LENGTH: int = Field(default=50, description="Max SKU length")
    BARCODE_MAX_LENGTH: int = Field(default=50, description="Max barcode length")
    CHANNEL_WARNING_TTL_SECONDS: float = Field(
        default=3.0, ge=0, description="Lifetime of a transient rule warning"
    )

    # ---- локальная генерация SKU/штрихкодов
    SKU_PREFIX: str = Field(default="PROD", description="Fallback SKU prefix")
    SKU_SEPARATOR: str = Field(default="-", description="Fallback SKU separator")
    SKU_SEQUENCE_LENGTH: int = Field(default=6, ge=1, description="Digits in the SKU sequence part")
    SKU_SUFFIX_LENGTH: int = Field(default=4, ge=0, description="Random SKU suffix length")
    BARCODE_INTERNAL_PREFIX: str = Field(default="200", description="Internal EAN-13 range prefix")
    IDENTIFIER_MAX_ATTEMPTS: int = Field(default=100, ge=1, description="Uniqueness retries")

    # ---- product API
    API_BASE_URL: str = Field(default="http://localhost:3000", description="Product API base URL")
    API_TOKEN: Optional[str] = Field(default=None, description="Bearer token for the product API")
    API_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, description="HTTP timeout (s)")
    API_RETRIES: int = Field(default=2, ge=0, description="Retries on network/5xx errors")
    API_BACKOFF_BASE: float = Field(default=0.5, ge=0, description="Exponential backoff base (s)")
    INVENTORY_PATH_TEMPLATE: str = Field(
        default="/api/products/{product_id}/inventory",
        description="Inventory lookup path; store_id is sent as a query parameter",
    )

    # --------- валидаторы ---------
    @field_validator("LOG_LEVEL", mode="before")
    def _level(cls, v):
        lvl = str(v or "INFO").strip().upper()
        if lvl not in _LOG_LEVELS:
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return lvl

    @field_validator("LOG_FORMAT", mode="before")
    def _fmt(cls, v):
        fmt = str(v or "text").strip().lower()
        if fmt not in {"json", "text"}:
            raise ValueError(f"Unsupported LOG_FORMAT: {v}")
        return fmt

    @field_validator("API_BASE_URL", mode="before")
    def _base_url(cls, v):
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    # --------- удобные свойства ---------
    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in {"dev", "development"}

    @property
    def is_testing(self) -> bool:
        return bool(self.TESTING or _under_pytest())

    @property
    def log_as_json(self) -> bool:
        return self.LOG_FORMAT == "json" or self.is_production

    # --------- дампы ---------
    def dump_settings_safe(self) -> dict:
        raw = self.model_dump(mode="json")
        return _mask_nested(raw)

    def log_summary(self) -> None:
        logging.getLogger(__name__).info(
            "Settings loaded: %s", json.dumps(self.dump_settings_safe(), ensure_ascii=False)
        )


# Глобальный объект настроек
@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

__all__ = ["Settings", "get_settings", "settings"]
