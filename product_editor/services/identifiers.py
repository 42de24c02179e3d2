# product_editor/services/identifiers.py
"""
Local SKU/barcode generation and format checks.

Used when the external uniqueness-checked generator is exhausted or down;
uniqueness is only checked against the ``existing`` values passed in.
"""

from __future__ import annotations

import random
import re
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from product_editor.core.config import settings
from product_editor.core.logging import get_logger

logger = get_logger(__name__)

_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no 0/O, 1/I
_DIGITS = "0123456789"
_SKU_RE = re.compile(r"^[A-Za-z0-9\-_]+$")
_CODE128_RE = re.compile(r"^[A-Za-z0-9\-_.]+$")

_rng = random.SystemRandom()


class BarcodeKind(str, Enum):
    EAN13 = "EAN13"
    EAN8 = "EAN8"
    UPC_A = "UPC-A"
    CODE128 = "CODE128"
    INTERNAL = "INTERNAL"


@dataclass(frozen=True)
class GeneratedBarcode:
    barcode: str
    type: str


@dataclass(frozen=True)
class IdentifierCheck:
    valid: bool
    errors: list[str] = field(default_factory=list)
    detected_type: Optional[str] = None


# ---------- check digits ----------
def ean13_check_digit(digits: str) -> int:
    if len(digits) != 12 or not digits.isdigit():
        raise ValueError("EAN-13 requires 12 digits")
    total = sum(int(d) if i % 2 == 0 else int(d) * 3 for i, d in enumerate(digits))
    return (10 - total % 10) % 10


def ean8_check_digit(digits: str) -> int:
    if len(digits) != 7 or not digits.isdigit():
        raise ValueError("EAN-8 requires 7 digits")
    total = sum(int(d) * 3 if i % 2 == 0 else int(d) for i, d in enumerate(digits))
    return (10 - total % 10) % 10


def upca_check_digit(digits: str) -> int:
    if len(digits) != 11 or not digits.isdigit():
        raise ValueError("UPC-A requires 11 digits")
    odd = sum(int(d) for d in digits[0::2])
    even = sum(int(d) for d in digits[1::2])
    return (10 - (odd * 3 + even) % 10) % 10


# ---------- helpers ----------
def _random_string(length: int, rng: random.Random, *, numbers_only: bool = False) -> str:
    chars = _DIGITS if numbers_only else _ALPHABET
    return "".join(rng.choice(chars) for _ in range(length))


def name_abbreviation(name: str, max_length: int = 4, rng: Optional[random.Random] = None) -> str:
    """PROD-<this>-...: first letters of each word, or the head of a single word."""
    rng = rng or _rng
    words = [w for w in re.sub(r"[^A-Z0-9\s]", "", name.upper()).split() if w]
    if not words:
        return _random_string(max_length, rng)
    if len(words) == 1:
        return words[0][:max_length]
    per_word = max(1, max_length // len(words))
    out = ""
    for word in words:
        out += word[:per_word]
        if len(out) >= max_length:
            break
    return out[:max_length]


# ---------- Публичное API ----------
def generate_sku(
    base_name: Optional[str] = None,
    existing: Collection[str] = (),
    *,
    prefix: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """``PREFIX-NAME-######-XXXX``; retried against ``existing``."""
    rng = rng or _rng
    prefix = settings.SKU_PREFIX if prefix is None else prefix
    sep = settings.SKU_SEPARATOR

    head: list[str] = [p for p in (prefix,) if p]
    if base_name:
        head.append(name_abbreviation(base_name, 4, rng))

    def build() -> str:
        parts = head + [_random_string(settings.SKU_SEQUENCE_LENGTH, rng, numbers_only=True)]
        if settings.SKU_SUFFIX_LENGTH:
            parts.append(_random_string(settings.SKU_SUFFIX_LENGTH, rng))
        return sep.join(parts)

    sku = build()
    attempts = 0
    while sku in existing and attempts < settings.IDENTIFIER_MAX_ATTEMPTS:
        sku = build()
        attempts += 1
    if sku in existing:
        logger.warning("sku_generation_exhausted", attempts=attempts)
    return sku


def _one_barcode(kind: BarcodeKind, prefix: Optional[str], rng: random.Random) -> GeneratedBarcode:
    if kind == BarcodeKind.EAN13:
        digits = "200" + _random_string(9, rng, numbers_only=True)
        return GeneratedBarcode(f"{digits}{ean13_check_digit(digits)}", BarcodeKind.EAN13.value)
    if kind == BarcodeKind.EAN8:
        digits = _random_string(7, rng, numbers_only=True)
        return GeneratedBarcode(f"{digits}{ean8_check_digit(digits)}", BarcodeKind.EAN8.value)
    if kind == BarcodeKind.UPC_A:
        digits = _random_string(11, rng, numbers_only=True)
        return GeneratedBarcode(f"{digits}{upca_check_digit(digits)}", BarcodeKind.UPC_A.value)
    if kind == BarcodeKind.CODE128:
        return GeneratedBarcode(f"{prefix or 'BC'}{_random_string(10, rng)}", BarcodeKind.CODE128.value)

    # internal range, encoded as EAN-13
    internal = (prefix or settings.BARCODE_INTERNAL_PREFIX)[:12]
    digits = internal + _random_string(12 - len(internal), rng, numbers_only=True)
    return GeneratedBarcode(f"{digits}{ean13_check_digit(digits)}", BarcodeKind.EAN13.value)


def generate_barcode(
    kind: BarcodeKind | str = BarcodeKind.INTERNAL,
    existing: Collection[str] = (),
    *,
    prefix: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> GeneratedBarcode:
    rng = rng or _rng
    kind = BarcodeKind(kind)
    result = _one_barcode(kind, prefix, rng)
    attempts = 0
    while result.barcode in existing and attempts < settings.IDENTIFIER_MAX_ATTEMPTS:
        result = _one_barcode(kind, prefix, rng)
        attempts += 1
    return result


def validate_sku(sku: str) -> IdentifierCheck:
    errors: list[str] = []
    if not sku or not sku.strip():
        errors.append("SKU cannot be empty")
    if len(sku or "") < 3:
        errors.append("SKU must be at least 3 characters")
    if len(sku or "") > settings.SKU_MAX_LENGTH:
        errors.append(f"SKU must be less than {settings.SKU_MAX_LENGTH} characters")
    if not _SKU_RE.match(sku or ""):
        errors.append("SKU can only contain letters, numbers, hyphens, and underscores")
    return IdentifierCheck(valid=not errors, errors=errors)


def _detect(barcode: str) -> tuple[Optional[str], Optional[str]]:
    """(detected type, error) for a barcode."""
    if barcode.isdigit() and len(barcode) == 13:
        if int(barcode[12]) == ean13_check_digit(barcode[:12]):
            return BarcodeKind.EAN13.value, None
        return None, "Invalid EAN-13 check digit"
    if barcode.isdigit() and len(barcode) == 8:
        if int(barcode[7]) == ean8_check_digit(barcode[:7]):
            return BarcodeKind.EAN8.value, None
        return None, "Invalid EAN-8 check digit"
    if barcode.isdigit() and len(barcode) == 12:
        if int(barcode[11]) == upca_check_digit(barcode[:11]):
            return BarcodeKind.UPC_A.value, None
        return None, "Invalid UPC-A check digit"
    if len(barcode) >= 4 and _CODE128_RE.match(barcode):
        return BarcodeKind.CODE128.value, None
    return None, "Invalid barcode format"


def validate_barcode(barcode: str, expected: str = "ANY") -> IdentifierCheck:
    if not barcode or not barcode.strip():
        return IdentifierCheck(valid=False, errors=["Barcode cannot be empty"])
    detected, error = _detect(barcode)
    errors = [error] if error else []
    if detected and expected != "ANY" and expected != detected:
        errors.append(f"Expected {expected} format but detected {detected}")
    return IdentifierCheck(valid=not errors and detected is not None, errors=errors, detected_type=detected)


__all__ = [
    "BarcodeKind",
    "GeneratedBarcode",
    "IdentifierCheck",
    "ean13_check_digit",
    "ean8_check_digit",
    "upca_check_digit",
    "name_abbreviation",
    "generate_sku",
    "generate_barcode",
    "validate_sku",
    "validate_barcode",
]
