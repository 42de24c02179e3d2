# product_editor/services/pricing.py
"""
Price model: price, compare-at price, discount type and discount value kept
consistent under edits from either side.

While a discount is active and both compare-at price and discount value are
known, the selling price is derived:

    percentage:   price = max(0, compare_at * (1 - value / 100))
    fixed_amount: price = max(0, compare_at - value)

and is not directly editable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

from product_editor.core.config import settings
from product_editor.core.logging import get_logger
from product_editor.schemas.product import DiscountType, ProductConfiguration
from product_editor.schemas.results import Rejected
from product_editor.services.common import coerce_enum, reject

logger = get_logger(__name__)

Outcome = Union[ProductConfiguration, Rejected]
MoneyInput = Union[str, Decimal, int, float, None]

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")
_NON_NUMERIC = re.compile(r"[^0-9.]")


# =========================
# Денежная арифметика
# =========================
def q2(x: Decimal) -> Decimal:
    return x.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_whole(x: Decimal) -> Decimal:
    return x.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def parse_money(value: MoneyInput) -> Optional[Decimal]:
    """
    Sanitise user money input: strip everything but digits and '.', keep the
    first decimal point only, truncate to 2 places. Empty input -> None.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        raw = format(value, "f")
    elif isinstance(value, (int, float)):
        raw = format(Decimal(str(value)), "f")
    else:
        raw = str(value)
    if raw.strip().startswith("-"):
        return Decimal("0.00")

    cleaned = _NON_NUMERIC.sub("", raw)
    whole, dot, frac = cleaned.partition(".")
    cleaned = whole + (dot + frac.replace(".", "") if dot else "")
    if cleaned in ("", "."):
        return None
    try:
        return Decimal(cleaned).quantize(TWO_PLACES, rounding=ROUND_DOWN)
    except InvalidOperation:
        return None


def compute_price(
    compare_at: Optional[Decimal],
    discount_type: DiscountType,
    discount_value: Optional[Decimal],
) -> Optional[Decimal]:
    """Derived selling price, or None when the inputs are incomplete."""
    discount_type = coerce_enum(DiscountType, discount_type)
    if discount_type == DiscountType.NONE or compare_at is None or discount_value is None:
        return None
    if discount_type == DiscountType.PERCENTAGE:
        raw = compare_at * (Decimal("1") - discount_value / HUNDRED)
    else:
        raw = compare_at - discount_value
    return q2(max(Decimal("0"), raw))


def derive_discount_value(
    compare_at: Optional[Decimal],
    price: Optional[Decimal],
    discount_type: DiscountType,
) -> Optional[Decimal]:
    """Inverse of compute_price: the discount value that yields ``price``."""
    discount_type = coerce_enum(DiscountType, discount_type)
    if discount_type == DiscountType.NONE or compare_at is None or price is None:
        return None
    if discount_type == DiscountType.FIXED_AMOUNT:
        return q2(compare_at - price)
    if compare_at == 0:
        return None
    return q2((compare_at - price) / compare_at * HUNDRED)


@dataclass(frozen=True)
class DiscountSummary:
    savings: Decimal
    percent_off: int


def discount_summary(config: ProductConfiguration) -> Optional[DiscountSummary]:
    """Preview numbers for the "% OFF" badge; None when there is no saving."""
    compare_at, price = config.compare_at_price, config.price
    if compare_at is None or price is None or compare_at <= 0 or compare_at <= price:
        return None
    savings = q2(compare_at - price)
    return DiscountSummary(savings=savings, percent_off=int(round_whole(savings / compare_at * HUNDRED)))


# =========================
# Переходы
# =========================
def _recomputed(config: ProductConfiguration) -> ProductConfiguration:
    price = compute_price(config.compare_at_price, config.discount_type, config.discount_value)
    if price is None:
        return config
    return config.evolve(price=price)


def _clamp_discount(discount_type: DiscountType, value: Optional[Decimal]) -> Optional[Decimal]:
    if value is not None and discount_type == DiscountType.PERCENTAGE:
        return min(value, HUNDRED)
    return value


def set_price(config: ProductConfiguration, value: MoneyInput) -> Outcome:
    if config.discount_active:
        return reject(
            "Price is calculated from the discount; edit the compare at price or the discount instead",
            "price_locked_by_discount",
            "price",
        )
    return config.evolve(price=parse_money(value))


def set_compare_at_price(config: ProductConfiguration, value: MoneyInput) -> ProductConfiguration:
    return _recomputed(config.evolve(compare_at_price=parse_money(value)))


def set_discount_value(config: ProductConfiguration, value: MoneyInput) -> Outcome:
    if not config.discount_active:
        return reject("Choose a discount type first", "no_discount_type", "discount_value")
    parsed = _clamp_discount(config.discount_type, parse_money(value))
    return _recomputed(config.evolve(discount_value=parsed))


def set_discount_type(config: ProductConfiguration, new_type: DiscountType) -> ProductConfiguration:
    new_type = coerce_enum(DiscountType, new_type)
    previous = config.discount_type
    if new_type == previous:
        return config.evolve()

    if new_type == DiscountType.NONE:
        price = config.compare_at_price if config.compare_at_price is not None else config.price
        logger.debug("discount_removed", restored_price=str(price) if price is not None else None)
        return config.evolve(
            discount_type=DiscountType.NONE,
            price=price,
            compare_at_price=None,
            discount_value=None,
            discount_schedule_enabled=False,
            discount_starts_at=None,
            discount_ends_at=None,
        )

    compare_at = config.compare_at_price
    if previous == DiscountType.NONE and compare_at is None:
        compare_at = config.price
    basis = compare_at if compare_at is not None else config.price

    if new_type == DiscountType.PERCENTAGE:
        value = Decimal(settings.DEFAULT_DISCOUNT_PERCENT)
        if (
            previous == DiscountType.FIXED_AMOUNT
            and config.discount_value is not None
            and basis is not None
            and basis > 0
        ):
            value = round_whole(config.discount_value / basis * HUNDRED)
    else:
        pct = Decimal(settings.DEFAULT_DISCOUNT_PERCENT)
        if previous == DiscountType.PERCENTAGE and config.discount_value is not None:
            pct = config.discount_value
        value = round_whole((basis or Decimal("0")) * pct / HUNDRED)

    logger.debug(
        "discount_type_changed",
        old=previous.value,
        new=new_type.value,
        discount_value=str(value),
    )
    return _recomputed(
        config.evolve(
            discount_type=new_type,
            compare_at_price=compare_at,
            discount_value=_clamp_discount(new_type, value),
        )
    )


def set_discount_schedule(
    config: ProductConfiguration,
    enabled: bool,
    starts_at: Optional[Union[datetime, str]] = None,
    ends_at: Optional[Union[datetime, str]] = None,
) -> Outcome:
    """Enable/disable the discount window; disabling clears both bounds."""
    if not enabled:
        return config.evolve(
            discount_schedule_enabled=False, discount_starts_at=None, discount_ends_at=None
        )
    if not config.discount_active:
        return reject("Choose a discount type before scheduling it", "no_discount_type", "discount_schedule")
    return config.evolve(
        discount_schedule_enabled=True,
        discount_starts_at=starts_at or None,
        discount_ends_at=ends_at or None,
    )


def format_money(value: Optional[Decimal]) -> str:
    return "" if value is None else format(q2(value), "f")


def as_decimal(value: Any) -> Optional[Decimal]:
    """Lenient conversion of API numbers (float/str/None) to Decimal."""
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


__all__ = [
    "DiscountSummary",
    "q2",
    "parse_money",
    "format_money",
    "as_decimal",
    "compute_price",
    "derive_discount_value",
    "discount_summary",
    "set_price",
    "set_compare_at_price",
    "set_discount_value",
    "set_discount_type",
    "set_discount_schedule",
]
