# product_editor/services/variants.py
"""
Variant expansion: ordered option definitions -> Cartesian product of rows.

Rows are enumerated row-major in option insertion order (the first option is
the slowest-varying axis). Every option/value edit regenerates the rows; hand
edits on rows are reset unless ``preserve_edits`` is requested.
"""

from __future__ import annotations

import itertools
import math
import re
from typing import Optional, Sequence, Union

from product_editor.core.config import settings
from product_editor.core.exceptions import MalformedConfigurationError
from product_editor.core.logging import get_logger
from product_editor.schemas.product import ProductConfiguration, VariantOption, VariantRow
from product_editor.schemas.results import Rejected
from product_editor.services.common import reject
from product_editor.services.pricing import format_money, parse_money

logger = get_logger(__name__)

Outcome = Union[ProductConfiguration, Rejected]

PRESET_OPTIONS: dict[str, tuple[str, ...]] = {
    "Color": (
        "Red",
        "Blue",
        "Green",
        "Black",
        "White",
        "Gray",
        "Navy",
        "Pink",
        "Yellow",
        "Orange",
        "Purple",
        "Brown",
    ),
    "Size": ("XS", "S", "M", "L", "XL", "XXL", "3XL"),
    "Material": ("Cotton", "Polyester", "Silk", "Wool", "Linen", "Leather", "Denim"),
    "Style": ("Regular", "Slim", "Relaxed", "Classic", "Modern"),
}

_NON_DIGITS = re.compile(r"[^0-9]")


# ---------- helpers ----------
def _clean_values(values: Sequence[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        v = str(v).strip()
        if v and v not in out:
            out.append(v)
    return out


def _name_taken(options: Sequence[VariantOption], name: str, *, skip_id: Optional[str] = None) -> bool:
    key = name.strip().casefold()
    return any(o.name.strip().casefold() == key for o in options if o.id != skip_id)


def _find_option(config: ProductConfiguration, option_id: str) -> Optional[VariantOption]:
    return next((o for o in config.variant_options if o.id == option_id), None)


def validate_options(options: Sequence[VariantOption]) -> None:
    """Raise MalformedConfigurationError for option lists no rule could produce."""
    if len(options) > settings.MAX_VARIANT_OPTIONS:
        raise MalformedConfigurationError(
            f"At most {settings.MAX_VARIANT_OPTIONS} variant options are supported",
            code="too_many_options",
            extra={"count": len(options)},
        )
    seen: set[str] = set()
    for opt in options:
        key = opt.name.strip().casefold()
        if not key:
            raise MalformedConfigurationError("Variant option without a name", code="empty_option_name")
        if key in seen:
            raise MalformedConfigurationError(
                f"Duplicate variant option '{opt.name}'", code="duplicate_option_name"
            )
        seen.add(key)
        if not opt.values or any(not v for v in opt.values):
            raise MalformedConfigurationError(
                f"Variant option '{opt.name}' has no values", code="empty_option_values"
            )
        if len(set(opt.values)) != len(opt.values):
            raise MalformedConfigurationError(
                f"Variant option '{opt.name}' repeats a value", code="duplicate_option_value"
            )


def combination_count(options: Sequence[VariantOption]) -> int:
    if not options:
        return 0
    return math.prod(len(o.values) for o in options)


# ---------- Публичное API ----------
def regenerate(config: ProductConfiguration, preserve_edits: bool = False) -> ProductConfiguration:
    """
    Rebuild ``variants`` as the full Cartesian product of ``variant_options``.

    New rows inherit the base price and stock quantity with an empty SKU.
    With ``preserve_edits`` rows whose selection survives keep their
    price/sku/stock/enabled.
    """
    options = list(config.variant_options)
    validate_options(options)

    previous = {row.selection_key: row for row in config.variants} if preserve_edits else {}
    base_price = format_money(config.price)
    base_stock = str(config.stock_quantity) if config.stock_quantity is not None else "0"

    rows: list[VariantRow] = []
    if options:
        names = [o.name for o in options]
        for index, combo in enumerate(itertools.product(*(o.values for o in options))):
            selection = dict(zip(names, combo))
            row = VariantRow(
                id=f"variant-{index}",
                option_selection=selection,
                price=base_price,
                sku="",
                stock=base_stock,
                enabled=True,
            )
            kept = previous.get(row.selection_key)
            if kept is not None:
                row = row.model_copy(
                    update={
                        "price": kept.price,
                        "sku": kept.sku,
                        "stock": kept.stock,
                        "enabled": kept.enabled,
                    }
                )
            rows.append(row)

    logger.debug("variants_regenerated", rows=len(rows), preserve_edits=preserve_edits)
    return config.evolve(variants=rows)


def add_option(config: ProductConfiguration, name: str, values: Sequence[str]) -> Outcome:
    name = (name or "").strip()
    cleaned = _clean_values(values or [])
    if len(config.variant_options) >= settings.MAX_VARIANT_OPTIONS:
        return reject(
            f"You can add up to {settings.MAX_VARIANT_OPTIONS} options",
            "too_many_options",
            "variant_options",
        )
    if not name:
        return reject("Option name is required", "empty_option_name", "variant_options")
    if not cleaned:
        return reject("Add at least one value", "empty_option_values", "variant_options")
    if _name_taken(config.variant_options, name):
        return reject(f"Option '{name}' already exists", "duplicate_option_name", "variant_options")

    option = VariantOption.create(name, cleaned)
    return regenerate(config.evolve(variant_options=list(config.variant_options) + [option]))


def add_preset_option(config: ProductConfiguration, preset_name: str) -> Outcome:
    values = PRESET_OPTIONS.get(preset_name)
    if values is None:
        return reject(f"Unknown preset '{preset_name}'", "unknown_preset", "variant_options")
    return add_option(config, preset_name, values)


def rename_option(config: ProductConfiguration, option_id: str, name: str) -> Outcome:
    option = _find_option(config, option_id)
    name = (name or "").strip()
    if option is None:
        return config.evolve()
    if not name:
        return reject("Option name is required", "empty_option_name", "variant_options")
    if _name_taken(config.variant_options, name, skip_id=option_id):
        return reject(f"Option '{name}' already exists", "duplicate_option_name", "variant_options")
    options = [o.model_copy(update={"name": name}) if o.id == option_id else o for o in config.variant_options]
    return regenerate(config.evolve(variant_options=options))


def remove_option(config: ProductConfiguration, option_id: str) -> ProductConfiguration:
    if _find_option(config, option_id) is None:
        return config.evolve()
    options = [o for o in config.variant_options if o.id != option_id]
    return regenerate(config.evolve(variant_options=options))


def add_value(config: ProductConfiguration, option_id: str, value: str) -> Outcome:
    option = _find_option(config, option_id)
    value = (value or "").strip()
    if option is None:
        return config.evolve()
    if not value:
        return reject("Value cannot be empty", "empty_option_value", "variant_options")
    if value in option.values:
        return config.evolve()
    updated = option.model_copy(update={"values": list(option.values) + [value]})
    options = [updated if o.id == option_id else o for o in config.variant_options]
    return regenerate(config.evolve(variant_options=options))


def remove_value(config: ProductConfiguration, option_id: str, value: str) -> ProductConfiguration:
    """Remove a value; removing the last one deletes the option."""
    option = _find_option(config, option_id)
    if option is None or value not in option.values:
        return config.evolve()
    remaining = [v for v in option.values if v != value]
    if not remaining:
        return remove_option(config, option_id)
    updated = option.model_copy(update={"values": remaining})
    options = [updated if o.id == option_id else o for o in config.variant_options]
    return regenerate(config.evolve(variant_options=options))


def set_has_variants(config: ProductConfiguration, enabled: bool) -> ProductConfiguration:
    if enabled:
        return config.evolve(has_variants=True)
    return config.evolve(has_variants=False, variant_options=[], variants=[])


def update_variant_row(
    config: ProductConfiguration,
    row_id: str,
    *,
    price: Optional[str] = None,
    sku: Optional[str] = None,
    stock: Optional[str] = None,
    enabled: Optional[bool] = None,
) -> ProductConfiguration:
    """Hand edit of one row; unknown ids are ignored."""
    update: dict = {}
    if price is not None:
        update["price"] = format_money(parse_money(price))
    if sku is not None:
        update["sku"] = sku.strip()
    if stock is not None:
        update["stock"] = _NON_DIGITS.sub("", str(stock)) or "0"
    if enabled is not None:
        update["enabled"] = bool(enabled)
    rows = [r.model_copy(update=update) if r.id == row_id else r for r in config.variants]
    return config.evolve(variants=rows)


def covers_cartesian_product(config: ProductConfiguration) -> bool:
    """True when the rows are exactly the Cartesian product of the options."""
    options = config.variant_options
    expected = {
        tuple(sorted(zip((o.name for o in options), combo)))
        for combo in itertools.product(*(o.values for o in options))
    } if options else set()
    keys = [row.selection_key for row in config.variants]
    return len(keys) == len(set(keys)) == len(expected) and set(keys) == expected


__all__ = [
    "PRESET_OPTIONS",
    "validate_options",
    "combination_count",
    "regenerate",
    "add_option",
    "add_preset_option",
    "rename_option",
    "remove_option",
    "add_value",
    "remove_value",
    "set_has_variants",
    "update_variant_row",
    "covers_cartesian_product",
]
