# product_editor/services/validation.py
"""
Submission-time validation. Every rule is checked independently and all
failures are collected into a field -> message map (first message per field
wins).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from product_editor.core.config import settings
from product_editor.core.logging import get_logger
from product_editor.schemas.product import DiscountType, ProductConfiguration, ProductType
from product_editor.schemas.results import Err, Ok
from product_editor.services.bundles import bundle_violations
from product_editor.services.classification import classification_violations
from product_editor.services.images import primary_count
from product_editor.services.variants import covers_cartesian_product

logger = get_logger(__name__)


def _check_name(errors: dict[str, str], field: str, value: str, required_msg: str) -> None:
    if not value.strip():
        errors.setdefault(field, required_msg)
    elif len(value.strip()) > settings.NAME_MAX_LENGTH:
        errors.setdefault(field, f"Product name must be less than {settings.NAME_MAX_LENGTH} characters")


def _check_length(errors: dict[str, str], field: str, value: str, limit: int, label: str) -> None:
    if len(value) > limit:
        errors.setdefault(field, f"{label} must be less than {limit} characters")


def _bad_variant_price(raw: str) -> bool:
    if raw == "":
        return False
    try:
        return Decimal(raw) < 0
    except InvalidOperation:
        return True


def field_errors(config: ProductConfiguration) -> dict[str, str]:
    errors: dict[str, str] = {}

    # ---- content
    _check_name(errors, "name_en", config.name_en, "Product name in English is required")
    _check_name(errors, "name_ar", config.name_ar, "Product name in Arabic is required")
    _check_length(errors, "description_en", config.description_en, settings.DESCRIPTION_MAX_LENGTH, "Description")
    _check_length(errors, "description_ar", config.description_ar, settings.DESCRIPTION_MAX_LENGTH, "Description")
    _check_length(errors, "sku", config.sku, settings.SKU_MAX_LENGTH, "SKU")
    _check_length(errors, "barcode", config.barcode, settings.BARCODE_MAX_LENGTH, "Barcode")

    # ---- pricing
    if config.price is None:
        errors.setdefault("price", "Price is required")
    elif config.price <= 0:
        errors.setdefault("price", "Price must be greater than 0")

    if (
        config.discount_type == DiscountType.PERCENTAGE
        and config.discount_value is not None
        and config.discount_value > 100
    ):
        errors.setdefault("discount_value", "Percentage discount cannot exceed 100%")

    if (
        config.discount_schedule_enabled
        and config.discount_starts_at is not None
        and config.discount_ends_at is not None
        and config.discount_starts_at > config.discount_ends_at
    ):
        errors.setdefault("discount_ends_at", "End date must be after start date")

    if (
        config.compare_at_price is not None
        and config.price is not None
        and config.compare_at_price < config.price
    ):
        errors.setdefault(
            "compare_at_price", "Compare at price must be greater than or equal to the selling price"
        )

    # ---- classification
    if not config.sales_channels:
        errors.setdefault("sales_channels", "At least one sales channel is required")
    if not config.fulfillment_types:
        errors.setdefault("fulfillment_types", "At least one fulfillment type is required")
    for field, message in classification_violations(config):
        errors.setdefault(field, message)

    # ---- bundle
    if config.product_type == ProductType.BUNDLE and not config.bundle_items:
        errors.setdefault("bundle_items", "Bundle products must have at least one item")
    for message in bundle_violations(config):
        errors.setdefault("bundle_items", message)

    # ---- variants
    if config.has_variants:
        if any(_bad_variant_price(r.price) for r in config.variants):
            errors.setdefault("variants", "Variant prices must be valid non-negative amounts")
        elif not covers_cartesian_product(config):
            errors.setdefault("variants", "Variants are out of date, regenerate them")

    # ---- images
    if primary_count(config) > 1:
        errors.setdefault("images", "Only one image can be primary")

    return errors


def validate(config: ProductConfiguration) -> Union[Ok[ProductConfiguration], Err]:
    errors = field_errors(config)
    if errors:
        logger.debug("validation_failed", fields=sorted(errors))
        return Err(errors=errors)
    return Ok(config)


__all__ = ["field_errors", "validate"]
