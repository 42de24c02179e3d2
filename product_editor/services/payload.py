# product_editor/services/payload.py
"""
Wire mapping between the configuration and the product API.

``build_payload`` flattens a configuration into the create/update body (no
image files). ``configuration_from_product`` hydrates edit mode from the
fetched product plus its separately fetched categories, inventory and images.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from product_editor.core.config import settings
from product_editor.schemas.product import (
    BundleItem,
    DiscountType,
    InventoryRecord,
    PersistedImage,
    ProductConfiguration,
    VariantOption,
    VariantRow,
)
from product_editor.services.pricing import as_decimal, q2


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(q2(value))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()


def build_payload(config: ProductConfiguration) -> dict[str, Any]:
    """
    Create/update body. ``category_ids`` is omitted when empty in create mode;
    in edit mode it is always sent so a cleared category reaches the server.
    """
    scheduled = config.discount_active and config.discount_schedule_enabled
    payload: dict[str, Any] = {
        "name_en": config.name_en or None,
        "name_ar": config.name_ar or None,
        "description_en": config.description_en or None,
        "description_ar": config.description_ar or None,
        "price": _money(config.price),
        "compare_at_price": _money(config.compare_at_price),
        "discount_type": config.discount_type.value,
        "discount_value": _money(config.discount_value) if config.discount_active else None,
        "discount_start_date": _iso(config.discount_starts_at) if scheduled else None,
        "discount_end_date": _iso(config.discount_ends_at) if scheduled else None,
        "sku": config.sku or None,
        "barcode": config.barcode or None,
        "barcode_type": config.barcode_type or "EAN13",
        "is_available": config.is_available,
        "product_type": config.product_type.value,
        "selling_method": config.selling_method.value,
        "selling_unit": config.selling_unit or None,
        "fulfillment_type": [f.value for f in config.fulfillment_types],
        "requires_scheduling": config.requires_scheduling,
        "subscription_interval": config.subscription_interval or None,
        "sales_channels": [c.value for c in config.sales_channels],
        "track_inventory": config.track_inventory,
        "allow_backorder": config.allow_backorders or config.continue_selling_out_of_stock,
        "low_stock_threshold": config.low_stock_threshold,
        "stock_quantity": config.stock_quantity,
        "brand_id": config.brand_id,
    }
    if config.category_ids or not config.is_create_mode:
        payload["category_ids"] = list(config.category_ids)
    if config.is_create_mode and config.store_id:
        payload["store_id"] = config.store_id

    if config.bundle_items:
        payload["bundle_items"] = [item.model_dump(mode="json") for item in config.bundle_items]
    if config.has_variants:
        payload["variant_options"] = [
            {"name": o.name, "values": list(o.values)} for o in config.variant_options
        ]
        payload["variants"] = [row.model_dump(mode="json", exclude={"id"}) for row in config.variants]

    if not config.is_create_mode:
        primary = next((i for i in config.persisted_images if i.is_primary), None)
        if primary is not None:
            payload["image_url"] = primary.url
        elif not config.persisted_images and not config.pending_images:
            payload["image_url"] = None
    return payload


def _records(raw: Optional[Iterable[Any]], model: type) -> list:
    if not raw:
        return []
    return [r if isinstance(r, model) else model.model_validate(r) for r in raw]


def _variant_rows(raw: Optional[Iterable[Any]]) -> list[VariantRow]:
    rows: list[VariantRow] = []
    for n, r in enumerate(raw or []):
        if isinstance(r, VariantRow):
            rows.append(r)
        else:
            rows.append(VariantRow.model_validate({"id": f"variant-{n}", **r}))
    return rows


def configuration_from_product(
    product: Mapping[str, Any],
    category_ids: Sequence[str] = (),
    inventory: Optional[Union[InventoryRecord, Mapping[str, Any]]] = None,
    images: Optional[Iterable[Union[PersistedImage, Mapping[str, Any]]]] = None,
) -> ProductConfiguration:
    """Edit-mode configuration; missing fields fall back to the create defaults."""
    if inventory is not None and not isinstance(inventory, InventoryRecord):
        inventory = InventoryRecord.model_validate(inventory)

    starts_at = product.get("discount_start_date") or None
    ends_at = product.get("discount_end_date") or None
    discount_type = product.get("discount_type") or DiscountType.NONE.value

    if inventory is not None:
        stock_quantity: Optional[int] = inventory.quantity
        low_stock = inventory.low_stock_threshold
    else:
        stock_quantity = product.get("stock_quantity")
        low_stock = product.get("low_stock_threshold")
    if low_stock is None:
        low_stock = settings.DEFAULT_LOW_STOCK_THRESHOLD

    variant_options = _records(product.get("variant_options"), VariantOption)
    return ProductConfiguration(
        product_id=str(product["id"]),
        store_id=product.get("store_id"),
        name_en=product.get("name_en") or "",
        name_ar=product.get("name_ar") or "",
        description_en=product.get("description_en") or "",
        description_ar=product.get("description_ar") or "",
        is_available=bool(product.get("is_available", True)),
        product_type=product.get("product_type") or "physical",
        selling_method=product.get("selling_method") or "unit",
        selling_unit=product.get("selling_unit") or "",
        fulfillment_types=product.get("fulfillment_type") or ["pickup"],
        sales_channels=product.get("sales_channels") or ["online", "in_store"],
        requires_scheduling=bool(product.get("requires_scheduling")),
        subscription_interval=product.get("subscription_interval") or "",
        price=as_decimal(product.get("price")),
        compare_at_price=as_decimal(product.get("compare_at_price")),
        discount_type=discount_type,
        discount_value=as_decimal(product.get("discount_value")),
        discount_schedule_enabled=bool(starts_at or ends_at),
        discount_starts_at=starts_at,
        discount_ends_at=ends_at,
        sku=product.get("sku") or "",
        barcode=product.get("barcode") or "",
        barcode_type=product.get("barcode_type") or "EAN13",
        track_inventory=bool(product.get("track_inventory", True)),
        stock_quantity=stock_quantity,
        low_stock_threshold=low_stock,
        allow_backorders=bool(product.get("allow_backorder")),
        category_ids=list(category_ids),
        brand_id=product.get("brand_id"),
        has_variants=bool(variant_options),
        variant_options=variant_options,
        variants=_variant_rows(product.get("variants")),
        bundle_items=_records(product.get("bundle_items"), BundleItem),
        persisted_images=_records(images, PersistedImage),
    )


__all__ = ["build_payload", "configuration_from_product"]
