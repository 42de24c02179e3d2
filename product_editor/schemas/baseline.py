"""
Immutable snapshot of the tracked subset of a configuration.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field

from product_editor.schemas.base import RecordSchema
from product_editor.schemas.product import (
    BundleItem,
    DiscountType,
    FulfillmentType,
    ProductConfiguration,
    ProductType,
    SalesChannel,
    SellingMethod,
    VariantOption,
    VariantRow,
)

# fields compared by direct inequality
SCALAR_FIELDS: tuple[str, ...] = (
    "name_en",
    "name_ar",
    "description_en",
    "description_ar",
    "is_available",
    "product_type",
    "selling_method",
    "selling_unit",
    "requires_scheduling",
    "subscription_interval",
    "price",
    "compare_at_price",
    "discount_type",
    "discount_value",
    "discount_schedule_enabled",
    "discount_starts_at",
    "discount_ends_at",
    "sku",
    "barcode",
    "barcode_type",
    "track_inventory",
    "stock_quantity",
    "low_stock_threshold",
    "allow_backorders",
    "continue_selling_out_of_stock",
    "brand_id",
    "has_variants",
)

# fields compared as sets (sort then compare)
SET_FIELDS: tuple[str, ...] = ("sales_channels", "fulfillment_types", "category_ids")

# ordered structures compared element-wise
SEQUENCE_FIELDS: tuple[str, ...] = ("variant_options", "variants", "bundle_items")


class Baseline(RecordSchema):
    """
    Snapshot taken once, after every hydration prefetch resolved.

    Sequences are stored as tuples so the snapshot cannot be mutated through
    a shared reference to the live configuration.
    """

    name_en: str = ""
    name_ar: str = ""
    description_en: str = ""
    description_ar: str = ""
    is_available: bool = True
    product_type: ProductType = ProductType.PHYSICAL
    selling_method: SellingMethod = SellingMethod.UNIT
    selling_unit: str = ""
    requires_scheduling: bool = False
    subscription_interval: str = ""
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Optional[Decimal] = None
    discount_schedule_enabled: bool = False
    discount_starts_at: Optional[datetime] = None
    discount_ends_at: Optional[datetime] = None
    sku: str = ""
    barcode: str = ""
    barcode_type: str = "EAN13"
    track_inventory: bool = True
    stock_quantity: Optional[int] = None
    low_stock_threshold: int = 10
    allow_backorders: bool = False
    continue_selling_out_of_stock: bool = False
    brand_id: Optional[str] = None
    has_variants: bool = False

    sales_channels: tuple[SalesChannel, ...] = ()
    fulfillment_types: tuple[FulfillmentType, ...] = ()
    category_ids: tuple[str, ...] = ()

    variant_options: tuple[VariantOption, ...] = ()
    variants: tuple[VariantRow, ...] = ()
    bundle_items: tuple[BundleItem, ...] = ()

    primary_image_url: Optional[str] = None
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def capture(cls, config: ProductConfiguration, primary_image_url: Optional[str] = None) -> "Baseline":
        data: dict[str, Any] = {name: getattr(config, name) for name in SCALAR_FIELDS}
        for name in SET_FIELDS + SEQUENCE_FIELDS:
            data[name] = tuple(getattr(config, name))
        data["primary_image_url"] = primary_image_url
        return cls(**data)


__all__ = ["Baseline", "SCALAR_FIELDS", "SET_FIELDS", "SEQUENCE_FIELDS"]
