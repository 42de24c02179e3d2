"""
Product configuration schemas: the editing aggregate and its tagged records.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator

from product_editor.core.config import settings
from product_editor.schemas.base import BaseSchema, RecordSchema


# ---------- Перечисления ----------
class ProductType(str, Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"
    SERVICE = "service"
    BUNDLE = "bundle"


class SellingMethod(str, Enum):
    UNIT = "unit"
    WEIGHT = "weight"
    LENGTH = "length"
    TIME = "time"
    SUBSCRIPTION = "subscription"


class FulfillmentType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    DIGITAL = "digital"
    ONSITE = "onsite"


class SalesChannel(str, Enum):
    ONLINE = "online"
    IN_STORE = "in_store"


class DiscountType(str, Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ---------- Варианты ----------
class VariantOption(RecordSchema):
    """Named variant axis with an ordered list of distinct values."""

    id: str = Field(default_factory=lambda: _new_id("option"))
    name: str = Field(..., description="Option name, e.g. Size")
    values: list[str] = Field(default_factory=list, description="Ordered distinct values")

    @classmethod
    def create(cls, name: str, values: list[str]) -> "VariantOption":
        return cls(name=name, values=list(values))


class VariantRow(RecordSchema):
    """One sellable combination of option values."""

    id: str
    option_selection: dict[str, str] = Field(default_factory=dict)
    price: str = ""
    sku: str = ""
    stock: str = "0"
    enabled: bool = True

    @property
    def selection_key(self) -> tuple[tuple[str, str], ...]:
        # stored JSON may reorder keys
        return tuple(sorted(self.option_selection.items()))

    @property
    def title(self) -> str:
        return " / ".join(self.option_selection.values())


# ---------- Наборы (bundle) ----------
class BundleSubstitute(RecordSchema):
    substitute_product_id: str
    priority: int = Field(default=0, ge=0)


class BundleItem(RecordSchema):
    """Constituent product of a bundle."""

    product_id: str
    quantity: int = Field(default=1, ge=1)
    is_required: bool = True
    sort_order: int = Field(default=0, ge=0)
    substitutes: list[BundleSubstitute] = Field(default_factory=list)


# ---------- Изображения ----------
class PersistedImage(RecordSchema):
    id: str
    url: str
    is_primary: bool = False


class PendingImage(RecordSchema):
    """Newly selected file, not uploaded yet (no id until persisted)."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    preview_url: str
    file_handle: Any = Field(default=None, exclude=True, repr=False)
    file_name: Optional[str] = None
    content_type: Optional[str] = None

    def __deepcopy__(self, memo: Optional[dict] = None) -> "PendingImage":
        # file handles are shared, never copied
        return self.model_copy()


# ---------- Склад ----------
class InventoryRecord(RecordSchema):
    """Stock row for one product in one store."""

    quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=10, ge=0)


# ---------- Агрегат ----------
class ProductConfiguration(BaseSchema):
    """
    Full in-memory description of one product being edited.

    Rule functions never mutate an instance in place; each returns a fresh copy.
    Channel/fulfillment/category lists are ordered but compared as sets.
    """

    # identity
    product_id: Optional[str] = Field(None, description="Absent in create mode")
    store_id: Optional[str] = Field(None, description="Store the product belongs to")

    # content
    name_en: str = ""
    name_ar: str = ""
    description_en: str = ""
    description_ar: str = ""
    is_available: bool = True

    # classification
    product_type: ProductType = ProductType.PHYSICAL
    selling_method: SellingMethod = SellingMethod.UNIT
    selling_unit: str = ""
    fulfillment_types: list[FulfillmentType] = Field(
        default_factory=lambda: [FulfillmentType.PICKUP]
    )
    sales_channels: list[SalesChannel] = Field(
        default_factory=lambda: [SalesChannel.ONLINE, SalesChannel.IN_STORE]
    )
    requires_scheduling: bool = False
    subscription_interval: str = ""

    # pricing
    price: Optional[Decimal] = Field(None, ge=0, description="Selling price")
    compare_at_price: Optional[Decimal] = Field(None, ge=0, description="Price before discount")
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Optional[Decimal] = Field(None, ge=0)
    discount_schedule_enabled: bool = False
    discount_starts_at: Optional[datetime] = None
    discount_ends_at: Optional[datetime] = None

    # identifiers
    sku: str = ""
    barcode: str = ""
    barcode_type: str = "EAN13"

    # inventory
    track_inventory: bool = True
    stock_quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: int = Field(
        default_factory=lambda: settings.DEFAULT_LOW_STOCK_THRESHOLD, ge=0
    )
    allow_backorders: bool = False
    continue_selling_out_of_stock: bool = False

    # categorization
    category_ids: list[str] = Field(default_factory=list)
    brand_id: Optional[str] = None

    # variants
    has_variants: bool = False
    variant_options: list[VariantOption] = Field(default_factory=list)
    variants: list[VariantRow] = Field(default_factory=list)

    # bundle
    bundle_items: list[BundleItem] = Field(default_factory=list)

    # images
    persisted_images: list[PersistedImage] = Field(default_factory=list)
    pending_images: list[PendingImage] = Field(default_factory=list)
    pending_deletion_ids: list[str] = Field(default_factory=list)
    featured_pending_index: int = Field(default=-1, ge=-1)

    @field_validator("pending_deletion_ids", "category_ids")
    @classmethod
    def _unique_ids(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @field_validator("discount_starts_at", "discount_ends_at")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # naive picker dates vs. hydrated "...Z" timestamps
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    # --------- удобные свойства ---------
    @property
    def is_create_mode(self) -> bool:
        return not self.product_id

    @property
    def discount_active(self) -> bool:
        return self.discount_type != DiscountType.NONE

    def evolve(self, **changes: Any) -> "ProductConfiguration":
        """Fresh, re-validated copy with ``changes`` applied; nested records are shared."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self).model_validate(data)


__all__ = [
    "ProductType",
    "SellingMethod",
    "FulfillmentType",
    "SalesChannel",
    "DiscountType",
    "VariantOption",
    "VariantRow",
    "BundleSubstitute",
    "BundleItem",
    "PersistedImage",
    "PendingImage",
    "InventoryRecord",
    "ProductConfiguration",
]
