# tests/conftest.py
"""
Pytest fixtures for the product editor engine.

- TESTING=1 before anything imports the settings.
- ``make_config``: valid create-mode configuration with overrides.
- ``FakeGateway``: in-memory product API recording every call; failures are
  injected per method name.
"""

from __future__ import annotations

import os

os.environ.setdefault("TESTING", "1")

from decimal import Decimal
from typing import Any, Optional

import pytest

from product_editor.core.exceptions import CollaboratorError
from product_editor.integrations.product_api import UploadProgress, UploadResult
from product_editor.schemas.category import Category
from product_editor.schemas.product import InventoryRecord, PendingImage, PersistedImage, ProductConfiguration
from product_editor.services.identifiers import GeneratedBarcode

# ======================================================================================
# Фабрики
# ======================================================================================

VALID_FIELDS: dict[str, Any] = {
    "name_en": "Ceramic Mug",
    "name_ar": "كوب سيراميك",
    "price": Decimal("25.00"),
    "store_id": "store-1",
}


def build_config(**overrides: Any) -> ProductConfiguration:
    data = dict(VALID_FIELDS)
    data.update(overrides)
    return ProductConfiguration(**data)


@pytest.fixture
def make_config():
    return build_config


def pending(name: str = "photo.jpg") -> PendingImage:
    return PendingImage(
        preview_url=f"blob:{name}",
        file_handle=b"\x89PNG-bytes",
        file_name=name,
        content_type="image/jpeg",
    )


@pytest.fixture
def make_pending():
    return pending


CATEGORY_TREE = [
    Category(id="c-food", name="Food", level=0),
    Category(id="c-drinks", name="Drinks", parent_id="c-food", level=1),
    Category(id="c-coffee", name="Coffee", parent_id="c-drinks", level=2),
    Category(id="c-home", name="Home", level=0),
]


# ======================================================================================
# Fake collaborators
# ======================================================================================


class FakeGateway:
    def __init__(self, product: Optional[dict] = None):
        self.product = product or {}
        self.categories = list(CATEGORY_TREE)
        self.product_categories: list[str] = []
        self.inventory: Optional[InventoryRecord] = None
        self.images: list[PersistedImage] = []
        self.upload_errors: list[str] = []
        self.fail: dict[str, CollaboratorError] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.next_id = "new-1"

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    async def create_product(self, payload):
        self._record("create_product", payload)
        return self.next_id

    async def update_product(self, product_id, payload):
        self._record("update_product", product_id, payload)

    async def fetch_product(self, product_id):
        self._record("fetch_product", product_id)
        return dict(self.product)

    async def upload_images(self, product_id, files, featured_index=None, progress=None):
        self._record("upload_images", product_id, tuple(files), featured_index)
        if progress is not None:
            progress(UploadProgress(len(files) - 1, len(files), 1.0, files[-1].file_name))
        return UploadResult(
            images=[PersistedImage(id=f"up-{n}", url=f"https://cdn/{n}.jpg") for n, _ in enumerate(files)],
            errors=list(self.upload_errors),
        )

    async def delete_image(self, product_id, image_id):
        self._record("delete_image", product_id, image_id)

    async def set_image_primary(self, product_id, image_id):
        self._record("set_image_primary", product_id, image_id)

    async def fetch_images(self, product_id):
        self._record("fetch_images", product_id)
        return list(self.images)

    async def fetch_categories(self):
        self._record("fetch_categories")
        return list(self.categories)

    async def fetch_product_categories(self, product_id):
        self._record("fetch_product_categories", product_id)
        return list(self.product_categories)

    async def fetch_inventory(self, product_id, store_id):
        self._record("fetch_inventory", product_id, store_id)
        return self.inventory


class FakeIdentifierGenerator:
    def __init__(self, sku: Optional[str] = "EXT-SKU-1", barcode: Optional[GeneratedBarcode] = None, error=None):
        self.sku = sku
        self.barcode = barcode
        self.error = error

    async def generate_sku(self, base_name, existing):
        if self.error:
            raise self.error
        return self.sku

    async def generate_barcode(self, kind, existing):
        if self.error:
            raise self.error
        return self.barcode


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def stored_product() -> dict:
    """Product row as returned by GET /api/products/{id}."""
    return {
        "id": "prod-42",
        "store_id": "store-1",
        "name_en": "Espresso Beans",
        "name_ar": "حبوب إسبريسو",
        "description_en": "Dark roast",
        "price": 40.0,
        "compare_at_price": None,
        "discount_type": "none",
        "product_type": "physical",
        "selling_method": "weight",
        "selling_unit": "kg",
        "fulfillment_type": ["pickup", "delivery"],
        "sales_channels": ["online", "in_store"],
        "sku": "BEANS-1",
        "barcode": "",
        "track_inventory": True,
        "allow_backorder": False,
    }


@pytest.fixture
def edit_gateway(stored_product):
    gw = FakeGateway(stored_product)
    gw.product_categories = ["c-coffee"]
    gw.inventory = InventoryRecord(quantity=12, low_stock_threshold=5)
    gw.images = [
        PersistedImage(id="img-1", url="https://cdn/1.jpg", is_primary=True),
        PersistedImage(id="img-2", url="https://cdn/2.jpg"),
    ]
    return gw


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_generator():
    return FakeIdentifierGenerator


@pytest.fixture
def make_gateway():
    return FakeGateway
