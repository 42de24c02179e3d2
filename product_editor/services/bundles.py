# product_editor/services/bundles.py
"""
Bundle composition: the list of constituent products of a bundle.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import Field

from product_editor.core.logging import get_logger
from product_editor.schemas.base import RecordSchema
from product_editor.schemas.product import (
    BundleItem,
    BundleSubstitute,
    ProductConfiguration,
    ProductType,
)
from product_editor.schemas.results import Rejected
from product_editor.services.common import coerce_enum, reject

logger = get_logger(__name__)

Outcome = Union[ProductConfiguration, Rejected]


class BundleCandidate(RecordSchema):
    """Product offered in the "add to bundle" picker."""

    id: str
    name_en: str = ""
    name_ar: Optional[str] = None
    sku: Optional[str] = None
    product_type: ProductType = ProductType.PHYSICAL
    price: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None


def _renumbered(items: list[BundleItem]) -> list[BundleItem]:
    return [i if i.sort_order == n else i.model_copy(update={"sort_order": n}) for n, i in enumerate(items)]


def _replace(config: ProductConfiguration, product_id: str, **update: Any) -> ProductConfiguration:
    items = [i.model_copy(update=update) if i.product_id == product_id else i for i in config.bundle_items]
    return config.evolve(bundle_items=items)


def _find(config: ProductConfiguration, product_id: str) -> Optional[BundleItem]:
    return next((i for i in config.bundle_items if i.product_id == product_id), None)


# ---------- Публичное API ----------
def add_item(
    config: ProductConfiguration,
    product_id: str,
    *,
    product_type: ProductType,
) -> Outcome:
    """
    Append a product to the bundle (quantity 1, required).

    ``product_type`` is the referenced product's own type; bundles are refused.
    """
    if _find(config, product_id) is not None:
        return reject("This product is already in the bundle", "duplicate_bundle_item", "bundle_items")
    if coerce_enum(ProductType, product_type) == ProductType.BUNDLE:
        return reject("Bundles cannot contain other bundles", "nested_bundle", "bundle_items")
    if config.product_id and product_id == config.product_id:
        return reject("A bundle cannot contain itself", "self_reference", "bundle_items")

    item = BundleItem(product_id=product_id, quantity=1, is_required=True, sort_order=len(config.bundle_items))
    logger.debug("bundle_item_added", item_product_id=product_id)
    return config.evolve(bundle_items=list(config.bundle_items) + [item])


def add_candidate(config: ProductConfiguration, candidate: BundleCandidate) -> Outcome:
    """``add_item`` for a product picked from the candidate list."""
    return add_item(config, candidate.id, product_type=candidate.product_type)


def remove_item(config: ProductConfiguration, product_id: str) -> ProductConfiguration:
    items = [i for i in config.bundle_items if i.product_id != product_id]
    return config.evolve(bundle_items=_renumbered(items))


def set_quantity(config: ProductConfiguration, product_id: str, delta: int) -> ProductConfiguration:
    """Adjust quantity by ``delta``; never below 1."""
    item = _find(config, product_id)
    if item is None:
        return config.evolve()
    return _replace(config, product_id, quantity=max(1, item.quantity + int(delta)))


def toggle_required(config: ProductConfiguration, product_id: str) -> ProductConfiguration:
    item = _find(config, product_id)
    if item is None:
        return config.evolve()
    return _replace(config, product_id, is_required=not item.is_required)


def move_item(config: ProductConfiguration, product_id: str, new_index: int) -> ProductConfiguration:
    items = list(config.bundle_items)
    item = _find(config, product_id)
    if item is None:
        return config.evolve()
    items.remove(item)
    new_index = max(0, min(int(new_index), len(items)))
    items.insert(new_index, item)
    return config.evolve(bundle_items=_renumbered(items))


def add_substitute(
    config: ProductConfiguration,
    product_id: str,
    substitute_product_id: str,
    *,
    product_type: ProductType,
) -> Outcome:
    item = _find(config, product_id)
    if item is None:
        return reject("Unknown bundle item", "unknown_bundle_item", "bundle_items")
    if substitute_product_id == product_id:
        return reject("A product cannot substitute itself", "self_substitute", "bundle_items")
    if config.product_id and substitute_product_id == config.product_id:
        return reject("A bundle cannot contain itself", "self_reference", "bundle_items")
    if coerce_enum(ProductType, product_type) == ProductType.BUNDLE:
        return reject("Bundles cannot contain other bundles", "nested_bundle", "bundle_items")
    if any(s.substitute_product_id == substitute_product_id for s in item.substitutes):
        return reject("This substitute is already listed", "duplicate_substitute", "bundle_items")

    subs = list(item.substitutes) + [
        BundleSubstitute(substitute_product_id=substitute_product_id, priority=len(item.substitutes))
    ]
    return _replace(config, product_id, substitutes=subs)


def remove_substitute(
    config: ProductConfiguration, product_id: str, substitute_product_id: str
) -> ProductConfiguration:
    item = _find(config, product_id)
    if item is None:
        return config.evolve()
    kept = [s for s in item.substitutes if s.substitute_product_id != substitute_product_id]
    subs = [BundleSubstitute(substitute_product_id=s.substitute_product_id, priority=n) for n, s in enumerate(kept)]
    return _replace(config, product_id, substitutes=subs)


# ---------- кандидаты ----------
def bundle_candidates(
    products: Iterable[Union[BundleCandidate, Mapping[str, Any]]], own_id: Optional[str] = None
) -> list[BundleCandidate]:
    """Products that may be added: everything except bundles and the product itself."""
    out: list[BundleCandidate] = []
    for p in products:
        cand = p if isinstance(p, BundleCandidate) else BundleCandidate.model_validate(p)
        if cand.product_type == ProductType.BUNDLE or (own_id and cand.id == own_id):
            continue
        out.append(cand)
    return out


def search_candidates(candidates: Iterable[BundleCandidate], query: str) -> list[BundleCandidate]:
    q = (query or "").strip().casefold()
    if not q:
        return list(candidates)
    return [
        c
        for c in candidates
        if q in c.name_en.casefold()
        or q in (c.name_ar or "").casefold()
        or q in (c.sku or "").casefold()
    ]


def bundle_violations(config: ProductConfiguration) -> list[str]:
    """Structural problems of the item list (duplicates, self reference)."""
    out: list[str] = []
    ids = [i.product_id for i in config.bundle_items]
    if len(ids) != len(set(ids)):
        out.append("Each product can appear in the bundle only once")
    if config.product_id and config.product_id in ids:
        out.append("A bundle cannot contain itself")
    return out


__all__ = [
    "BundleCandidate",
    "add_item",
    "add_candidate",
    "remove_item",
    "set_quantity",
    "toggle_required",
    "move_item",
    "add_substitute",
    "remove_substitute",
    "bundle_candidates",
    "search_candidates",
    "bundle_violations",
]
