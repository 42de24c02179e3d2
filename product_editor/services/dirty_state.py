# product_editor/services/dirty_state.py
"""
Dirty-state comparison between the live configuration and its baseline.

Create mode (no baseline) compares against the documented defaults. Edit mode
compares field by field; channel, fulfillment and category lists are compared
as sets. While hydration is still running the answer is always ``False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from product_editor.core.config import settings
from product_editor.schemas.baseline import SCALAR_FIELDS, SEQUENCE_FIELDS, SET_FIELDS, Baseline
from product_editor.schemas.product import ProductConfiguration
from product_editor.services.images import primary_image_url


@dataclass(frozen=True)
class DirtyReport:
    is_dirty: bool
    changed_fields: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.is_dirty


_CLEAN = DirtyReport(is_dirty=False)


def _set_key(values: Any) -> list:
    return sorted(getattr(v, "value", v) for v in values)


def _create_mode_changes(config: ProductConfiguration) -> list[str]:
    changed: list[str] = []
    for name in ("name_en", "name_ar", "description_en", "description_ar", "sku", "barcode"):
        if getattr(config, name).strip():
            changed.append(name)
    if config.price is not None:
        changed.append("price")
    if config.compare_at_price is not None:
        changed.append("compare_at_price")
    if config.category_ids:
        changed.append("category_ids")
    if config.pending_images:
        changed.append("pending_images")
    if config.stock_quantity not in (None, 0):
        changed.append("stock_quantity")
    if config.low_stock_threshold != settings.DEFAULT_LOW_STOCK_THRESHOLD:
        changed.append("low_stock_threshold")
    if config.allow_backorders:
        changed.append("allow_backorders")
    return changed


def _edit_mode_changes(config: ProductConfiguration, baseline: Baseline) -> list[str]:
    changed: list[str] = [n for n in SCALAR_FIELDS if getattr(config, n) != getattr(baseline, n)]
    changed += [n for n in SET_FIELDS if _set_key(getattr(config, n)) != _set_key(getattr(baseline, n))]
    changed += [n for n in SEQUENCE_FIELDS if tuple(getattr(config, n)) != getattr(baseline, n)]
    if primary_image_url(config) != baseline.primary_image_url:
        changed.append("primary_image")
    if config.pending_images:
        changed.append("pending_images")
    if config.pending_deletion_ids:
        changed.append("pending_deletion_ids")
    return changed


def diff(
    config: ProductConfiguration,
    baseline: Optional[Baseline],
    *,
    hydrating: bool = False,
) -> DirtyReport:
    if hydrating:
        return _CLEAN
    changed = _create_mode_changes(config) if baseline is None else _edit_mode_changes(config, baseline)
    return DirtyReport(is_dirty=bool(changed), changed_fields=tuple(changed))


def compute_dirty(
    config: ProductConfiguration,
    baseline: Optional[Baseline],
    *,
    hydrating: bool = False,
) -> bool:
    return diff(config, baseline, hydrating=hydrating).is_dirty


def capture_baseline(config: ProductConfiguration) -> Baseline:
    return Baseline.capture(config, primary_image_url=primary_image_url(config))


__all__ = ["DirtyReport", "diff", "compute_dirty", "capture_baseline"]
