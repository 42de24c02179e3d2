# product_editor/services/images.py
"""
Image selection across two lists: persisted images (have ids) and pending
images (selected files, no id yet). At most one image overall is primary:
either a persisted ``is_primary`` flag or ``featured_pending_index``; setting
one clears the other.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Union

from product_editor.core.logging import get_logger
from product_editor.schemas.product import PendingImage, PersistedImage, ProductConfiguration
from product_editor.schemas.results import Rejected
from product_editor.services.common import reject

logger = get_logger(__name__)

Outcome = Union[ProductConfiguration, Rejected]


def _clear_persisted_primary(images: Iterable[PersistedImage]) -> list[PersistedImage]:
    return [i.model_copy(update={"is_primary": False}) if i.is_primary else i for i in images]


def _featured_valid(config: ProductConfiguration) -> bool:
    return 0 <= config.featured_pending_index < len(config.pending_images)


# ---------- мутации ----------
def add_pending(config: ProductConfiguration, files: Iterable[PendingImage]) -> ProductConfiguration:
    added = list(files)
    logger.debug("pending_images_added", count=len(added))
    return config.evolve(pending_images=list(config.pending_images) + added)


def remove_pending(config: ProductConfiguration, index: int) -> Outcome:
    if not 0 <= index < len(config.pending_images):
        return reject("Image not found", "unknown_pending_image", "pending_images", index=index)
    pending = [p for n, p in enumerate(config.pending_images) if n != index]
    featured = config.featured_pending_index
    if featured == index:
        featured = -1
    elif featured > index:
        featured -= 1
    return config.evolve(pending_images=pending, featured_pending_index=featured)


def remove_persisted(config: ProductConfiguration, image_id: str) -> Outcome:
    """Schedule a persisted image for deletion. The primary is not reassigned."""
    if not any(i.id == image_id for i in config.persisted_images):
        return reject("Image not found", "unknown_image", "persisted_images", image_id=image_id)
    return config.evolve(
        persisted_images=[i for i in config.persisted_images if i.id != image_id],
        pending_deletion_ids=list(config.pending_deletion_ids) + [image_id],
    )


def set_persisted_primary(config: ProductConfiguration, image_id: str) -> Outcome:
    if not any(i.id == image_id for i in config.persisted_images):
        return reject("Image not found", "unknown_image", "persisted_images", image_id=image_id)
    images = [i.model_copy(update={"is_primary": i.id == image_id}) for i in config.persisted_images]
    return config.evolve(persisted_images=images, featured_pending_index=-1)


def set_pending_featured(config: ProductConfiguration, index: int) -> Outcome:
    if not 0 <= index < len(config.pending_images):
        return reject("Image not found", "unknown_pending_image", "pending_images", index=index)
    return config.evolve(
        persisted_images=_clear_persisted_primary(config.persisted_images),
        featured_pending_index=index,
    )


# ---------- derived ----------
def primary_image_url(config: ProductConfiguration) -> Optional[str]:
    """
    Representative image: the persisted primary, else the featured pending
    image, else the first pending image, else None.
    """
    for img in config.persisted_images:
        if img.is_primary:
            return img.url
    if _featured_valid(config):
        return config.pending_images[config.featured_pending_index].preview_url
    if config.pending_images:
        return config.pending_images[0].preview_url
    return None


def upload_featured_index(config: ProductConfiguration) -> Optional[int]:
    """Index passed to upload_images so the server marks the right upload primary."""
    if _featured_valid(config):
        return config.featured_pending_index
    if config.pending_images and not any(i.is_primary for i in config.persisted_images):
        return 0
    return None


def has_images(config: ProductConfiguration) -> bool:
    return bool(config.persisted_images or config.pending_images)


def image_count(config: ProductConfiguration) -> int:
    return len(config.persisted_images) + len(config.pending_images)


def primary_count(config: ProductConfiguration) -> int:
    return sum(1 for i in config.persisted_images if i.is_primary) + (1 if _featured_valid(config) else 0)


__all__ = [
    "add_pending",
    "remove_pending",
    "remove_persisted",
    "set_persisted_primary",
    "set_pending_featured",
    "primary_image_url",
    "upload_featured_index",
    "has_images",
    "image_count",
    "primary_count",
]
