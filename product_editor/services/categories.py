# product_editor/services/categories.py
"""
Three-level category selector (main -> sub -> leaf). Only the deepest
selected id is stored on the configuration.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional, Union

from product_editor.schemas.category import Category, CategoryPath
from product_editor.schemas.product import ProductConfiguration

CategoryKey = tuple[tuple[str, ...], tuple[str, ...]]


def parse_categories(raw: Iterable[Union[Category, Mapping[str, Any]]]) -> list[Category]:
    return [c if isinstance(c, Category) else Category.model_validate(c) for c in raw]


def children_of(categories: Sequence[Category], parent_id: Optional[str]) -> list[Category]:
    """Options for one selector level; ``None`` gives the root level."""
    if parent_id is None:
        return [c for c in categories if c.parent_id is None and c.level == 0]
    return [c for c in categories if c.parent_id == parent_id]


def deepest_selection(main: str = "", sub: str = "", leaf: str = "") -> list[str]:
    for cid in (leaf, sub, main):
        if cid:
            return [cid]
    return []


def select_category(path: CategoryPath, level: int, category_id: str) -> CategoryPath:
    """Pick a category at ``level``; deeper levels are reset."""
    if level == 0:
        return CategoryPath(main=category_id)
    if level == 1:
        return CategoryPath(main=path.main, sub=category_id)
    if level == 2:
        return CategoryPath(main=path.main, sub=path.sub, leaf=category_id)
    raise ValueError(f"category level must be 0..2, got {level}")


def apply_category_path(config: ProductConfiguration, path: CategoryPath) -> ProductConfiguration:
    return config.evolve(category_ids=deepest_selection(path.main, path.sub, path.leaf))


def resolve_category_path(categories: Sequence[Category], category_id: Optional[str]) -> CategoryPath:
    """Rebuild the selector state for an already assigned category."""
    if not category_id:
        return CategoryPath()
    by_id = {c.id: c for c in categories}
    cat = by_id.get(category_id)
    if cat is None:
        return CategoryPath()
    if cat.level == 0:
        return CategoryPath(main=cat.id)
    if cat.level == 1:
        return CategoryPath(main=cat.parent_id or "", sub=cat.id)
    parent = by_id.get(cat.parent_id or "")
    return CategoryPath(
        main=(parent.parent_id if parent else None) or "",
        sub=cat.parent_id or "",
        leaf=cat.id,
    )


def category_key(categories: Sequence[Category], selected_ids: Sequence[str]) -> CategoryKey:
    """Identity of a (category list, selection) pair for the once-per-pair memo."""
    return tuple(sorted(c.id for c in categories)), tuple(selected_ids)


__all__ = [
    "CategoryKey",
    "parse_categories",
    "children_of",
    "deepest_selection",
    "select_category",
    "apply_category_path",
    "resolve_category_path",
    "category_key",
]
