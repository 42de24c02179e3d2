"""
Category schemas for the three-level category selector.
"""

from typing import Optional

from pydantic import Field

from product_editor.schemas.base import RecordSchema


class Category(RecordSchema):
    """Node of the store category tree (levels 0..2)."""

    id: str
    name: str = ""
    name_ar: Optional[str] = None
    parent_id: Optional[str] = None
    level: int = Field(default=0, ge=0, le=2)
    icon: Optional[str] = None


class CategoryPath(RecordSchema):
    """Selector state: main -> sub -> leaf; empty string means nothing selected."""

    main: str = ""
    sub: str = ""
    leaf: str = ""

    @property
    def selected_ids(self) -> list[str]:
        return [i for i in (self.main, self.sub, self.leaf) if i]


__all__ = ["Category", "CategoryPath"]
