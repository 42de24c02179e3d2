"""Tests for the three-level category selector."""

import pytest

from product_editor.schemas.category import CategoryPath
from product_editor.services import categories as cat


@pytest.fixture
def tree():
    return cat.parse_categories(
        [
            {"id": 1, "name": "Food", "level": 0},
            {"id": 2, "name": "Drinks", "parent_id": 1, "level": 1},
            {"id": 3, "name": "Coffee", "parent_id": 2, "level": 2},
            {"id": 4, "name": "Home", "level": 0},
        ]
    )


def test_children_of(tree):
    assert [c.id for c in cat.children_of(tree, None)] == ["1", "4"]
    assert [c.id for c in cat.children_of(tree, "2")] == ["3"]


def test_only_deepest_selection_is_stored(make_config):
    path = cat.select_category(CategoryPath(), 0, "1")
    path = cat.select_category(path, 1, "2")
    path = cat.select_category(path, 2, "3")
    assert path.selected_ids == ["1", "2", "3"]
    assert cat.apply_category_path(make_config(), path).category_ids == ["3"]


def test_selecting_higher_level_resets_deeper():
    path = CategoryPath(main="1", sub="2", leaf="3")
    assert cat.select_category(path, 0, "4") == CategoryPath(main="4")
    assert cat.select_category(path, 1, "5") == CategoryPath(main="1", sub="5")
    with pytest.raises(ValueError):
        cat.select_category(path, 3, "x")


def test_resolve_path(tree):
    assert cat.resolve_category_path(tree, "3") == CategoryPath(main="1", sub="2", leaf="3")
    assert cat.resolve_category_path(tree, "2") == CategoryPath(main="1", sub="2")
    assert cat.resolve_category_path(tree, "unknown") == CategoryPath()
    assert cat.resolve_category_path(tree, None) == CategoryPath()


def test_category_key_ignores_list_order(tree):
    assert cat.category_key(tree, ["3"]) == cat.category_key(list(reversed(tree)), ["3"])
    assert cat.category_key(tree, ["3"]) != cat.category_key(tree, ["2"])
