"""Tests for image selection."""

import itertools

from product_editor.schemas.product import PersistedImage
from product_editor.schemas.results import Rejected
from product_editor.services import images


def _persisted(*ids, primary=None):
    return [PersistedImage(id=i, url=f"https://cdn/{i}.jpg", is_primary=i == primary) for i in ids]


class TestPending:
    def test_add_and_first_is_fallback_primary(self, make_config, make_pending):
        config = images.add_pending(make_config(), [make_pending("a.jpg"), make_pending("b.jpg")])
        assert images.has_images(make_config()) is False
        assert images.image_count(config) == 2
        assert images.has_images(config) is True
        assert images.primary_image_url(config) == "blob:a.jpg"
        assert images.upload_featured_index(config) == 0

    def test_featured_pending(self, make_config, make_pending):
        config = images.add_pending(make_config(), [make_pending("a.jpg"), make_pending("b.jpg")])
        config = images.set_pending_featured(config, 1)
        assert images.primary_image_url(config) == "blob:b.jpg"
        assert images.upload_featured_index(config) == 1

    def test_remove_pending_shifts_featured(self, make_config, make_pending):
        config = images.add_pending(make_config(), [make_pending(f"{n}.jpg") for n in range(3)])
        config = images.set_pending_featured(config, 2)
        config = images.remove_pending(config, 0)
        assert config.featured_pending_index == 1
        config = images.remove_pending(config, 1)
        assert config.featured_pending_index == -1

    def test_remove_pending_out_of_range(self, make_config):
        assert isinstance(images.remove_pending(make_config(), 0), Rejected)
        assert isinstance(images.set_pending_featured(make_config(), 3), Rejected)


class TestPersisted:
    def test_set_primary_clears_featured(self, make_config, make_pending):
        config = make_config(persisted_images=_persisted("x", "y"))
        config = images.add_pending(config, [make_pending()])
        config = images.set_pending_featured(config, 0)
        config = images.set_persisted_primary(config, "y")
        assert config.featured_pending_index == -1
        assert [i.is_primary for i in config.persisted_images] == [False, True]
        assert images.primary_image_url(config) == "https://cdn/y.jpg"
        assert images.upload_featured_index(config) is None

    def test_featured_pending_clears_persisted(self, make_config, make_pending):
        config = make_config(persisted_images=_persisted("x", primary="x"))
        config = images.set_pending_featured(images.add_pending(config, [make_pending()]), 0)
        assert not any(i.is_primary for i in config.persisted_images)

    def test_remove_primary_does_not_promote(self, make_config):
        config = make_config(persisted_images=_persisted("x", "y", primary="x"))
        config = images.remove_persisted(config, "x")
        assert config.pending_deletion_ids == ["x"]
        assert [i.id for i in config.persisted_images] == ["y"]
        assert not any(i.is_primary for i in config.persisted_images)
        assert images.primary_image_url(config) is None

    def test_unknown_ids_rejected(self, make_config):
        config = make_config(persisted_images=_persisted("x"))
        assert isinstance(images.remove_persisted(config, "nope"), Rejected)
        assert isinstance(images.set_persisted_primary(config, "nope"), Rejected)


def test_at_most_one_primary_under_any_call_sequence(make_config, make_pending):
    config = make_config(persisted_images=_persisted("x", "y", "z", primary="x"))
    config = images.add_pending(config, [make_pending("a.jpg"), make_pending("b.jpg")])
    calls = [
        (images.set_persisted_primary, "y"),
        (images.set_pending_featured, 1),
        (images.set_persisted_primary, "z"),
        (images.set_pending_featured, 0),
        (images.set_pending_featured, 5),
        (images.set_persisted_primary, "missing"),
    ]
    for sequence in itertools.permutations(calls, 4):
        current = config
        for fn, arg in sequence:
            outcome = fn(current, arg)
            if not isinstance(outcome, Rejected):
                current = outcome
            assert images.primary_count(current) <= 1
