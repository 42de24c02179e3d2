"""Tests for dirty-state comparison."""

from decimal import Decimal

from product_editor.schemas.product import PersistedImage, ProductConfiguration, SalesChannel
from product_editor.services import classification, images, pricing
from product_editor.services.dirty_state import capture_baseline, compute_dirty, diff


class TestCreateMode:
    def test_fresh_configuration_is_clean(self):
        assert compute_dirty(ProductConfiguration(), None) is False

    def test_typing_a_name_makes_it_dirty(self):
        report = diff(ProductConfiguration(name_en="Mug"), None)
        assert report.is_dirty
        assert report.changed_fields == ("name_en",)

    def test_whitespace_only_is_clean(self):
        assert compute_dirty(ProductConfiguration(name_en="   "), None) is False

    def test_inventory_defaults(self):
        assert compute_dirty(ProductConfiguration(stock_quantity=0), None) is False
        assert compute_dirty(ProductConfiguration(stock_quantity=3), None) is True
        assert compute_dirty(ProductConfiguration(low_stock_threshold=4), None) is True
        assert compute_dirty(ProductConfiguration(allow_backorders=True), None) is True

    def test_pending_image_and_category(self, make_pending):
        assert compute_dirty(ProductConfiguration(pending_images=[make_pending()]), None)
        assert compute_dirty(ProductConfiguration(category_ids=["c-1"]), None)


class TestEditMode:
    def _loaded(self, make_config):
        config = make_config(
            product_id="p-1",
            persisted_images=[PersistedImage(id="i-1", url="https://cdn/1.jpg", is_primary=True)],
        )
        return config, capture_baseline(config)

    def test_unchanged_is_clean(self, make_config):
        config, baseline = self._loaded(make_config)
        assert compute_dirty(config, baseline) is False

    def test_channel_order_ignored(self, make_config):
        """Reordering [online, in_store] and back is not a change."""
        config, baseline = self._loaded(make_config)
        reordered = config.evolve(sales_channels=[SalesChannel.IN_STORE, SalesChannel.ONLINE])
        assert compute_dirty(reordered, baseline) is False
        restored = reordered.evolve(sales_channels=[SalesChannel.ONLINE, SalesChannel.IN_STORE])
        assert compute_dirty(restored, baseline) is False

    def test_toggle_off_and_on_is_clean(self, make_config):
        config, baseline = self._loaded(make_config)
        config = classification.apply_sales_channel_toggle(config, SalesChannel.ONLINE)
        assert compute_dirty(config, baseline) is True
        config = classification.apply_sales_channel_toggle(config, SalesChannel.ONLINE)
        assert config.sales_channels == [SalesChannel.IN_STORE, SalesChannel.ONLINE]
        assert compute_dirty(config, baseline) is False

    def test_scalar_change(self, make_config):
        config, baseline = self._loaded(make_config)
        changed = pricing.set_price(config, "30")
        report = diff(changed, baseline)
        assert report.changed_fields == ("price",)
        assert compute_dirty(pricing.set_price(changed, "25"), baseline) is False

    def test_price_formatting_is_not_a_change(self, make_config):
        config, baseline = self._loaded(make_config)
        assert compute_dirty(config.evolve(price=Decimal("25")), baseline) is False

    def test_primary_image_change(self, make_config):
        config, baseline = self._loaded(make_config)
        config = config.evolve(
            persisted_images=list(config.persisted_images) + [PersistedImage(id="i-2", url="https://cdn/2.jpg")]
        )
        assert compute_dirty(config, baseline) is False
        config = images.set_persisted_primary(config, "i-2")
        assert "primary_image" in diff(config, baseline).changed_fields

    def test_pending_work_forces_dirty(self, make_config, make_pending):
        config, baseline = self._loaded(make_config)
        assert compute_dirty(images.add_pending(config, [make_pending()]), baseline)
        assert compute_dirty(config.evolve(pending_deletion_ids=["old"]), baseline)

    def test_variant_and_bundle_edits(self, make_config):
        config, baseline = self._loaded(make_config)
        assert compute_dirty(config.evolve(has_variants=True), baseline)

    def test_hydrating_is_never_dirty(self, make_config):
        config, baseline = self._loaded(make_config)
        assert compute_dirty(config.evolve(name_en="Other"), baseline, hydrating=True) is False
        assert compute_dirty(ProductConfiguration(name_en="x"), None, hydrating=True) is False

    def test_baseline_is_a_snapshot(self, make_config):
        config, baseline = self._loaded(make_config)
        config.category_ids.append("late")
        assert baseline.category_ids == ()
