"""Tests for submission-time validation."""

from datetime import datetime, timezone
from decimal import Decimal

from product_editor.schemas.product import PersistedImage, VariantOption, VariantRow
from product_editor.schemas.results import Err, Ok
from product_editor.services import pricing
from product_editor.services.validation import field_errors, validate


class TestValidate:
    def test_valid_configuration(self, make_config):
        config = make_config()
        outcome = validate(config)
        assert isinstance(outcome, Ok)
        assert outcome.value is config
        assert outcome.is_ok

    def test_collects_every_failure(self, make_config):
        config = make_config(name_en="", name_ar=" ", price=None, sales_channels=[], fulfillment_types=[])
        outcome = validate(config)
        assert isinstance(outcome, Err)
        assert not outcome.is_ok
        assert outcome.errors["name_en"] == "Product name in English is required"
        assert outcome.errors["name_ar"] == "Product name in Arabic is required"
        assert outcome.errors["price"] == "Price is required"
        assert "sales_channels" in outcome
        assert "fulfillment_types" in outcome

    def test_name_too_long(self, make_config):
        errors = field_errors(make_config(name_en="x" * 201))
        assert errors["name_en"] == "Product name must be less than 200 characters"
        assert "name_en" not in field_errors(make_config(name_en="x" * 200))

    def test_zero_price(self, make_config):
        assert field_errors(make_config(price=Decimal("0")))["price"] == "Price must be greater than 0"

    def test_percentage_over_hundred(self, make_config):
        config = make_config(
            discount_type="percentage", discount_value=Decimal("120"), compare_at_price=Decimal("30")
        )
        assert "discount_value" in field_errors(config)

    def test_schedule_order(self, make_config):
        config = make_config(
            discount_type="percentage",
            discount_value=Decimal("10"),
            compare_at_price=Decimal("30"),
            discount_schedule_enabled=True,
            discount_starts_at=datetime(2026, 5, 2),
            discount_ends_at=datetime(2026, 5, 1),
        )
        assert "discount_ends_at" in field_errors(config)
        same_day = config.evolve(discount_ends_at=datetime(2026, 5, 2))
        assert "discount_ends_at" not in field_errors(same_day)

    def test_schedule_mixes_aware_and_naive_dates(self, make_config):
        """A hydrated UTC start compared with a naive end picked by the user."""
        config = pricing.set_discount_type(make_config(price=Decimal("40")), "percentage")
        config = pricing.set_discount_schedule(
            config, True, datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 2, 1)
        )
        assert config.discount_ends_at.tzinfo is timezone.utc
        assert isinstance(validate(config), Ok)

        reversed_window = config.evolve(discount_starts_at="2025-03-01T00:00:00Z")
        assert field_errors(reversed_window)["discount_ends_at"] == "End date must be after start date"

    def test_compare_at_below_price(self, make_config):
        errors = field_errors(make_config(compare_at_price=Decimal("10")))
        assert "compare_at_price" in errors

    def test_field_lengths(self, make_config):
        errors = field_errors(make_config(sku="S" * 51, barcode="1" * 51, description_en="d" * 5001))
        assert {"sku", "barcode", "description_en"} <= set(errors)

    def test_classification_table_enforced(self, make_config):
        errors = field_errors(make_config(product_type="digital", fulfillment_types=["digital"]))
        assert errors["sales_channels"] == "Digital products can only be sold online"

    def test_stale_variants(self, make_config):
        config = make_config(
            has_variants=True,
            variant_options=[VariantOption(name="Size", values=["S", "M"])],
            variants=[VariantRow(id="variant-0", option_selection={"Size": "S"}, price="25.00")],
        )
        assert "variants" in field_errors(config)

    def test_bad_variant_price(self, make_config):
        config = make_config(
            has_variants=True,
            variant_options=[VariantOption(name="Size", values=["S"])],
            variants=[VariantRow(id="variant-0", option_selection={"Size": "S"}, price="abc")],
        )
        assert "variants" in field_errors(config)

    def test_two_primaries(self, make_config, make_pending):
        config = make_config(
            persisted_images=[PersistedImage(id="a", url="https://cdn/a.jpg", is_primary=True)],
            pending_images=[make_pending()],
            featured_pending_index=0,
        )
        assert "images" in field_errors(config)
