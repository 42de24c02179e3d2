"""Tests for classification rules and their cascades."""

import pytest

from product_editor.core.exceptions import MalformedConfigurationError
from product_editor.schemas.product import FulfillmentType, ProductType, SalesChannel, SellingMethod
from product_editor.schemas.results import Rejected
from product_editor.services import classification as rules


class TestProductType:
    def test_digital_drops_in_store(self, make_config):
        """Switching to digital keeps only the online channel (scenario B)."""
        config = make_config()
        result = rules.apply_product_type(config, ProductType.DIGITAL)

        assert result.sales_channels == [SalesChannel.ONLINE]
        assert result.fulfillment_types == [FulfillmentType.DIGITAL]
        assert result.selling_method == SellingMethod.UNIT

        again = rules.apply_sales_channel_toggle(result, SalesChannel.IN_STORE)
        assert isinstance(again, Rejected)
        assert again.reason == rules.MSG_DIGITAL_ONLINE_ONLY

    def test_service_resets_method_and_unit(self, make_config):
        result = rules.apply_product_type(make_config(), ProductType.SERVICE)
        assert result.selling_method == SellingMethod.TIME
        assert result.selling_unit == "hour"
        assert result.fulfillment_types == [FulfillmentType.ONSITE]
        assert result.requires_scheduling is True

    def test_back_to_physical_clears_scheduling(self, make_config):
        service = rules.apply_product_type(make_config(), "service")
        physical = rules.apply_product_type(service, "physical")
        assert physical.requires_scheduling is False
        assert physical.selling_method == SellingMethod.UNIT
        assert physical.fulfillment_types == [FulfillmentType.PICKUP]

    def test_physical_online_only_defaults_to_delivery(self, make_config):
        config = make_config(product_type="digital", sales_channels=["online"], fulfillment_types=["digital"])
        result = rules.apply_product_type(config, ProductType.PHYSICAL)
        assert result.fulfillment_types == [FulfillmentType.DELIVERY]

    def test_same_type_returns_fresh_copy(self, make_config):
        config = make_config()
        result = rules.apply_product_type(config, ProductType.PHYSICAL)
        assert result == config
        assert result is not config

    def test_subscription_interval_reset(self, make_config):
        config = make_config(selling_method="subscription", subscription_interval="monthly")
        result = rules.apply_product_type(config, ProductType.BUNDLE)
        assert result.subscription_interval == ""

    def test_unknown_type_is_programmer_error(self, make_config):
        with pytest.raises(MalformedConfigurationError):
            rules.apply_product_type(make_config(), "hologram")


class TestSalesChannels:
    def test_removing_in_store_drops_pickup(self, make_config):
        config = make_config()
        result = rules.apply_sales_channel_toggle(config, SalesChannel.IN_STORE)
        assert result.sales_channels == [SalesChannel.ONLINE]
        assert result.fulfillment_types == [FulfillmentType.DELIVERY]

    def test_removing_in_store_keeps_delivery(self, make_config):
        config = make_config(fulfillment_types=["pickup", "delivery"])
        result = rules.apply_sales_channel_toggle(config, "in_store")
        assert result.fulfillment_types == [FulfillmentType.DELIVERY]

    def test_last_channel_rejected(self, make_config):
        config = make_config(sales_channels=["online"], fulfillment_types=["delivery"])
        result = rules.apply_sales_channel_toggle(config, SalesChannel.ONLINE)
        assert isinstance(result, Rejected)
        assert result.reason == "At least one sales channel is required"
        assert config.sales_channels == [SalesChannel.ONLINE]

    def test_adding_channel(self, make_config):
        config = make_config(sales_channels=["online"], fulfillment_types=["delivery"])
        result = rules.apply_sales_channel_toggle(config, SalesChannel.IN_STORE)
        assert set(result.sales_channels) == {SalesChannel.ONLINE, SalesChannel.IN_STORE}

    def test_digital_losing_online_falls_back_to_physical(self, make_config):
        # only reachable from inconsistent stored data
        config = make_config(
            product_type="digital", sales_channels=["online", "in_store"], fulfillment_types=["digital"]
        )
        result = rules.apply_sales_channel_toggle(config, SalesChannel.ONLINE)
        assert result.sales_channels == [SalesChannel.IN_STORE]
        assert result.product_type == ProductType.PHYSICAL
        assert result.fulfillment_types == [FulfillmentType.PICKUP]

    def test_channels_never_empty_under_any_toggle_sequence(self, make_config):
        config = make_config()
        sequence = [SalesChannel.ONLINE, SalesChannel.IN_STORE, SalesChannel.IN_STORE, SalesChannel.ONLINE] * 5
        for channel in sequence:
            outcome = rules.apply_sales_channel_toggle(config, channel)
            if not isinstance(outcome, Rejected):
                config = outcome
            assert config.sales_channels


class TestFulfillment:
    def test_add_delivery(self, make_config):
        result = rules.apply_fulfillment_toggle(make_config(), FulfillmentType.DELIVERY)
        assert result.fulfillment_types == [FulfillmentType.PICKUP, FulfillmentType.DELIVERY]

    def test_foreign_fulfillment_rejected(self, make_config):
        result = rules.apply_fulfillment_toggle(make_config(), FulfillmentType.DIGITAL)
        assert isinstance(result, Rejected)
        assert result.field == "fulfillment_types"

    def test_pickup_requires_in_store(self, make_config):
        config = make_config(sales_channels=["online"], fulfillment_types=["delivery"])
        result = rules.apply_fulfillment_toggle(config, FulfillmentType.PICKUP)
        assert isinstance(result, Rejected)
        assert result.reason == rules.MSG_PICKUP_NEEDS_STORE

    def test_removing_last_is_allowed(self, make_config):
        result = rules.apply_fulfillment_toggle(make_config(), FulfillmentType.PICKUP)
        assert result.fulfillment_types == []


class TestSellingMethod:
    def test_weight_sets_default_unit(self, make_config):
        result = rules.apply_selling_method(make_config(), SellingMethod.WEIGHT)
        assert result.selling_unit == "kg"
        assert rules.apply_selling_unit(result, "g").selling_unit == "g"
        assert isinstance(rules.apply_selling_unit(result, "m"), Rejected)

    def test_time_not_allowed_for_physical(self, make_config):
        assert isinstance(rules.apply_selling_method(make_config(), "time"), Rejected)

    def test_subscription_interval_requires_subscription(self, make_config):
        config = make_config()
        assert isinstance(rules.apply_subscription_interval(config, "monthly"), Rejected)
        sub = rules.apply_selling_method(config, SellingMethod.SUBSCRIPTION)
        assert rules.apply_subscription_interval(sub, "monthly").subscription_interval == "monthly"
        assert isinstance(rules.apply_subscription_interval(sub, "hourly"), Rejected)

    def test_requires_scheduling_service_only(self, make_config):
        assert isinstance(rules.apply_requires_scheduling(make_config(), True), Rejected)
        assert rules.apply_requires_scheduling(make_config(), False).requires_scheduling is False


def test_violations_on_inconsistent_data(make_config):
    config = make_config(product_type="digital", sales_channels=["online", "in_store"], fulfillment_types=["pickup"])
    fields = {f for f, _ in rules.classification_violations(config)}
    assert {"sales_channels", "fulfillment_types"} <= fields
    assert rules.classification_violations(make_config()) == []
