# product_editor/services/classification.py
"""
Classification rules: which selling methods, fulfillment options and sales
channels are legal for each product type, and the cascades that keep them
consistent when one choice invalidates another.

Every transition is a pure function ``(config, value) -> config' | Rejected``.
A rejection never mutates the configuration.
"""

from __future__ import annotations

from typing import Union

from product_editor.core.logging import get_logger
from product_editor.schemas.product import (
    FulfillmentType,
    ProductConfiguration,
    ProductType,
    SalesChannel,
    SellingMethod,
)
from product_editor.schemas.results import Rejected
from product_editor.services.common import coerce_enum, reject

logger = get_logger(__name__)

Outcome = Union[ProductConfiguration, Rejected]

# =========================
# Таблица ограничений
# =========================
ALLOWED_SELLING_METHODS: dict[ProductType, tuple[SellingMethod, ...]] = {
    ProductType.PHYSICAL: (
        SellingMethod.UNIT,
        SellingMethod.WEIGHT,
        SellingMethod.LENGTH,
        SellingMethod.SUBSCRIPTION,
    ),
    ProductType.DIGITAL: (SellingMethod.UNIT,),
    ProductType.SERVICE: (SellingMethod.TIME, SellingMethod.SUBSCRIPTION),
    ProductType.BUNDLE: (SellingMethod.UNIT, SellingMethod.SUBSCRIPTION),
}

ALLOWED_FULFILLMENT: dict[ProductType, tuple[FulfillmentType, ...]] = {
    ProductType.PHYSICAL: (FulfillmentType.PICKUP, FulfillmentType.DELIVERY),
    ProductType.DIGITAL: (FulfillmentType.DIGITAL,),
    ProductType.SERVICE: (FulfillmentType.ONSITE,),
    ProductType.BUNDLE: (FulfillmentType.PICKUP, FulfillmentType.DELIVERY),
}

# first entry is the derived default
SELLING_UNITS: dict[SellingMethod, tuple[str, ...]] = {
    SellingMethod.UNIT: (),
    SellingMethod.WEIGHT: ("kg", "g", "lb", "oz"),
    SellingMethod.LENGTH: ("m", "cm", "ft", "in"),
    SellingMethod.TIME: ("hour", "day", "week", "month"),
    SellingMethod.SUBSCRIPTION: (),
}

SUBSCRIPTION_INTERVALS: tuple[str, ...] = ("daily", "weekly", "monthly", "yearly")

_SHIPPABLE = (ProductType.PHYSICAL, ProductType.BUNDLE)

MSG_LAST_CHANNEL = "At least one sales channel is required"
MSG_DIGITAL_ONLINE_ONLY = "Digital products can only be sold online"
MSG_PICKUP_NEEDS_STORE = "Pickup requires the in-store sales channel"


# ---------- derived defaults ----------
def default_selling_unit(method: SellingMethod) -> str:
    units = SELLING_UNITS[coerce_enum(SellingMethod, method)]
    return units[0] if units else ""


def default_fulfillment(
    product_type: ProductType, sales_channels: list[SalesChannel]
) -> list[FulfillmentType]:
    product_type = coerce_enum(ProductType, product_type)
    if product_type == ProductType.DIGITAL:
        return [FulfillmentType.DIGITAL]
    if product_type == ProductType.SERVICE:
        return [FulfillmentType.ONSITE]
    if SalesChannel.IN_STORE in sales_channels:
        return [FulfillmentType.PICKUP]
    return [FulfillmentType.DELIVERY]


# ---------- Публичное API ----------
def apply_product_type(config: ProductConfiguration, new_type: ProductType) -> ProductConfiguration:
    """Switch product type and reset everything the new type does not allow."""
    new_type = coerce_enum(ProductType, new_type)
    if new_type == config.product_type:
        return config.evolve()

    method = ALLOWED_SELLING_METHODS[new_type][0]
    channels = list(config.sales_channels)
    if new_type == ProductType.DIGITAL:
        channels = [c for c in channels if c == SalesChannel.ONLINE] or [SalesChannel.ONLINE]

    logger.debug(
        "product_type_changed",
        old=config.product_type.value,
        new=new_type.value,
        selling_method=method.value,
    )
    return config.evolve(
        product_type=new_type,
        selling_method=method,
        selling_unit=default_selling_unit(method),
        subscription_interval="",
        fulfillment_types=default_fulfillment(new_type, channels),
        sales_channels=channels,
        requires_scheduling=new_type == ProductType.SERVICE,
    )


def apply_sales_channel_toggle(config: ProductConfiguration, channel: SalesChannel) -> Outcome:
    channel = coerce_enum(SalesChannel, channel)
    channels = list(config.sales_channels)

    if channel not in channels:
        if channel == SalesChannel.IN_STORE and config.product_type == ProductType.DIGITAL:
            return reject(MSG_DIGITAL_ONLINE_ONLY, "digital_in_store", "sales_channels")
        return config.evolve(sales_channels=channels + [channel])

    if len(channels) == 1:
        return reject(MSG_LAST_CHANNEL, "last_sales_channel", "sales_channels")

    channels = [c for c in channels if c != channel]
    changes: dict = {"sales_channels": channels}

    if channel == SalesChannel.IN_STORE:
        fulfillment = [f for f in config.fulfillment_types if f != FulfillmentType.PICKUP]
        if not fulfillment and config.product_type in _SHIPPABLE:
            fulfillment = [FulfillmentType.DELIVERY]
        changes["fulfillment_types"] = fulfillment
    elif channel == SalesChannel.ONLINE and config.product_type == ProductType.DIGITAL:
        # digital cannot live without the online channel: fall back to a physical unit sale
        changes.update(
            product_type=ProductType.PHYSICAL,
            selling_method=SellingMethod.UNIT,
            selling_unit="",
            fulfillment_types=[FulfillmentType.PICKUP],
        )
        logger.debug("digital_online_removed_cascade")

    return config.evolve(**changes)


def apply_fulfillment_toggle(config: ProductConfiguration, fulfillment: FulfillmentType) -> Outcome:
    """
    Toggle one fulfillment option. Removing the last option is allowed here;
    the validator reports an empty list at submission time.
    """
    fulfillment = coerce_enum(FulfillmentType, fulfillment)
    current = list(config.fulfillment_types)

    if fulfillment in current:
        return config.evolve(fulfillment_types=[f for f in current if f != fulfillment])

    if fulfillment not in ALLOWED_FULFILLMENT[config.product_type]:
        return reject(
            f"{fulfillment.value.capitalize()} fulfillment is not available for "
            f"{config.product_type.value} products",
            "fulfillment_not_allowed",
            "fulfillment_types",
        )
    if fulfillment == FulfillmentType.PICKUP and SalesChannel.IN_STORE not in config.sales_channels:
        return reject(MSG_PICKUP_NEEDS_STORE, "pickup_without_store", "fulfillment_types")
    return config.evolve(fulfillment_types=current + [fulfillment])


def apply_selling_method(config: ProductConfiguration, method: SellingMethod) -> Outcome:
    method = coerce_enum(SellingMethod, method)
    if method not in ALLOWED_SELLING_METHODS[config.product_type]:
        return reject(
            f"Selling by {method.value} is not available for {config.product_type.value} products",
            "selling_method_not_allowed",
            "selling_method",
        )
    changes: dict = {"selling_method": method, "selling_unit": default_selling_unit(method)}
    if method != SellingMethod.SUBSCRIPTION:
        changes["subscription_interval"] = ""
    return config.evolve(**changes)


def apply_selling_unit(config: ProductConfiguration, unit: str) -> Outcome:
    units = SELLING_UNITS[config.selling_method]
    if unit not in units:
        return reject(
            f"Unit '{unit}' is not valid when selling by {config.selling_method.value}",
            "selling_unit_not_allowed",
            "selling_unit",
        )
    return config.evolve(selling_unit=unit)


def apply_subscription_interval(config: ProductConfiguration, interval: str) -> Outcome:
    if config.selling_method != SellingMethod.SUBSCRIPTION:
        return reject(
            "Subscription interval applies only to subscription products",
            "not_subscription",
            "subscription_interval",
        )
    if interval not in SUBSCRIPTION_INTERVALS:
        return reject(
            f"Unknown subscription interval '{interval}'",
            "subscription_interval_unknown",
            "subscription_interval",
        )
    return config.evolve(subscription_interval=interval)


def apply_requires_scheduling(config: ProductConfiguration, value: bool) -> Outcome:
    if value and config.product_type != ProductType.SERVICE:
        return reject(
            "Only service products can require scheduling",
            "scheduling_not_service",
            "requires_scheduling",
        )
    return config.evolve(requires_scheduling=bool(value))


def classification_violations(config: ProductConfiguration) -> list[tuple[str, str]]:
    """All (field, message) pairs breaking the constraint table."""
    out: list[tuple[str, str]] = []
    ptype = config.product_type

    if config.selling_method not in ALLOWED_SELLING_METHODS[ptype]:
        out.append(
            (
                "selling_method",
                f"Selling by {config.selling_method.value} is not available for {ptype.value} products",
            )
        )
    units = SELLING_UNITS[config.selling_method]
    if (units and config.selling_unit not in units) or (not units and config.selling_unit):
        out.append(("selling_unit", "Select a valid selling unit"))

    if config.subscription_interval and (
        config.selling_method != SellingMethod.SUBSCRIPTION
        or config.subscription_interval not in SUBSCRIPTION_INTERVALS
    ):
        out.append(("subscription_interval", "Invalid subscription interval"))

    illegal = [f for f in config.fulfillment_types if f not in ALLOWED_FULFILLMENT[ptype]]
    if illegal:
        out.append(
            (
                "fulfillment_types",
                f"{illegal[0].value.capitalize()} fulfillment is not available for {ptype.value} products",
            )
        )
    elif (
        FulfillmentType.PICKUP in config.fulfillment_types
        and SalesChannel.IN_STORE not in config.sales_channels
    ):
        out.append(("fulfillment_types", MSG_PICKUP_NEEDS_STORE))

    if ptype == ProductType.DIGITAL and SalesChannel.IN_STORE in config.sales_channels:
        out.append(("sales_channels", MSG_DIGITAL_ONLINE_ONLY))

    if config.requires_scheduling and ptype != ProductType.SERVICE:
        out.append(("requires_scheduling", "Only service products can require scheduling"))
    return out


__all__ = [
    "ALLOWED_SELLING_METHODS",
    "ALLOWED_FULFILLMENT",
    "SELLING_UNITS",
    "SUBSCRIPTION_INTERVALS",
    "default_selling_unit",
    "default_fulfillment",
    "apply_product_type",
    "apply_sales_channel_toggle",
    "apply_fulfillment_toggle",
    "apply_selling_method",
    "apply_selling_unit",
    "apply_subscription_interval",
    "apply_requires_scheduling",
    "classification_violations",
]
