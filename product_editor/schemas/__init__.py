from product_editor.schemas.baseline import Baseline
from product_editor.schemas.category import Category, CategoryPath
from product_editor.schemas.product import (
    BundleItem,
    BundleSubstitute,
    DiscountType,
    FulfillmentType,
    PendingImage,
    PersistedImage,
    ProductConfiguration,
    ProductType,
    SalesChannel,
    SellingMethod,
    VariantOption,
    VariantRow,
)
from product_editor.schemas.results import Err, Ok, Rejected

__all__ = [
    "Baseline",
    "BundleItem",
    "BundleSubstitute",
    "Category",
    "CategoryPath",
    "DiscountType",
    "Err",
    "FulfillmentType",
    "Ok",
    "PendingImage",
    "PersistedImage",
    "ProductConfiguration",
    "ProductType",
    "Rejected",
    "SalesChannel",
    "SellingMethod",
    "VariantOption",
    "VariantRow",
]
