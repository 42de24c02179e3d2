from product_editor.integrations.product_api import (
    HttpProductGateway,
    IdentifierGenerator,
    ProductGateway,
    UploadProgress,
    UploadResult,
)

__all__ = [
    "HttpProductGateway",
    "IdentifierGenerator",
    "ProductGateway",
    "UploadProgress",
    "UploadResult",
]
