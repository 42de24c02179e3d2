# product_editor/integrations/product_api.py
"""
Collaborator contracts for the editing session and the httpx implementation
of the product API.

Every failure (network, non-2xx, malformed body) surfaces as
``CollaboratorError`` carrying one user-visible message.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from product_editor.core.config import settings
from product_editor.core.exceptions import CollaboratorError, NotFoundError
from product_editor.core.logging import get_logger
from product_editor.schemas.category import Category
from product_editor.schemas.product import InventoryRecord, PendingImage, PersistedImage
from product_editor.services.identifiers import GeneratedBarcode

logger = get_logger(__name__)


# ---------------------- records ---------------------- #


@dataclass(frozen=True)
class UploadProgress:
    current_index: int
    total_files: int
    fraction: float
    file_name: Optional[str] = None


ProgressCallback = Callable[[UploadProgress], None]


@dataclass
class UploadResult:
    images: list[PersistedImage] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


# ---------------------- contracts ---------------------- #


@runtime_checkable
class ProductGateway(Protocol):
    async def create_product(self, payload: dict[str, Any]) -> str: ...

    async def update_product(self, product_id: str, payload: dict[str, Any]) -> None: ...

    async def fetch_product(self, product_id: str) -> dict[str, Any]: ...

    async def upload_images(
        self,
        product_id: str,
        files: Sequence[PendingImage],
        featured_index: Optional[int] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> UploadResult: ...

    async def delete_image(self, product_id: str, image_id: str) -> None: ...

    async def set_image_primary(self, product_id: str, image_id: str) -> None: ...

    async def fetch_images(self, product_id: str) -> list[PersistedImage]: ...

    async def fetch_categories(self) -> list[Category]: ...

    async def fetch_product_categories(self, product_id: str) -> list[str]: ...

    async def fetch_inventory(self, product_id: str, store_id: Optional[str]) -> Optional[InventoryRecord]: ...


@runtime_checkable
class IdentifierGenerator(Protocol):
    """Uniqueness-checked generators; ``None`` means exhausted."""

    async def generate_sku(self, base_name: str, existing: Sequence[str]) -> Optional[str]: ...

    async def generate_barcode(self, kind: str, existing: Sequence[str]) -> Optional[GeneratedBarcode]: ...


# ---------------------- http client with retries ---------------------- #


class _RetryingAsyncClient:
    """
    Обёртка над httpx.AsyncClient с экспоненциальными повторами на сетевые и 5xx ошибки.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        retries: int = 2,
        backoff_base: float = 0.5,
    ):
        self._client = client
        self._retries = max(0, retries)
        self._base = backoff_base

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        last_exc: Optional[Exception] = None
        for attempt in range(self._retries + 1):
            try:
                resp = await self._client.request(method, url, **kwargs)
                if 500 <= resp.status_code < 600:
                    raise httpx.HTTPStatusError("Server error", request=resp.request, response=resp)
                return resp
            except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as e:
                last_exc = e
                if attempt >= self._retries:
                    break
                logger.debug("product_api_retry", method=method, url=url, attempt=attempt + 1)
                await asyncio.sleep(self._base * (2**attempt))
        assert last_exc is not None
        raise last_exc

    async def aclose(self) -> None:
        await self._client.aclose()


# ---------------------- main gateway ---------------------- #


def _error_message(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip() or f"HTTP {resp.status_code}: {fallback}"
    if isinstance(body, dict):
        for key in ("error", "details", "message"):
            if body.get(key):
                return str(body[key])
    return fallback


class HttpProductGateway:
    """
    Product API over HTTP:
      - products: create / update / fetch
      - images: batch upload, delete, mark primary, list
      - categories: tree and per-product assignment
      - inventory per store
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        token = token if token is not None else settings.API_TOKEN
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        http = client or httpx.AsyncClient(timeout=settings.API_TIMEOUT_SECONDS)
        http.headers.update(headers)
        self._http = _RetryingAsyncClient(
            http,
            retries=settings.API_RETRIES if retries is None else retries,
            backoff_base=settings.API_BACKOFF_BASE if backoff_base is None else backoff_base,
        )

    async def __aenter__(self) -> "HttpProductGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---------------------- helpers ---------------------- #

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    async def _send(self, method: str, path: str, *, failure: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._http.request(method, self._url(path), **kwargs)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("product_api_server_error", method=method, path=path, status=status)
            raise CollaboratorError(
                _error_message(e.response, failure), code="server_error", status_code=status
            ) from e
        except httpx.HTTPError as e:
            logger.error("product_api_unreachable", method=method, path=path, error=str(e))
            raise CollaboratorError(
                f"{failure}: the product service is unreachable", code="network_error"
            ) from e

        if resp.status_code == 404:
            raise NotFoundError(_error_message(resp, "Product not found"), code="not_found", status_code=404)
        if resp.is_error:
            logger.warning("product_api_rejected", method=method, path=path, status=resp.status_code)
            raise CollaboratorError(
                _error_message(resp, failure), code="request_failed", status_code=resp.status_code
            )
        return resp

    async def _json(self, method: str, path: str, *, failure: str, **kwargs) -> dict[str, Any]:
        resp = await self._send(method, path, failure=failure, **kwargs)
        try:
            data = resp.json()
        except ValueError as e:
            raise CollaboratorError(f"{failure}: malformed response", code="malformed_response") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CollaboratorError(f"{failure}: malformed response", code="malformed_response")
        return data

    # ---------------------- products ---------------------- #

    async def create_product(self, payload: dict[str, Any]) -> str:
        data = await self._json("POST", "/api/products", json=payload, failure="Failed to create product")
        product = data.get("product") or data
        if not product.get("id"):
            raise CollaboratorError("Failed to create product: malformed response", code="malformed_response")
        logger.info("product_created", product_id=str(product["id"]))
        return str(product["id"])

    async def update_product(self, product_id: str, payload: dict[str, Any]) -> None:
        await self._send("PUT", f"/api/products/{product_id}", json=payload, failure="Failed to update product")
        logger.info("product_updated", product_id=product_id)

    async def fetch_product(self, product_id: str) -> dict[str, Any]:
        data = await self._json("GET", f"/api/products/{product_id}", failure="Failed to load product")
        product = data.get("product")
        if not isinstance(product, dict):
            raise CollaboratorError("Failed to load product: malformed response", code="malformed_response")
        return product

    # ---------------------- images ---------------------- #

    async def upload_images(
        self,
        product_id: str,
        files: Sequence[PendingImage],
        featured_index: Optional[int] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """
        One request per file so progress can be reported per item. A failed
        file is recorded in ``errors``; the rest are still uploaded.
        """
        result = UploadResult()
        total = len(files)
        for index, image in enumerate(files):
            if progress is not None:
                progress(UploadProgress(index, total, index / total, image.file_name))
            data: dict[str, str] = {}
            if featured_index == index:
                data["featuredIndex"] = "0"
            upload = (image.file_name or f"image-{index}", image.file_handle, image.content_type or "application/octet-stream")
            try:
                body = await self._json(
                    "POST",
                    f"/api/products/{product_id}/images",
                    files={"files": upload},
                    data=data,
                    failure="Failed to upload image",
                )
                result.images.extend(PersistedImage.model_validate(i) for i in body.get("images") or [])
                result.errors.extend(str(e) for e in body.get("errors") or [])
            except (CollaboratorError, ValidationError) as e:
                message = e.message if isinstance(e, CollaboratorError) else "Failed to upload image: malformed response"
                logger.warning("image_upload_failed", product_id=product_id, index=index, error=message)
                result.errors.append(message)
        if progress is not None and total:
            progress(UploadProgress(total - 1, total, 1.0, files[-1].file_name))
        return result

    async def delete_image(self, product_id: str, image_id: str) -> None:
        await self._send(
            "DELETE",
            f"/api/products/{product_id}/images",
            json={"imageId": image_id},
            failure="Failed to delete image",
        )

    async def set_image_primary(self, product_id: str, image_id: str) -> None:
        await self._send(
            "PATCH",
            f"/api/products/{product_id}/images",
            json={"imageId": image_id, "is_primary": True},
            failure="Failed to update primary image",
        )

    async def fetch_images(self, product_id: str) -> list[PersistedImage]:
        data = await self._json("GET", f"/api/products/{product_id}/images", failure="Failed to load images")
        try:
            return [PersistedImage.model_validate(i) for i in data.get("images") or []]
        except ValidationError as e:
            raise CollaboratorError("Failed to load images: malformed response", code="malformed_response") from e

    # ---------------------- categories ---------------------- #

    async def fetch_categories(self) -> list[Category]:
        data = await self._json("GET", "/api/categories", failure="Failed to load categories")
        try:
            return [Category.model_validate(c) for c in data.get("categories") or []]
        except ValidationError as e:
            raise CollaboratorError("Failed to load categories: malformed response", code="malformed_response") from e

    async def fetch_product_categories(self, product_id: str) -> list[str]:
        data = await self._json(
            "GET", f"/api/products/{product_id}/categories", failure="Failed to load product categories"
        )
        return [str(c["category_id"]) for c in data.get("categories") or [] if c.get("category_id")]

    # ---------------------- inventory ---------------------- #

    async def fetch_inventory(self, product_id: str, store_id: Optional[str]) -> Optional[InventoryRecord]:
        path = settings.INVENTORY_PATH_TEMPLATE.format(product_id=product_id)
        params = {"store_id": store_id} if store_id else None
        try:
            data = await self._json("GET", path, params=params, failure="Failed to load inventory")
        except NotFoundError:
            return None
        row = data.get("inventory", data)
        if not row:
            return None
        try:
            return InventoryRecord.model_validate(row)
        except ValidationError as e:
            raise CollaboratorError("Failed to load inventory: malformed response", code="malformed_response") from e


__all__ = [
    "UploadProgress",
    "UploadResult",
    "ProgressCallback",
    "ProductGateway",
    "IdentifierGenerator",
    "HttpProductGateway",
]
