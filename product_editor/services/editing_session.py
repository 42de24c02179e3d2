# product_editor/services/editing_session.py
"""
Editing session: the host-side controller that owns one configuration.

- routes every user edit through a rule function (commit or warning);
- hydrates edit mode (product first, then categories/inventory/images
  concurrently) and captures the baseline once everything resolved;
- generates identifiers (external generator first, local fallback);
- submits: validate -> create/update -> images.

Rule rejections and validation failures are returned as values;
collaborator failures become a single message and leave the configuration
untouched, except for the id of a product that was already created.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from product_editor.core.config import settings
from product_editor.core.exceptions import CollaboratorError, SessionStateError, user_message
from product_editor.core.logging import bound_context, get_logger
from product_editor.integrations.product_api import (
    IdentifierGenerator,
    ProductGateway,
    ProgressCallback,
)
from product_editor.schemas.baseline import Baseline
from product_editor.schemas.category import Category, CategoryPath
from product_editor.schemas.product import ProductConfiguration
from product_editor.schemas.results import Err, Rejected
from product_editor.services import categories as category_rules
from product_editor.services import identifiers
from product_editor.services.dirty_state import DirtyReport, capture_baseline, diff
from product_editor.services.images import primary_image_url, upload_featured_index
from product_editor.services.payload import build_payload, configuration_from_product
from product_editor.services.validation import validate

logger = get_logger(__name__)


class LoadState(str, Enum):
    CREATE = "create"
    HYDRATING = "hydrating"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class RuleWarning:
    message: str
    field: Optional[str]
    expires_at: float


@dataclass
class SubmitResult:
    ok: bool
    product_id: Optional[str] = None
    errors: dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


BaselineListener = Callable[[Baseline], None]


class EditingSession:
    def __init__(
        self,
        gateway: ProductGateway,
        *,
        product_id: Optional[str] = None,
        store_id: Optional[str] = None,
        identifier_generator: Optional[IdentifierGenerator] = None,
        clock: Callable[[], float] = time.monotonic,
        session_id: Optional[str] = None,
    ):
        self.gateway = gateway
        self.identifier_generator = identifier_generator
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._clock = clock

        self.config = ProductConfiguration(product_id=product_id, store_id=store_id)
        self.baseline: Optional[Baseline] = None
        self.load_state = LoadState.HYDRATING if product_id else LoadState.CREATE

        self.categories: list[Category] = []
        self.category_path = CategoryPath()
        self.last_processed_category_key: Optional[category_rules.CategoryKey] = None

        self._warning: Optional[RuleWarning] = None
        self._listeners: list[BaselineListener] = []

    # ---------------------- state ---------------------- #

    @property
    def is_create_mode(self) -> bool:
        return self.config.is_create_mode

    @property
    def is_loaded(self) -> bool:
        return self.load_state in (LoadState.CREATE, LoadState.READY)

    def dirty_report(self) -> DirtyReport:
        # nothing to compare against until the baseline exists
        return diff(self.config, self.baseline, hydrating=not self.is_loaded)

    @property
    def is_dirty(self) -> bool:
        return self.dirty_report().is_dirty

    @property
    def primary_image_url(self) -> Optional[str]:
        return primary_image_url(self.config)

    @property
    def warning(self) -> Optional[RuleWarning]:
        """Last rule rejection, until it expires."""
        if self._warning is not None and self._clock() >= self._warning.expires_at:
            self._warning = None
        return self._warning

    def on_baseline_captured(self, listener: BaselineListener) -> None:
        self._listeners.append(listener)

    def _context(self):
        return bound_context(
            session_id=self.session_id,
            product_id=self.config.product_id,
            store_id=self.config.store_id,
        )

    def _require_loaded(self, action: str) -> None:
        if not self.is_loaded:
            raise SessionStateError(
                f"Cannot {action} while the product is {self.load_state.value}",
                code="session_not_ready",
                extra={"load_state": self.load_state.value},
            )

    # ---------------------- edits ---------------------- #

    def apply(self, rule: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Run one user edit through ``rule(config, *args, **kwargs)``.
        A new configuration is committed; a Rejected is kept as a transient warning.
        """
        self._require_loaded("edit")
        with self._context():
            outcome = rule(self.config, *args, **kwargs)
        if isinstance(outcome, Rejected):
            self._warning = RuleWarning(
                message=outcome.reason,
                field=outcome.field,
                expires_at=self._clock() + settings.CHANNEL_WARNING_TTL_SECONDS,
            )
            return outcome
        if not isinstance(outcome, ProductConfiguration):
            raise TypeError(f"rule {getattr(rule, '__name__', rule)!r} returned {type(outcome).__name__}")
        self.config = outcome
        self._warning = None
        return outcome

    def update(self, **changes: Any) -> ProductConfiguration:
        """Plain field edits with no cascades (names, descriptions, inventory numbers)."""
        self._require_loaded("edit")
        self.config = self.config.evolve(**changes)
        return self.config

    # ---------------------- categories ---------------------- #

    def _sync_category_path(self) -> None:
        key = category_rules.category_key(self.categories, self.config.category_ids)
        if key == self.last_processed_category_key:
            return
        selected = self.config.category_ids[0] if self.config.category_ids else None
        self.category_path = category_rules.resolve_category_path(self.categories, selected)
        self.last_processed_category_key = key

    async def load_categories(self) -> list[Category]:
        with self._context():
            self.categories = await self.gateway.fetch_categories()
        self._sync_category_path()
        return self.categories

    def select_category(self, level: int, category_id: str) -> ProductConfiguration:
        self._require_loaded("edit")
        self.category_path = category_rules.select_category(self.category_path, level, category_id)
        self.config = category_rules.apply_category_path(self.config, self.category_path)
        self.last_processed_category_key = category_rules.category_key(
            self.categories, self.config.category_ids
        )
        return self.config

    # ---------------------- hydration ---------------------- #

    async def hydrate(self) -> ProductConfiguration:
        """
        Load an existing product. The baseline is captured only after every
        prefetch resolved; listeners are notified once. Raises CollaboratorError
        (state FAILED) when any fetch fails.
        """
        if self.is_create_mode:
            raise SessionStateError("Nothing to hydrate in create mode", code="create_mode")
        product_id = self.config.product_id
        assert product_id is not None
        self.load_state = LoadState.HYDRATING
        self.baseline = None

        with self._context():
            try:
                product = await self.gateway.fetch_product(product_id)
                store_id = product.get("store_id") or self.config.store_id
                categories, category_ids, inventory, images = await asyncio.gather(
                    self.gateway.fetch_categories(),
                    self.gateway.fetch_product_categories(product_id),
                    self.gateway.fetch_inventory(product_id, store_id),
                    self.gateway.fetch_images(product_id),
                )
            except CollaboratorError as e:
                self.load_state = LoadState.FAILED
                logger.warning("hydration_failed", error=e.message, code=e.code)
                raise

            config = configuration_from_product(
                {**product, "id": product_id, "store_id": store_id},
                category_ids,
                inventory,
                images,
            )
            self.config = config
            self.categories = list(categories)
            self._sync_category_path()

            self.baseline = capture_baseline(config)
            self.load_state = LoadState.READY
            logger.info("baseline_captured", images=len(config.persisted_images))

        for listener in list(self._listeners):
            listener(self.baseline)
        return config

    # ---------------------- identifiers ---------------------- #

    async def generate_identifiers(
        self,
        barcode_kind: str = identifiers.BarcodeKind.INTERNAL.value,
        existing_skus: Sequence[str] = (),
        existing_barcodes: Sequence[str] = (),
    ) -> ProductConfiguration:
        """External generator first; on None or failure fall back to local generation."""
        self._require_loaded("generate identifiers")
        sku: Optional[str] = None
        barcode: Optional[identifiers.GeneratedBarcode] = None
        name = self.config.name_en.strip()

        with self._context():
            if self.identifier_generator is not None:
                try:
                    sku = await self.identifier_generator.generate_sku(name, list(existing_skus))
                    barcode = await self.identifier_generator.generate_barcode(barcode_kind, list(existing_barcodes))
                except CollaboratorError as e:
                    logger.warning("identifier_service_failed", error=e.message)
            if sku is None:
                sku = identifiers.generate_sku(name or None, existing_skus)
                logger.info("sku_generated_locally")
            if barcode is None:
                barcode = identifiers.generate_barcode(barcode_kind, existing_barcodes)
                logger.info("barcode_generated_locally", kind=barcode_kind)

        self.config = self.config.evolve(sku=sku, barcode=barcode.barcode, barcode_type=barcode.type)
        return self.config

    # ---------------------- submission ---------------------- #

    async def submit(self, progress: Optional[ProgressCallback] = None) -> SubmitResult:
        self._require_loaded("submit")
        outcome = validate(self.config)
        if isinstance(outcome, Err):
            return SubmitResult(ok=False, errors=dict(outcome.errors))

        config = self.config
        payload = build_payload(config)
        with self._context():
            try:
                if config.is_create_mode:
                    return await self._submit_create(config, payload, progress)
                return await self._submit_update(config, payload, progress)
            except CollaboratorError as e:
                logger.warning("submit_failed", error=e.message, status=e.status_code)
                return SubmitResult(ok=False, product_id=self.config.product_id, message=user_message(e))

    async def _submit_create(
        self, config: ProductConfiguration, payload: dict, progress: Optional[ProgressCallback]
    ) -> SubmitResult:
        product_id = await self.gateway.create_product(payload)
        # a retry after a failed upload must update, not create again
        self.config = config = config.evolve(product_id=product_id)
        logger.info("product_created", new_product_id=product_id)
        warnings: list[str] = []
        if config.pending_images:
            uploaded = await self.gateway.upload_images(
                product_id, config.pending_images, upload_featured_index(config), progress
            )
            warnings = list(uploaded.errors)
        return SubmitResult(ok=True, product_id=product_id, warnings=warnings)

    async def _submit_update(
        self, config: ProductConfiguration, payload: dict, progress: Optional[ProgressCallback]
    ) -> SubmitResult:
        product_id = config.product_id
        assert product_id is not None
        warnings: list[str] = []
        if config.pending_images:
            uploaded = await self.gateway.upload_images(
                product_id, config.pending_images, upload_featured_index(config), progress
            )
            warnings = list(uploaded.errors)

        await self.gateway.update_product(product_id, payload)
        for image_id in config.pending_deletion_ids:
            await self.gateway.delete_image(product_id, image_id)
        primary = next((i for i in config.persisted_images if i.is_primary), None)
        if primary is not None:
            await self.gateway.set_image_primary(product_id, primary.id)
        return SubmitResult(ok=True, product_id=product_id, warnings=warnings)


__all__ = ["EditingSession", "LoadState", "RuleWarning", "SubmitResult"]
