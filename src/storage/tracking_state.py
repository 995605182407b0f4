# src/storage/tracking_state.py

"""Typed access to the product list and tracking map in the key-value store."""

import logging
from typing import Any

from src.config.settings import Settings
from src.errors import StorageReadFailure, StorageWriteFailure
from src.models.product import Product
from src.models.tracking_record import TrackingRecord
from src.storage.kv_store import KeyValueStore

logger = logging.getLogger("pricewatch.state")


class TrackingState:
    """Reads and writes the two fixed keys the engine works with.

    Read failures are logged and treated as an empty collection; write
    failures are logged and reported through the boolean return value.
    Nothing here is cached: every load goes back to the store, since
    other writers may change the product list between cycles.
    """

    def __init__(
        self,
        store: KeyValueStore,
        products_key: str | None = None,
        tracking_key: str | None = None,
    ) -> None:
        self.store = store
        self.products_key = products_key or Settings.PRODUCTS_KEY
        self.tracking_key = tracking_key or Settings.TRACKING_KEY

    # ── Product list ─────────────────────────────────────

    def load_products(self) -> list[Product]:
        """Return the saved products, or ``[]`` when unreadable."""
        raw = self._read(self.products_key)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning(
                    "Ignoring malformed product list (%s)",
                    type(raw).__name__,
                )
            return []
        products: list[Product] = []
        for item in raw:
            if isinstance(item, dict) and item.get("id"):
                products.append(Product.from_dict(item))
        return products

    def save_products(self, products: list[Product]) -> bool:
        """Persist the product list. Returns False on write failure."""
        return self._write(
            self.products_key, [p.to_dict() for p in products],
        )

    def add_product(self, product: Product) -> bool:
        """Start tracking a product; replaces an entry with the same id."""
        products = [
            p for p in self.load_products() if p.id != product.id
        ]
        products.append(product)
        logger.info("Tracking product %s (%s)", product.id, product.url)
        return self.save_products(products)

    def remove_product(self, product_id: str) -> bool:
        """Stop tracking a product and drop its tracking record."""
        products = self.load_products()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            logger.debug("Product %s not tracked, nothing removed", product_id)
            return False
        tracking = self.load_tracking_map()
        tracking.pop(product_id, None)
        saved = self.save_products(remaining)
        saved = self.save_tracking_map(tracking) and saved
        logger.info("Stopped tracking product %s", product_id)
        return saved

    # ── Tracking map ─────────────────────────────────────

    def load_tracking_map(self) -> dict[str, TrackingRecord]:
        """Return ``{product_id: TrackingRecord}``, or ``{}`` when unreadable."""
        raw = self._read(self.tracking_key)
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning(
                    "Ignoring malformed tracking map (%s)",
                    type(raw).__name__,
                )
            return {}
        records: dict[str, TrackingRecord] = {}
        for product_id, data in raw.items():
            if isinstance(data, dict):
                records[str(product_id)] = TrackingRecord.from_dict(
                    str(product_id), data,
                )
        return records

    def save_tracking_map(
        self, tracking: dict[str, TrackingRecord],
    ) -> bool:
        """Persist the tracking map. Returns False on write failure."""
        return self._write(
            self.tracking_key,
            {pid: record.to_dict() for pid, record in tracking.items()},
        )

    # ── Private helpers ──────────────────────────────────

    def _read(self, key: str) -> Any:
        try:
            return self.store.get([key]).get(key)
        except StorageReadFailure as exc:
            logger.warning(
                "Storage read failed for '%s', treating as empty: %s",
                key,
                exc,
                exc_info=True,
            )
            return None

    def _write(self, key: str, value: Any) -> bool:
        try:
            self.store.set({key: value})
        except StorageWriteFailure as exc:
            logger.error(
                "Storage write failed for '%s': %s",
                key,
                exc,
                exc_info=True,
            )
            return False
        return True
