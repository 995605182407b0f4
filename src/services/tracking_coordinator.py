# src/services/tracking_coordinator.py

"""Runs one check cycle over every tracked product."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from src.config.settings import Settings
from src.errors import ExtractionTimeout
from src.filters.change_detector import ChangeDetector
from src.filters.price_parser import PriceParser
from src.models.check_result import CheckResult
from src.models.product import Product
from src.models.tracking_record import (
    HistoryEntry,
    TrackingRecord,
    utc_now,
)
from src.scrapers.page_fetcher import PageHandle, PageLifecycle
from src.scrapers.price_extractor import PriceExtractor
from src.services.alert_policy import AlertPolicy
from src.services.notifier import Notifier
from src.storage.history_store import HistoryStore
from src.storage.tracking_state import TrackingState

logger = logging.getLogger("pricewatch.coordinator")


class TrackingCoordinator:
    """Checks products one at a time and records what changed.

    Products are checked strictly sequentially with a pacing delay in
    between, so at most one page handle is open at any moment. A
    failing product yields a failed :class:`CheckResult`; it never
    aborts the cycle.
    """

    def __init__(
        self,
        state: TrackingState,
        history: HistoryStore,
        lifecycle: PageLifecycle,
        extractor: PriceExtractor,
        *,
        detector: ChangeDetector | None = None,
        alert_policy: AlertPolicy | None = None,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings or Settings()
        self.state = state
        self.history = history
        self.lifecycle = lifecycle
        self.extractor = extractor
        self.detector = detector or ChangeDetector()
        self.alert_policy = alert_policy
        self.notifier = notifier
        self._clock = clock

    # ── Cycle ────────────────────────────────────────────

    async def run_cycle(self) -> list[CheckResult]:
        """Check every tracked product and persist the outcome."""
        products = await asyncio.to_thread(self.state.load_products)
        if not products:
            logger.info("No products to check")
            return []

        tracking = await asyncio.to_thread(self.state.load_tracking_map)
        logger.info("Checking prices for %d products", len(products))

        results: list[CheckResult] = []
        for index, product in enumerate(products):
            if index:
                await asyncio.sleep(self.settings.PACING_DELAY)
            results.append(await self._check_product(product, tracking))

        latest = await self._persist(results, tracking)
        await self._dispatch_alerts(results, latest or products, tracking)

        drops = sum(1 for r in results if r.dropped)
        changes = sum(1 for r in results if r.changed)
        failures = sum(1 for r in results if not r.success)
        logger.info(
            "Price check complete: %d drops, %d changes, %d failures "
            "out of %d checks",
            drops,
            changes,
            failures,
            len(results),
        )
        return results

    # ── Per-product check ────────────────────────────────

    async def _fetch_price_text(self, product: Product) -> str | None:
        """Open the page, wait for it to settle, ask for its price.

        The extraction runs on a worker thread that cannot be
        interrupted. When it outlives the timeout, the page is closed
        once the worker returns rather than underneath it.
        """
        handle = await asyncio.to_thread(self.lifecycle.open, product.url)
        extraction: asyncio.Future[str | None] | None = None
        try:
            await asyncio.sleep(self.settings.SETTLE_DELAY)
            extraction = asyncio.get_running_loop().run_in_executor(
                None, self.extractor.get_product_price, handle,
            )
            try:
                raw = await asyncio.wait_for(
                    asyncio.shield(extraction),
                    timeout=self.settings.EXTRACTION_TIMEOUT,
                )
            except asyncio.TimeoutError as exc:
                raise ExtractionTimeout(
                    f"No price reply from {product.url} within "
                    f"{self.settings.EXTRACTION_TIMEOUT:.0f}s"
                ) from exc
        finally:
            if extraction is not None and not extraction.done():
                logger.warning(
                    "Extraction for %s still running, closing its page "
                    "when it returns",
                    product.id,
                )
                extraction.add_done_callback(
                    lambda fut: self._close_after_extraction(
                        fut, product, handle,
                    )
                )
            else:
                await asyncio.to_thread(self._close_handle, product, handle)

        if not raw or raw == self.settings.PRICE_NOT_FOUND:
            return None
        return raw

    def _close_handle(self, product: Product, handle: PageHandle) -> None:
        try:
            self.lifecycle.close(handle)
        except Exception as exc:
            logger.warning(
                "Failed to close page handle for %s: %s",
                product.id,
                exc,
                exc_info=True,
            )

    def _close_after_extraction(
        self,
        extraction: asyncio.Future[str | None],
        product: Product,
        handle: PageHandle,
    ) -> None:
        if not extraction.cancelled() and extraction.exception() is not None:
            logger.debug(
                "Late extraction for %s failed: %s",
                product.id,
                extraction.exception(),
            )
        self._close_handle(product, handle)

    async def _check_product(
        self,
        product: Product,
        tracking: dict[str, TrackingRecord],
    ) -> CheckResult:
        check_date = self._clock()
        logger.debug("Checking price for %s (%s)", product.id, product.title)

        try:
            raw = await self._fetch_price_text(product)
        except Exception as exc:
            logger.warning(
                "Price check failed for %s: %s",
                product.id,
                exc,
                exc_info=True,
            )
            return CheckResult(
                product_id=product.id,
                success=False,
                check_date=check_date,
                original_price=product.price,
                error=str(exc) or type(exc).__name__,
            )

        record = tracking.get(product.id)
        first_check = record is None
        previous = PriceParser.parse(product.price)
        if previous <= 0 and record is not None:
            previous = record.last_price

        current = PriceParser.parse(raw)
        change = self.detector.compare(previous, current)

        if current > 0:
            record = self.history.append_to(
                tracking,
                product.id,
                HistoryEntry(
                    price=current,
                    timestamp=check_date,
                    dropped=change.dropped,
                ),
            )
            if first_check or change.changed or previous <= 0:
                record.same_count = 0
            else:
                record.same_count += 1
            record.last_price = current
        elif record is None:
            record = TrackingRecord(product_id=product.id)
            tracking[product.id] = record
        record.mark_checked(check_date)

        return CheckResult(
            product_id=product.id,
            success=True,
            check_date=check_date,
            original_price=product.price,
            current_price=raw,
            changed=change.changed,
            dropped=change.dropped,
            difference=change.difference,
        )

    # ── Persistence & alerts ─────────────────────────────

    async def _persist(
        self,
        results: list[CheckResult],
        tracking: dict[str, TrackingRecord],
    ) -> list[Product]:
        """Write refreshed prices and the tracking map once.

        The product list is re-read so products added or removed
        while the cycle ran are not overwritten.
        """
        latest = await asyncio.to_thread(self.state.load_products)
        if not latest:
            logger.warning(
                "Product list empty at end of cycle, skipping price refresh"
            )
        else:
            updates = {
                r.product_id: r
                for r in results
                if r.success and r.changed and r.current_price
            }
            for product in latest:
                result = updates.get(product.id)
                if result is not None and result.current_price:
                    product.price = result.current_price
                    product.last_price_update = result.check_date.isoformat()

            live_ids = {p.id for p in latest}
            for product_id in list(tracking):
                if product_id not in live_ids:
                    del tracking[product_id]

            if updates:
                await asyncio.to_thread(self.state.save_products, latest)

        saved = await asyncio.to_thread(
            self.state.save_tracking_map, tracking,
        )
        if not saved:
            logger.error(
                "Tracking data for %d products was not persisted",
                len(tracking),
            )
        return latest

    async def _dispatch_alerts(
        self,
        results: list[CheckResult],
        products: list[Product],
        tracking: dict[str, TrackingRecord],
    ) -> None:
        if self.alert_policy is None or self.notifier is None:
            return
        alerts = self.alert_policy.collect(results, products, tracking)
        for alert in alerts:
            try:
                self.notifier.present(
                    alert.notification_id,
                    alert.title,
                    alert.message,
                    alert.metadata,
                )
            except Exception as exc:
                logger.error(
                    "Failed to present %s: %s",
                    alert.notification_id,
                    exc,
                    exc_info=True,
                )
        if alerts:
            logger.info(
                "Raised %d '%s' alerts", len(alerts), self.alert_policy.name,
            )
