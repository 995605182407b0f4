# src/services/engine.py

"""The price-tracking engine: one owned object wiring every component."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from src.config.settings import Settings
from src.models.check_result import CheckResult
from src.models.product import Product
from src.models.tracking_record import HistoryEntry, utc_now
from src.scrapers.page_fetcher import HttpPageLifecycle, PageLifecycle
from src.scrapers.price_extractor import HtmlPriceExtractor, PriceExtractor
from src.services.alert_policy import AlertPolicy, build_alert_policy
from src.services.notifier import ConsoleNotifier, Notifier
from src.services.scheduler import PeriodicScheduler, PriceCheckScheduler
from src.services.tracking_coordinator import TrackingCoordinator
from src.storage.history_store import HistoryStore
from src.storage.kv_store import KeyValueStore, SqliteKeyValueStore
from src.storage.tracking_state import TrackingState

logger = logging.getLogger("pricewatch.engine")


class PriceTrackingEngine:
    """Builds the tracking pipeline and exposes its lifecycle.

    Every collaborator can be injected; anything omitted is built from
    :class:`Settings`.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        lifecycle: PageLifecycle | None = None,
        extractor: PriceExtractor | None = None,
        notifier: Notifier | None = None,
        timer: PeriodicScheduler | None = None,
        alert_policy: AlertPolicy | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings or Settings()
        self.store: KeyValueStore = store or SqliteKeyValueStore()
        self.state = TrackingState(self.store)
        self.history = HistoryStore(
            self.state,
            max_history=self.settings.MAX_HISTORY,
            clock=clock,
        )
        self.coordinator = TrackingCoordinator(
            self.state,
            self.history,
            lifecycle or HttpPageLifecycle(self.settings),
            extractor or HtmlPriceExtractor(),
            alert_policy=(
                alert_policy
                or build_alert_policy(self.settings.ALERT_POLICY)
            ),
            notifier=notifier or ConsoleNotifier(),
            settings=self.settings,
            clock=clock,
        )
        self.scheduler = PriceCheckScheduler(self.coordinator, timer=timer)

    # ── Lifecycle ────────────────────────────────────────

    def start(self, period_minutes: float | None = None) -> None:
        """Register the recurring check timer."""
        self.scheduler.start(period_minutes)
        logger.info("Price tracking engine started")

    def stop(self) -> None:
        """Cancel the timer and close the store."""
        self.scheduler.stop()
        self.store.close()
        logger.info("Price tracking engine stopped")

    async def aclose(self) -> None:
        """Cancel the timer, let a running cycle finish, close the store."""
        self.scheduler.stop()
        await self.scheduler.wait_idle()
        self.store.close()
        logger.info("Price tracking engine stopped")

    # ── Operations ───────────────────────────────────────

    async def check_now(self) -> list[CheckResult] | None:
        """Run one check cycle immediately (single-flight)."""
        return await self.scheduler.trigger_now()

    def track(self, product: Product) -> bool:
        """Add a product to the tracked list."""
        return self.state.add_product(product)

    def untrack(self, product_id: str) -> bool:
        """Remove a product and its tracking record."""
        return self.state.remove_product(product_id)

    def products(self) -> list[Product]:
        """Return the tracked products."""
        return self.state.load_products()

    def history_for(self, product_id: str) -> list[HistoryEntry]:
        """Return a product's price history, oldest first."""
        return self.history.get(product_id)

    def export_history(self, product_id: str) -> dict[str, Any]:
        """Return a product's history bundled with its statistics."""
        return self.history.export(product_id)

    def drops(self, days_back: int | None = None) -> list[Product]:
        """Products with a recorded price drop in the last ``days_back`` days."""
        return self.history.products_with_drops(days_back)

    def cleanup(self, max_age_days: int | None = None) -> int:
        """Prune history entries older than ``max_age_days``."""
        return self.history.prune_all(max_age_days)
