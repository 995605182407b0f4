# src/storage/history_store.py

"""Bounded, append-only per-product price history."""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any

from src.config.settings import Settings
from src.models.product import Product
from src.models.tracking_record import (
    HistoryEntry,
    TrackingRecord,
    utc_now,
)
from src.storage.tracking_state import TrackingState

logger = logging.getLogger("pricewatch.history")


@dataclass
class PriceStatistics:
    """Summary of a product's recorded prices."""

    min_price: float
    max_price: float
    avg_price: float
    current_price: float
    total_drops: int
    total_increases: int
    count: int


@dataclass
class PriceTrend:
    """Direction of the most recent price moves."""

    direction: str  # "increasing", "decreasing", "stable"
    strength: float


class HistoryStore:
    """Price history kept inside each product's tracking record.

    History is bounded to ``max_history`` entries; once exceeded the
    oldest entries are evicted first.
    """

    def __init__(
        self,
        state: TrackingState,
        max_history: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        limit = Settings.MAX_HISTORY if max_history is None else max_history
        if limit < 1:
            raise ValueError(f"max_history must be >= 1, got {limit}")
        self.state = state
        self.max_history = limit
        self._clock = clock

    # ── Recording ────────────────────────────────────────

    def append_to(
        self,
        tracking: dict[str, TrackingRecord],
        product_id: str,
        entry: HistoryEntry,
    ) -> TrackingRecord:
        """Append to an already-loaded tracking map without touching storage."""
        record = tracking.get(product_id)
        if record is None:
            record = TrackingRecord(product_id=product_id)
            tracking[product_id] = record
        record.append(entry, self.max_history)
        return record

    def append(self, product_id: str, entry: HistoryEntry) -> None:
        """Load, append, truncate and write back one product's history."""
        tracking = self.state.load_tracking_map()
        record = self.append_to(tracking, product_id, entry)
        if self.state.save_tracking_map(tracking):
            logger.debug(
                "Appended %.2f to history of %s (%d entries)",
                entry.price,
                product_id,
                len(record.history),
            )

    # ── Querying ─────────────────────────────────────────

    def get(self, product_id: str) -> list[HistoryEntry]:
        """Return a product's history, oldest first."""
        record = self.state.load_tracking_map().get(product_id)
        return list(record.history) if record else []

    def statistics(self, product_id: str) -> PriceStatistics | None:
        """Compute min / max / avg / current and move counts."""
        prices = [e.price for e in self.get(product_id)]
        if not prices:
            return None
        drops = sum(1 for a, b in zip(prices, prices[1:]) if b < a)
        increases = sum(1 for a, b in zip(prices, prices[1:]) if b > a)
        return PriceStatistics(
            min_price=min(prices),
            max_price=max(prices),
            avg_price=round(sum(prices) / len(prices), 2),
            current_price=prices[-1],
            total_drops=drops,
            total_increases=increases,
            count=len(prices),
        )

    def trend(
        self, product_id: str, window: int | None = None,
    ) -> PriceTrend:
        """Classify the direction of the last ``window`` observations.

        ``strength`` is the share of consecutive steps inside the
        window that move in the reported direction.
        """
        size = window or Settings.TREND_WINDOW
        prices = [e.price for e in self.get(product_id)][-size:]
        if len(prices) < 2:
            return PriceTrend(direction="stable", strength=0.0)

        net = prices[-1] - prices[0]
        if abs(net) <= Settings.CHANGE_EPSILON:
            return PriceTrend(direction="stable", strength=0.0)

        steps = list(zip(prices, prices[1:]))
        if net < 0:
            moving = sum(1 for a, b in steps if b < a)
            direction = "decreasing"
        else:
            moving = sum(1 for a, b in steps if b > a)
            direction = "increasing"
        return PriceTrend(
            direction=direction,
            strength=round(moving / len(steps), 2),
        )

    def export(self, product_id: str) -> dict[str, Any]:
        """Bundle a product's history and statistics for export."""
        stats = self.statistics(product_id)
        return {
            "productId": product_id,
            "exportDate": self._clock().isoformat(),
            "priceHistory": [e.to_dict() for e in self.get(product_id)],
            "statistics": asdict(stats) if stats else None,
        }

    def products_with_drops(
        self, days_back: int | None = None,
    ) -> list[Product]:
        """Return tracked products with a recorded drop inside the window."""
        days = Settings.DROPS_LOOKBACK_DAYS if days_back is None else days_back
        cutoff = self._clock() - timedelta(days=days)
        tracking = self.state.load_tracking_map()
        matches: list[Product] = []
        for product in self.state.load_products():
            record = tracking.get(product.id)
            if record and any(
                e.dropped and e.timestamp > cutoff for e in record.history
            ):
                matches.append(product)
        return matches

    # ── Cleanup ──────────────────────────────────────────

    def prune(self, product_id: str, max_age_days: int) -> int:
        """Drop one product's entries older than ``max_age_days``.

        Returns the number of entries removed.
        """
        tracking = self.state.load_tracking_map()
        record = tracking.get(product_id)
        if record is None:
            return 0
        removed = self._prune_record(record, max_age_days)
        if removed:
            self.state.save_tracking_map(tracking)
            logger.info(
                "Pruned %d entries older than %d days from %s",
                removed,
                max_age_days,
                product_id,
            )
        return removed

    def prune_all(self, max_age_days: int | None = None) -> int:
        """Prune every product's history. Returns the total removed."""
        days = (
            Settings.HISTORY_MAX_AGE_DAYS
            if max_age_days is None
            else max_age_days
        )
        tracking = self.state.load_tracking_map()
        total = sum(
            self._prune_record(record, days)
            for record in tracking.values()
        )
        if total:
            self.state.save_tracking_map(tracking)
        logger.info(
            "History cleanup removed %d entries across %d products",
            total,
            len(tracking),
        )
        return total

    def _prune_record(self, record: TrackingRecord, max_age_days: int) -> int:
        cutoff = self._clock() - timedelta(days=max_age_days)
        before = len(record.history)
        record.history = [e for e in record.history if e.timestamp > cutoff]
        return before - len(record.history)
