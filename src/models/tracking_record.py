# src/models/tracking_record.py

"""Persisted per-product tracking state and its price history."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("pricewatch.models")


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into UTC."""
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str) and raw:
        try:
            value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable timestamp: %r", raw)
            return None
    else:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_price(raw: object) -> float:
    """Coerce a stored price to a finite non-negative float."""
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


@dataclass
class HistoryEntry:
    """A single observed price for a product."""

    price: float
    timestamp: datetime
    dropped: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-safe dict."""
        return {
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
            "dropped": self.dropped,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry | None":
        """Load an entry, or ``None`` when its timestamp is unusable."""
        ts = parse_timestamp(data.get("timestamp") or data.get("date"))
        if ts is None:
            return None
        return cls(
            price=_as_price(data.get("price")),
            timestamp=ts,
            dropped=bool(data.get("dropped", False)),
        )


@dataclass
class TrackingRecord:
    """Tracking state for one product, mutated on every check cycle."""

    product_id: str
    last_price: float = 0.0
    last_check_time: datetime | None = None
    same_count: int = 0
    history: list[HistoryEntry] = field(
        default_factory=lambda: list[HistoryEntry]()
    )

    def append(self, entry: HistoryEntry, max_history: int) -> None:
        """Push an entry and evict the oldest beyond ``max_history``."""
        self.history.append(entry)
        overflow = len(self.history) - max_history
        if overflow > 0:
            del self.history[:overflow]

    def mark_checked(self, when: datetime) -> None:
        """Advance ``last_check_time``; it never moves backwards."""
        if self.last_check_time is None or when > self.last_check_time:
            self.last_check_time = when

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the stored tracking-map shape."""
        return {
            "productId": self.product_id,
            "lastPrice": self.last_price,
            "lastCheckTime": (
                self.last_check_time.isoformat()
                if self.last_check_time
                else None
            ),
            "sameCount": self.same_count,
            "history": [e.to_dict() for e in self.history],
        }

    @classmethod
    def from_dict(
        cls, product_id: str, data: dict[str, Any],
    ) -> "TrackingRecord":
        """Load a record, tolerating missing or corrupted fields."""
        raw_history = data.get("history")
        entries: list[HistoryEntry] = []
        if isinstance(raw_history, list):
            for item in raw_history:
                if not isinstance(item, dict):
                    continue
                entry = HistoryEntry.from_dict(item)
                if entry is not None:
                    entries.append(entry)
        try:
            same_count = max(int(data.get("sameCount") or 0), 0)
        except (TypeError, ValueError):
            same_count = 0
        return cls(
            product_id=str(data.get("productId") or product_id),
            last_price=_as_price(data.get("lastPrice")),
            last_check_time=parse_timestamp(data.get("lastCheckTime")),
            same_count=same_count,
            history=entries,
        )
