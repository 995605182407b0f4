# src/services/alert_policy.py

"""Interchangeable rules deciding which check results raise an alert.

Two policies exist because two tracking behaviours were shipped:
``price_drop`` alerts when a genuine decrease is detected, while
``same_price`` alerts when a product keeps its price across checks.
The active one is chosen by ``Settings.ALERT_POLICY``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings
from src.filters.change_detector import ChangeDetector
from src.filters.price_parser import PriceParser
from src.models.check_result import CheckResult
from src.models.product import Product
from src.models.tracking_record import TrackingRecord

logger = logging.getLogger("pricewatch.alerts")


@dataclass
class Alert:
    """A notification ready to be handed to the notifier."""

    notification_id: str
    title: str
    message: str
    metadata: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )


def _epoch_ms(result: CheckResult) -> int:
    return int(result.check_date.timestamp() * 1000)


class AlertPolicy(ABC):
    """Base class for alert policies."""

    name: str = ""

    @abstractmethod
    def evaluate(
        self,
        result: CheckResult,
        product: Product,
        record: TrackingRecord | None,
    ) -> Alert | None:
        """Return an alert for ``result``, or ``None``."""
        ...

    def collect(
        self,
        results: list[CheckResult],
        products: list[Product],
        tracking: dict[str, TrackingRecord],
    ) -> list[Alert]:
        """Evaluate every result of a cycle."""
        by_id = {p.id: p for p in products}
        alerts: list[Alert] = []
        for result in results:
            product = by_id.get(result.product_id)
            if product is None or not result.success:
                continue
            alert = self.evaluate(
                result, product, tracking.get(result.product_id),
            )
            if alert is not None:
                alerts.append(alert)
        return alerts


class PriceDropPolicy(AlertPolicy):
    """Alert when the price genuinely dropped since the last check.

    With ``min_change_pct`` above zero, only drops of at least that
    percentage are reported.
    """

    name = "price_drop"

    def __init__(
        self,
        min_change_pct: float | None = None,
        detector: ChangeDetector | None = None,
    ) -> None:
        self.min_change_pct = (
            Settings.ALERT_MIN_CHANGE_PCT
            if min_change_pct is None
            else min_change_pct
        )
        self.detector = detector or ChangeDetector()

    def evaluate(
        self,
        result: CheckResult,
        product: Product,
        record: TrackingRecord | None,
    ) -> Alert | None:
        if not (result.changed and result.dropped and result.current_price):
            return None

        old = PriceParser.parse(result.original_price)
        new = PriceParser.parse(result.current_price)
        significance = self.detector.classify(old, new, self.min_change_pct)
        if self.min_change_pct > 0 and not significance.is_significant:
            logger.debug(
                "Drop on %s below %.1f%% threshold (%.2f%%)",
                product.id,
                self.min_change_pct,
                significance.percentage_change,
            )
            return None

        return Alert(
            notification_id=f"price-drop-{product.id}-{_epoch_ms(result)}",
            title="Price Drop Alert",
            message=(
                f"{product.title} dropped from {result.original_price} "
                f"to {result.current_price}"
            ),
            metadata={
                "productId": product.id,
                "url": product.url,
                "difference": round(result.difference, 2),
                "percentageChange": significance.percentage_change,
            },
        )


class SamePricePolicy(AlertPolicy):
    """Alert when a product keeps the same price across checks."""

    name = "same_price"

    def evaluate(
        self,
        result: CheckResult,
        product: Product,
        record: TrackingRecord | None,
    ) -> Alert | None:
        if result.changed or not result.current_price:
            return None
        if PriceParser.parse(result.current_price) <= 0:
            return None

        same_count = record.same_count if record else 0
        return Alert(
            notification_id=f"same-price-{product.id}-{_epoch_ms(result)}",
            title="Price Unchanged",
            message=f"{product.title} is still {result.current_price}",
            metadata={
                "productId": product.id,
                "url": product.url,
                "sameCount": same_count,
            },
        )


_POLICIES: dict[str, type[AlertPolicy]] = {
    PriceDropPolicy.name: PriceDropPolicy,
    SamePricePolicy.name: SamePricePolicy,
}


def build_alert_policy(name: str | None = None) -> AlertPolicy:
    """Instantiate the policy registered under ``name``.

    Raises:
        ValueError: ``name`` is not a known policy.
    """
    key = (name or Settings.ALERT_POLICY).strip().lower()
    policy_cls = _POLICIES.get(key)
    if policy_cls is None:
        valid = ", ".join(sorted(_POLICIES))
        raise ValueError(
            f"Unknown alert policy: {key}. Valid policies: {valid}"
        )
    return policy_cls()
