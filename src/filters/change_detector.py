# src/filters/change_detector.py

"""Classify the relationship between two numeric prices."""

import logging
from dataclasses import dataclass

from src.config.settings import Settings

logger = logging.getLogger("pricewatch.detector")


@dataclass
class PriceChange:
    """Result of comparing a previous price with a current one."""

    changed: bool
    dropped: bool
    difference: float


@dataclass
class Significance:
    """Percentage-based classification of a price move."""

    change_type: str  # "increase", "decrease", "none", "new", "error"
    absolute_change: float
    percentage_change: float
    is_significant: bool
    threshold: float


class ChangeDetector:
    """Detect price changes and drops between consecutive checks."""

    def __init__(
        self,
        epsilon: float | None = None,
        default_threshold: float | None = None,
    ) -> None:
        self.epsilon = (
            Settings.CHANGE_EPSILON if epsilon is None else epsilon
        )
        self.default_threshold = (
            default_threshold
            if default_threshold is not None and default_threshold > 0
            else Settings.SIGNIFICANCE_THRESHOLD_PCT
        )

    def compare(self, previous: float, current: float) -> PriceChange:
        """Compare two parsed prices.

        A zero on either side means the price could not be parsed, so
        no change is reported. Moves of one cent or less are noise.
        """
        if previous <= 0 or current <= 0:
            return PriceChange(changed=False, dropped=False, difference=0.0)
        difference = abs(previous - current)
        changed = difference > self.epsilon
        return PriceChange(
            changed=changed,
            dropped=changed and previous > current,
            difference=difference,
        )

    def classify(
        self,
        previous: float,
        current: float,
        threshold: float | None = None,
    ) -> Significance:
        """Classify a move by its percentage against ``threshold``.

        ``threshold`` is a percentage; missing or non-positive values
        fall back to the configured default.
        """
        effective = (
            threshold
            if threshold is not None and threshold > 0
            else self.default_threshold
        )

        if previous < 0 or current < 0:
            return Significance("error", 0.0, 0.0, False, effective)
        if previous == 0:
            change_type = "new" if current > 0 else "none"
            return Significance(change_type, current, 0.0, False, effective)

        absolute = current - previous
        percentage = round(absolute / previous * 100, 2)
        if abs(absolute) <= self.epsilon:
            change_type = "none"
        elif absolute < 0:
            change_type = "decrease"
        else:
            change_type = "increase"

        return Significance(
            change_type=change_type,
            absolute_change=round(absolute, 2),
            percentage_change=percentage,
            is_significant=(
                change_type in ("increase", "decrease")
                and abs(percentage) >= effective
            ),
            threshold=effective,
        )
