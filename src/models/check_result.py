# src/models/check_result.py

"""Per-product outcome of one check cycle."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CheckResult:
    """Outcome of checking a single product.

    Ephemeral: consumed by the coordinator and alert policy, never
    persisted as-is.
    """

    product_id: str
    success: bool
    check_date: datetime
    original_price: str = ""
    current_price: str | None = None
    changed: bool = False
    dropped: bool = False
    difference: float = 0.0
    error: str | None = None
