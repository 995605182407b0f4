# src/models/product.py

"""Saved product model shared with the product list owner."""

from dataclasses import dataclass
from typing import Any


@dataclass
class Product:
    """A product page the user saved for tracking.

    ``price`` is the last known display text (e.g. ``"CA$1,299.99"``),
    not a number; the engine parses it on every check.
    """

    id: str
    title: str
    url: str
    price: str = ""
    date_added: str = ""
    last_price_update: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the stored product-list shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "price": self.price,
            "dateAdded": self.date_added,
        }
        if self.last_price_update is not None:
            data["lastPriceUpdate"] = self.last_price_update
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        """Build a Product from a stored product-list entry."""
        last_update = data.get("lastPriceUpdate")
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            url=str(data.get("url", "")),
            price=str(data.get("price") or ""),
            date_added=str(data.get("dateAdded", "")),
            last_price_update=(
                str(last_update) if last_update else None
            ),
        )
