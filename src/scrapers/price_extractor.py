# src/scrapers/price_extractor.py

"""Best-effort raw price text extraction from a loaded page."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

from bs4 import BeautifulSoup, Tag

from src.config.settings import Settings
from src.errors import ExtractionUnavailable
from src.scrapers.page_fetcher import PageHandle

# Platform groups are tried in this order; generic selectors last
# because they match the most noise.
_PLATFORM_ORDER: list[str] = [
    "amazon", "ebay", "shopify", "woocommerce", "common", "generic",
]


class PriceExtractor(Protocol):
    """Answers ``getProductPrice`` requests for a page handle."""

    def get_product_price(self, handle: PageHandle) -> str | None:
        """Return the displayed price text, or ``None`` if none is shown."""
        ...


class HtmlPriceExtractor:
    """Find the displayed price via meta tags, CSS selectors, then regex."""

    def __init__(self, selectors_path: Path | None = None) -> None:
        self.logger = logging.getLogger("pricewatch.extractor")
        config = self._load_selectors(
            selectors_path or Settings.SELECTORS_PATH
        )
        self.meta_selectors: list[str] = config.get("meta", [])
        platforms: dict[str, list[str]] = config.get("platforms", {})
        self.css_selectors: list[str] = [
            sel
            for name in _PLATFORM_ORDER
            for sel in platforms.get(name, [])
        ]
        self.patterns: list[re.Pattern[str]] = [
            re.compile(p) for p in config.get("patterns", [])
        ]
        self.invalid_texts: list[str] = config.get("invalid_texts", [])

    @staticmethod
    def _load_selectors(path: Path) -> dict[str, Any]:
        """Load extraction selectors from selectors.json."""
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)
        return data

    def _is_valid(self, text: str) -> bool:
        """Reject placeholders and loading indicators."""
        lower = text.lower().strip()
        if not lower or not re.search(r"\d", lower):
            return False
        return not any(bad in lower for bad in self.invalid_texts)

    def _from_meta(self, soup: BeautifulSoup) -> str | None:
        for selector in self.meta_selectors:
            el = soup.select_one(selector)
            if isinstance(el, Tag):
                content = str(el.get("content") or "").strip()
                if self._is_valid(content):
                    return content
        return None

    def _from_selectors(self, soup: BeautifulSoup) -> str | None:
        for selector in self.css_selectors:
            for el in soup.select(selector):
                text = el.get_text(" ", strip=True)
                if len(text) > 40 or not self._is_valid(text):
                    continue
                match = self._match_pattern(text)
                return match or text
        return None

    def _match_pattern(self, text: str) -> str | None:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match and re.search(r"\d", match.group(0)):
                return match.group(0).strip()
        return None

    def get_product_price(self, handle: PageHandle) -> str | None:
        """Return the first plausible price text on the page.

        Raises:
            ExtractionUnavailable: the handle carries no document.
        """
        soup = handle.document
        if soup is None:
            raise ExtractionUnavailable(
                f"No document loaded for {handle.url}"
            )

        price = (
            self._from_meta(soup)
            or self._from_selectors(soup)
            or self._match_pattern(soup.get_text(" ", strip=True))
        )
        if price is None:
            self.logger.info("No price found on %s", handle.url)
        else:
            self.logger.debug("Extracted '%s' from %s", price, handle.url)
        return price
