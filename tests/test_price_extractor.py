# tests/test_price_extractor.py

"""Tests for raw price text extraction from parsed pages."""

import unittest

from bs4 import BeautifulSoup

from src.errors import ExtractionUnavailable
from src.scrapers.page_fetcher import PageHandle
from src.scrapers.price_extractor import HtmlPriceExtractor


def _handle(html: str | None) -> PageHandle:
    doc = BeautifulSoup(html, "lxml") if html is not None else None
    return PageHandle(handle_id=1, url="https://shop.test/item", document=doc)


class TestHtmlPriceExtractor(unittest.TestCase):
    """Verify the meta -> selector -> regex fallback chain."""

    def setUp(self) -> None:
        self.extractor = HtmlPriceExtractor()

    def test_meta_tag_wins(self) -> None:
        """Structured price meta tags are used first."""
        html = (
            '<html><head><meta property="product:price:amount" content="19.99">'
            '</head><body><span class="price">$25.00</span></body></html>'
        )
        self.assertEqual(self.extractor.get_product_price(_handle(html)), "19.99")

    def test_amazon_selector(self) -> None:
        """Amazon's offscreen price span is found."""
        html = (
            '<html><body><span class="a-price">'
            '<span class="a-offscreen">$24.99</span></span></body></html>'
        )
        self.assertEqual(self.extractor.get_product_price(_handle(html)), "$24.99")

    def test_invalid_text_skipped(self) -> None:
        """Loading placeholders are passed over for the next match."""
        html = (
            '<html><body><span class="price">Loading 1...</span>'
            '<span class="amount">€12,50</span></body></html>'
        )
        self.assertEqual(self.extractor.get_product_price(_handle(html)), "€12,50")

    def test_long_text_skipped(self) -> None:
        """Elements with paragraph-length text are not prices."""
        long_text = "Free shipping on orders over $50 and returns within 30 days"
        html = (
            f'<html><body><div class="price-note">{long_text}</div>'
            '<span class="sale-price">$7.49</span></body></html>'
        )
        self.assertEqual(self.extractor.get_product_price(_handle(html)), "$7.49")

    def test_regex_fallback(self) -> None:
        """With no matching element, the page text is scanned."""
        html = "<html><body><p>Only $9.99 today</p></body></html>"
        self.assertEqual(self.extractor.get_product_price(_handle(html)), "$9.99")

    def test_no_price(self) -> None:
        """A page without a price yields None."""
        html = "<html><body><p>Out of stock</p></body></html>"
        self.assertIsNone(self.extractor.get_product_price(_handle(html)))

    def test_missing_document(self) -> None:
        """A handle without a document cannot be queried."""
        with self.assertRaises(ExtractionUnavailable):
            self.extractor.get_product_price(_handle(None))


if __name__ == "__main__":
    unittest.main()
