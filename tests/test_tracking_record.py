# tests/test_tracking_record.py

"""Tests for tracking records, history entries and their serialisation."""

import unittest
from datetime import datetime, timedelta, timezone

from src.models.product import Product
from src.models.tracking_record import (
    HistoryEntry,
    TrackingRecord,
    parse_timestamp,
)

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestParseTimestamp(unittest.TestCase):
    """Verify ISO-8601 timestamp parsing."""

    def test_z_suffix(self) -> None:
        """A trailing Z is read as UTC."""
        self.assertEqual(parse_timestamp("2026-03-01T12:00:00.000Z"), T0)

    def test_naive_is_utc(self) -> None:
        """Naive timestamps are assumed to be UTC."""
        self.assertEqual(parse_timestamp("2026-03-01T12:00:00"), T0)

    def test_bad_values(self) -> None:
        """Garbage, empty and non-string values give None."""
        for raw in ("yesterday", "", None, 42):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_timestamp(raw))


class TestTrackingRecord(unittest.TestCase):
    """Verify record mutation and round-tripping."""

    def test_append_evicts_oldest(self) -> None:
        """Appending past the bound drops the oldest entries first."""
        record = TrackingRecord(product_id="p1")
        for i in range(4):
            record.append(
                HistoryEntry(price=10.0 + i, timestamp=T0 + timedelta(hours=i)),
                max_history=3,
            )
        self.assertEqual([e.price for e in record.history], [11.0, 12.0, 13.0])

    def test_mark_checked_never_moves_backwards(self) -> None:
        """An earlier check time does not replace a later one."""
        record = TrackingRecord(product_id="p1")
        record.mark_checked(T0)
        record.mark_checked(T0 - timedelta(days=1))
        self.assertEqual(record.last_check_time, T0)
        record.mark_checked(T0 + timedelta(days=1))
        self.assertEqual(record.last_check_time, T0 + timedelta(days=1))

    def test_round_trip(self) -> None:
        """Serialising then loading gives an equal record."""
        record = TrackingRecord(
            product_id="p1",
            last_price=29.99,
            last_check_time=T0,
            same_count=2,
            history=[
                HistoryEntry(price=39.99, timestamp=T0 - timedelta(days=1)),
                HistoryEntry(price=29.99, timestamp=T0, dropped=True),
            ],
        )
        loaded = TrackingRecord.from_dict("p1", record.to_dict())
        self.assertEqual(loaded, record)

    def test_to_dict_shape(self) -> None:
        """Stored keys use the product-list naming."""
        data = TrackingRecord(product_id="p1").to_dict()
        self.assertEqual(
            set(data),
            {"productId", "lastPrice", "lastCheckTime", "sameCount", "history"},
        )
        self.assertIsNone(data["lastCheckTime"])

    def test_from_dict_tolerates_corruption(self) -> None:
        """Bad fields load as defaults instead of raising."""
        loaded = TrackingRecord.from_dict(
            "p1",
            {
                "lastPrice": "not a number",
                "lastCheckTime": "garbage",
                "sameCount": "x",
                "history": "should be a list",
            },
        )
        self.assertEqual(loaded.product_id, "p1")
        self.assertEqual(loaded.last_price, 0.0)
        self.assertIsNone(loaded.last_check_time)
        self.assertEqual(loaded.same_count, 0)
        self.assertEqual(loaded.history, [])

    def test_from_dict_skips_bad_entries(self) -> None:
        """History items without a usable timestamp are dropped."""
        loaded = TrackingRecord.from_dict(
            "p1",
            {
                "history": [
                    {"price": 10, "timestamp": T0.isoformat()},
                    {"price": 11, "timestamp": "nope"},
                    "junk",
                    {"price": -5, "date": T0.isoformat()},
                ],
            },
        )
        self.assertEqual(len(loaded.history), 2)
        self.assertEqual(loaded.history[1].price, 0.0)


class TestProductModel(unittest.TestCase):
    """Verify Product serialisation."""

    def test_round_trip(self) -> None:
        """to_dict / from_dict preserve every field."""
        product = Product(
            id="abc",
            title="Desk Lamp",
            url="https://shop.example/lamp",
            price="$39.99",
            date_added="2026-03-01T00:00:00+00:00",
            last_price_update="2026-03-02T00:00:00+00:00",
        )
        self.assertEqual(Product.from_dict(product.to_dict()), product)

    def test_last_price_update_omitted_when_unset(self) -> None:
        """Products never refreshed carry no lastPriceUpdate key."""
        data = Product(id="a", title="t", url="u").to_dict()
        self.assertNotIn("lastPriceUpdate", data)

    def test_from_dict_ignores_extra_keys(self) -> None:
        """Keys owned by other writers are ignored."""
        product = Product.from_dict(
            {"id": "a", "title": "t", "url": "u", "image": "x.png"}
        )
        self.assertEqual(product.price, "")
        self.assertIsNone(product.last_price_update)


if __name__ == "__main__":
    unittest.main()
