# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from src.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants."""

    def test_daily_alarm(self) -> None:
        """The check timer is named dailyPriceCheck and runs every 24h."""
        self.assertEqual(Settings.ALARM_NAME, "dailyPriceCheck")
        self.assertEqual(Settings.CHECK_INTERVAL_MINUTES, 1440)

    def test_cycle_delays(self) -> None:
        """Settle, extraction bound and pacing delays are positive."""
        self.assertGreater(Settings.SETTLE_DELAY, 0)
        self.assertGreater(Settings.EXTRACTION_TIMEOUT, 0)
        self.assertGreater(Settings.PACING_DELAY, 0)

    def test_history_bound(self) -> None:
        """MAX_HISTORY must be >= 1."""
        self.assertGreaterEqual(Settings.MAX_HISTORY, 1)

    def test_storage_keys(self) -> None:
        """The two storage keys are fixed and distinct."""
        self.assertEqual(Settings.PRODUCTS_KEY, "saved_products")
        self.assertEqual(Settings.TRACKING_KEY, "price_tracking_data")

    def test_change_epsilon_is_one_cent(self) -> None:
        """Sub-cent moves are noise."""
        self.assertEqual(Settings.CHANGE_EPSILON, 0.01)

    def test_request_timeout_is_positive_int(self) -> None:
        """REQUEST_TIMEOUT must be a positive integer."""
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_max_retries_is_positive(self) -> None:
        """MAX_RETRIES must be >= 1."""
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_default_headers_has_accept(self) -> None:
        """DEFAULT_HEADERS must include an Accept header."""
        self.assertIn("Accept", Settings.DEFAULT_HEADERS)

    def test_selectors_file_exists(self) -> None:
        """SELECTORS_PATH must point to an existing JSON file."""
        self.assertIsInstance(Settings.SELECTORS_PATH, Path)
        self.assertTrue(Settings.SELECTORS_PATH.exists())

    def test_store_inside_data_dir(self) -> None:
        """The SQLite store lives in DATA_DIR."""
        self.assertEqual(Settings.STORE_PATH.parent, Settings.DATA_DIR)


if __name__ == "__main__":
    unittest.main()
