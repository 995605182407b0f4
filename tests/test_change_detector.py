# tests/test_change_detector.py

"""Tests for price change detection and significance classification."""

import unittest

from src.filters.change_detector import ChangeDetector


class TestCompare(unittest.TestCase):
    """Verify ChangeDetector.compare."""

    def setUp(self) -> None:
        self.detector = ChangeDetector()

    def test_drop_detected(self) -> None:
        """39.99 -> 29.99 is a change and a drop of 10."""
        change = self.detector.compare(39.99, 29.99)
        self.assertTrue(change.changed)
        self.assertTrue(change.dropped)
        self.assertAlmostEqual(change.difference, 10.0, places=2)

    def test_sub_cent_noise_ignored(self) -> None:
        """Moves of at most one cent are not changes."""
        change = self.detector.compare(29.99, 29.995)
        self.assertFalse(change.changed)
        self.assertFalse(change.dropped)

    def test_invalid_previous_price(self) -> None:
        """A zero previous price never reports a change."""
        change = self.detector.compare(0, 29.99)
        self.assertFalse(change.changed)
        self.assertFalse(change.dropped)
        self.assertEqual(change.difference, 0.0)

    def test_invalid_current_price(self) -> None:
        """A zero current price never reports a change."""
        self.assertFalse(self.detector.compare(29.99, 0).changed)

    def test_increase_is_change_not_drop(self) -> None:
        """A rise is a change but not a drop."""
        change = self.detector.compare(20.0, 25.0)
        self.assertTrue(change.changed)
        self.assertFalse(change.dropped)
        self.assertAlmostEqual(change.difference, 5.0)

    def test_custom_epsilon(self) -> None:
        """The noise floor can be widened."""
        detector = ChangeDetector(epsilon=1.0)
        self.assertFalse(detector.compare(10.0, 9.5).changed)
        self.assertTrue(detector.compare(10.0, 8.5).changed)


class TestClassify(unittest.TestCase):
    """Verify ChangeDetector.classify."""

    def setUp(self) -> None:
        self.detector = ChangeDetector()

    def test_significant_decrease(self) -> None:
        """100 -> 80 with a 10% threshold is a significant 20% drop."""
        result = self.detector.classify(100, 80, 10)
        self.assertEqual(result.change_type, "decrease")
        self.assertEqual(result.absolute_change, -20)
        self.assertEqual(result.percentage_change, -20)
        self.assertTrue(result.is_significant)
        self.assertEqual(result.threshold, 10)

    def test_insignificant_increase(self) -> None:
        """A 2% rise against a 5% threshold is not significant."""
        result = self.detector.classify(100, 102, 5)
        self.assertEqual(result.change_type, "increase")
        self.assertEqual(result.percentage_change, 2)
        self.assertFalse(result.is_significant)

    def test_invalid_threshold_falls_back(self) -> None:
        """Zero or negative thresholds fall back to 5%."""
        for bad in (0, -3, None):
            with self.subTest(threshold=bad):
                result = self.detector.classify(100, 94, bad)
                self.assertEqual(result.threshold, 5.0)
                self.assertTrue(result.is_significant)

    def test_new_product(self) -> None:
        """No previous price with a current one is 'new'."""
        result = self.detector.classify(0, 25)
        self.assertEqual(result.change_type, "new")
        self.assertFalse(result.is_significant)

    def test_no_prices(self) -> None:
        """Both prices zero is 'none'."""
        self.assertEqual(self.detector.classify(0, 0).change_type, "none")

    def test_negative_is_error(self) -> None:
        """Negative input is classified as 'error'."""
        self.assertEqual(self.detector.classify(-1, 10).change_type, "error")
        self.assertEqual(self.detector.classify(10, -1).change_type, "error")

    def test_unchanged(self) -> None:
        """Equal prices are 'none' and never significant."""
        result = self.detector.classify(50, 50, 1)
        self.assertEqual(result.change_type, "none")
        self.assertFalse(result.is_significant)

    def test_percentage_rounded(self) -> None:
        """Percentages are rounded to two decimals."""
        result = self.detector.classify(3, 2)
        self.assertEqual(result.percentage_change, -33.33)


if __name__ == "__main__":
    unittest.main()
