# tests/test_date_normalizer.py

"""Tests for board date label normalisation."""

import unittest
from datetime import datetime

from listing_watch.filters.date_normalizer import normalize_date_text

NOW = datetime(2025, 9, 10, 12, 0)


class TestNormalizeDateText(unittest.TestCase):
    """normalize_date_text parsing rules."""

    def test_day_and_short_month(self) -> None:
        """'3 сен.' resolves in the current year."""
        result = normalize_date_text("3 сен.", now=NOW)
        assert result is not None
        self.assertEqual(result.date, "03.09.2025")
        self.assertEqual(result.raw, "3 сен.")

    def test_timestamp_is_local_midnight_in_ms(self) -> None:
        """timestamp_ms is the epoch milliseconds of that day."""
        result = normalize_date_text("28 авг.", now=NOW)
        assert result is not None
        expected = int(datetime(2025, 8, 28).timestamp() * 1000)
        self.assertEqual(result.timestamp_ms, expected)

    def test_location_prefix_stripped(self) -> None:
        """'Москва, 28 авг.' uses only the part after the comma."""
        result = normalize_date_text("Москва, 28 авг.", now=NOW)
        assert result is not None
        self.assertEqual(result.date, "28.08.2025")

    def test_today_and_yesterday(self) -> None:
        """Relative words map onto the current date."""
        today = normalize_date_text("сегодня", now=NOW)
        yesterday = normalize_date_text(" Вчера ", now=NOW)
        assert today is not None and yesterday is not None
        self.assertEqual(today.date, "10.09.2025")
        self.assertEqual(yesterday.date, "09.09.2025")

    def test_yesterday_across_new_year(self) -> None:
        """'вчера' on January 1st is December 31st."""
        result = normalize_date_text("вчера", now=datetime(2026, 1, 1, 9))
        assert result is not None
        self.assertEqual(result.date, "31.12.2025")

    def test_future_date_rolls_back_a_year(self) -> None:
        """'31 дек.' seen on January 1st belongs to last year."""
        result = normalize_date_text("31 дек.", now=datetime(2026, 1, 1, 9))
        assert result is not None
        self.assertEqual(result.date, "31.12.2025")

    def test_one_day_tolerance(self) -> None:
        """Dates up to a day ahead stay in the current year."""
        tomorrow = normalize_date_text("11 сен.", now=NOW)
        later = normalize_date_text("12 сен.", now=NOW)
        assert tomorrow is not None and later is not None
        self.assertEqual(tomorrow.date, "11.09.2025")
        self.assertEqual(later.date, "12.09.2024")

    def test_genitive_may(self) -> None:
        """Both 'май' and 'мая' mean May."""
        result = normalize_date_text("5 мая", now=NOW)
        assert result is not None
        self.assertEqual(result.date, "05.05.2025")

    def test_unrecognised_inputs(self) -> None:
        """Unknown or empty labels return None."""
        for text in (None, "", "   ", "давно", "3 xyz", "сен."):
            with self.subTest(text=text):
                self.assertIsNone(normalize_date_text(text, now=NOW))

    def test_impossible_day_returns_none(self) -> None:
        """'30 фев.' is not a date."""
        self.assertIsNone(normalize_date_text("30 фев.", now=NOW))


if __name__ == "__main__":
    unittest.main()
