from __future__ import annotations

import datetime as dt
import unittest

from chorus.core.errors import ValidationError
from chorus.core.validation import validate_count, validate_date, validate_user_id, validate_word_picks


class DateValidationTests(unittest.TestCase):
    def test_valid_date_returns_date(self) -> None:
        self.assertEqual(validate_date("2025-10-15"), dt.date(2025, 10, 15))
        self.assertEqual(validate_date("2024-02-29"), dt.date(2024, 2, 29))

    def test_rejects_bad_shapes_and_calendar_dates(self) -> None:
        for value in ("2025-13-01", "2025/10/15", "2025-1-15", "2025-10-15 ", "2025-10-15\n", "2023-02-29", ""):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError) as ctx:
                    validate_date(value)
                self.assertEqual(ctx.exception.code, "invalid_date")

    def test_rejects_non_ascii_digits_and_non_strings(self) -> None:
        with self.assertRaises(ValidationError):
            validate_date("２０２５-10-15")
        with self.assertRaises(ValidationError):
            validate_date(20251015)


class ScalarValidationTests(unittest.TestCase):
    def test_user_id(self) -> None:
        self.assertEqual(validate_user_id("user-abc"), "user-abc")
        for value in ("", "   ", None, 42):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError) as ctx:
                    validate_user_id(value)
                self.assertEqual(ctx.exception.code, "invalid_user_id")

    def test_count_bounds(self) -> None:
        self.assertEqual(validate_count(1), 1)
        self.assertEqual(validate_count(100), 100)
        for value in (0, 101, -1, True, 12.0, "12"):
            with self.subTest(value=value):
                with self.assertRaisesRegex(ValidationError, "count"):
                    validate_count(value)


class PickValidationTests(unittest.TestCase):
    offered = ("neon", "rain", "calm", "silver")

    def test_accepts_subset_in_submission_order(self) -> None:
        self.assertEqual(validate_word_picks(["calm", "neon"], self.offered), ("calm", "neon"))

    def test_rejects_non_list_and_size(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            validate_word_picks("neon", self.offered)
        self.assertEqual(ctx.exception.code, "invalid_words")
        with self.assertRaises(ValidationError) as ctx:
            validate_word_picks([], self.offered)
        self.assertEqual(ctx.exception.code, "word_count_exceeded")
        with self.assertRaises(ValidationError) as ctx:
            validate_word_picks(["neon"] * 101, self.offered)
        self.assertEqual(ctx.exception.code, "word_count_exceeded")

    def test_rejects_bad_items(self) -> None:
        cases = (["neon", "neon"], ["neon", ""], ["neon", 3], ["harbor"])
        for picks in cases:
            with self.subTest(picks=picks):
                with self.assertRaises(ValidationError) as ctx:
                    validate_word_picks(picks, self.offered)
                self.assertEqual(ctx.exception.code, "invalid_words")


if __name__ == "__main__":
    unittest.main()
