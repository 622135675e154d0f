import unittest

from quotedesk.errors import AppError
from quotedesk.services.symbols import normalize_symbol


class TestNormalizeSymbol(unittest.TestCase):
    def test_trims_and_upcases(self):
        self.assertEqual(normalize_symbol(" aapl "), "AAPL")

    def test_accepts_dots_dashes_and_digits(self):
        self.assertEqual(normalize_symbol("brk.b"), "BRK.B")
        self.assertEqual(normalize_symbol("rds-a"), "RDS-A")
        self.assertEqual(normalize_symbol("0700"), "0700")

    def test_rejects_empty(self):
        with self.assertRaises(AppError) as ctx:
            normalize_symbol("   ")
        self.assertEqual(ctx.exception.code, "invalid_symbol")
        self.assertEqual(ctx.exception.message, "Symbol cannot be empty.")

    def test_length_limit_is_twelve(self):
        self.assertEqual(normalize_symbol("a" * 12), "A" * 12)
        with self.assertRaises(AppError) as ctx:
            normalize_symbol("a" * 13)
        self.assertEqual(ctx.exception.code, "invalid_symbol")

    def test_rejects_invalid_characters(self):
        for value in ("AAPL$", "AA PL", "ÄPFEL", "MSFT/", "A_B"):
            with self.subTest(value=value):
                with self.assertRaises(AppError) as ctx:
                    normalize_symbol(value)
                self.assertEqual(ctx.exception.code, "invalid_symbol")


if __name__ == "__main__":
    unittest.main()
