import tempfile
import unittest
from pathlib import Path

from quotedesk.errors import AppError
from quotedesk.schemas.watchlist import WatchlistItem
from quotedesk.services.watchlist_store import WatchlistStore


class TestWatchlistStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = WatchlistStore(Path(self._tmp.name))

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file_loads_empty(self):
        self.assertEqual(self.store.load(), [])

    def test_roundtrip(self):
        items = [WatchlistItem(symbol="AAPL", display_name="Apple", pinned=True)]

        self.store.save(items)

        self.assertEqual(self.store.load(), items)
        self.assertIn('"displayName": "Apple"', self.store.file_path.read_text(encoding="utf-8"))

    def test_add_symbol_normalizes_and_appends(self):
        self.store.add_symbol("msft")
        items = self.store.add_symbol(" aapl ")

        self.assertEqual([item.symbol for item in items], ["MSFT", "AAPL"])
        self.assertEqual(self.store.load(), items)

    def test_add_duplicate_symbol_fails(self):
        self.store.add_symbol("AAPL")

        with self.assertRaises(AppError) as ctx:
            self.store.add_symbol("aapl")

        self.assertEqual(ctx.exception.code, "symbol_exists")
        self.assertEqual(ctx.exception.message, "AAPL is already in your watchlist.")

    def test_add_invalid_symbol_fails(self):
        with self.assertRaises(AppError) as ctx:
            self.store.add_symbol("AAPL!")

        self.assertEqual(ctx.exception.code, "invalid_symbol")
        self.assertFalse(self.store.file_path.exists())

    def test_remove_symbol(self):
        self.store.add_symbol("AAPL")
        self.store.add_symbol("MSFT")

        items = self.store.remove_symbol("aapl")

        self.assertEqual([item.symbol for item in items], ["MSFT"])

    def test_remove_unknown_symbol_fails(self):
        self.store.add_symbol("AAPL")

        with self.assertRaises(AppError) as ctx:
            self.store.remove_symbol("TSLA")

        self.assertEqual(ctx.exception.code, "symbol_not_found")
        self.assertEqual(ctx.exception.message, "TSLA is not in your watchlist.")


if __name__ == "__main__":
    unittest.main()
