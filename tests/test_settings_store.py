import tempfile
import unittest
from pathlib import Path

from quotedesk.errors import AppError
from quotedesk.schemas.performance import TimeRange
from quotedesk.schemas.settings import AppSettings, AppSettingsInput
from quotedesk.services.settings_store import SettingsStore, validate_settings


def sample_input(api_key: str, auto_refresh_seconds: int = 60) -> AppSettingsInput:
    return AppSettingsInput(
        api_key=api_key,
        default_range=TimeRange.ONE_WEEK,
        auto_refresh_seconds=auto_refresh_seconds,
        notifications_enabled=True,
    )


class TestValidateSettings(unittest.TestCase):
    def test_rejects_empty_api_key(self):
        with self.assertRaises(AppError) as ctx:
            validate_settings(sample_input(" "))
        self.assertEqual(ctx.exception.code, "invalid_settings")
        self.assertEqual(ctx.exception.message, "API key is required.")

    def test_rejects_short_api_key(self):
        with self.assertRaises(AppError) as ctx:
            validate_settings(sample_input("abc123"))
        self.assertEqual(ctx.exception.message, "API key looks too short.")

    def test_refresh_interval_bounds(self):
        self.assertEqual(validate_settings(sample_input("valid-key-123", 15)).auto_refresh_seconds, 15)
        self.assertEqual(validate_settings(sample_input("valid-key-123", 3600)).auto_refresh_seconds, 3600)
        for seconds in (5, 14, 3601):
            with self.subTest(seconds=seconds):
                with self.assertRaises(AppError) as ctx:
                    validate_settings(sample_input("valid-key-123", seconds))
                self.assertEqual(ctx.exception.code, "invalid_settings")

    def test_trims_api_key(self):
        self.assertEqual(validate_settings(sample_input("  valid-key-123  ")).api_key, "valid-key-123")


class TestSettingsStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = SettingsStore(Path(self._tmp.name))

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file_loads_defaults(self):
        settings = self.store.load()

        self.assertEqual(settings, AppSettings())
        self.assertEqual(settings.provider, "twelvedata")
        self.assertEqual(settings.default_range, TimeRange.ONE_MONTH)
        self.assertEqual(settings.auto_refresh_seconds, 60)
        self.assertFalse(settings.notifications_enabled)

    def test_roundtrip(self):
        saved = self.store.save(sample_input("valid-key-123"))

        loaded = self.store.load()

        self.assertEqual(saved, loaded)
        self.assertEqual(loaded.api_key, "valid-key-123")
        self.assertEqual(loaded.default_range, TimeRange.ONE_WEEK)

    def test_invalid_input_is_not_persisted(self):
        with self.assertRaises(AppError):
            self.store.save(sample_input("bad"))

        self.assertFalse(self.store.file_path.exists())

    def test_corrupt_file_raises_persistence_error(self):
        self.store.file_path.write_text('{"autoRefreshSeconds": "often"}', encoding="utf-8")

        with self.assertRaises(AppError) as ctx:
            self.store.load()
        self.assertEqual(ctx.exception.code, "persistence_error")


if __name__ == "__main__":
    unittest.main()
