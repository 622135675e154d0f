from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from quotedesk.errors import AppError
from quotedesk.schemas.settings import AppSettings, AppSettingsInput
from quotedesk.services.json_files import read_json, write_json_atomic

SETTINGS_FILE_NAME = "settings.json"
MIN_API_KEY_LEN = 8
MIN_AUTO_REFRESH_SEC = 15
MAX_AUTO_REFRESH_SEC = 3600


def validate_settings(data: AppSettingsInput) -> AppSettings:
    api_key = data.api_key.strip()
    if not api_key:
        raise AppError.validation("invalid_settings", "API key is required.")
    if len(api_key) < MIN_API_KEY_LEN:
        raise AppError.validation("invalid_settings", "API key looks too short.")
    if not MIN_AUTO_REFRESH_SEC <= data.auto_refresh_seconds <= MAX_AUTO_REFRESH_SEC:
        raise AppError.validation(
            "invalid_settings",
            f"Auto refresh must be between {MIN_AUTO_REFRESH_SEC} and "
            f"{MAX_AUTO_REFRESH_SEC} seconds.",
        )

    return AppSettings(
        provider=data.provider,
        api_key=api_key,
        default_range=data.default_range,
        auto_refresh_seconds=data.auto_refresh_seconds,
        notifications_enabled=data.notifications_enabled,
    )


class SettingsStore:
    def __init__(self, base_dir: str | Path) -> None:
        self.file_path = Path(base_dir) / SETTINGS_FILE_NAME

    def load(self) -> AppSettings:
        raw = read_json(self.file_path, label="settings")
        if raw is None:
            return AppSettings()
        try:
            return AppSettings.model_validate(raw)
        except ValidationError as exc:
            raise AppError.persistence(f"Unable to parse settings file: {exc}") from exc

    def save(self, data: AppSettingsInput) -> AppSettings:
        settings = validate_settings(data)
        write_json_atomic(self.file_path, settings.to_json_dict(), label="settings")
        return settings
