import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field

from quotedesk.integrations.twelvedata_rest import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SEC


class Settings(BaseModel):
    QUOTEDESK_DATA_DIR: Path
    QUOTEDESK_PROVIDER_BASE_URL: str = DEFAULT_BASE_URL
    QUOTEDESK_REQUEST_TIMEOUT_SEC: float = Field(default=DEFAULT_TIMEOUT_SEC, gt=0)
    QUOTEDESK_LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = os.getenv("QUOTEDESK_DATA_DIR", "").strip() or str(Path.home() / ".quotedesk")

        return cls.model_validate(
            {
                "QUOTEDESK_DATA_DIR": Path(data_dir).expanduser(),
                "QUOTEDESK_PROVIDER_BASE_URL": os.getenv(
                    "QUOTEDESK_PROVIDER_BASE_URL", DEFAULT_BASE_URL
                ),
                "QUOTEDESK_REQUEST_TIMEOUT_SEC": os.getenv(
                    "QUOTEDESK_REQUEST_TIMEOUT_SEC", str(DEFAULT_TIMEOUT_SEC)
                ),
                "QUOTEDESK_LOG_LEVEL": os.getenv("QUOTEDESK_LOG_LEVEL", "INFO").strip().upper(),
            }
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
