from __future__ import annotations

import logging
import time

from quotedesk.errors import AppError

logger = logging.getLogger("quotedesk.commands")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger("quotedesk")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)


def _sanitize(value: object) -> str:
    text = str(value)
    for ch in ("\n", "\r", "\t"):
        text = text.replace(ch, " ")
    return text.replace(" ", "_")


def format_fields(fields: dict[str, object]) -> str:
    return " ".join(f"{key}={_sanitize(value)}" for key, value in fields.items())


class CommandSpan:
    """Logs start, completion and failure of one user-facing command."""

    def __init__(self, command: str, **fields: object) -> None:
        self.command = command
        self.started = time.monotonic()
        logger.info("[CMD][command_start] %s", format_fields({"command": command, **fields}))

    def _duration_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)

    def ok(self, **fields: object) -> None:
        logger.info(
            "[CMD][command_done] %s",
            format_fields({"command": self.command, "duration_ms": self._duration_ms(), **fields}),
        )

    def err(self, error: AppError, **fields: object) -> None:
        logger.warning(
            "[CMD][command_failed] %s",
            format_fields(
                {
                    "command": self.command,
                    "duration_ms": self._duration_ms(),
                    "error_code": error.code,
                    "error_message": error.message,
                    **fields,
                }
            ),
        )
