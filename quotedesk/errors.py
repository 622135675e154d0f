from __future__ import annotations

VALIDATION_CODES = {"invalid_settings", "invalid_symbol"}
PROVIDER_CODES = {
    "network_timeout",
    "network_connect_error",
    "network_error",
    "provider_payload_parse_failed",
    "provider_payload_invalid",
    "invalid_api_key",
    "rate_limited",
    "provider_error",
}
PERSISTENCE_ERROR = "persistence_error"


class AppError(Exception):
    """Error with a machine-readable code and a message safe to show to users."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message

    @classmethod
    def validation(cls, code: str, message: str) -> "AppError":
        return cls(code, message)

    @classmethod
    def provider(cls, code: str, message: str) -> "AppError":
        return cls(code, message)

    @classmethod
    def persistence(cls, message: str) -> "AppError":
        return cls(PERSISTENCE_ERROR, message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AppError):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.code, self.message))
