from typing import Any, Optional


class SignatureVerificationError(Exception):
    """Inbound webhook failed authentication. The reason is for logs only."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "Invalid signature")
        self.reason = reason


class MalformedInteractionError(Exception):
    """Inbound body is not a usable interaction payload."""


class PresetAPIError(Exception):
    """Error returned by (or while talking to) the upstream preset API."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"PresetAPIError(status_code={self.status_code}, message={self.message!r})"
