"""
Redaction of tokens and secrets before text reaches logs or Discord.

Covers interaction tokens in webhook URLs, bearer tokens, secret-looking
query parameters and sensitive HTTP headers.
"""
import re
from typing import Mapping

from modbot.shared.exceptions import PresetAPIError

# Most specific first.
_SENSITIVE_URL_PATTERNS = [
    (
        re.compile(r"/webhooks/(\d+)/([A-Za-z0-9_-]{64,})/messages"),
        r"/webhooks/\1/[REDACTED_TOKEN]/messages",
    ),
    (
        re.compile(r"/webhooks/(\d+)/([A-Za-z0-9_-]{64,})"),
        r"/webhooks/\1/[REDACTED_TOKEN]",
    ),
    (
        re.compile(r"([?&])(api_key|token|key|secret|password)=([^&\s]+)", re.IGNORECASE),
        r"\1\2=[REDACTED]",
    ),
    (
        re.compile(r"Bearer\s+([A-Za-z0-9_-]{20,})", re.IGNORECASE),
        "Bearer [REDACTED]",
    ),
]

SENSITIVE_HEADERS = {
    "authorization",
    "x-api-key",
    "x-auth-token",
    "x-request-signature",
    "cookie",
    "set-cookie",
}


def sanitize_url(url) -> str:
    sanitized = str(url)
    for pattern, replacement in _SENSITIVE_URL_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_headers(headers: Mapping[str, str]) -> dict:
    sanitized = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            # first 8 chars are enough to tell tokens apart when debugging
            sanitized[key] = value[:8] + "...[REDACTED]" if len(value) > 8 else "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def sanitize_error_message(error) -> str:
    """Error text with secrets masked. For logs, not for end users."""
    if isinstance(error, BaseException):
        message = str(error) or error.__class__.__name__
    else:
        message = str(error)
    return sanitize_url(message)


def safe_error_message(error, fallback: str = "An unexpected error occurred.") -> str:
    """Text that may be shown to a moderator in Discord.

    Only client-side (4xx) upstream errors carry a message worth showing;
    anything else collapses to the fallback so internals never leak.
    """
    if isinstance(error, PresetAPIError) and 400 <= error.status_code < 500:
        return sanitize_url(error.message)
    return fallback
