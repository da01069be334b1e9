import re
from typing import Optional

MIN_REASON_LENGTH = 10
REJECTION_REASON_MAX = 500
REVERT_REASON_MAX = 200
BAN_REASON_MAX = 500

REASON_MISSING = "missing"
REASON_TOO_SHORT = "too_short"
REASON_TOO_LONG = "too_long"

_UUID_V4 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_uuid(value: Optional[str]) -> bool:
    return bool(value) and bool(_UUID_V4.match(value))


def check_reason(reason: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Return a problem code for ``reason`` or None when it is acceptable."""
    text = (reason or "").strip()
    if not text:
        return REASON_MISSING
    if len(text) < MIN_REASON_LENGTH:
        return REASON_TOO_SHORT
    if max_length is not None and len(text) > max_length:
        return REASON_TOO_LONG
    return None


def reason_problem_message(problem: str, label: str, max_length: Optional[int] = None) -> str:
    if problem == REASON_MISSING:
        return f"Please provide a {label} reason."
    if problem == REASON_TOO_SHORT:
        return f"The {label} reason needs at least {MIN_REASON_LENGTH} characters."
    return f"The {label} reason must be at most {max_length} characters."
