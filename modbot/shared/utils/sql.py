import re
from dataclasses import dataclass
from typing import Optional, Pattern

LIKE_ESCAPE_CHAR = "\\"

_LIKE_SPECIAL = re.compile(r"[%_\\]")


@dataclass
class QueryValidationResult:
    valid: bool
    sanitized: str
    error: Optional[str] = None


def escape_like_pattern(query: str, max_length: int = 100) -> str:
    """Escape LIKE wildcards; use together with ``escape='\\\\'``."""
    return _LIKE_SPECIAL.sub(lambda m: "\\" + m.group(0), query[:max_length])


def validate_query_input(
    query: str,
    max_length: int = 100,
    min_length: int = 0,
    allowed_pattern: Optional[Pattern] = None,
) -> QueryValidationResult:
    if len(query) < min_length:
        return QueryValidationResult(
            False, "", f"Query must be at least {min_length} characters"
        )
    sanitized = query[:max_length]
    if allowed_pattern is not None and not allowed_pattern.match(sanitized):
        return QueryValidationResult(False, "", "Query contains invalid characters")
    return QueryValidationResult(True, sanitized)


def validate_and_escape_query(
    query: str, max_length: int = 100, min_length: int = 0
) -> QueryValidationResult:
    result = validate_query_input(query, max_length=max_length, min_length=min_length)
    if not result.valid:
        return result
    return QueryValidationResult(True, escape_like_pattern(result.sanitized, max_length))
