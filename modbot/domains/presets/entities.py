from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PresetStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class StatusDisplay:
    icon: str
    color: int


STATUS_DISPLAY = {
    PresetStatus.PENDING: StatusDisplay("\U0001F7E1", 0xFEE75C),
    PresetStatus.APPROVED: StatusDisplay("\U0001F7E2", 0x57F287),
    PresetStatus.REJECTED: StatusDisplay("\U0001F534", 0xED4245),
    PresetStatus.FLAGGED: StatusDisplay("\U0001F7E0", 0xF5A623),
    PresetStatus.HIDDEN: StatusDisplay("\U0001F6AB", 0x747F8D),
}


@dataclass
class PresetFilters:
    category: Optional[str] = None
    search: Optional[str] = None
    status: Optional[str] = None
    sort: Optional[str] = None  # popular, recent, name
    page: Optional[int] = None
    limit: Optional[int] = None

    def to_params(self) -> dict:
        params = {}
        for name in ("category", "search", "status", "sort", "page", "limit"):
            value = getattr(self, name)
            if value:
                params[name] = str(value)
        return params
