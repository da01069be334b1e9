import re
from typing import Iterable, Optional

from modbot.shared.utils.logger import get_logger

logger = get_logger(__name__)

_SNOWFLAKE = re.compile(r"^\d{17,19}$")


def is_valid_snowflake(value: Optional[str]) -> bool:
    return bool(value) and bool(_SNOWFLAKE.match(value))


class ModeratorRegistry:
    """Moderator allow-list, parsed once and passed to handlers."""

    def __init__(self, ids: Iterable[str] = ()):
        valid = set()
        for raw in ids:
            moderator_id = raw.strip()
            if not moderator_id:
                continue
            if is_valid_snowflake(moderator_id):
                valid.add(moderator_id)
            else:
                logger.warning(f"Ignoring invalid moderator id (not a Discord snowflake): {moderator_id}")
        self._ids = frozenset(valid)

    @classmethod
    def from_csv(cls, raw: Optional[str]) -> "ModeratorRegistry":
        return cls((raw or "").split(","))

    def is_moderator(self, user_id: Optional[str]) -> bool:
        return is_valid_snowflake(user_id) and user_id in self._ids

    def __contains__(self, user_id) -> bool:
        return self.is_moderator(user_id)

    def __len__(self) -> int:
        return len(self._ids)


def is_in_moderation_channel(channel_id: Optional[str], moderation_channel_id: Optional[str]) -> bool:
    """Unset moderation channel means no channel qualifies."""
    if not moderation_channel_id:
        return False
    return channel_id == moderation_channel_id
