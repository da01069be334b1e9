from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class BanRecord:
    id: str
    discord_id: Optional[str]
    xivauth_id: Optional[str]
    username: str
    moderator_discord_id: str
    reason: str
    banned_at: datetime
    unbanned_at: Optional[datetime] = None
    unban_moderator_discord_id: Optional[str] = None


@dataclass
class PresetAuthor:
    discord_id: str
    username: str
    preset_count: int


@dataclass
class BannedUserSummary:
    discord_id: Optional[str]
    xivauth_id: Optional[str]
    username: str
    banned_at: datetime


@dataclass
class RecentPreset:
    id: str
    name: str
    share_url: str


@dataclass
class BanConfirmation:
    user: PresetAuthor
    recent_presets: List[RecentPreset] = field(default_factory=list)


@dataclass
class BanResult:
    success: bool
    presets_hidden: int = 0
    error: Optional[str] = None


@dataclass
class UnbanResult:
    success: bool
    presets_restored: int = 0
    error: Optional[str] = None
