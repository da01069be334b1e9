from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CommunityPreset(_ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    dyes: List[int] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    author_name: Optional[str] = None
    author_discord_id: Optional[str] = None
    vote_count: int = 0
    status: str = "pending"
    is_curated: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PresetListResponse(_ApiModel):
    presets: List[CommunityPreset] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    has_more: bool = False


class ModerationStats(_ApiModel):
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    flagged_count: int = 0
    actions_last_week: int = 0


class ModerationLogEntry(_ApiModel):
    id: str
    preset_id: str
    moderator_discord_id: str
    action: str
    reason: Optional[str] = None
    created_at: Optional[str] = None
