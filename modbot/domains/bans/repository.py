from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modbot.domains.bans.models import BannedUser
from modbot.domains.presets.models import Preset
from modbot.shared.utils.sql import LIKE_ESCAPE_CHAR


def _active(discord_id: str):
    return and_(BannedUser.discord_id == discord_id, BannedUser.unbanned_at.is_(None))


async def get_active_ban(db: AsyncSession, discord_id: str) -> Optional[BannedUser]:
    result = await db.execute(select(BannedUser).where(_active(discord_id)).limit(1))
    return result.scalars().first()


async def has_active_ban(db: AsyncSession, discord_id: str) -> bool:
    result = await db.execute(select(BannedUser.id).where(_active(discord_id)).limit(1))
    return result.first() is not None


async def insert_ban(
    db: AsyncSession,
    ban_id: str,
    discord_id: str,
    username: str,
    moderator_discord_id: str,
    reason: str,
    banned_at: datetime,
) -> BannedUser:
    ban = BannedUser(
        id=ban_id,
        discord_id=discord_id,
        username=username,
        moderator_discord_id=moderator_discord_id,
        reason=reason,
        banned_at=banned_at,
    )
    db.add(ban)
    await db.flush()
    return ban


async def lift_active_ban(
    db: AsyncSession, discord_id: str, moderator_discord_id: str, unbanned_at: datetime
) -> int:
    result = await db.execute(
        update(BannedUser)
        .where(_active(discord_id))
        .values(unbanned_at=unbanned_at, unban_moderator_discord_id=moderator_discord_id)
    )
    return result.rowcount or 0


async def move_author_presets(
    db: AsyncSession, discord_id: str, from_status: str, to_status: str
) -> int:
    result = await db.execute(
        update(Preset)
        .where(Preset.author_discord_id == discord_id, Preset.status == from_status)
        .values(status=to_status)
    )
    return result.rowcount or 0


async def search_unbanned_authors(db: AsyncSession, escaped_query: str, limit: int) -> List:
    preset_count = func.count(Preset.id).label("preset_count")
    username = func.min(Preset.author_name).label("username")
    result = await db.execute(
        select(Preset.author_discord_id.label("discord_id"), username, preset_count)
        .outerjoin(
            BannedUser,
            and_(
                BannedUser.discord_id == Preset.author_discord_id,
                BannedUser.unbanned_at.is_(None),
            ),
        )
        .where(
            Preset.author_discord_id.is_not(None),
            Preset.author_name.like(f"%{escaped_query}%", escape=LIKE_ESCAPE_CHAR),
            BannedUser.id.is_(None),
        )
        .group_by(Preset.author_discord_id)
        .order_by(preset_count.desc(), username.asc())
        .limit(limit)
    )
    return result.all()


async def search_active_bans(db: AsyncSession, escaped_query: str, limit: int) -> List[BannedUser]:
    pattern = f"%{escaped_query}%"
    result = await db.execute(
        select(BannedUser)
        .where(
            BannedUser.unbanned_at.is_(None),
            or_(
                BannedUser.username.like(pattern, escape=LIKE_ESCAPE_CHAR),
                BannedUser.discord_id.like(pattern, escape=LIKE_ESCAPE_CHAR),
            ),
        )
        .order_by(BannedUser.username.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_author_summary(db: AsyncSession, discord_id: str):
    result = await db.execute(
        select(
            Preset.author_discord_id.label("discord_id"),
            func.min(Preset.author_name).label("username"),
            func.count(Preset.id).label("preset_count"),
        )
        .where(Preset.author_discord_id == discord_id)
        .group_by(Preset.author_discord_id)
    )
    return result.first()


async def get_recent_presets(db: AsyncSession, discord_id: str, limit: int = 3) -> List[Preset]:
    result = await db.execute(
        select(Preset)
        .where(Preset.author_discord_id == discord_id)
        .order_by(Preset.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
