# modbot/domains/bans/service.py
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from modbot.core.database import session_scope
from modbot.domains.bans import repository
from modbot.domains.bans.entities import (BanConfirmation, BannedUserSummary,
                                          BanRecord, BanResult, PresetAuthor,
                                          RecentPreset, UnbanResult)
from modbot.domains.presets.entities import PresetStatus
from modbot.shared.utils.logger import get_logger
from modbot.shared.utils.sanitizer import sanitize_error_message
from modbot.shared.utils.sql import validate_and_escape_query

logger = get_logger(__name__)

BAN_TABLE_MISSING = "Ban system not configured. Please run the database migration first."
ALREADY_BANNED = "User is already banned."
NOT_BANNED = "User is not currently banned."
UPDATE_FAILED = "Failed to update ban record."


def _is_missing_ban_table(error: Exception) -> bool:
    text = str(error)
    return "no such table: banned_users" in text or 'relation "banned_users" does not exist' in text


def _to_record(row) -> BanRecord:
    return BanRecord(
        id=row.id,
        discord_id=row.discord_id,
        xivauth_id=row.xivauth_id,
        username=row.username,
        moderator_discord_id=row.moderator_discord_id,
        reason=row.reason,
        banned_at=row.banned_at,
        unbanned_at=row.unbanned_at,
        unban_moderator_discord_id=row.unban_moderator_discord_id,
    )


class BanService:
    """
    Ban records and preset visibility for banned authors.

    At most one active ban per discord id is kept by a check-then-insert
    sequence; two moderators banning the same user at the same moment can
    still race past the check.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker] = None, web_url: str = ""):
        self.session_factory = session_factory
        self.web_url = web_url.rstrip("/")

    def _session(self):
        return session_scope(self.session_factory)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def is_user_banned(self, discord_id: str) -> bool:
        async with self._session() as db:
            return await repository.has_active_ban(db, discord_id)

    async def get_active_ban(self, discord_id: str) -> Optional[BanRecord]:
        async with self._session() as db:
            row = await repository.get_active_ban(db, discord_id)
            return _to_record(row) if row else None

    async def search_preset_authors(self, query: str, limit: int = 25) -> List[PresetAuthor]:
        """Authors not currently banned whose name matches ``query``."""
        validation = validate_and_escape_query(query, max_length=100, min_length=1)
        if not validation.valid:
            return []
        async with self._session() as db:
            rows = await repository.search_unbanned_authors(db, validation.sanitized, limit)
        return [PresetAuthor(row.discord_id, row.username, row.preset_count) for row in rows]

    async def search_banned_users(self, query: str, limit: int = 25) -> List[BannedUserSummary]:
        validation = validate_and_escape_query(query, max_length=100, min_length=1)
        if not validation.valid:
            return []
        try:
            async with self._session() as db:
                rows = await repository.search_active_bans(db, validation.sanitized, limit)
        except SQLAlchemyError as e:
            logger.warning(f"Banned user search failed: {sanitize_error_message(e)}")
            return []
        return [
            BannedUserSummary(row.discord_id, row.xivauth_id, row.username, row.banned_at)
            for row in rows
        ]

    async def get_user_for_ban_confirmation(self, discord_id: str) -> Optional[BanConfirmation]:
        async with self._session() as db:
            summary = await repository.get_author_summary(db, discord_id)
            if summary is None:
                return None
            recent = await repository.get_recent_presets(db, discord_id, limit=3)

        return BanConfirmation(
            user=PresetAuthor(summary.discord_id, summary.username, summary.preset_count),
            recent_presets=[
                RecentPreset(p.id, p.name, f"{self.web_url}/presets/{p.id}") for p in recent
            ],
        )

    async def ban_user(
        self, discord_id: str, username: str, moderator_discord_id: str, reason: str
    ) -> BanResult:
        try:
            async with self._session() as db:
                if await repository.has_active_ban(db, discord_id):
                    return BanResult(success=False, error=ALREADY_BANNED)

                await repository.insert_ban(
                    db,
                    ban_id=str(uuid.uuid4()),
                    discord_id=discord_id,
                    username=username,
                    moderator_discord_id=moderator_discord_id,
                    reason=reason,
                    banned_at=self._now(),
                )
                hidden = await repository.move_author_presets(
                    db, discord_id, PresetStatus.APPROVED.value, PresetStatus.HIDDEN.value
                )
        except SQLAlchemyError as e:
            if _is_missing_ban_table(e):
                return BanResult(success=False, error=BAN_TABLE_MISSING)
            logger.error(f"Failed to ban user {discord_id}: {sanitize_error_message(e)}")
            return BanResult(success=False, error="Failed to ban user.")

        logger.info(f"User {discord_id} banned by {moderator_discord_id}, {hidden} presets hidden")
        return BanResult(success=True, presets_hidden=hidden)

    async def unban_user(self, discord_id: str, moderator_discord_id: str) -> UnbanResult:
        try:
            async with self._session() as db:
                if not await repository.has_active_ban(db, discord_id):
                    return UnbanResult(success=False, error=NOT_BANNED)

                changed = await repository.lift_active_ban(
                    db, discord_id, moderator_discord_id, self._now()
                )
                if changed == 0:
                    return UnbanResult(success=False, error=UPDATE_FAILED)

                restored = await repository.move_author_presets(
                    db, discord_id, PresetStatus.HIDDEN.value, PresetStatus.APPROVED.value
                )
        except SQLAlchemyError as e:
            if _is_missing_ban_table(e):
                return UnbanResult(success=False, error=BAN_TABLE_MISSING)
            logger.error(f"Failed to unban user {discord_id}: {sanitize_error_message(e)}")
            return UnbanResult(success=False, error="Failed to unban user.")

        logger.info(f"User {discord_id} unbanned by {moderator_discord_id}, {restored} presets restored")
        return UnbanResult(success=True, presets_restored=restored)
