from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modbot.core.database import Base


class BannedUser(Base):
    __tablename__ = "banned_users"

    # No unique constraint on discord_id: one active row per user is kept by
    # checking for an active ban before insert.
    id: Mapped[str] = mapped_column(String, primary_key=True)
    discord_id: Mapped[str] = mapped_column(String, index=True, nullable=True)
    xivauth_id: Mapped[str] = mapped_column(String, index=True, nullable=True)
    username: Mapped[str] = mapped_column(String)
    moderator_discord_id: Mapped[str] = mapped_column(String)
    reason: Mapped[str] = mapped_column(Text)
    banned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    unbanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    unban_moderator_discord_id: Mapped[str] = mapped_column(String, nullable=True)
