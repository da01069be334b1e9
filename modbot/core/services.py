# modbot/core/services.py
from dataclasses import dataclass
from typing import Optional

from modbot.core.config import Settings, settings as default_settings
from modbot.core.redis import RedisManager
from modbot.domains.bans.service import BanService
from modbot.domains.discord.client import DiscordClient
from modbot.domains.moderation.permissions import ModeratorRegistry
from modbot.domains.presets.client import PresetApiClient
from modbot.domains.ratelimit.service import RateLimiter


@dataclass
class BotServices:
    """Collaborators handed to every interaction handler."""

    settings: Settings
    moderators: ModeratorRegistry
    preset_api: PresetApiClient
    discord: DiscordClient
    bans: BanService
    rate_limiter: RateLimiter

    async def close(self):
        await self.preset_api.close()
        await self.discord.close()


def build_services(settings: Optional[Settings] = None, preset_api_app=None) -> BotServices:
    settings = settings or default_settings
    return BotServices(
        settings=settings,
        moderators=ModeratorRegistry.from_csv(settings.MODERATOR_IDS),
        preset_api=PresetApiClient(settings, app=preset_api_app),
        discord=DiscordClient(settings),
        bans=BanService(web_url=settings.PRESETS_WEB_URL),
        rate_limiter=RateLimiter(RedisManager.get_client()),
    )
