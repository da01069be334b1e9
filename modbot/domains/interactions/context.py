from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fastapi import BackgroundTasks

from modbot.core.background import schedule_deferred
from modbot.core.config import Settings
from modbot.core.services import BotServices
from modbot.shared.i18n import Translator
from modbot.shared.schemas.interactions import Interaction


@dataclass
class InteractionContext:
    """Everything a handler needs for one interaction."""

    interaction: Interaction
    services: BotServices
    background_tasks: BackgroundTasks
    translator: Translator

    @property
    def settings(self) -> Settings:
        return self.services.settings

    @property
    def actor_id(self) -> Optional[str]:
        return self.interaction.actor_id

    @property
    def actor_name(self) -> str:
        return self.interaction.actor_name

    def t(self, key: str, **variables) -> str:
        return self.translator.t(key, **variables)

    def is_moderator(self) -> bool:
        return self.services.moderators.is_moderator(self.actor_id)

    def defer(self, func: Callable[..., Awaitable], *args, label: Optional[str] = None, **kwargs):
        """Run ``func`` after the response is sent; failures are only logged."""
        schedule_deferred(self.background_tasks, func, *args, label=label, **kwargs)
