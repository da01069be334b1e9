from typing import Dict, List

from fastapi.responses import JSONResponse

from modbot.domains.interactions.context import InteractionContext
from modbot.domains.interactions.responses import autocomplete_response
from modbot.shared.schemas.interactions import find_focused_option
from modbot.shared.utils.logger import get_logger

logger = get_logger(__name__)

MAX_CHOICES = 25
MAX_CHOICE_NAME = 100


def _clip(choice: Dict[str, str]) -> Dict[str, str]:
    name = choice["name"]
    if len(name) > MAX_CHOICE_NAME:
        name = name[: MAX_CHOICE_NAME - 1] + "…"
    return {"name": name, "value": choice["value"]}


async def _preset_choices(ctx: InteractionContext, query: str) -> List[Dict[str, str]]:
    return await ctx.services.preset_api.search_presets_for_autocomplete(query, status="pending")


async def _ban_user_choices(ctx: InteractionContext, query: str) -> List[Dict[str, str]]:
    authors = await ctx.services.bans.search_preset_authors(query)
    return [
        {
            "name": f"{a.username} (discord:{a.discord_id}) - {a.preset_count} presets",
            "value": a.discord_id,
        }
        for a in authors
    ]


async def _unban_user_choices(ctx: InteractionContext, query: str) -> List[Dict[str, str]]:
    users = await ctx.services.bans.search_banned_users(query)
    choices = []
    for user in users:
        suffix = f"discord:{user.discord_id}" if user.discord_id else f"xivauth:{user.xivauth_id}"
        choices.append(
            {"name": f"{user.username} ({suffix})", "value": user.discord_id or user.xivauth_id or ""}
        )
    return choices


# (command, subcommand, focused option) -> source
SOURCES = {
    ("preset", "moderate", "preset_id"): _preset_choices,
    ("preset", "ban_user", "user"): _ban_user_choices,
    ("preset", "unban_user", "user"): _unban_user_choices,
}


async def handle_autocomplete(ctx: InteractionContext) -> JSONResponse:
    """Suggestions for the focused option. Failures produce an empty list."""
    data = ctx.interaction.data
    subcommand, focused = find_focused_option(data.options)
    choices: List[Dict[str, str]] = []

    if focused is not None:
        source = SOURCES.get((data.name, subcommand, focused.name))
        if source is not None:
            query = str(focused.value) if focused.value is not None else ""
            try:
                choices = await source(ctx, query)
            except Exception:
                logger.exception(f"Autocomplete failed for {data.name} {subcommand} {focused.name}")
                choices = []

    return autocomplete_response([_clip(c) for c in choices[:MAX_CHOICES]])
