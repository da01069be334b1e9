# modbot/domains/interactions/api.py
from fastapi import APIRouter, BackgroundTasks, Depends, Request

from modbot.core.services import BotServices
from modbot.domains.interactions.context import InteractionContext
from modbot.domains.interactions.dispatch import route_interaction
from modbot.shared.exceptions import SignatureVerificationError
from modbot.shared.i18n import create_translator
from modbot.shared.schemas.interactions import parse_interaction
from modbot.shared.utils.security import verify_discord_request

router = APIRouter()


def get_services(request: Request) -> BotServices:
    return request.app.state.services


@router.post("/")
async def handle_interaction(
    request: Request,
    background_tasks: BackgroundTasks,
    services: BotServices = Depends(get_services),
):
    """Discord interactions webhook."""
    settings = services.settings
    verification = await verify_discord_request(
        request, settings.DISCORD_PUBLIC_KEY, settings.MAX_BODY_SIZE
    )
    if not verification.is_valid:
        raise SignatureVerificationError(verification.error or "Invalid signature")

    interaction = parse_interaction(verification.body)
    ctx = InteractionContext(
        interaction=interaction,
        services=services,
        background_tasks=background_tasks,
        translator=create_translator(interaction.locale),
    )
    return await route_interaction(ctx)
