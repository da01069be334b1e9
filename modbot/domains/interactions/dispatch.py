# modbot/domains/interactions/dispatch.py
"""
Classify an interaction and forward it to its handler.

Buttons and modals are dispatched only by the prefix of their custom_id,
checked in registration order. Nothing here does moderation work itself.
"""
from typing import Awaitable, Callable, List, Optional, Tuple

from fastapi.responses import JSONResponse

from modbot.domains.interactions import tokens
from modbot.domains.interactions.autocomplete import handle_autocomplete
from modbot.domains.interactions.context import InteractionContext
from modbot.domains.interactions.responses import (ephemeral_response,
                                                   pong_response,
                                                   rate_limited_response)
from modbot.domains.moderation import buttons, modals
from modbot.domains.moderation.commands import handle_preset_command
from modbot.domains.ratelimit.service import RATE_LIMIT_CONFIGS
from modbot.shared.schemas.interactions import BUTTON, InteractionType
from modbot.shared.utils.logger import get_logger

logger = get_logger(__name__)

Handler = Callable[[InteractionContext], Awaitable[JSONResponse]]


class TokenRouter:
    """Ordered prefix table. The first matching prefix wins."""

    def __init__(self, unknown_message: str):
        self.unknown_message = unknown_message
        self._routes: List[Tuple[str, Handler]] = []

    def add_prefix(self, prefix: str, handler: Handler) -> "TokenRouter":
        self._routes.append((prefix, handler))
        return self

    def resolve(self, custom_id: str) -> Optional[Handler]:
        for prefix, handler in self._routes:
            if custom_id.startswith(prefix):
                return handler
        return None

    async def dispatch(self, ctx: InteractionContext) -> JSONResponse:
        custom_id = ctx.interaction.custom_id
        handler = self.resolve(custom_id)
        if handler is None:
            logger.info(f"No handler for custom_id prefix: {custom_id[:32]}")
            return ephemeral_response(self.unknown_message)
        return await handler(ctx)


# Modal prefixes share a stem with button prefixes, but the two tables are
# never consulted for the same interaction type.
BUTTON_ROUTES = (
    TokenRouter("Unknown button action.")
    .add_prefix(tokens.PRESET_APPROVE, buttons.handle_approve_button)
    .add_prefix(tokens.PRESET_REJECT, buttons.handle_reject_button)
    .add_prefix(tokens.PRESET_REVERT, buttons.handle_revert_button)
    .add_prefix(tokens.BAN_CONFIRM, buttons.handle_ban_confirm_button)
    .add_prefix(tokens.BAN_CANCEL, buttons.handle_ban_cancel_button)
)

MODAL_ROUTES = (
    TokenRouter("Unknown modal submission.")
    .add_prefix(tokens.PRESET_REJECT_MODAL, modals.handle_rejection_modal)
    .add_prefix(tokens.PRESET_REVERT_MODAL, modals.handle_revert_modal)
    .add_prefix(tokens.BAN_REASON_MODAL, modals.handle_ban_reason_modal)
)


async def handle_command(ctx: InteractionContext) -> JSONResponse:
    if not ctx.actor_id:
        return ephemeral_response(ctx.t("errors.userNotFound"))

    name = ctx.interaction.data.name
    if name != "preset":
        return ephemeral_response(ctx.t("errors.unsupportedCommand", name=name))

    try:
        return await handle_preset_command(ctx)
    except Exception:
        logger.exception(f"Command /{name} failed")
        return ephemeral_response(ctx.t("errors.commandFailed"))


async def handle_component(ctx: InteractionContext) -> JSONResponse:
    if ctx.interaction.data.component_type != BUTTON:
        return ephemeral_response("This component type is not yet supported.")
    return await BUTTON_ROUTES.dispatch(ctx)


async def handle_modal(ctx: InteractionContext) -> JSONResponse:
    return await MODAL_ROUTES.dispatch(ctx)


HANDLERS = {
    InteractionType.APPLICATION_COMMAND: handle_command,
    InteractionType.MESSAGE_COMPONENT: handle_component,
    InteractionType.APPLICATION_COMMAND_AUTOCOMPLETE: handle_autocomplete,
    InteractionType.MODAL_SUBMIT: handle_modal,
}

RATE_LIMITED_KINDS = {
    InteractionType.APPLICATION_COMMAND: "command",
    InteractionType.APPLICATION_COMMAND_AUTOCOMPLETE: "autocomplete",
}


async def route_interaction(ctx: InteractionContext) -> JSONResponse:
    kind = ctx.interaction.kind
    if kind == InteractionType.PING:
        return pong_response()

    limit_kind = RATE_LIMITED_KINDS.get(kind)
    decision = None
    if limit_kind and ctx.actor_id:
        limiter = ctx.services.rate_limiter
        decision = await limiter.check(ctx.actor_id, limit_kind)
        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded for {limit_kind}:{ctx.actor_id}, "
                f"retry after {decision.retry_after}s"
            )
            if ctx.settings.RATE_LIMIT_ENFORCE:
                return rate_limited_response(
                    decision.retry_after or 1, ctx.t("errors.rateLimited")
                )
        else:
            ctx.defer(limiter.increment, ctx.actor_id, limit_kind, label="rate limit increment")

    try:
        response = await HANDLERS[kind](ctx)
    except Exception:
        logger.exception(f"Interaction handler failed for type {int(kind)}")
        response = ephemeral_response(ctx.t("errors.commandFailed"))

    if decision is not None:
        response.headers["X-RateLimit-Limit"] = str(RATE_LIMIT_CONFIGS[limit_kind].effective_limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    return response
