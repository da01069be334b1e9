# modbot/domains/moderation/buttons.py
"""
Button handlers for moderation messages and the ban confirmation.

Every handler checks, in order: the clicking user is known, the user is a
moderator, the token carries a usable target. Only then does it answer.
"""
from fastapi.responses import JSONResponse

from modbot.domains.interactions import tokens
from modbot.domains.interactions.context import InteractionContext
from modbot.domains.interactions.responses import (deferred_update_response,
                                                   ephemeral_response,
                                                   modal_response, text_input,
                                                   update_message_response)
from modbot.domains.moderation import rendering
from modbot.domains.moderation.commands import notify_log_channel
from modbot.domains.moderation.validation import is_valid_uuid
from modbot.shared.exceptions import PresetAPIError
from modbot.shared.utils.logger import get_logger
from modbot.shared.utils.sanitizer import sanitize_error_message

logger = get_logger(__name__)

INVALID_BUTTON = "Invalid button interaction."
INVALID_PRESET_ID = "Invalid preset ID format."


def _check_preset_button(ctx: InteractionContext, prefix: str, verb: str):
    """Return ``(preset_id, None)`` or ``(None, error_response)``."""
    if not ctx.actor_id:
        return None, ephemeral_response(INVALID_BUTTON)
    if not ctx.is_moderator():
        return None, ephemeral_response(f"You do not have permission to {verb} presets.")

    token = tokens.parse_token(ctx.interaction.custom_id, prefix)
    if not token.target_id:
        return None, ephemeral_response(INVALID_BUTTON)
    if not is_valid_uuid(token.target_id):
        return None, ephemeral_response(INVALID_PRESET_ID)
    return token.target_id, None


async def handle_approve_button(ctx: InteractionContext) -> JSONResponse:
    preset_id, error = _check_preset_button(ctx, tokens.PRESET_APPROVE, "approve")
    if error is not None:
        return error
    ctx.defer(process_approval, ctx, preset_id, label="approve button")
    return deferred_update_response()


async def edit_moderation_message(ctx: InteractionContext, embeds, components=None):
    """Edit the message the button or modal belongs to."""
    interaction = ctx.interaction
    discord = ctx.services.discord
    if interaction.channel_id and interaction.message and interaction.message.id:
        await discord.edit_message(
            interaction.channel_id, interaction.message.id, embeds=embeds, components=components
        )
    else:
        await discord.edit_original_response(interaction.token, embeds=embeds, components=components)


async def report_action_failure(ctx: InteractionContext, verb: str, error: Exception):
    if isinstance(error, PresetAPIError):
        logger.error(f"Failed to {verb} preset: {sanitize_error_message(error)}")
    else:
        logger.exception(f"Failed to {verb} preset")
    await edit_moderation_message(
        ctx,
        [
            rendering.action_failed_embed(
                ctx.interaction.original_embed, verb, error, f"Unable to {verb} preset."
            )
        ],
    )


async def process_approval(ctx: InteractionContext, preset_id: str):
    try:
        preset = await ctx.services.preset_api.approve_preset(
            preset_id, ctx.actor_id, moderator_name=ctx.actor_name
        )
    except Exception as e:
        await report_action_failure(ctx, "approve", e)
        return

    await edit_moderation_message(
        ctx, [rendering.approved_embed(ctx.interaction.original_embed, ctx.actor_name)], components=[]
    )
    await notify_log_channel(
        ctx, rendering.log_embed(preset, "Approved", ctx.actor_name, rendering.APPROVED_COLOR, "✅")
    )


async def handle_reject_button(ctx: InteractionContext) -> JSONResponse:
    preset_id, error = _check_preset_button(ctx, tokens.PRESET_REJECT, "reject")
    if error is not None:
        return error
    return modal_response(
        tokens.build_token(tokens.PRESET_REJECT_MODAL, preset_id),
        "Reject Preset",
        text_input(
            "rejection_reason",
            "Reason for rejection",
            "Please provide a clear reason for rejecting this preset...",
            max_length=500,
        ),
    )


async def handle_revert_button(ctx: InteractionContext) -> JSONResponse:
    preset_id, error = _check_preset_button(ctx, tokens.PRESET_REVERT, "revert")
    if error is not None:
        return error
    return modal_response(
        tokens.build_token(tokens.PRESET_REVERT_MODAL, preset_id),
        "Revert Preset Edit",
        text_input(
            "revert_reason",
            "Reason for reverting",
            "Explain why the edit is being reverted...",
            max_length=200,
        ),
    )


async def handle_ban_confirm_button(ctx: InteractionContext) -> JSONResponse:
    if not ctx.actor_id:
        return ephemeral_response(INVALID_BUTTON)
    if not ctx.is_moderator():
        return ephemeral_response("You do not have permission to ban users.")

    token = tokens.parse_token(ctx.interaction.custom_id, tokens.BAN_CONFIRM)
    if token.encoded_name is None:
        return ephemeral_response("Invalid button data.")
    if not token.target_id:
        return ephemeral_response("Invalid target user.")
    try:
        username = token.name
    except tokens.InvalidTokenError:
        logger.warning("Ban confirm button carried an undecodable username")
        return ephemeral_response("Invalid button data.")

    return modal_response(
        tokens.build_token(tokens.BAN_REASON_MODAL, token.target_id, username),
        "Ban Reason",
        text_input(
            "ban_reason",
            "Reason for banning this user",
            "Explain why this user is being banned from Preset Palettes...",
            max_length=500,
        ),
    )


async def handle_ban_cancel_button(ctx: InteractionContext) -> JSONResponse:
    # Anyone who can see the ephemeral confirmation may dismiss it.
    return update_message_response([rendering.ban_cancelled_embed()], components=[])
