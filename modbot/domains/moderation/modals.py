# modbot/domains/moderation/modals.py
from typing import Optional

from fastapi.responses import JSONResponse

from modbot.domains.interactions import tokens
from modbot.domains.interactions.context import InteractionContext
from modbot.domains.interactions.responses import (deferred_update_response,
                                                   ephemeral_error,
                                                   error_embed,
                                                   update_message_response)
from modbot.domains.moderation import rendering
from modbot.domains.moderation.buttons import (edit_moderation_message,
                                               report_action_failure)
from modbot.domains.moderation.commands import notify_log_channel
from modbot.domains.moderation.validation import (BAN_REASON_MAX,
                                                  REJECTION_REASON_MAX,
                                                  REVERT_REASON_MAX,
                                                  check_reason,
                                                  is_valid_uuid,
                                                  reason_problem_message)
from modbot.shared.utils.logger import get_logger
from modbot.shared.utils.sanitizer import safe_error_message

logger = get_logger(__name__)

INVALID_MODAL = "Invalid modal submission."


def _read_reason(ctx: InteractionContext, field: str, label: str, max_length: int):
    """Return ``(reason, None)`` or ``(None, error_response)``."""
    reason = ctx.interaction.text_input(field)
    problem = check_reason(reason, max_length)
    if problem:
        return None, ephemeral_error(reason_problem_message(problem, label, max_length))
    return reason.strip(), None


def _check_preset_modal(ctx: InteractionContext, prefix: str, verb: str) -> Optional[JSONResponse]:
    if not ctx.actor_id:
        return ephemeral_error(INVALID_MODAL)
    if not ctx.is_moderator():
        return ephemeral_error(f"You do not have permission to {verb} presets.")
    preset_id = tokens.parse_token(ctx.interaction.custom_id, prefix).target_id
    if not preset_id:
        return ephemeral_error(INVALID_MODAL)
    if not is_valid_uuid(preset_id):
        return ephemeral_error("Invalid preset ID format.")
    return None


async def handle_rejection_modal(ctx: InteractionContext) -> JSONResponse:
    error = _check_preset_modal(ctx, tokens.PRESET_REJECT_MODAL, "reject")
    if error is not None:
        return error
    reason, error = _read_reason(ctx, "rejection_reason", "rejection", REJECTION_REASON_MAX)
    if error is not None:
        return error

    preset_id = tokens.parse_token(ctx.interaction.custom_id, tokens.PRESET_REJECT_MODAL).target_id
    ctx.defer(process_rejection, ctx, preset_id, reason, label="reject modal")
    return deferred_update_response()


async def process_rejection(ctx: InteractionContext, preset_id: str, reason: str):
    try:
        preset = await ctx.services.preset_api.reject_preset(
            preset_id, ctx.actor_id, reason, moderator_name=ctx.actor_name
        )
    except Exception as e:
        await report_action_failure(ctx, "reject", e)
        return

    await edit_moderation_message(
        ctx,
        [rendering.rejected_embed(ctx.interaction.original_embed, ctx.actor_name, reason)],
        components=[],
    )
    await notify_log_channel(
        ctx,
        rendering.log_embed(
            preset, "Rejected", ctx.actor_name, rendering.REJECTED_COLOR, "❌", reason=reason
        ),
    )


async def handle_revert_modal(ctx: InteractionContext) -> JSONResponse:
    error = _check_preset_modal(ctx, tokens.PRESET_REVERT_MODAL, "revert")
    if error is not None:
        return error
    reason, error = _read_reason(ctx, "revert_reason", "revert", REVERT_REASON_MAX)
    if error is not None:
        return error

    preset_id = tokens.parse_token(ctx.interaction.custom_id, tokens.PRESET_REVERT_MODAL).target_id
    ctx.defer(process_revert, ctx, preset_id, reason, label="revert modal")
    return deferred_update_response()


async def process_revert(ctx: InteractionContext, preset_id: str, reason: str):
    try:
        preset = await ctx.services.preset_api.revert_preset(
            preset_id, reason, ctx.actor_id, moderator_name=ctx.actor_name
        )
    except Exception as e:
        await report_action_failure(ctx, "revert", e)
        return

    await edit_moderation_message(
        ctx, [rendering.reverted_embed(preset, ctx.actor_name, reason)], components=[]
    )
    await notify_log_channel(
        ctx,
        rendering.log_embed(
            preset, "Edit Reverted", ctx.actor_name, rendering.INFO_COLOR,
            rendering.REVERT_ICON, reason=reason,
        ),
    )


async def handle_ban_reason_modal(ctx: InteractionContext) -> JSONResponse:
    if not ctx.actor_id:
        return ephemeral_error(INVALID_MODAL)
    if not ctx.is_moderator():
        return ephemeral_error("You do not have permission to ban users.")

    token = tokens.parse_token(ctx.interaction.custom_id, tokens.BAN_REASON_MODAL)
    if token.encoded_name is None:
        return ephemeral_error("Invalid modal data.")
    try:
        username = token.name
    except tokens.InvalidTokenError:
        logger.warning("Ban reason modal carried an undecodable username")
        return ephemeral_error("Invalid modal data.")
    if not token.target_id:
        return ephemeral_error("Invalid target user.")

    reason, error = _read_reason(ctx, "ban_reason", "ban", BAN_REASON_MAX)
    if error is not None:
        return error

    ctx.defer(process_ban, ctx, token.target_id, username, reason, label="ban")
    return update_message_response([rendering.ban_processing_embed(username)], components=[])


async def process_ban(ctx: InteractionContext, target_id: str, username: str, reason: str):
    discord = ctx.services.discord
    channel_id = ctx.settings.MODERATION_CHANNEL_ID

    try:
        result = await ctx.services.bans.ban_user(target_id, username, ctx.actor_id, reason)
    except Exception as e:
        logger.exception(f"Failed to ban user {target_id}")
        message = safe_error_message(e, "An unexpected error occurred while processing the ban.")
        embed = error_embed("Ban Failed", f"Failed to ban **{username}**: {message}")
    else:
        if result.success:
            embed = rendering.user_banned_embed(
                ctx.translator, username, target_id, result.presets_hidden, ctx.actor_name, reason
            )
            logger.info(
                f"User {target_id} banned by {ctx.actor_id}, {result.presets_hidden} presets hidden"
            )
        else:
            embed = error_embed("Ban Failed", result.error or "Unknown error occurred.")

    await discord.edit_original_response(ctx.interaction.token, embeds=[embed], components=[])
    if channel_id:
        await discord.send_message(channel_id, embeds=[embed])
