# modbot/domains/moderation/commands.py
"""
/preset subcommands: moderate, ban_user, unban_user.

All three are moderator-only and only answered in the moderation channel.
"""
from typing import List, Optional

from fastapi.responses import JSONResponse

from modbot.domains.interactions.context import InteractionContext
from modbot.domains.interactions.responses import (deferred_response,
                                                   ephemeral_error,
                                                   ephemeral_response,
                                                   error_embed, success_embed)
from modbot.domains.moderation import rendering
from modbot.domains.moderation.permissions import (is_in_moderation_channel,
                                                   is_valid_snowflake)
from modbot.domains.moderation.validation import (MIN_REASON_LENGTH,
                                                  REASON_MISSING,
                                                  REASON_TOO_SHORT,
                                                  REJECTION_REASON_MAX,
                                                  check_reason,
                                                  is_valid_uuid,
                                                  reason_problem_message)
from modbot.shared.exceptions import PresetAPIError
from modbot.shared.schemas.interactions import CommandOption, option_value
from modbot.shared.utils.logger import get_logger
from modbot.shared.utils.sanitizer import (safe_error_message,
                                           sanitize_error_message)

logger = get_logger(__name__)


async def handle_preset_command(ctx: InteractionContext) -> JSONResponse:
    options = ctx.interaction.data.options
    subcommand = options[0] if options else None
    if subcommand is None:
        return ephemeral_response(ctx.t("errors.missingSubcommand"))

    handler = SUBCOMMANDS.get(subcommand.name)
    if handler is None:
        return ephemeral_response(ctx.t("errors.unknownSubcommand", name=subcommand.name))
    return await handler(ctx, subcommand.options)


def _gate(ctx: InteractionContext, denied: JSONResponse, restricted: JSONResponse):
    if not ctx.is_moderator():
        return denied
    if not is_in_moderation_channel(
        ctx.interaction.channel_id, ctx.settings.MODERATION_CHANNEL_ID
    ):
        return restricted
    return None


async def _edit_original(ctx: InteractionContext, embeds):
    await ctx.services.discord.edit_original_response(ctx.interaction.token, embeds=embeds)


async def notify_log_channel(ctx: InteractionContext, embed: dict):
    channel_id = ctx.settings.SUBMISSION_LOG_CHANNEL_ID
    if channel_id:
        await ctx.services.discord.send_message(channel_id, embeds=[embed])


# /preset moderate

async def handle_moderate(ctx: InteractionContext, options: List[CommandOption]) -> JSONResponse:
    rejection = _gate(
        ctx,
        ephemeral_error(ctx.t("preset.moderation.accessDenied"), title=ctx.t("common.error")),
        ephemeral_response(ctx.t("preset.moderation.channelRestricted")),
    )
    if rejection is not None:
        return rejection

    action = option_value(options, "action")
    preset_id = option_value(options, "preset_id")
    reason = option_value(options, "reason")

    if not action:
        return ephemeral_response(ctx.t("preset.moderation.missingAction"))

    if action in ("approve", "reject"):
        if not preset_id:
            return ephemeral_error(ctx.t("preset.moderation.missingId"), title=ctx.t("common.error"))
        if not is_valid_uuid(preset_id):
            return ephemeral_error(ctx.t("preset.moderation.invalidId"), title=ctx.t("common.error"))

    if action == "reject":
        problem = check_reason(reason, REJECTION_REASON_MAX)
        if problem == REASON_MISSING:
            message = ctx.t("preset.moderation.missingReason")
        elif problem == REASON_TOO_SHORT:
            message = ctx.t("preset.moderation.reasonTooShort", min=MIN_REASON_LENGTH)
        elif problem:
            message = reason_problem_message(problem, "rejection", REJECTION_REASON_MAX)
        else:
            message = None
        if message:
            return ephemeral_error(message, title=ctx.t("common.error"))

    if reason:
        reason = reason.strip()

    ctx.defer(process_moderate_action, ctx, action, preset_id, reason, label=f"moderate {action}")
    return deferred_response()


async def process_moderate_action(
    ctx: InteractionContext, action: str, preset_id: Optional[str], reason: Optional[str]
):
    handler = MODERATE_ACTIONS.get(action)
    try:
        if handler is None:
            await _edit_original(
                ctx,
                [error_embed(ctx.t("common.error"), ctx.t("preset.moderation.unknownAction", action=action))],
            )
            return
        await handler(ctx, preset_id, reason)
    except Exception as e:
        if isinstance(e, PresetAPIError):
            logger.error(f"Moderate {action} failed: {sanitize_error_message(e)}")
        else:
            logger.exception(f"Moderate {action} failed")
        await _edit_original(
            ctx,
            [
                error_embed(
                    ctx.t("common.error"),
                    safe_error_message(e, ctx.t("preset.moderation.failed")),
                )
            ],
        )


async def _pending_action(ctx: InteractionContext, preset_id, reason):
    presets = await ctx.services.preset_api.get_pending_presets(ctx.actor_id, ctx.actor_name)
    if not presets:
        embed = success_embed(
            ctx.t("preset.moderation.pendingQueue"), ctx.t("preset.moderation.noPending")
        )
    else:
        embed = rendering.pending_queue_embed(ctx.translator, presets)
    await _edit_original(ctx, [embed])


async def _approve_action(ctx: InteractionContext, preset_id, reason):
    preset = await ctx.services.preset_api.approve_preset(
        preset_id, ctx.actor_id, reason=reason, moderator_name=ctx.actor_name
    )
    await _edit_original(
        ctx,
        [
            success_embed(
                ctx.t("preset.moderation.approved"),
                ctx.t("preset.moderation.approvedDesc", name=preset.name),
            )
        ],
    )
    await notify_log_channel(
        ctx,
        rendering.log_embed(preset, "Approved", ctx.actor_name, rendering.APPROVED_COLOR, "✅"),
    )


async def _reject_action(ctx: InteractionContext, preset_id, reason):
    preset = await ctx.services.preset_api.reject_preset(
        preset_id, ctx.actor_id, reason, moderator_name=ctx.actor_name
    )
    await _edit_original(
        ctx,
        [
            {
                "title": f"❌ {ctx.t('preset.moderation.rejected')}",
                "description": ctx.t("preset.moderation.rejectedDesc", name=preset.name),
                "color": rendering.REJECTED_COLOR,
                "fields": [{"name": "Reason", "value": reason}],
            }
        ],
    )
    await notify_log_channel(
        ctx,
        rendering.log_embed(
            preset, "Rejected", ctx.actor_name, rendering.REJECTED_COLOR, "❌", reason=reason
        ),
    )


async def _stats_action(ctx: InteractionContext, preset_id, reason):
    stats = await ctx.services.preset_api.get_moderation_stats(ctx.actor_id)
    await _edit_original(ctx, [rendering.stats_embed(ctx.translator, stats)])


MODERATE_ACTIONS = {
    "pending": _pending_action,
    "approve": _approve_action,
    "reject": _reject_action,
    "stats": _stats_action,
}


# /preset ban_user

async def handle_ban_user(ctx: InteractionContext, options: List[CommandOption]) -> JSONResponse:
    rejection = _gate(
        ctx,
        ephemeral_response(ctx.t("ban.permissionDenied")),
        ephemeral_response(ctx.t("ban.channelRestricted")),
    )
    if rejection is not None:
        return rejection

    target_id = option_value(options, "user")
    if not target_id:
        return ephemeral_response(ctx.t("ban.missingTarget", action="ban"))
    target_id = str(target_id)
    if not is_valid_snowflake(target_id):
        return ephemeral_response(ctx.t("ban.userNotFound"))

    confirmation = await ctx.services.bans.get_user_for_ban_confirmation(target_id)
    if confirmation is None:
        return ephemeral_response(ctx.t("ban.userNotFound"))

    return ephemeral_response(
        rendering.ban_confirmation_message(ctx.translator, target_id, confirmation)
    )


# /preset unban_user

async def handle_unban_user(ctx: InteractionContext, options: List[CommandOption]) -> JSONResponse:
    rejection = _gate(
        ctx,
        ephemeral_response(ctx.t("ban.permissionDenied")),
        ephemeral_response(ctx.t("ban.channelRestricted")),
    )
    if rejection is not None:
        return rejection

    target_id = option_value(options, "user")
    if not target_id:
        return ephemeral_response(ctx.t("ban.missingTarget", action="unban"))

    ctx.defer(process_unban, ctx, str(target_id), label="unban")
    return deferred_response(ephemeral=True)


async def process_unban(ctx: InteractionContext, target_id: str):
    bans = ctx.services.bans
    try:
        active_ban = await bans.get_active_ban(target_id)
        if active_ban is None:
            await _edit_original(ctx, [error_embed(ctx.t("common.error"), ctx.t("ban.notBanned"))])
            return

        result = await bans.unban_user(target_id, ctx.actor_id)
        if not result.success:
            await _edit_original(
                ctx, [error_embed(ctx.t("common.error"), result.error or "Failed to unban user.")]
            )
            return

        await _edit_original(
            ctx,
            [
                rendering.user_unbanned_embed(
                    ctx.translator, active_ban.username, target_id, result.presets_restored
                )
            ],
        )
        logger.info(
            f"User {target_id} unbanned by {ctx.actor_id}, "
            f"{result.presets_restored} presets restored"
        )
    except Exception:
        logger.exception(f"Failed to unban user {target_id}")
        await _edit_original(ctx, [error_embed(ctx.t("common.error"), ctx.t("ban.unbanFailed"))])


SUBCOMMANDS = {
    "moderate": handle_moderate,
    "ban_user": handle_ban_user,
    "unban_user": handle_unban_user,
}
