"""Embeds shared by the moderation commands, buttons and modals."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from modbot.domains.bans.entities import BanConfirmation
from modbot.domains.interactions import tokens
from modbot.domains.interactions.responses import INFO_COLOR
from modbot.domains.presets.entities import STATUS_DISPLAY, PresetStatus
from modbot.shared.i18n import Translator
from modbot.shared.utils.sanitizer import safe_error_message

PENDING_COLOR = STATUS_DISPLAY[PresetStatus.PENDING].color
APPROVED_COLOR = STATUS_DISPLAY[PresetStatus.APPROVED].color
REJECTED_COLOR = STATUS_DISPLAY[PresetStatus.REJECTED].color

REVERT_ICON = "↩️"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _field(name: str, value: str, inline: bool = False) -> Dict[str, Any]:
    return {"name": name, "value": value, "inline": inline}


def _compact(embed: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in embed.items() if value is not None}


def rebuild_embed(
    original: Dict[str, Any],
    extra_fields: List[Dict[str, Any]],
    title: Optional[str] = None,
    color: Optional[int] = None,
) -> Dict[str, Any]:
    """Copy of the moderation message embed with fields appended."""
    footer_text = (original.get("footer") or {}).get("text")
    return _compact(
        {
            "title": title if title is not None else original.get("title"),
            "description": original.get("description"),
            "color": color if color is not None else original.get("color"),
            "fields": list(original.get("fields") or []) + extra_fields,
            "footer": {"text": footer_text} if footer_text else None,
            "timestamp": original.get("timestamp"),
        }
    )


def action_failed_embed(original: Dict[str, Any], verb: str, error, fallback: str) -> Dict[str, Any]:
    message = safe_error_message(error, fallback)
    return rebuild_embed(original, [_field("Error", f"Failed to {verb}: {message}")])


def approved_embed(original: Dict[str, Any], moderator: str) -> Dict[str, Any]:
    return rebuild_embed(
        original,
        [_field("Action", f"Approved by {moderator}")],
        title="✅ Preset Approved",
        color=APPROVED_COLOR,
    )


def rejected_embed(original: Dict[str, Any], moderator: str, reason: str) -> Dict[str, Any]:
    return rebuild_embed(
        original,
        [_field("Action", f"Rejected by {moderator}", inline=True), _field("Reason", reason)],
        title="❌ Preset Rejected",
        color=REJECTED_COLOR,
    )


def reverted_embed(preset, moderator: str, reason: str) -> Dict[str, Any]:
    return {
        "title": f"{REVERT_ICON} Preset Edit Reverted",
        "description": "The preset has been restored to its previous state.",
        "color": INFO_COLOR,
        "fields": [
            _field("Preset", preset.name, inline=True),
            _field("Action", f"Reverted by {moderator}", inline=True),
            _field("Reason", reason),
        ],
        "footer": {"text": f"ID: {preset.id}"},
        "timestamp": _now_iso(),
    }


def log_embed(
    preset, outcome: str, moderator: str, color: int, icon: str, reason: Optional[str] = None
) -> Dict[str, Any]:
    """Summary posted to the submission log channel."""
    embed = {
        "title": f"{icon} {preset.name} - {outcome}",
        "description": f"Preset {outcome.lower()} by {moderator}",
        "color": color,
        "footer": {"text": f"ID: {preset.id}"},
    }
    if reason:
        embed["fields"] = [{"name": "Reason", "value": reason}]
    return embed


def pending_queue_embed(t: Translator, presets) -> Dict[str, Any]:
    lines = [
        f"**{i}.** {preset.name} by {preset.author_name or 'Unknown'}\n   ID: `{preset.id}`"
        for i, preset in enumerate(presets[:10], start=1)
    ]
    return {
        "title": f"📋 {t.t('preset.moderation.pendingQueue')}",
        "description": "\n".join(
            [t.t("preset.moderation.pendingCount", count=len(presets)), "", "\n\n".join(lines)]
        ),
        "color": PENDING_COLOR,
        "footer": {"text": t.t("preset.moderation.pendingFooter")},
    }


def stats_embed(t: Translator, stats) -> Dict[str, Any]:
    return {
        "title": f"📊 {t.t('preset.moderation.stats')}",
        "color": INFO_COLOR,
        "fields": [
            _field("🟡 Pending", str(stats.pending_count), inline=True),
            _field("🟢 Approved", str(stats.approved_count), inline=True),
            _field("🔴 Rejected", str(stats.rejected_count), inline=True),
            _field("🟠 Flagged", str(stats.flagged_count), inline=True),
        ],
    }


def ban_confirmation_message(t: Translator, target_id: str, data: BanConfirmation) -> Dict[str, Any]:
    user = data.user
    if data.recent_presets:
        preset_links = "\n".join(f"• [{p.name}]({p.share_url})" for p in data.recent_presets)
    else:
        preset_links = "_No presets found_"

    return {
        "embeds": [
            {
                "title": f"⚠️ {t.t('ban.confirmTitle')}",
                "description": t.t("ban.confirmDesc"),
                "color": REJECTED_COLOR,
                "fields": [
                    _field(t.t("ban.username"), user.username, inline=True),
                    _field(t.t("ban.discordId"), user.discord_id or "N/A", inline=True),
                    _field(t.t("ban.totalPresets"), str(user.preset_count), inline=True),
                    _field(t.t("ban.recentPresets"), preset_links),
                ],
                "footer": {"text": t.t("ban.confirmFooter")},
            }
        ],
        "components": [
            {
                "type": 1,
                "components": [
                    {
                        "type": 2,
                        "style": 4,
                        "label": t.t("ban.yesBan"),
                        "emoji": {"name": "🔨"},
                        "custom_id": tokens.build_token(tokens.BAN_CONFIRM, target_id, user.username),
                    },
                    {
                        "type": 2,
                        "style": 2,
                        "label": t.t("ban.cancel"),
                        "emoji": {"name": "❌"},
                        "custom_id": tokens.build_token(tokens.BAN_CANCEL, target_id),
                    },
                ],
            }
        ],
    }


def ban_cancelled_embed() -> Dict[str, Any]:
    return {
        "title": "❌ Ban Cancelled",
        "description": "The ban action was cancelled.",
        "color": INFO_COLOR,
    }


def ban_processing_embed(username: str) -> Dict[str, Any]:
    return {
        "title": "⏳ Processing Ban...",
        "description": f"Banning **{username}** and hiding their presets...",
        "color": PENDING_COLOR,
    }


def user_banned_embed(
    t: Translator, username: str, target_id: str, presets_hidden: int, moderator: str, reason: str
) -> Dict[str, Any]:
    return {
        "title": f"🔨 {t.t('ban.userBanned')}",
        "description": f"**{username}** has been banned from Preset Palettes.",
        "color": REJECTED_COLOR,
        "fields": [
            _field("User ID", target_id, inline=True),
            _field(t.t("ban.presetsHidden"), str(presets_hidden), inline=True),
            _field("Banned By", moderator, inline=True),
            _field("Reason", reason),
        ],
        "footer": {"text": "Use /preset unban_user to restore access"},
        "timestamp": _now_iso(),
    }


def user_unbanned_embed(
    t: Translator, username: str, target_id: str, presets_restored: int
) -> Dict[str, Any]:
    return {
        "title": f"✅ {t.t('ban.userUnbanned')}",
        "description": f"Successfully unbanned **{username}**.",
        "color": APPROVED_COLOR,
        "fields": [
            _field("User ID", target_id, inline=True),
            _field(t.t("ban.presetsRestored"), str(presets_restored), inline=True),
        ],
        "footer": {"text": "Unbanned by moderator"},
        "timestamp": _now_iso(),
    }
