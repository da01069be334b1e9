"""Bot UI strings. Only English ships; other locales fall back to it."""
import re
from typing import Any, Dict, Optional

from modbot.shared.utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_LOCALES = ("en", "ja", "de", "fr", "ko", "zh")
DEFAULT_LOCALE = "en"

_EN: Dict[str, Any] = {
    "common": {
        "error": "Error",
    },
    "errors": {
        "userNotFound": "Could not identify user.",
        "missingSubcommand": "Please specify a subcommand.",
        "unknownSubcommand": "Unknown subcommand: {name}",
        "commandFailed": "An error occurred while processing your command.",
        "unsupportedCommand": "The `/{name}` command is not supported by this moderation bot.",
        "rateLimited": "Rate limit exceeded. Please wait before trying again.",
    },
    "preset": {
        "moderation": {
            "accessDenied": "You don't have permission to perform moderation actions.",
            "channelRestricted": "This command must be used in the moderation channel.",
            "missingAction": "Missing action",
            "unknownAction": "Unknown action: {action}",
            "pendingQueue": "Presets Awaiting Moderation",
            "noPending": "No presets are currently awaiting moderation.",
            "pendingCount": "{count} preset(s) pending review",
            "pendingFooter": "Use /preset moderate approve <id> or reject <id> <reason>",
            "missingId": "Please specify a preset ID for this action.",
            "invalidId": "Invalid preset ID format.",
            "approved": "Preset Approved",
            "approvedDesc": "**{name}** has been approved and is now live!",
            "missingReason": "Please provide a reason for rejection.",
            "reasonTooShort": "Rejection reason needs at least {min} characters.",
            "rejected": "Preset Rejected",
            "rejectedDesc": "**{name}** has been rejected.",
            "stats": "Moderation Statistics",
            "failed": "Moderation action failed.",
        },
    },
    "ban": {
        "confirmTitle": "Confirm User Ban",
        "confirmDesc": (
            "Are you sure you want to ban this user from Preset Palettes?\n\n"
            "This will **hide all their presets** and prevent them from submitting, "
            "voting, or editing presets."
        ),
        "username": "Username",
        "discordId": "Discord ID",
        "totalPresets": "Total Presets",
        "recentPresets": "Recent Presets",
        "confirmFooter": 'Click "Yes" to proceed with the ban, or "No" to cancel.',
        "yesBan": "Yes, Ban User",
        "cancel": "Cancel",
        "userBanned": "User Banned",
        "userUnbanned": "User Unbanned",
        "presetsHidden": "Presets Hidden",
        "presetsRestored": "Presets Restored",
        "notBanned": "User is not currently banned.",
        "userNotFound": "User not found or has no presets.",
        "missingTarget": "Please specify a user to {action}.",
        "channelRestricted": "This command can only be used in the moderation channel.",
        "permissionDenied": "You do not have permission to perform this action.",
        "unbanFailed": "An unexpected error occurred while unbanning the user.",
    },
}

_LOCALES: Dict[str, Dict[str, Any]] = {code: _EN for code in SUPPORTED_LOCALES}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def resolve_locale(discord_locale: Optional[str]) -> str:
    """Map a Discord locale such as ``en-US`` or ``zh-CN`` to a supported code."""
    if not discord_locale:
        return DEFAULT_LOCALE
    code = discord_locale.split("-")[0].lower()
    return code if code in _LOCALES else DEFAULT_LOCALE


def _lookup(data: Dict[str, Any], key: str):
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


class Translator:
    def __init__(self, locale: str = DEFAULT_LOCALE):
        self.locale = locale if locale in _LOCALES else DEFAULT_LOCALE
        self._data = _LOCALES[self.locale]

    def t(self, key: str, **variables) -> str:
        value = _lookup(self._data, key)
        if value is None and self.locale != DEFAULT_LOCALE:
            value = _lookup(_EN, key)
        if not isinstance(value, str):
            logger.warning(f"Missing translation: {key} for locale {self.locale}")
            return key
        if not variables:
            return value
        return _PLACEHOLDER.sub(
            lambda m: str(variables[m.group(1)]) if m.group(1) in variables else m.group(0),
            value,
        )


def create_translator(discord_locale: Optional[str] = None) -> Translator:
    return Translator(resolve_locale(discord_locale))
