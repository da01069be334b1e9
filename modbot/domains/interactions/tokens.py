"""
Action tokens: the custom_id carried by buttons and modals.

Layout is ``{prefix}{target_id}`` or ``{prefix}{target_id}_{name}``. The
target id never contains ``_``; the display name always goes through
base64url (no padding) because raw names may contain the delimiter. A
token is self-describing, so no server-side session is kept between the
message that renders a button and the click that comes back later.
"""
import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

DELIMITER = "_"
MAX_TOKEN_LENGTH = 100

PRESET_APPROVE = "preset_approve_"
PRESET_REJECT = "preset_reject_"
PRESET_REVERT = "preset_revert_"
BAN_CONFIRM = "ban_confirm_"
BAN_CANCEL = "ban_cancel_"

PRESET_REJECT_MODAL = "preset_reject_modal_"
PRESET_REVERT_MODAL = "preset_revert_modal_"
BAN_REASON_MODAL = "ban_reason_modal_"

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]*$")


class InvalidTokenError(ValueError):
    pass


def encode_name(name: str) -> str:
    return base64.urlsafe_b64encode(name.encode("utf-8")).decode("ascii").rstrip("=")


def decode_name(encoded: str) -> str:
    if not _BASE64URL.match(encoded):
        raise InvalidTokenError("Display name is not base64url")
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidTokenError("Display name could not be decoded") from e


def build_token(prefix: str, target_id: str, name: Optional[str] = None) -> str:
    """Build a custom_id, shortening ``name`` until the token fits."""
    if DELIMITER in target_id:
        raise InvalidTokenError("Target id must not contain the delimiter")
    token = f"{prefix}{target_id}"
    if name is None:
        return token

    budget = MAX_TOKEN_LENGTH - len(token) - len(DELIMITER)
    encoded = encode_name(name)
    while len(encoded) > budget and name:
        name = name[:-1]
        encoded = encode_name(name)
    return f"{token}{DELIMITER}{encoded}"


@dataclass(frozen=True)
class ActionToken:
    prefix: str
    target_id: str
    encoded_name: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        """Decoded display name. Raises InvalidTokenError on bad encoding."""
        if self.encoded_name is None:
            return None
        return decode_name(self.encoded_name)


def parse_token(custom_id: str, prefix: str) -> ActionToken:
    if not custom_id.startswith(prefix):
        raise InvalidTokenError(f"Token does not start with {prefix}")
    rest = custom_id[len(prefix):]
    target_id, sep, encoded_name = rest.partition(DELIMITER)
    return ActionToken(prefix, target_id, encoded_name if sep else None)
