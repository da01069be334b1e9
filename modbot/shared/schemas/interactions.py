"""
Inbound Discord interaction payloads.

Only the fields the bot reads are modelled; everything else in the payload
is ignored. Models are frozen: an interaction is never mutated after parsing.
"""
import json
from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import MalformedInteractionError

ACTION_ROW = 1
BUTTON = 2
TEXT_INPUT = 4


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class DiscordUser(_Frozen):
    id: Optional[str] = None
    username: Optional[str] = None
    global_name: Optional[str] = None


class Member(_Frozen):
    user: Optional[DiscordUser] = None


class CommandOption(_Frozen):
    name: str
    type: int = 3
    value: Any = None
    focused: bool = False
    options: List["CommandOption"] = Field(default_factory=list)


class TextInputValue(_Frozen):
    type: int
    custom_id: Optional[str] = None
    value: Optional[str] = None


class ComponentRow(_Frozen):
    type: int
    components: List[TextInputValue] = Field(default_factory=list)


class InteractionData(_Frozen):
    id: Optional[str] = None
    name: Optional[str] = None
    options: List[CommandOption] = Field(default_factory=list)
    custom_id: Optional[str] = None
    component_type: Optional[int] = None
    values: List[str] = Field(default_factory=list)
    components: List[ComponentRow] = Field(default_factory=list)


class Message(_Frozen):
    id: Optional[str] = None
    channel_id: Optional[str] = None
    embeds: List[Dict[str, Any]] = Field(default_factory=list)


class Interaction(_Frozen):
    type: int
    id: Optional[str] = None
    application_id: Optional[str] = None
    token: str = ""
    locale: Optional[str] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    member: Optional[Member] = None
    user: Optional[DiscordUser] = None
    data: InteractionData = Field(default_factory=InteractionData)
    message: Optional[Message] = None

    @property
    def kind(self) -> InteractionType:
        return InteractionType(self.type)

    @property
    def actor(self) -> Optional[DiscordUser]:
        if self.member and self.member.user and self.member.user.id:
            return self.member.user
        if self.user and self.user.id:
            return self.user
        return None

    @property
    def actor_id(self) -> Optional[str]:
        """Guild interactions carry the user under member, DMs at top level."""
        actor = self.actor
        return actor.id if actor else None

    @property
    def actor_name(self) -> str:
        actor = self.actor
        if actor and actor.username:
            return actor.username
        return "Moderator"

    @property
    def custom_id(self) -> str:
        return self.data.custom_id or ""

    @property
    def original_embed(self) -> Dict[str, Any]:
        if self.message and self.message.embeds:
            return self.message.embeds[0]
        return {}

    def text_input(self, custom_id: str) -> Optional[str]:
        for row in self.data.components:
            if row.type != ACTION_ROW:
                continue
            for component in row.components:
                if component.type == TEXT_INPUT and component.custom_id == custom_id:
                    return component.value
        return None


def option_value(options: List[CommandOption], name: str) -> Any:
    for option in options:
        if option.name == name:
            return option.value
    return None


def find_focused_option(options: List[CommandOption]):
    """Return ``(subcommand_name, focused_option)``; either may be None.

    Top-level options are scanned first, then one level of subcommand options.
    """
    for option in options:
        if option.focused:
            return None, option
    for option in options:
        for sub_option in option.options:
            if sub_option.focused:
                return option.name, sub_option
    return None, None


def parse_interaction(body: str) -> Interaction:
    try:
        raw = json.loads(body)
    except ValueError:
        raise MalformedInteractionError("Invalid JSON body")

    if not isinstance(raw, dict):
        raise MalformedInteractionError("Invalid interaction payload")

    try:
        interaction = Interaction.model_validate(raw)
    except ValidationError:
        raise MalformedInteractionError("Invalid interaction payload")

    if interaction.type not in InteractionType._value2member_map_:
        raise MalformedInteractionError(f"Unknown interaction type: {interaction.type}")
    return interaction
