"""Interaction response envelopes and embed helpers."""
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from fastapi.responses import JSONResponse

EPHEMERAL = 64

ERROR_COLOR = 0xFF0000
SUCCESS_COLOR = 0x00FF00
INFO_COLOR = 0x5865F2


class ResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8
    MODAL = 9


def _envelope(response_type: ResponseType, data: Optional[Dict[str, Any]] = None, **kwargs):
    content: Dict[str, Any] = {"type": int(response_type)}
    if data is not None:
        content["data"] = data
    return JSONResponse(content=content, **kwargs)


def pong_response() -> JSONResponse:
    return _envelope(ResponseType.PONG)


def message_response(data: Dict[str, Any]) -> JSONResponse:
    return _envelope(ResponseType.CHANNEL_MESSAGE_WITH_SOURCE, data)


def ephemeral_response(content: Union[str, Dict[str, Any]]) -> JSONResponse:
    data = {"content": content} if isinstance(content, str) else dict(content)
    data["flags"] = EPHEMERAL
    return message_response(data)


def ephemeral_error(description: str, title: str = "Error") -> JSONResponse:
    return ephemeral_response({"embeds": [error_embed(title, description)]})


def deferred_response(ephemeral: bool = False) -> JSONResponse:
    data = {"flags": EPHEMERAL} if ephemeral else None
    return _envelope(ResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE, data)


def deferred_update_response() -> JSONResponse:
    return _envelope(ResponseType.DEFERRED_UPDATE_MESSAGE)


def update_message_response(
    embeds: List[Dict[str, Any]], components: Optional[List[Dict[str, Any]]] = None
) -> JSONResponse:
    return _envelope(
        ResponseType.UPDATE_MESSAGE,
        {"embeds": embeds, "components": components if components is not None else []},
    )


def autocomplete_response(choices: List[Dict[str, str]]) -> JSONResponse:
    return _envelope(ResponseType.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT, {"choices": choices})


def modal_response(custom_id: str, title: str, text_input: Dict[str, Any]) -> JSONResponse:
    return _envelope(
        ResponseType.MODAL,
        {
            "custom_id": custom_id,
            "title": title,
            "components": [{"type": 1, "components": [text_input]}],
        },
    )


def text_input(
    custom_id: str,
    label: str,
    placeholder: str,
    min_length: int = 10,
    max_length: int = 500,
) -> Dict[str, Any]:
    """Required paragraph-style text input."""
    return {
        "type": 4,
        "custom_id": custom_id,
        "label": label,
        "style": 2,
        "min_length": min_length,
        "max_length": max_length,
        "required": True,
        "placeholder": placeholder,
    }


def rate_limited_response(retry_after: int, content: str) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "type": int(ResponseType.CHANNEL_MESSAGE_WITH_SOURCE),
            "data": {
                "content": content,
                "flags": EPHEMERAL,
            },
        },
        headers={"Retry-After": str(max(1, retry_after))},
    )


def error_embed(title: str, description: str) -> Dict[str, Any]:
    return {"title": f"❌ {title}", "description": description, "color": ERROR_COLOR}


def success_embed(title: str, description: str) -> Dict[str, Any]:
    return {"title": f"✅ {title}", "description": description, "color": SUCCESS_COLOR}
