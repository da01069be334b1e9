from typing import Any, Dict, List, Optional

import httpx

from modbot.core.config import Settings
from modbot.shared.utils.logger import get_logger
from modbot.shared.utils.sanitizer import sanitize_url

logger = get_logger(__name__)

EPHEMERAL_FLAG = 64


def _message_body(
    content: Optional[str] = None,
    embeds: Optional[List[Dict[str, Any]]] = None,
    components: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if content:
        body["content"] = content
    if embeds is not None:
        body["embeds"] = embeds
    if components is not None:
        body["components"] = components
    return body


class DiscordClient:
    """
    Discord REST calls made after the interaction response.

    Channel messages use the bot token; follow-ups and edits of the original
    response are addressed by the interaction token and need no auth header.
    Failures are logged and returned, never raised as HTTP errors.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.DISCORD_API_BASE,
            transport=transport,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def close(self):
        await self._client.aclose()

    def _bot_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bot {self.settings.DISCORD_TOKEN}"}

    def _webhook_path(self, token: str) -> str:
        return f"/webhooks/{self.settings.DISCORD_CLIENT_ID}/{token}"

    async def _send(self, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Discord API {method} {sanitize_url(path)} failed: {type(e).__name__}")
            return None
        if not response.is_success:
            logger.warning(
                f"Discord API {method} {sanitize_url(response.request.url)} "
                f"returned {response.status_code}"
            )
        return response

    async def send_message(self, channel_id: str, content=None, embeds=None, components=None):
        return await self._send(
            "POST",
            f"/channels/{channel_id}/messages",
            json=_message_body(content, embeds, components),
            headers=self._bot_headers(),
        )

    async def edit_message(
        self, channel_id: str, message_id: str, content=None, embeds=None, components=None
    ):
        return await self._send(
            "PATCH",
            f"/channels/{channel_id}/messages/{message_id}",
            json=_message_body(content, embeds, components),
            headers=self._bot_headers(),
        )

    async def send_follow_up(
        self, token: str, content=None, embeds=None, components=None, ephemeral: bool = False
    ):
        body = _message_body(content, embeds, components)
        if ephemeral:
            body["flags"] = EPHEMERAL_FLAG
        return await self._send("POST", self._webhook_path(token), json=body)

    async def edit_original_response(self, token: str, content=None, embeds=None, components=None):
        return await self._send(
            "PATCH",
            f"{self._webhook_path(token)}/messages/@original",
            json=_message_body(content, embeds, components),
        )

    async def delete_original_response(self, token: str):
        return await self._send("DELETE", f"{self._webhook_path(token)}/messages/@original")
