"""
Client for the upstream preset API.

Requests carry the bearer secret, the acting moderator and, when a signing
secret is configured, an HMAC signature (see shared.utils.security). The
API is reached either in-process through an ASGI binding or over HTTP at
PRESETS_API_URL; callers do not see the difference.
"""
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from modbot.core.config import Settings
from modbot.domains.presets.entities import PresetFilters, PresetStatus
from modbot.domains.presets.schemas import (CommunityPreset,
                                            ModerationLogEntry,
                                            ModerationStats,
                                            PresetListResponse)
from modbot.shared.exceptions import PresetAPIError
from modbot.shared.utils.logger import get_logger, get_request_id
from modbot.shared.utils.sanitizer import sanitize_error_message
from modbot.shared.utils.security import generate_request_signature

logger = get_logger(__name__)

BINDING_BASE_URL = "http://internal"


class PresetApiClient:
    def __init__(
        self,
        settings: Settings,
        app=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self._has_binding = app is not None
        self._clock = clock
        if app is not None:
            transport = httpx.ASGITransport(app=app)
            base_url = BINDING_BASE_URL
        else:
            base_url = settings.PRESETS_API_URL or ""
        self._client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def is_enabled(self) -> bool:
        return self._has_binding or bool(
            self.settings.PRESETS_API_URL and self.settings.BOT_API_SECRET
        )

    async def close(self):
        await self._client.aclose()

    def _headers(self, actor_id: Optional[str], actor_name: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}

        request_id = get_request_id()
        if request_id and request_id != "-":
            headers["X-Request-ID"] = request_id

        if self.settings.BOT_API_SECRET:
            headers["Authorization"] = f"Bearer {self.settings.BOT_API_SECRET}"

        if actor_id:
            headers["X-User-Discord-ID"] = actor_id
        if actor_name:
            headers["X-User-Discord-Name"] = actor_name

        if self.settings.BOT_SIGNING_SECRET:
            timestamp = int(self._clock())
            headers["X-Request-Timestamp"] = str(timestamp)
            headers["X-Request-Signature"] = generate_request_signature(
                timestamp, actor_id, actor_name, self.settings.BOT_SIGNING_SECRET
            )
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not self.is_enabled:
            raise PresetAPIError(503, "Preset API not configured")

        try:
            response = await self._client.request(
                method,
                path,
                json=body,
                params=params,
                headers=self._headers(actor_id, actor_name),
            )
        except httpx.HTTPError as e:
            logger.error(f"Preset API request failed: {method} {path}: {sanitize_error_message(e)}")
            raise PresetAPIError(500, "Failed to communicate with preset API", e)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            message = (
                data.get("message")
                or data.get("error")
                or f"API request failed with status {response.status_code}"
            )
            raise PresetAPIError(response.status_code, message, data)
        return data

    async def get_presets(self, filters: Optional[PresetFilters] = None) -> PresetListResponse:
        params = (filters or PresetFilters()).to_params()
        data = await self._request("GET", "/api/v1/presets", params=params or None)
        return PresetListResponse.model_validate(data)

    async def get_preset(self, preset_id: str) -> Optional[CommunityPreset]:
        try:
            data = await self._request("GET", f"/api/v1/presets/{preset_id}")
        except PresetAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return CommunityPreset.model_validate(data)

    async def get_pending_presets(
        self, moderator_id: str, moderator_name: Optional[str] = None
    ) -> List[CommunityPreset]:
        data = await self._request(
            "GET", "/api/v1/moderation/pending", actor_id=moderator_id, actor_name=moderator_name
        )
        return [CommunityPreset.model_validate(p) for p in data.get("presets", [])]

    async def _set_status(
        self,
        preset_id: str,
        status: PresetStatus,
        moderator_id: str,
        reason: Optional[str],
        moderator_name: Optional[str],
    ) -> CommunityPreset:
        body: Dict[str, Any] = {"status": status.value}
        if reason:
            body["reason"] = reason
        data = await self._request(
            "PATCH",
            f"/api/v1/moderation/{preset_id}/status",
            body=body,
            actor_id=moderator_id,
            actor_name=moderator_name,
        )
        return CommunityPreset.model_validate(data["preset"])

    async def approve_preset(
        self,
        preset_id: str,
        moderator_id: str,
        reason: Optional[str] = None,
        moderator_name: Optional[str] = None,
    ) -> CommunityPreset:
        return await self._set_status(
            preset_id, PresetStatus.APPROVED, moderator_id, reason, moderator_name
        )

    async def reject_preset(
        self,
        preset_id: str,
        moderator_id: str,
        reason: str,
        moderator_name: Optional[str] = None,
    ) -> CommunityPreset:
        return await self._set_status(
            preset_id, PresetStatus.REJECTED, moderator_id, reason, moderator_name
        )

    async def revert_preset(
        self,
        preset_id: str,
        reason: str,
        moderator_id: str,
        moderator_name: Optional[str] = None,
    ) -> CommunityPreset:
        data = await self._request(
            "PATCH",
            f"/api/v1/moderation/{preset_id}/revert",
            body={"reason": reason},
            actor_id=moderator_id,
            actor_name=moderator_name,
        )
        return CommunityPreset.model_validate(data["preset"])

    async def get_moderation_stats(self, moderator_id: str) -> ModerationStats:
        data = await self._request("GET", "/api/v1/moderation/stats", actor_id=moderator_id)
        return ModerationStats.model_validate(data.get("stats", {}))

    async def get_moderation_history(
        self, preset_id: str, moderator_id: str
    ) -> List[ModerationLogEntry]:
        data = await self._request(
            "GET", f"/api/v1/moderation/{preset_id}/history", actor_id=moderator_id
        )
        return [ModerationLogEntry.model_validate(e) for e in data.get("history", [])]

    async def search_presets_for_autocomplete(
        self, query: str, status: str = PresetStatus.PENDING.value, limit: int = 25
    ) -> List[Dict[str, str]]:
        """Autocomplete choices; errors are logged and yield no choices."""
        filters = PresetFilters(status=status, limit=limit, search=query or None)
        try:
            response = await self.get_presets(filters)
        except PresetAPIError as e:
            logger.warning(f"Preset autocomplete search failed: {sanitize_error_message(e)}")
            return []

        choices = []
        for preset in response.presets:
            name = f"{preset.name} ({preset.vote_count}★)"
            if preset.author_name:
                name += f" by {preset.author_name}"
            choices.append({"name": name, "value": preset.id})
        return choices
