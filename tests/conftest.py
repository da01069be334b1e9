import json
import re

import httpx
import pytest
from fakeredis import aioredis as fake_aioredis
from nacl.signing import SigningKey
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from modbot.core.config import Settings
from modbot.core.database import Base
from modbot.core.services import BotServices
from modbot.domains.bans import models as ban_models  # noqa: F401
from modbot.domains.bans.service import BanService
from modbot.domains.discord.client import DiscordClient
from modbot.domains.moderation.permissions import ModeratorRegistry
from modbot.domains.presets import models as preset_models  # noqa: F401
from modbot.domains.presets.client import PresetApiClient
from modbot.domains.ratelimit.service import RateLimiter
from modbot.main import create_app
from modbot.shared.utils.security import SIGNATURE_HEADER, TIMESTAMP_HEADER

MODERATOR_ID = "123456789012345678"
OUTSIDER_ID = "876543210987654321"
TARGET_ID = "555555555555555555"
MODERATION_CHANNEL = "111111111111111111"
OTHER_CHANNEL = "333333333333333333"
LOG_CHANNEL = "222222222222222222"
PRESET_ID = "3f1c2b9e-8d4a-4c6b-9a2e-1b2c3d4e5f60"

_SIGNING_KEY = SigningKey.generate()
PUBLIC_KEY = _SIGNING_KEY.verify_key.encode().hex()


def sign(body: str, timestamp: str = "1700000000") -> dict:
    signature = _SIGNING_KEY.sign(timestamp.encode() + body.encode()).signature.hex()
    return {SIGNATURE_HEADER: signature, TIMESTAMP_HEADER: timestamp}


class Recorder:
    """MockTransport handler that keeps every request it sees."""

    def __init__(self, handler=None):
        self.requests = []
        self.handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        return httpx.Response(200, json={})

    def calls(self, method=None):
        return [
            (r.method, r.url.path, json.loads(r.content) if r.content else None)
            for r in self.requests
            if method is None or r.method == method
        ]


def preset_payload(preset_id=PRESET_ID, status="pending", name="Sunset Glow"):
    return {
        "id": preset_id,
        "name": name,
        "author_name": "dyer",
        "author_discord_id": TARGET_ID,
        "vote_count": 3,
        "status": status,
    }


def preset_api_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    status_match = re.match(r"^/api/v1/moderation/([^/]+)/status$", path)
    if request.method == "PATCH" and status_match:
        body = json.loads(request.content)
        return httpx.Response(
            200, json={"preset": preset_payload(status_match.group(1), body["status"])}
        )
    revert_match = re.match(r"^/api/v1/moderation/([^/]+)/revert$", path)
    if request.method == "PATCH" and revert_match:
        return httpx.Response(200, json={"preset": preset_payload(revert_match.group(1), "approved")})
    if path == "/api/v1/moderation/pending":
        return httpx.Response(200, json={"presets": [preset_payload()]})
    if path == "/api/v1/moderation/stats":
        return httpx.Response(200, json={"stats": {"pending_count": 2, "approved_count": 5}})
    if path == "/api/v1/presets":
        return httpx.Response(200, json={"presets": [preset_payload()], "total": 1})
    return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def settings():
    return Settings(
        DISCORD_PUBLIC_KEY=PUBLIC_KEY,
        DISCORD_TOKEN="bot-token",
        DISCORD_CLIENT_ID="999999999999999999",
        DISCORD_API_BASE="https://discord.test/api/v10",
        PRESETS_API_URL="https://presets.test",
        BOT_API_SECRET="api-secret",
        BOT_SIGNING_SECRET="signing-secret",
        MODERATOR_IDS=f"{MODERATOR_ID},not-a-snowflake",
        MODERATION_CHANNEL_ID=MODERATION_CHANNEL,
        SUBMISSION_LOG_CHANNEL_ID=LOG_CHANNEL,
    )


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bot.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def redis_client():
    return fake_aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def discord_recorder():
    return Recorder()


@pytest.fixture
def preset_recorder():
    return Recorder(preset_api_handler)


@pytest.fixture
async def services(settings, session_factory, redis_client, discord_recorder, preset_recorder):
    services = BotServices(
        settings=settings,
        moderators=ModeratorRegistry.from_csv(settings.MODERATOR_IDS),
        preset_api=PresetApiClient(settings, transport=httpx.MockTransport(preset_recorder)),
        discord=DiscordClient(settings, transport=httpx.MockTransport(discord_recorder)),
        bans=BanService(session_factory=session_factory, web_url=settings.PRESETS_WEB_URL),
        rate_limiter=RateLimiter(redis_client),
    )
    yield services
    await services.close()


@pytest.fixture
async def client(services):
    app = create_app(services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def post_interaction(client):
    async def _post(payload):
        body = json.dumps(payload)
        headers = {"Content-Type": "application/json", **sign(body)}
        return await client.post("/", content=body, headers=headers)

    return _post
