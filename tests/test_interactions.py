import json

import httpx
from sqlalchemy import select

from modbot.domains.bans.models import BannedUser
from modbot.domains.interactions import tokens
from modbot.domains.moderation.validation import REVERT_REASON_MAX
from modbot.domains.presets.models import Preset

from .conftest import (LOG_CHANNEL, MODERATION_CHANNEL, MODERATOR_ID,
                       OTHER_CHANNEL, OUTSIDER_ID, PRESET_ID, TARGET_ID,
                       sign)


def command(subcommand, options=(), user_id=MODERATOR_ID, channel_id=MODERATION_CHANNEL):
    return {
        "type": 2,
        "id": "1",
        "token": "interaction-token",
        "channel_id": channel_id,
        "member": {"user": {"id": user_id, "username": "modname"}},
        "data": {
            "name": "preset",
            "options": [{"name": subcommand, "type": 1, "options": list(options)}],
        },
    }


def option(name, value, focused=False):
    return {"name": name, "type": 3, "value": value, "focused": focused}


def button(custom_id, user_id=MODERATOR_ID, embeds=None):
    payload = {
        "type": 3,
        "token": "interaction-token",
        "channel_id": MODERATION_CHANNEL,
        "data": {"custom_id": custom_id, "component_type": 2},
        "message": {"id": "777777777777777777", "embeds": embeds or [{"title": "Sunset Glow"}]},
    }
    if user_id:
        payload["member"] = {"user": {"id": user_id, "username": "modname"}}
    return payload


def modal(custom_id, field, value, user_id=MODERATOR_ID):
    payload = button(custom_id, user_id=user_id)
    payload["type"] = 5
    payload["data"] = {
        "custom_id": custom_id,
        "components": [{"type": 1, "components": [{"type": 4, "custom_id": field, "value": value}]}],
    }
    return payload


async def test_ping_returns_pong(post_interaction):
    r = await post_interaction({"type": 1})
    assert r.status_code == 200
    assert r.json() == {"type": 1}


async def test_bad_signature_is_rejected_without_detail(client):
    body = json.dumps({"type": 1})
    headers = sign(body)
    r = await client.post("/", content=body.replace("1", "2"), headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid request signature"}


async def test_missing_signature_headers(client):
    r = await client.post("/", content=json.dumps({"type": 1}))
    assert r.status_code == 401


async def test_unknown_interaction_type_is_bad_request(post_interaction):
    r = await post_interaction({"type": 42})
    assert r.status_code == 400
    assert r.json() == {"error": "Unknown interaction type: 42"}


async def test_invalid_json_is_bad_request(client):
    body = "{not json"
    r = await client.post("/", content=body, headers=sign(body))
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid JSON body"


async def test_moderate_approve_defers_then_edits(post_interaction, discord_recorder, preset_recorder):
    r = await post_interaction(
        command("moderate", [option("action", "approve"), option("preset_id", PRESET_ID)])
    )
    assert r.status_code == 200
    assert r.json() == {"type": 5}
    assert r.headers["X-RateLimit-Limit"] == "25"

    method, path, body = preset_recorder.calls("PATCH")[0]
    assert path == f"/api/v1/moderation/{PRESET_ID}/status"
    assert body == {"status": "approved"}

    edits = discord_recorder.calls("PATCH")
    assert edits[0][1].endswith("/interaction-token/messages/@original")
    assert edits[0][2]["embeds"][0]["title"] == "✅ Preset Approved"

    posts = discord_recorder.calls("POST")
    assert posts[0][1] == f"/api/v10/channels/{LOG_CHANNEL}/messages"
    assert posts[0][2]["embeds"][0]["color"] == 0x57F287


async def test_moderate_outside_channel_is_refused(post_interaction, preset_recorder):
    r = await post_interaction(
        command("moderate", [option("action", "pending")], channel_id=OTHER_CHANNEL)
    )
    data = r.json()["data"]
    assert data["flags"] == 64
    assert data["content"] == "This command must be used in the moderation channel."
    assert preset_recorder.requests == []


async def test_moderate_requires_moderator(post_interaction):
    r = await post_interaction(command("moderate", [option("action", "pending")], user_id=OUTSIDER_ID))
    embed = r.json()["data"]["embeds"][0]
    assert "permission" in embed["description"]


async def test_moderate_rejects_malformed_preset_id(post_interaction, preset_recorder):
    r = await post_interaction(
        command("moderate", [option("action", "approve"), option("preset_id", "not-a-uuid")])
    )
    assert r.json()["data"]["embeds"][0]["description"] == "Invalid preset ID format."
    assert preset_recorder.requests == []


async def test_moderate_unknown_action_edits_error(post_interaction, discord_recorder):
    r = await post_interaction(command("moderate", [option("action", "purge")]))
    assert r.json() == {"type": 5}
    embed = discord_recorder.calls("PATCH")[0][2]["embeds"][0]
    assert embed["description"] == "Unknown action: purge"


async def test_command_without_user_is_not_identified(post_interaction):
    payload = command("moderate", [option("action", "pending")])
    del payload["member"]
    r = await post_interaction(payload)
    assert r.json()["data"]["content"] == "Could not identify user."


async def test_unknown_subcommand_is_named(post_interaction):
    r = await post_interaction(command("explode"))
    assert r.json()["data"]["content"] == "Unknown subcommand: explode"


async def test_other_commands_are_not_supported(post_interaction):
    payload = command("moderate")
    payload["data"]["name"] = "dye"
    r = await post_interaction(payload)
    assert "`/dye`" in r.json()["data"]["content"]


async def test_ban_confirm_from_non_moderator_opens_no_modal(post_interaction):
    custom_id = tokens.build_token(tokens.BAN_CONFIRM, TARGET_ID, "bad_user")
    r = await post_interaction(button(custom_id, user_id=OUTSIDER_ID))
    body = r.json()
    assert body["type"] == 4
    assert "do not have permission" in body["data"]["content"]


async def test_button_without_user_is_invalid_even_with_no_moderators(post_interaction, services):
    services.moderators = type(services.moderators)()
    custom_id = tokens.build_token(tokens.BAN_CONFIRM, TARGET_ID, "bad_user")
    r = await post_interaction(button(custom_id, user_id=None))
    assert r.json()["data"]["content"] == "Invalid button interaction."


async def test_ban_confirm_opens_reason_modal(post_interaction):
    custom_id = tokens.build_token(tokens.BAN_CONFIRM, TARGET_ID, "bad_user")
    r = await post_interaction(button(custom_id))
    body = r.json()
    assert body["type"] == 9
    token = tokens.parse_token(body["data"]["custom_id"], tokens.BAN_REASON_MODAL)
    assert token.target_id == TARGET_ID
    assert token.name == "bad_user"


async def test_ban_cancel_updates_message(post_interaction):
    r = await post_interaction(button(tokens.build_token(tokens.BAN_CANCEL, TARGET_ID)))
    body = r.json()
    assert body["type"] == 7
    assert body["data"]["components"] == []
    assert body["data"]["embeds"][0]["title"] == "❌ Ban Cancelled"


async def test_unknown_button_prefix(post_interaction):
    r = await post_interaction(button("mystery_123"))
    assert r.json()["data"]["content"] == "Unknown button action."


async def test_command_without_subcommand_asks_for_one(post_interaction):
    payload = command("moderate")
    payload["data"]["options"] = []
    r = await post_interaction(payload)
    assert r.status_code == 200
    assert r.json() == {"type": 4, "data": {"content": "Please specify a subcommand.", "flags": 64}}


async def test_unknown_modal_prefix(post_interaction, preset_recorder):
    r = await post_interaction(modal("mystery_modal_123", "anything", "some long enough text"))
    data = r.json()["data"]
    assert data["content"] == "Unknown modal submission."
    assert data["flags"] == 64
    assert preset_recorder.requests == []


async def test_select_menus_are_not_supported(post_interaction):
    payload = button("anything")
    payload["data"]["component_type"] = 3
    r = await post_interaction(payload)
    assert r.json()["data"]["content"] == "This component type is not yet supported."


async def test_approve_button_edits_moderation_message(post_interaction, discord_recorder):
    r = await post_interaction(button(tokens.build_token(tokens.PRESET_APPROVE, PRESET_ID)))
    assert r.json() == {"type": 6}
    method, path, body = discord_recorder.calls("PATCH")[0]
    assert path == f"/api/v10/channels/{MODERATION_CHANNEL}/messages/777777777777777777"
    assert body["components"] == []
    assert body["embeds"][0]["fields"][-1]["value"] == "Approved by modname"


async def test_reject_button_opens_modal(post_interaction):
    r = await post_interaction(button(tokens.build_token(tokens.PRESET_REJECT, PRESET_ID)))
    body = r.json()
    assert body["type"] == 9
    assert body["data"]["custom_id"] == f"{tokens.PRESET_REJECT_MODAL}{PRESET_ID}"


async def test_rejection_reason_of_nine_characters_is_refused(post_interaction, preset_recorder):
    custom_id = tokens.build_token(tokens.PRESET_REJECT_MODAL, PRESET_ID)
    r = await post_interaction(modal(custom_id, "rejection_reason", "123456789"))
    assert "at least 10 characters" in r.json()["data"]["embeds"][0]["description"]
    assert preset_recorder.requests == []


async def test_rejection_reason_of_ten_characters_is_accepted(post_interaction, preset_recorder):
    custom_id = tokens.build_token(tokens.PRESET_REJECT_MODAL, PRESET_ID)
    r = await post_interaction(modal(custom_id, "rejection_reason", "1234567890"))
    assert r.json() == {"type": 6}
    assert preset_recorder.calls("PATCH")[0][2] == {"status": "rejected", "reason": "1234567890"}


async def test_revert_reason_over_limit_is_refused(post_interaction, preset_recorder):
    custom_id = tokens.build_token(tokens.PRESET_REVERT_MODAL, PRESET_ID)
    r = await post_interaction(modal(custom_id, "revert_reason", "x" * (REVERT_REASON_MAX + 1)))
    embed = r.json()["data"]["embeds"][0]
    assert embed["description"] == f"The revert reason must be at most {REVERT_REASON_MAX} characters."
    assert preset_recorder.requests == []


async def test_revert_modal_posts_log(post_interaction, preset_recorder, discord_recorder):
    custom_id = tokens.build_token(tokens.PRESET_REVERT_MODAL, PRESET_ID)
    r = await post_interaction(modal(custom_id, "revert_reason", "Edit removed the dyes"))
    assert r.json() == {"type": 6}
    assert preset_recorder.calls("PATCH")[0][1] == f"/api/v1/moderation/{PRESET_ID}/revert"
    log = discord_recorder.calls("POST")[0][2]["embeds"][0]
    assert log["title"].endswith("Edit Reverted")


async def test_ban_reason_modal_bans_and_hides_presets(
    post_interaction, session_factory, discord_recorder
):
    async with session_factory() as db:
        db.add(Preset(id="p1", name="One", author_discord_id=TARGET_ID,
                      author_name="bad_user", status="approved"))
        await db.commit()

    custom_id = tokens.build_token(tokens.BAN_REASON_MODAL, TARGET_ID, "bad_user")
    r = await post_interaction(modal(custom_id, "ban_reason", "Uploading offensive names"))
    body = r.json()
    assert body["type"] == 7
    assert body["data"]["embeds"][0]["title"] == "⏳ Processing Ban..."

    async with session_factory() as db:
        ban = (await db.execute(select(BannedUser))).scalars().one()
        preset = await db.get(Preset, "p1")
    assert ban.discord_id == TARGET_ID
    assert preset.status == "hidden"

    embed = discord_recorder.calls("PATCH")[0][2]["embeds"][0]
    assert embed["fields"][1]["value"] == "1"
    assert discord_recorder.calls("POST")[0][1] == f"/api/v10/channels/{MODERATION_CHANNEL}/messages"


async def test_unban_without_active_ban_never_mutates(
    post_interaction, session_factory, discord_recorder
):
    async with session_factory() as db:
        db.add(Preset(id="p1", name="One", author_discord_id=TARGET_ID,
                      author_name="bad_user", status="hidden"))
        await db.commit()

    r = await post_interaction(command("unban_user", [option("user", TARGET_ID)]))
    assert r.json() == {"type": 5, "data": {"flags": 64}}

    embed = discord_recorder.calls("PATCH")[0][2]["embeds"][0]
    assert "not currently banned" in embed["description"]
    async with session_factory() as db:
        assert (await db.get(Preset, "p1")).status == "hidden"
        assert (await db.execute(select(BannedUser))).first() is None


async def test_ban_user_shows_confirmation(post_interaction, session_factory):
    async with session_factory() as db:
        db.add(Preset(id="p1", name="One", author_discord_id=TARGET_ID, author_name="bad_user"))
        await db.commit()

    r = await post_interaction(command("ban_user", [option("user", TARGET_ID)]))
    data = r.json()["data"]
    assert data["flags"] == 64
    buttons = data["components"][0]["components"]
    confirm = tokens.parse_token(buttons[0]["custom_id"], tokens.BAN_CONFIRM)
    assert confirm.target_id == TARGET_ID
    assert confirm.name == "bad_user"
    assert "/presets/p1" in data["embeds"][0]["fields"][3]["value"]


async def test_autocomplete_ban_user_lists_authors(post_interaction, session_factory):
    async with session_factory() as db:
        db.add(Preset(id="p1", name="One", author_discord_id=TARGET_ID, author_name="bad_user"))
        await db.commit()

    payload = command("ban_user", [option("user", "bad", focused=True)])
    payload["type"] = 4
    r = await post_interaction(payload)
    body = r.json()
    assert body["type"] == 8
    assert body["data"]["choices"] == [
        {"name": f"bad_user (discord:{TARGET_ID}) - 1 presets", "value": TARGET_ID}
    ]


async def test_autocomplete_preset_search(post_interaction):
    payload = command("moderate", [option("preset_id", "sun", focused=True)])
    payload["type"] = 4
    r = await post_interaction(payload)
    assert r.json()["data"]["choices"] == [
        {"name": "Sunset Glow (3★) by dyer", "value": PRESET_ID}
    ]


async def test_autocomplete_failure_yields_no_choices(post_interaction, services):
    async def boom(query, limit=25):
        raise RuntimeError("db down")

    services.bans.search_preset_authors = boom
    payload = command("ban_user", [option("user", "bad", focused=True)])
    payload["type"] = 4
    r = await post_interaction(payload)
    assert r.status_code == 200
    assert r.json()["data"]["choices"] == []


async def test_rate_limited_commands_get_429_when_enforced(post_interaction, services):
    services.settings.RATE_LIMIT_ENFORCE = True
    limiter = services.rate_limiter
    for _ in range(25):
        await limiter.increment(MODERATOR_ID, "command")

    r = await post_interaction(command("moderate", [option("action", "pending")]))
    assert r.status_code == 429
    assert int(r.headers["Retry-After"]) >= 1
    data = r.json()["data"]
    assert data["content"] == "Rate limit exceeded. Please wait before trying again."
    assert data["flags"] == 64


async def test_failed_approval_keeps_original_embed(post_interaction, preset_recorder, discord_recorder):
    preset_recorder.handler = lambda r: httpx.Response(409, json={"message": "Preset already approved"})
    original = {"title": "Sunset Glow", "description": "by dyer", "fields": [{"name": "Votes", "value": "3"}]}
    r = await post_interaction(button(tokens.build_token(tokens.PRESET_APPROVE, PRESET_ID), embeds=[original]))
    assert r.json() == {"type": 6}

    embed = discord_recorder.calls("PATCH")[0][2]["embeds"][0]
    assert embed["title"] == "Sunset Glow"
    assert embed["fields"][0] == {"name": "Votes", "value": "3"}
    assert embed["fields"][-1]["value"] == "Failed to approve: Preset already approved"
    assert discord_recorder.calls("POST") == []
