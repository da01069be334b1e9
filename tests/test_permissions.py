import logging

from modbot.domains.moderation.permissions import (ModeratorRegistry,
                                                   is_in_moderation_channel,
                                                   is_valid_snowflake)
from modbot.domains.moderation.validation import (REASON_MISSING,
                                                  REASON_TOO_LONG,
                                                  REASON_TOO_SHORT,
                                                  check_reason, is_valid_uuid)


def test_snowflake_shape():
    assert is_valid_snowflake("12345678901234567")
    assert is_valid_snowflake("1234567890123456789")
    assert not is_valid_snowflake("1234567890123456")
    assert not is_valid_snowflake("12345678901234567890")
    assert not is_valid_snowflake("12345678901234567a")
    assert not is_valid_snowflake(None)


def test_registry_drops_invalid_ids(caplog):
    with caplog.at_level(logging.WARNING):
        registry = ModeratorRegistry.from_csv(" 123456789012345678 , admin,, 223456789012345678")
    assert len(registry) == 2
    assert "123456789012345678" in registry
    assert not registry.is_moderator("admin")
    assert "admin" in caplog.text


def test_empty_registry_allows_nobody():
    assert not ModeratorRegistry.from_csv("").is_moderator("123456789012345678")
    assert not ModeratorRegistry.from_csv(None).is_moderator(None)


def test_moderation_channel_fails_closed():
    assert is_in_moderation_channel("1", "1")
    assert not is_in_moderation_channel("1", "2")
    assert not is_in_moderation_channel("1", None)


def test_reason_boundaries():
    assert check_reason("123456789") == REASON_TOO_SHORT
    assert check_reason("1234567890") is None
    assert check_reason("   ") == REASON_MISSING
    assert check_reason(None) == REASON_MISSING
    assert check_reason("x" * 201, max_length=200) == REASON_TOO_LONG


def test_uuid_v4_only():
    assert is_valid_uuid("3f1c2b9e-8d4a-4c6b-9a2e-1b2c3d4e5f60")
    assert not is_valid_uuid("3f1c2b9e-8d4a-1c6b-9a2e-1b2c3d4e5f60")
    assert not is_valid_uuid("")
