from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from introcord.util import discord_utils
from introcord.util.discord_utils import (
    build_channel_url,
    can_manage_thread,
    clear_bot_dms,
    format_uptime,
    get_retry_after,
    has_manage_guild,
    has_role,
    is_moderator,
    is_rate_limited,
    is_thread_channel,
    latency_status,
    send_dm,
)

BOT_ID = 42


def http_error(cls, status: int, text: str):
    return cls(MagicMock(status=status, reason=text), text)


def test_rate_limit_detection():
    assert is_rate_limited(SimpleNamespace(status=429)) is True
    assert is_rate_limited(SimpleNamespace(status=403)) is False
    assert is_rate_limited(ValueError("nope")) is False


def test_retry_after_parsing():
    assert get_retry_after(SimpleNamespace(retry_after=1.5)) == 1.5
    assert get_retry_after(SimpleNamespace(retry_after="2")) == 2.0
    assert get_retry_after(SimpleNamespace(retry_after=-1)) is None
    assert get_retry_after(SimpleNamespace(retry_after="soon")) is None
    assert get_retry_after(SimpleNamespace()) is None


def test_thread_channel_detection():
    assert is_thread_channel(SimpleNamespace(type=discord.ChannelType.public_thread)) is True
    assert is_thread_channel(SimpleNamespace(type=discord.ChannelType.text)) is False


def test_permission_helpers():
    admin = SimpleNamespace(id=1, roles=[], guild_permissions=SimpleNamespace(manage_guild=True))
    mod = SimpleNamespace(id=2, roles=[SimpleNamespace(id=77)], guild_permissions=SimpleNamespace(manage_guild=False))
    member = SimpleNamespace(id=3, roles=[], guild_permissions=SimpleNamespace(manage_guild=False))

    assert has_manage_guild(admin) is True
    assert has_manage_guild(None) is False
    assert has_role(mod, "77") is True
    assert has_role(mod, None) is False
    assert is_moderator(admin, "77") is True
    assert is_moderator(mod, "77") is True
    assert is_moderator(member, "77") is False


def test_thread_owner_or_manage_threads_can_manage():
    thread = SimpleNamespace(
        owner_id=1,
        permissions_for=lambda m: SimpleNamespace(manage_threads=m.id == 2),
    )

    assert can_manage_thread(SimpleNamespace(id=1), thread) is True
    assert can_manage_thread(SimpleNamespace(id=2), thread) is True
    assert can_manage_thread(SimpleNamespace(id=3), thread) is False
    assert can_manage_thread(None, thread) is False


def test_channel_url():
    assert build_channel_url(1, 2) == "https://discord.com/channels/1/2"


def test_format_uptime():
    assert format_uptime(5) == "5s"
    assert format_uptime(3661) == "1h 1m 1s"
    assert format_uptime(2 * 86400 + 4) == "2d 4s"
    assert format_uptime(-3) == "0s"


def test_latency_status_buckets():
    assert latency_status(50) == "🟢 Excellent"
    assert latency_status(150) == "🟡 Good"
    assert latency_status(250) == "🟠 Fair"
    assert latency_status(400) == "🔴 Poor"
    assert latency_status(-1) == "N/A"


@pytest.mark.asyncio
async def test_send_dm_reports_closed_dms():
    ok_user = SimpleNamespace(id=1, send=AsyncMock())
    closed_user = SimpleNamespace(id=2, send=AsyncMock(side_effect=http_error(discord.Forbidden, 403, "Forbidden")))

    assert await send_dm(ok_user, content="hi") is True
    ok_user.send.assert_awaited_once_with(content="hi")
    assert await send_dm(closed_user, content="hi") is False


class FakeHistory:
    def __init__(self, messages):
        self._messages = list(messages)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self._messages:
            yield message


def dm_message(message_id: int, author_id: int, delete_error=None):
    return SimpleNamespace(
        id=message_id,
        author=SimpleNamespace(id=author_id),
        delete=AsyncMock(side_effect=delete_error),
    )


@pytest.mark.asyncio
async def test_clear_bot_dms_deletes_only_bot_messages(monkeypatch):
    monkeypatch.setattr(discord_utils.asyncio, "sleep", AsyncMock())
    mine = [dm_message(1, BOT_ID), dm_message(2, BOT_ID, http_error(discord.NotFound, 404, "Not Found"))]
    theirs = dm_message(3, 7)
    channel = SimpleNamespace(history=lambda limit: FakeHistory(mine + [theirs]))
    user = SimpleNamespace(id=7, dm_channel=channel, create_dm=AsyncMock())

    ok, message = await clear_bot_dms(BOT_ID, user)

    assert ok is True
    assert message == "Successfully cleared 1 messages from this bot in your DMs."
    theirs.delete.assert_not_awaited()
    user.create_dm.assert_not_awaited()


@pytest.mark.asyncio
async def test_clear_bot_dms_with_nothing_to_delete():
    channel = SimpleNamespace(history=lambda limit: FakeHistory([dm_message(3, 7)]))
    user = SimpleNamespace(id=7, dm_channel=None, create_dm=AsyncMock(return_value=channel))

    ok, message = await clear_bot_dms(BOT_ID, user)

    assert ok is True
    assert message == "No messages from this bot were found in your DMs."
    user.create_dm.assert_awaited_once()


@pytest.mark.asyncio
async def test_clear_bot_dms_when_dm_channel_unavailable():
    user = SimpleNamespace(
        id=7,
        dm_channel=None,
        create_dm=AsyncMock(side_effect=http_error(discord.Forbidden, 403, "Forbidden")),
    )

    ok, message = await clear_bot_dms(BOT_ID, user)

    assert ok is False
    assert "Cannot access your DMs" in message
