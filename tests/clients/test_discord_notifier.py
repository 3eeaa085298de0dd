import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord

from draft_bot.clients.notifier import DiscordNotifier


def _http_error(cls, status):
    return cls(SimpleNamespace(status=status, reason="error"), "error")


def _setup(channels=None, members=None):
    message = SimpleNamespace(
        id=555,
        edit=AsyncMock(),
        delete=AsyncMock(),
        add_reaction=AsyncMock(),
    )
    channel = SimpleNamespace(
        name="draft-announcements",
        send=AsyncMock(return_value=message),
        fetch_message=AsyncMock(return_value=message),
    )
    members = members or {}
    guild = SimpleNamespace(
        id=7,
        text_channels=[channel] if channels is None else channels,
        create_text_channel=AsyncMock(return_value=channel),
        get_member=lambda uid: members.get(uid),
    )
    user = SimpleNamespace(send=AsyncMock(), display_name="Global")
    client = SimpleNamespace(
        get_user=lambda uid: user if uid == 1 else None,
        fetch_user=AsyncMock(return_value=user),
    )
    return DiscordNotifier(client, guild, "draft-announcements"), client, guild, channel, message, user


def test_post_and_edit_announcement():
    notifier, _, _, channel, message, _ = _setup()

    async def scenario():
        session_id = await notifier.post_announcement("Setting up")
        edited = await notifier.edit_announcement(session_id, "Ready")
        reacted = await notifier.react_to_announcement(session_id, "🌟")
        deleted = await notifier.delete_announcement(session_id)
        return session_id, edited, reacted, deleted

    session_id, edited, reacted, deleted = asyncio.run(scenario())

    assert session_id == "555"
    assert (edited, reacted, deleted) == (True, True, True)
    channel.fetch_message.assert_awaited_with(555)
    message.edit.assert_awaited_once_with(content="Ready")
    message.add_reaction.assert_awaited_once_with("🌟")


def test_missing_channel_is_created():
    notifier, _, guild, _, _, _ = _setup(channels=[])

    assert asyncio.run(notifier.post_announcement("hi")) == "555"
    guild.create_text_channel.assert_awaited_once_with("draft-announcements")


def test_announcement_exists_only_false_on_not_found():
    notifier, _, _, channel, _, _ = _setup()

    channel.fetch_message.side_effect = _http_error(discord.NotFound, 404)
    assert asyncio.run(notifier.announcement_exists("555")) is False

    channel.fetch_message.side_effect = _http_error(discord.HTTPException, 500)
    assert asyncio.run(notifier.announcement_exists("555")) is True


def test_failures_are_reported_not_raised():
    notifier, _, _, channel, message, user = _setup()
    message.edit.side_effect = _http_error(discord.HTTPException, 500)
    user.send.side_effect = _http_error(discord.Forbidden, 403)

    assert asyncio.run(notifier.edit_announcement("555", "x")) is False
    assert asyncio.run(notifier.send_direct("1", "hello")) is False

    channel.send.side_effect = _http_error(discord.HTTPException, 500)
    assert asyncio.run(notifier.post_announcement("x")) is None

    channel.fetch_message.side_effect = _http_error(discord.NotFound, 404)
    assert asyncio.run(notifier.delete_announcement("555")) is False


def test_send_direct_fetches_uncached_users():
    notifier, client, _, _, _, user = _setup()

    assert asyncio.run(notifier.send_direct("2", "hello")) is True
    client.fetch_user.assert_awaited_once_with(2)
    user.send.assert_awaited_once_with("hello")


def test_display_name_prefers_guild_member():
    notifier, _, _, _, _, _ = _setup(members={3: SimpleNamespace(display_name="Nick")})

    assert notifier.display_name("3") == "Nick"
    assert notifier.display_name("1") == "Global"
    assert notifier.display_name("9") is None
