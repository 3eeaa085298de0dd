"""
Discord-backed implementation of :class:`draft_bot.models.notifier.Notifier`.

One notifier serves one guild. Announcements live in the text channel named
by ``core.DRAFT_CHANNEL_NAME``; the channel is created on first use when the
guild lacks one. Every Discord failure is logged and reported as ``False`` /
``None`` so the session core keeps going.
"""

from __future__ import annotations

import logging

import discord

from draft_bot.database import SessionId, UserId

logger = logging.getLogger(__name__)


class DiscordNotifier:
    def __init__(self, client: discord.Client, guild: discord.Guild, channel_name: str) -> None:
        self._client = client
        self._guild = guild
        self._channel_name = channel_name
        self._channel: discord.TextChannel | None = None

    async def _get_channel(self) -> discord.TextChannel | None:
        if self._channel is not None:
            return self._channel

        channel = discord.utils.get(self._guild.text_channels, name=self._channel_name)
        if channel is None:
            try:
                channel = await self._guild.create_text_channel(self._channel_name)
                logger.info("Created channel #%s in guild %s", self._channel_name, self._guild.id)
            except discord.HTTPException as exc:
                logger.error(
                    "Could not create channel #%s in guild %s: %s",
                    self._channel_name,
                    self._guild.id,
                    exc,
                )
                return None
        self._channel = channel
        return channel

    async def _fetch_announcement(self, session_id: SessionId) -> discord.Message | None:
        channel = await self._get_channel()
        if channel is None:
            return None
        try:
            return await channel.fetch_message(int(session_id))
        except discord.NotFound:
            logger.debug("Announcement %s not found in guild %s", session_id, self._guild.id)
        except discord.HTTPException as exc:
            logger.warning("Failed to fetch announcement %s: %s", session_id, exc)
        return None

    async def send_direct(self, user_id: UserId, text: str) -> bool:
        try:
            user = self._client.get_user(int(user_id)) or await self._client.fetch_user(int(user_id))
            await user.send(text)
            return True
        except (discord.Forbidden, discord.NotFound) as exc:
            logger.info("Cannot DM user %s: %s", user_id, exc)
        except discord.HTTPException as exc:
            logger.warning("DM to user %s failed: %s", user_id, exc)
        return False

    async def post_announcement(self, content: str) -> SessionId | None:
        channel = await self._get_channel()
        if channel is None:
            return None
        try:
            message = await channel.send(content)
        except discord.HTTPException as exc:
            logger.error("Failed to post announcement in guild %s: %s", self._guild.id, exc)
            return None
        return str(message.id)

    async def edit_announcement(self, session_id: SessionId, content: str) -> bool:
        message = await self._fetch_announcement(session_id)
        if message is None:
            return False
        try:
            await message.edit(content=content)
            return True
        except discord.HTTPException as exc:
            logger.warning("Failed to edit announcement %s: %s", session_id, exc)
            return False

    async def delete_announcement(self, session_id: SessionId) -> bool:
        message = await self._fetch_announcement(session_id)
        if message is None:
            return False
        try:
            await message.delete()
            return True
        except discord.HTTPException as exc:
            logger.warning("Failed to delete announcement %s: %s", session_id, exc)
            return False

    async def react_to_announcement(self, session_id: SessionId, emoji: str) -> bool:
        message = await self._fetch_announcement(session_id)
        if message is None:
            return False
        try:
            await message.add_reaction(emoji)
            return True
        except discord.HTTPException as exc:
            logger.warning("Failed to react to announcement %s: %s", session_id, exc)
            return False

    async def announcement_exists(self, session_id: SessionId) -> bool:
        channel = await self._get_channel()
        if channel is None:
            # Without a channel we cannot tell; keep the session.
            return True
        try:
            await channel.fetch_message(int(session_id))
            return True
        except discord.NotFound:
            return False
        except discord.HTTPException as exc:
            logger.warning("Could not verify announcement %s: %s", session_id, exc)
            return True

    def display_name(self, user_id: UserId) -> str | None:
        member = self._guild.get_member(int(user_id))
        if member is not None:
            return member.display_name
        user = self._client.get_user(int(user_id))
        return user.display_name if user is not None else None


__all__ = ["DiscordNotifier"]
