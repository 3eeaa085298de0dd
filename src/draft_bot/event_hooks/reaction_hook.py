"""
Map reactions on announcements to joining and leaving sessions.
"""

from __future__ import annotations

import logging

import discord

from draft_bot.errors import DraftBotError

logger = logging.getLogger(__name__)


async def handle(
    client: discord.Client, payload: discord.RawReactionActionEvent, added: bool
) -> None:
    """
    Join (``added``) or leave the session announced by the reacted message.

    Domain errors are sent to the reacting user as a DM.
    """

    # Skip DM reactions.
    if payload.guild_id is None:
        return

    # Skip the bot's own reactions and other bots.
    bot_user = getattr(client, "user", None)
    if bot_user is not None and payload.user_id == bot_user.id:
        return
    if getattr(payload.member, "bot", False):
        return

    if str(payload.emoji) != client.config.core.EMOJI:
        return

    guild = client.get_guild(payload.guild_id)
    if guild is None:
        logger.debug("Ignoring reaction from unknown guild %s", payload.guild_id)
        return

    server = client.server_for(guild)
    message_id = str(payload.message_id)
    user_id = str(payload.user_id)

    try:
        if added:
            handled = await server.join(message_id, user_id)
        else:
            handled = await server.leave(message_id, user_id)
    except DraftBotError as exc:
        logger.info("Reaction by %s on %s rejected: %s", user_id, message_id, exc)
        user = await server.resolver.resolve_user(user_id)
        await user.send_dm(client.config.core.format_error(exc))
        return
    except Exception:
        logger.exception("Failed to handle reaction by %s on message %s", user_id, message_id)
        return

    if handled:
        logger.info(
            "User %s %s session %s in server %s",
            user_id,
            "joined" if added else "left",
            message_id,
            payload.guild_id,
        )
