from __future__ import annotations

import logging
from datetime import datetime

import discord

from draft_bot.database import ServerId, SessionId
from draft_bot.scheduling import (
    ScheduledEntry,
    SessionScheduler,
    load_schedule,
    scheduled_overrides,
)

logger = logging.getLogger(__name__)


async def handle(client: discord.Client) -> None:
    """Drop stale sessions, then start the recurring session scheduler."""
    logger.info(f"Logged in as {client.user.name} (ID: {client.user.id})")

    await client.change_presence(activity=discord.Game(name=client.config.core.BOT_ACTIVITY))

    async def announcement_exists(server_id: ServerId, session_id: SessionId) -> bool:
        guild = client.get_guild(int(server_id))
        if guild is None:
            logger.warning("Not a member of server %s; keeping session %s", server_id, session_id)
            return True
        return await client.server_for(guild).resolver.notifier.announcement_exists(session_id)

    await client.context.reconcile(announcement_exists)

    if client.scheduler is None:
        entries = load_schedule(client.config.schedule.SCHEDULE_FILE)
        client.scheduler = SessionScheduler(entries, _scheduled_creator(client))
    client.scheduler.start()


def _scheduled_creator(client: discord.Client):
    async def create(entry: ScheduledEntry, when: datetime) -> None:
        guild = client.get_guild(int(entry.server_id))
        if guild is None:
            logger.warning("Skipping scheduled session: not a member of server %s", entry.server_id)
            return
        server = client.server_for(guild)
        session = await server.create_session(None, entry.template, scheduled_overrides(entry, when))
        logger.info("Created scheduled session %s in server %s", session.session_id, entry.server_id)

    return create
