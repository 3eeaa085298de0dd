"""
Process-wide state with an explicit lifecycle.

A :class:`BotContext` is built once at startup and closed on shutdown. It owns
the storage driver, the session template cache and the registry of
:class:`DraftServer` instances keyed by server id. The registry is filled
lazily and never evicted; it is bounded by the number of servers the bot is
in. Tests build as many independent contexts as they need.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from draft_bot.config import Config
from draft_bot.database import DBDriver, ServerId, SessionId, build_driver

from .notifier import Notifier
from .resolver import Resolver
from .server import DraftServer
from .templates import SessionTemplateCache

logger = logging.getLogger(__name__)

AnnouncementCheck = Callable[[ServerId, SessionId], Awaitable[bool]]


class BotContext:
    def __init__(
        self,
        config: Config,
        driver: DBDriver | None = None,
        templates: SessionTemplateCache | None = None,
    ) -> None:
        self.config = config
        self.driver = driver or build_driver(config.storage)
        self.templates = templates or SessionTemplateCache.from_file(config.sessions.TEMPLATES_FILE)
        self._servers: dict[ServerId, DraftServer] = {}
        self._closed = False

    def get_server(self, server_id: ServerId, notifier_factory: Callable[[], Notifier]) -> DraftServer:
        """Return the server for ``server_id``, creating it with a new notifier on first use."""

        if self._closed:
            raise RuntimeError("BotContext is closed")

        server = self._servers.get(server_id)
        if server is None:
            resolver = Resolver(
                server_id,
                self.driver,
                notifier_factory(),
                cache_size=self.config.storage.SESSION_CACHE_SIZE,
            )
            server = DraftServer(
                resolver,
                self.config.sessions,
                templates=self.templates,
                emoji=self.config.core.EMOJI,
            )
            self._servers[server_id] = server
            logger.info("Registered server %s", server_id)
        return server

    def find_server(self, server_id: ServerId) -> DraftServer | None:
        return self._servers.get(server_id)

    @property
    def server_ids(self) -> list[ServerId]:
        return list(self._servers)

    async def reconcile(self, announcement_exists: AnnouncementCheck) -> int:
        """
        Drop stored sessions whose announcement was deleted while offline.

        Membership links to a dropped session are removed from every user of
        that server. Returns the number of sessions dropped.
        """

        dropped = 0
        for snapshot in await self.driver.get_all_sessions():
            server_id, session_id = snapshot.server_id, snapshot.session_id
            if await announcement_exists(server_id, session_id):
                continue

            logger.info("Dropping session %s of server %s: announcement is gone", session_id, server_id)
            await self.driver.delete_session_from_database(server_id, session_id)
            for user in await self.driver.get_all_users_from_server(server_id):
                if (
                    session_id in user.joined_session_ids
                    or session_id in user.waitlisted_session_ids
                    or user.created_session_id == session_id
                ):
                    await user.session_closed(session_id)

            server = self._servers.get(server_id)
            if server is not None:
                server.resolver.forget_session(session_id)
            dropped += 1

        if dropped:
            logger.info("Reconciliation dropped %d stale session(s)", dropped)
        return dropped

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._servers.clear()
        await self.driver.close()
        logger.info("BotContext closed")
