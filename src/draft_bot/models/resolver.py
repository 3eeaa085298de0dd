"""
Per-server lookup facade with a bounded recency cache of session views.

Session views are cached in an :class:`collections.OrderedDict` ordered from
least to most recently used. Resolving a cached id moves it to the
most-recently-used end; resolving an unknown id fetches it from the driver
and appends it. Once the cache holds more than ``cache_size`` entries the
least recently used ones are dropped. Views write through on every mutation,
so dropping an entry never loses data.

User lookups are not cached: every :meth:`Resolver.resolve_user` call wraps a
freshly fetched view.

The resolver also owns one :class:`asyncio.Lock` per session id, used by
:class:`~draft_bot.models.session.Session` to serialize its mutating
operations.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict

from draft_bot.database import DBDriver, ServerId, SessionId, SessionView, UserId

from .notifier import Notifier
from .session import Session
from .user import DraftUser

logger = logging.getLogger(__name__)

DEFAULT_SESSION_CACHE_SIZE = 5


class Resolver:
    def __init__(
        self,
        server_id: ServerId,
        driver: DBDriver,
        notifier: Notifier,
        cache_size: int = DEFAULT_SESSION_CACHE_SIZE,
    ) -> None:
        if cache_size < 1:
            raise ValueError("cache_size must be >= 1")
        self.server_id = server_id
        self.driver = driver
        self.notifier = notifier
        self._cache_size = cache_size
        self._session_views: OrderedDict[SessionId, SessionView] = OrderedDict()
        self._session_locks: dict[SessionId, asyncio.Lock] = {}

    async def resolve_user(self, user_id: UserId) -> DraftUser:
        view = await self.driver.get_or_create_user_view(self.server_id, user_id)
        return DraftUser(view, self)

    async def resolve_session(self, session_id: SessionId) -> Session:
        """Return a new :class:`Session` for ``session_id``; raises ``SessionNotFoundError``."""

        view = await self._get_session_view(session_id)
        return Session(view, self)

    async def _get_session_view(self, session_id: SessionId) -> SessionView:
        view = self._session_views.get(session_id)
        if view is not None:
            self._session_views.move_to_end(session_id)
            return view

        view = await self.driver.get_session_view(self.server_id, session_id)
        self._session_views[session_id] = view

        while len(self._session_views) > self._cache_size:
            evicted_id, _ = self._session_views.popitem(last=False)
            logger.debug("Evicted session %s from cache for server %s", evicted_id, self.server_id)

        return view

    def session_lock(self, session_id: SessionId) -> asyncio.Lock:
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._session_locks[session_id] = lock
        return lock

    def forget_session(self, session_id: SessionId) -> None:
        """Drop any cached view and lock for a deleted session."""

        self._session_views.pop(session_id, None)
        self._session_locks.pop(session_id, None)

    @property
    def cached_session_ids(self) -> list[SessionId]:
        """Cached ids ordered least -> most recently used."""

        return list(self._session_views)
