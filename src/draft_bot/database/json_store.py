"""
File-backed JSON document backend.

The document holds two top-level arrays::

    {"Sessions": [SessionRecord-as-dict, ...], "Users": [UserRecord-as-dict, ...]}

The parsed document is kept in memory and every view mutation rewrites the
file before the mutator returns. Writes go to a temporary file followed by an
atomic rename. There is no cross-process locking, so only one process may
own a given document.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from draft_bot.errors import AlreadyExistsError, SessionNotFoundError

from .driver import DBDriver
from .records import (
    ServerId,
    SessionId,
    SessionParameters,
    SessionRecord,
    UserId,
    UserRecord,
)
from .views import ReadonlySessionView, RecordSessionView, RecordUserView

logger = logging.getLogger(__name__)

SESSIONS_KEY = "Sessions"
USERS_KEY = "Users"


class JsonSessionView(RecordSessionView):
    def __init__(self, record: SessionRecord, driver: "JsonDocumentDriver") -> None:
        super().__init__(record)
        self._driver = driver

    async def _commit(self) -> None:
        await self._driver.write_record(self._record)


class JsonUserView(RecordUserView):
    def __init__(self, record: UserRecord, driver: "JsonDocumentDriver") -> None:
        super().__init__(record)
        self._driver = driver

    async def _commit(self) -> None:
        await self._driver.write_record(self._record)


class JsonDocumentDriver(DBDriver):
    """Low-contention, single-process JSON persistence."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()
        self._sessions: list[SessionRecord] = []
        self._users: list[UserRecord] = []
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ #
    # Document IO
    # ------------------------------------------------------------------ #

    def _load(self) -> None:
        if not self._path.exists():
            # Initialize the document with empty collections.
            self._write_document(self._serialize())
            return

        with self._path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)

        self._sessions = [SessionRecord.from_dict(d) for d in raw.get(SESSIONS_KEY, [])]
        self._users = [UserRecord.from_dict(d) for d in raw.get(USERS_KEY, [])]
        logger.info(
            "Loaded %d session(s) and %d user(s) from %s",
            len(self._sessions),
            len(self._users),
            self._path,
        )

    def _serialize(self) -> dict:
        return {
            SESSIONS_KEY: [r.to_dict() for r in self._sessions],
            USERS_KEY: [r.to_dict() for r in self._users],
        }

    def _write_document(self, document: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2)
        os.replace(tmp, self._path)

    async def _flush(self) -> None:
        async with self._lock:
            document = self._serialize()
            await asyncio.to_thread(self._write_document, document)  # blocking file IO

    async def write_record(self, record: SessionRecord | UserRecord) -> None:
        """Persist ``record`` if it is still part of the document."""

        if isinstance(record, SessionRecord):
            stored = any(r is record for r in self._sessions)
        else:
            stored = any(r is record for r in self._users)
        if not stored:
            # Deleted records are never revived by stale views.
            logger.debug("Skipping write for record no longer in %s", self._path)
            return
        await self._flush()

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def _find_session(self, server_id: ServerId, session_id: SessionId) -> SessionRecord | None:
        return next((r for r in self._sessions if r.matches(server_id, session_id)), None)

    def _find_user(self, server_id: ServerId, user_id: UserId) -> UserRecord | None:
        return next((r for r in self._users if r.matches(server_id, user_id)), None)

    # ------------------------------------------------------------------ #
    # Users
    # ------------------------------------------------------------------ #

    async def get_or_create_user_view(self, server_id: ServerId, user_id: UserId) -> JsonUserView:
        record = self._find_user(server_id, user_id)
        if record is None:
            record = self.build_user_from_scratch(server_id, user_id)
            self._users.append(record)
            await self._flush()
        return JsonUserView(record, self)

    async def delete_user_from_database(self, server_id: ServerId, user_id: UserId) -> None:
        before = len(self._users)
        self._users = [r for r in self._users if not r.matches(server_id, user_id)]
        if len(self._users) != before:
            await self._flush()

    async def get_all_users_from_server(self, server_id: ServerId) -> list[JsonUserView]:
        return [JsonUserView(r, self) for r in self._users if r.server_id == server_id]

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #

    async def create_session(
        self,
        server_id: ServerId,
        session_id: SessionId,
        defaults: SessionParameters,
        overrides: Mapping[str, Any] | None = None,
        owner_id: UserId | None = None,
    ) -> JsonSessionView:
        if self._find_session(server_id, session_id) is not None:
            raise AlreadyExistsError(server_id, session_id)

        record = self.build_session_from_template(server_id, session_id, defaults, overrides, owner_id)
        self._sessions.append(record)
        await self._flush()
        return JsonSessionView(record, self)

    async def get_session_view(self, server_id: ServerId, session_id: SessionId) -> JsonSessionView:
        record = self._find_session(server_id, session_id)
        if record is None:
            raise SessionNotFoundError(server_id, session_id)
        return JsonSessionView(record, self)

    async def delete_session_from_database(self, server_id: ServerId, session_id: SessionId) -> None:
        before = len(self._sessions)
        self._sessions = [r for r in self._sessions if not r.matches(server_id, session_id)]
        if len(self._sessions) != before:
            await self._flush()

    async def get_all_sessions(self) -> list[ReadonlySessionView]:
        return [ReadonlySessionView(r) for r in self._sessions]

    async def close(self) -> None:
        await self._flush()
