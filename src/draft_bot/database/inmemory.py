"""Process-local backend. Records live as long as the process does."""

from __future__ import annotations

from typing import Any, Mapping

from draft_bot.errors import AlreadyExistsError, SessionNotFoundError

from .driver import DBDriver
from .records import ServerId, SessionId, SessionParameters, UserId
from .views import ReadonlySessionView, RecordSessionView, RecordUserView


class InMemorySessionView(RecordSessionView):
    async def _commit(self) -> None:
        # The record object is the store.
        return None


class InMemoryUserView(RecordUserView):
    async def _commit(self) -> None:
        return None


class InMemoryDriver(DBDriver):
    def __init__(self) -> None:
        self._server_users: dict[ServerId, dict[UserId, InMemoryUserView]] = {}
        self._server_sessions: dict[ServerId, dict[SessionId, InMemorySessionView]] = {}

    async def get_or_create_user_view(self, server_id: ServerId, user_id: UserId) -> InMemoryUserView:
        users = self._server_users.setdefault(server_id, {})
        view = users.get(user_id)
        if view is None:
            view = InMemoryUserView(self.build_user_from_scratch(server_id, user_id))
            users[user_id] = view
        return view

    async def delete_user_from_database(self, server_id: ServerId, user_id: UserId) -> None:
        self._server_users.get(server_id, {}).pop(user_id, None)

    async def get_all_users_from_server(self, server_id: ServerId) -> list[InMemoryUserView]:
        return list(self._server_users.get(server_id, {}).values())

    async def create_session(
        self,
        server_id: ServerId,
        session_id: SessionId,
        defaults: SessionParameters,
        overrides: Mapping[str, Any] | None = None,
        owner_id: UserId | None = None,
    ) -> InMemorySessionView:
        sessions = self._server_sessions.setdefault(server_id, {})
        if session_id in sessions:
            raise AlreadyExistsError(server_id, session_id)

        record = self.build_session_from_template(server_id, session_id, defaults, overrides, owner_id)
        view = InMemorySessionView(record)
        sessions[session_id] = view
        return view

    async def get_session_view(self, server_id: ServerId, session_id: SessionId) -> InMemorySessionView:
        view = self._server_sessions.get(server_id, {}).get(session_id)
        if view is None:
            raise SessionNotFoundError(server_id, session_id)
        return view

    async def delete_session_from_database(self, server_id: ServerId, session_id: SessionId) -> None:
        self._server_sessions.get(server_id, {}).pop(session_id, None)

    async def get_all_sessions(self) -> list[ReadonlySessionView]:
        return [
            ReadonlySessionView(view.to_record())
            for sessions in self._server_sessions.values()
            for view in sessions.values()
        ]
