"""Driver contract shared by the storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from .records import (
    ServerId,
    SessionId,
    SessionParameters,
    SessionRecord,
    UserId,
    UserRecord,
)
from .views import ReadonlySessionView, SessionView, UserView


class DBDriver(ABC):
    """
    Record lifecycle operations returning views.

    Implementations raise :class:`~draft_bot.errors.AlreadyExistsError` when
    creating a session id that is already stored and
    :class:`~draft_bot.errors.SessionNotFoundError` when fetching one that is
    absent. Lookups and deletions match ``(server_id, id)`` exactly.
    """

    @staticmethod
    def build_user_from_scratch(server_id: ServerId, user_id: UserId) -> UserRecord:
        return UserRecord(server_id=server_id, user_id=user_id)

    @staticmethod
    def build_session_from_template(
        server_id: ServerId,
        session_id: SessionId,
        defaults: SessionParameters,
        overrides: Mapping[str, Any] | None = None,
        owner_id: UserId | None = None,
    ) -> SessionRecord:
        return SessionRecord(
            server_id=server_id,
            session_id=session_id,
            owner_id=owner_id,
            parameters=defaults.merged(overrides),
        )

    @abstractmethod
    async def get_or_create_user_view(self, server_id: ServerId, user_id: UserId) -> UserView: ...

    @abstractmethod
    async def delete_user_from_database(self, server_id: ServerId, user_id: UserId) -> None: ...

    @abstractmethod
    async def get_all_users_from_server(self, server_id: ServerId) -> list[UserView]: ...

    @abstractmethod
    async def create_session(
        self,
        server_id: ServerId,
        session_id: SessionId,
        defaults: SessionParameters,
        overrides: Mapping[str, Any] | None = None,
        owner_id: UserId | None = None,
    ) -> SessionView: ...

    @abstractmethod
    async def get_session_view(self, server_id: ServerId, session_id: SessionId) -> SessionView: ...

    @abstractmethod
    async def delete_session_from_database(self, server_id: ServerId, session_id: SessionId) -> None: ...

    @abstractmethod
    async def get_all_sessions(self) -> list[ReadonlySessionView]:
        """Full scan returning read-only snapshots; used for startup reconciliation."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
