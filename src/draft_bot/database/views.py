"""
View interfaces over persisted session and user records.

A view wraps exactly one record and exposes domain-level mutators instead of
raw field writes. Every mutator is awaited and has been written through to
the backend by the time it returns; there is no batching and no transaction
spanning several mutators.

Three families implement the interfaces:

* ``RecordSessionView``/``RecordUserView`` subclasses from the in-memory and
  JSON document backends, which mutate a live record and then ``_commit``.
* ``ReadonlySessionView``/``ReadonlyUserView``, built from a snapshot. Their
  accessors work normally and every mutator raises
  :class:`~draft_bot.errors.ReadOnlyError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from draft_bot.errors import ReadOnlyError

from .records import (
    ServerId,
    SessionId,
    SessionParameters,
    SessionRecord,
    UserId,
    UserRecord,
)


def _remove_all(value: str, items: list[str]) -> bool:
    removed = False
    while value in items:
        items.remove(value)
        removed = True
    return removed


# --------------------------------------------------------------------------- #
# Session views
# --------------------------------------------------------------------------- #


class SessionView(ABC):
    """Typed access to one session record."""

    @property
    @abstractmethod
    def server_id(self) -> ServerId: ...

    @property
    @abstractmethod
    def session_id(self) -> SessionId: ...

    @property
    @abstractmethod
    def owner_id(self) -> UserId | None: ...

    @property
    @abstractmethod
    def confirmed(self) -> tuple[UserId, ...]: ...

    @property
    @abstractmethod
    def waitlisted(self) -> tuple[UserId, ...]: ...

    @property
    @abstractmethod
    def parameters(self) -> SessionParameters: ...

    @property
    @abstractmethod
    def closed(self) -> bool: ...

    @property
    def num_confirmed(self) -> int:
        return len(self.confirmed)

    @property
    def num_waitlisted(self) -> int:
        return len(self.waitlisted)

    @abstractmethod
    async def add_to_confirmed(self, user_id: UserId) -> None: ...

    @abstractmethod
    async def remove_from_confirmed(self, user_id: UserId) -> bool: ...

    @abstractmethod
    async def add_to_waitlist(self, user_id: UserId) -> None: ...

    @abstractmethod
    async def remove_from_waitlist(self, user_id: UserId) -> bool: ...

    @abstractmethod
    async def promote_from_waitlist(self, user_id: UserId) -> None:
        """Move ``user_id`` from the waitlist to the end of the confirmed list."""

    @abstractmethod
    async def set_owner(self, owner_id: UserId | None) -> None: ...

    @abstractmethod
    async def update_parameters(self, **changes: Any) -> None: ...

    @abstractmethod
    async def mark_closed(self) -> None: ...

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            server_id=self.server_id,
            session_id=self.session_id,
            owner_id=self.owner_id,
            confirmed=list(self.confirmed),
            waitlisted=list(self.waitlisted),
            parameters=self.parameters,
            closed=self.closed,
        ).snapshot()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.server_id}/{self.session_id}>"


class RecordSessionView(SessionView):
    """Session view over a live record; subclasses define how writes persist."""

    def __init__(self, record: SessionRecord) -> None:
        self._record = record

    @abstractmethod
    async def _commit(self) -> None: ...

    @property
    def server_id(self) -> ServerId:
        return self._record.server_id

    @property
    def session_id(self) -> SessionId:
        return self._record.session_id

    @property
    def owner_id(self) -> UserId | None:
        return self._record.owner_id

    @property
    def confirmed(self) -> tuple[UserId, ...]:
        return tuple(self._record.confirmed)

    @property
    def waitlisted(self) -> tuple[UserId, ...]:
        return tuple(self._record.waitlisted)

    @property
    def parameters(self) -> SessionParameters:
        return self._record.parameters

    @property
    def closed(self) -> bool:
        return self._record.closed

    async def add_to_confirmed(self, user_id: UserId) -> None:
        if user_id in self._record.confirmed:
            return
        self._record.confirmed.append(user_id)
        await self._commit()

    async def remove_from_confirmed(self, user_id: UserId) -> bool:
        removed = _remove_all(user_id, self._record.confirmed)
        if removed:
            await self._commit()
        return removed

    async def add_to_waitlist(self, user_id: UserId) -> None:
        if user_id in self._record.waitlisted:
            return
        self._record.waitlisted.append(user_id)
        await self._commit()

    async def remove_from_waitlist(self, user_id: UserId) -> bool:
        removed = _remove_all(user_id, self._record.waitlisted)
        if removed:
            await self._commit()
        return removed

    async def promote_from_waitlist(self, user_id: UserId) -> None:
        # Single commit: the user is never persisted in both lists or in neither.
        _remove_all(user_id, self._record.waitlisted)
        if user_id not in self._record.confirmed:
            self._record.confirmed.append(user_id)
        await self._commit()

    async def set_owner(self, owner_id: UserId | None) -> None:
        self._record.owner_id = owner_id
        await self._commit()

    async def update_parameters(self, **changes: Any) -> None:
        self._record.parameters = self._record.parameters.merged(changes)
        await self._commit()

    async def mark_closed(self) -> None:
        if self._record.closed:
            return
        self._record.closed = True
        await self._commit()


class ReadonlySessionView(SessionView):
    """Snapshot of a session record that refuses every mutation."""

    def __init__(self, record: SessionRecord) -> None:
        self._record = record.snapshot()

    @property
    def server_id(self) -> ServerId:
        return self._record.server_id

    @property
    def session_id(self) -> SessionId:
        return self._record.session_id

    @property
    def owner_id(self) -> UserId | None:
        return self._record.owner_id

    @property
    def confirmed(self) -> tuple[UserId, ...]:
        return tuple(self._record.confirmed)

    @property
    def waitlisted(self) -> tuple[UserId, ...]:
        return tuple(self._record.waitlisted)

    @property
    def parameters(self) -> SessionParameters:
        return self._record.parameters.merged(None)

    @property
    def closed(self) -> bool:
        return self._record.closed

    async def add_to_confirmed(self, user_id: UserId) -> None:
        raise ReadOnlyError("add_to_confirmed")

    async def remove_from_confirmed(self, user_id: UserId) -> bool:
        raise ReadOnlyError("remove_from_confirmed")

    async def add_to_waitlist(self, user_id: UserId) -> None:
        raise ReadOnlyError("add_to_waitlist")

    async def remove_from_waitlist(self, user_id: UserId) -> bool:
        raise ReadOnlyError("remove_from_waitlist")

    async def promote_from_waitlist(self, user_id: UserId) -> None:
        raise ReadOnlyError("promote_from_waitlist")

    async def set_owner(self, owner_id: UserId | None) -> None:
        raise ReadOnlyError("set_owner")

    async def update_parameters(self, **changes: Any) -> None:
        raise ReadOnlyError("update_parameters")

    async def mark_closed(self) -> None:
        raise ReadOnlyError("mark_closed")


# --------------------------------------------------------------------------- #
# User views
# --------------------------------------------------------------------------- #


class UserView(ABC):
    """Typed access to one user's membership bookkeeping."""

    @property
    @abstractmethod
    def server_id(self) -> ServerId: ...

    @property
    @abstractmethod
    def user_id(self) -> UserId: ...

    @property
    @abstractmethod
    def joined_session_ids(self) -> tuple[SessionId, ...]: ...

    @property
    @abstractmethod
    def waitlisted_session_ids(self) -> tuple[SessionId, ...]: ...

    @property
    @abstractmethod
    def created_session_id(self) -> SessionId | None: ...

    @abstractmethod
    async def set_created_session_id(self, session_id: SessionId | None) -> None: ...

    @abstractmethod
    async def added_to_session(self, session_id: SessionId) -> None: ...

    @abstractmethod
    async def removed_from_session(self, session_id: SessionId) -> bool: ...

    @abstractmethod
    async def added_to_waitlist(self, session_id: SessionId) -> None: ...

    @abstractmethod
    async def removed_from_waitlist(self, session_id: SessionId) -> bool: ...

    @abstractmethod
    async def upgraded_from_waitlist(self, session_id: SessionId) -> None: ...

    @abstractmethod
    async def session_closed(self, session_id: SessionId) -> bool:
        """Forget ``session_id``; return ``True`` if the user was waitlisted for it."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.server_id}/{self.user_id}>"


class RecordUserView(UserView):
    def __init__(self, record: UserRecord) -> None:
        self._record = record

    @abstractmethod
    async def _commit(self) -> None: ...

    @property
    def server_id(self) -> ServerId:
        return self._record.server_id

    @property
    def user_id(self) -> UserId:
        return self._record.user_id

    @property
    def joined_session_ids(self) -> tuple[SessionId, ...]:
        return tuple(self._record.joined_session_ids)

    @property
    def waitlisted_session_ids(self) -> tuple[SessionId, ...]:
        return tuple(self._record.waitlisted_session_ids)

    @property
    def created_session_id(self) -> SessionId | None:
        return self._record.created_session_id

    async def set_created_session_id(self, session_id: SessionId | None) -> None:
        self._record.created_session_id = session_id
        await self._commit()

    async def added_to_session(self, session_id: SessionId) -> None:
        if session_id in self._record.joined_session_ids:
            return
        self._record.joined_session_ids.append(session_id)
        await self._commit()

    async def removed_from_session(self, session_id: SessionId) -> bool:
        removed = _remove_all(session_id, self._record.joined_session_ids)
        if removed:
            await self._commit()
        return removed

    async def added_to_waitlist(self, session_id: SessionId) -> None:
        if session_id in self._record.waitlisted_session_ids:
            return
        self._record.waitlisted_session_ids.append(session_id)
        await self._commit()

    async def removed_from_waitlist(self, session_id: SessionId) -> bool:
        removed = _remove_all(session_id, self._record.waitlisted_session_ids)
        if removed:
            await self._commit()
        return removed

    async def upgraded_from_waitlist(self, session_id: SessionId) -> None:
        _remove_all(session_id, self._record.waitlisted_session_ids)
        if session_id not in self._record.joined_session_ids:
            self._record.joined_session_ids.append(session_id)
        await self._commit()

    async def session_closed(self, session_id: SessionId) -> bool:
        _remove_all(session_id, self._record.joined_session_ids)
        was_waitlisted = _remove_all(session_id, self._record.waitlisted_session_ids)
        if self._record.created_session_id == session_id:
            self._record.created_session_id = None
        await self._commit()
        return was_waitlisted


class ReadonlyUserView(UserView):
    def __init__(self, record: UserRecord) -> None:
        self._record = record.snapshot()

    @property
    def server_id(self) -> ServerId:
        return self._record.server_id

    @property
    def user_id(self) -> UserId:
        return self._record.user_id

    @property
    def joined_session_ids(self) -> tuple[SessionId, ...]:
        return tuple(self._record.joined_session_ids)

    @property
    def waitlisted_session_ids(self) -> tuple[SessionId, ...]:
        return tuple(self._record.waitlisted_session_ids)

    @property
    def created_session_id(self) -> SessionId | None:
        return self._record.created_session_id

    async def set_created_session_id(self, session_id: SessionId | None) -> None:
        raise ReadOnlyError("set_created_session_id")

    async def added_to_session(self, session_id: SessionId) -> None:
        raise ReadOnlyError("added_to_session")

    async def removed_from_session(self, session_id: SessionId) -> bool:
        raise ReadOnlyError("removed_from_session")

    async def added_to_waitlist(self, session_id: SessionId) -> None:
        raise ReadOnlyError("added_to_waitlist")

    async def removed_from_waitlist(self, session_id: SessionId) -> bool:
        raise ReadOnlyError("removed_from_waitlist")

    async def upgraded_from_waitlist(self, session_id: SessionId) -> None:
        raise ReadOnlyError("upgraded_from_waitlist")

    async def session_closed(self, session_id: SessionId) -> bool:
        raise ReadOnlyError("session_closed")


__all__ = [
    "SessionView",
    "RecordSessionView",
    "ReadonlySessionView",
    "UserView",
    "RecordUserView",
    "ReadonlyUserView",
]
