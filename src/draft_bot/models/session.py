"""
Session admission and waitlist state machine.

A session is either open (``closed`` is false) or closed, and closing is
terminal. Members are admitted to ``confirmed`` while there is room and
queued FIFO on ``waitlisted`` otherwise. Whenever a seat frees up, the front
of the waitlist is promoted. With ``fire_when_full`` set, the session
terminates as started as soon as ``confirmed`` reaches capacity.

Invariants after every operation:

* a user id is in at most one of ``confirmed``/``waitlisted``
* ``len(confirmed) <= capacity``
* promotion always takes the front of ``waitlisted``

Mutating operations hold the per-session lock from the resolver for their
whole duration, including the notifications they send. Follow-up steps
(promotion, fire check, terminate) run under the lock already held, so the
public methods below never call each other.

A caller that was waiting on the lock while the session closed finds it
closed: parameter changes and joins raise ``SessionClosedError`` and
``remove_player`` does nothing, since every member already got their
closing message.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from draft_bot.database import ServerId, SessionId, SessionParameters, SessionView, UserId
from draft_bot.errors import (
    AlreadyMemberError,
    EmptyMessageError,
    InvalidCapacityError,
    InvalidParameterError,
    OwnerCannotLeaveError,
    SessionClosedError,
)

if TYPE_CHECKING:
    from .resolver import Resolver

logger = logging.getLogger(__name__)

JOIN_INSTRUCTIONS = "Tap the reaction below to register and again to unregister"


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class Session:
    def __init__(self, view: SessionView, resolver: "Resolver") -> None:
        self._view = view
        self._resolver = resolver

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def session_id(self) -> SessionId:
        return self._view.session_id

    @property
    def server_id(self) -> ServerId:
        return self._view.server_id

    @property
    def owner_id(self) -> UserId | None:
        return self._view.owner_id

    @property
    def parameters(self) -> SessionParameters:
        return self._view.parameters

    @property
    def name(self) -> str:
        return self.parameters.name

    @property
    def capacity(self) -> int:
        return self.parameters.capacity

    @property
    def description(self) -> str:
        return self.parameters.description

    @property
    def date(self) -> datetime | None:
        return self.parameters.date

    @property
    def fire_when_full(self) -> bool:
        return self.parameters.fire_when_full

    @property
    def url(self) -> str:
        return self.parameters.url

    @property
    def confirmed(self) -> tuple[UserId, ...]:
        return self._view.confirmed

    @property
    def waitlisted(self) -> tuple[UserId, ...]:
        return self._view.waitlisted

    @property
    def closed(self) -> bool:
        return self._view.closed

    @property
    def num_confirmed(self) -> int:
        return self._view.num_confirmed

    @property
    def num_waitlisted(self) -> int:
        return self._view.num_waitlisted

    def get_waitlist_index_of(self, user_id: UserId) -> int:
        """Zero-based waitlist position of ``user_id``, or -1."""
        try:
            return self.waitlisted.index(user_id)
        except ValueError:
            return -1

    def can_add_players(self) -> bool:
        return not self.closed and self.num_confirmed < self.capacity

    def format_message(self, template: str) -> str:
        """Fill ``{name}``, ``{url}`` and ``{description}`` in a message template."""

        values = _KeepMissing(name=self.name, url=self.url, description=self.description)
        return template.format_map(values)

    # ------------------------------------------------------------------ #
    # Membership
    # ------------------------------------------------------------------ #

    async def add_player(self, user_id: UserId) -> None:
        async with self._lock():
            if user_id in self.confirmed or user_id in self.waitlisted:
                raise AlreadyMemberError(user_id, self.session_id)
            if self.closed:
                raise SessionClosedError(self.session_id)

            user = await self._resolver.resolve_user(user_id)
            if self.num_confirmed < self.capacity:
                await self._view.add_to_confirmed(user_id)
                logger.info("User %s confirmed for session %s", user_id, self.session_id)
                await user.added_to_session(self)
            else:
                await self._view.add_to_waitlist(user_id)
                logger.info(
                    "User %s waitlisted for session %s at position %d",
                    user_id,
                    self.session_id,
                    self.num_waitlisted,
                )
                await user.added_to_waitlist(self, self.num_waitlisted)

            await self.refresh_announcement()
            await self._fire_if_able()

    async def remove_player(self, user_id: UserId) -> None:
        async with self._lock():
            # Members were already notified when the session closed.
            if self.closed:
                return
            if user_id == self.owner_id:
                raise OwnerCannotLeaveError(user_id)

            if user_id in self.confirmed:
                await self._view.remove_from_confirmed(user_id)
                user = await self._resolver.resolve_user(user_id)
                await user.removed_from_session(self)
            elif user_id in self.waitlisted:
                await self._view.remove_from_waitlist(user_id)
                user = await self._resolver.resolve_user(user_id)
                await user.removed_from_waitlist(self)
            else:
                return

            logger.info("User %s left session %s", user_id, self.session_id)
            await self._promote()
            await self.refresh_announcement()

    async def _promote(self) -> None:
        while self.can_add_players() and self.waitlisted:
            upgraded_id = self.waitlisted[0]
            await self._view.promote_from_waitlist(upgraded_id)
            logger.info("User %s upgraded from waitlist for session %s", upgraded_id, self.session_id)
            user = await self._resolver.resolve_user(upgraded_id)
            await user.upgraded_from_waitlist(self)

    async def _fire_if_able(self) -> None:
        if self.closed or not self.fire_when_full:
            return
        if self.num_confirmed == self.capacity:
            await self._terminate(started=True)

    # ------------------------------------------------------------------ #
    # Parameters
    # ------------------------------------------------------------------ #

    async def set_capacity(self, capacity: int) -> None:
        async with self._lock():
            self._ensure_open()
            if capacity < 1 or capacity < self.num_confirmed:
                raise InvalidCapacityError(capacity, self.num_confirmed)

            await self._view.update_parameters(capacity=capacity)
            await self._promote()
            await self.refresh_announcement()
            await self._fire_if_able()

    async def set_name(self, name: str) -> None:
        await self._update(name=name)

    async def set_description(self, description: str) -> None:
        await self._update(description=description)

    async def set_date(self, date: datetime | None) -> None:
        await self._update(date=date)

    async def set_fire_when_full(self, fire_when_full: bool) -> None:
        async with self._lock():
            self._ensure_open()
            await self._view.update_parameters(fire_when_full=fire_when_full)
            await self.refresh_announcement()
            await self._fire_if_able()

    async def set_template_url(self, url: str) -> None:
        # Not part of the announcement.
        async with self._lock():
            self._ensure_open()
            await self._view.update_parameters(template_url=url, generated_url=None)

    async def _update(self, **changes: Any) -> None:
        async with self._lock():
            self._ensure_open()
            await self._view.update_parameters(**changes)
            await self.refresh_announcement()

    async def change_owner(self, new_owner_id: UserId) -> None:
        """Hand the session to ``new_owner_id``, adding them as a member if needed."""

        async with self._lock():
            self._ensure_open()
            if new_owner_id == self.owner_id:
                raise InvalidParameterError("That user already owns this session")

            new_owner = await self._resolver.resolve_user(new_owner_id)
            if new_owner.created_session_id:
                raise InvalidParameterError(
                    "That user already owns a session - they need to close it first"
                )

            old_owner_id = self.owner_id
            await self._view.set_owner(new_owner_id)
            await new_owner.set_created_session_id(self.session_id)

            if old_owner_id is not None:
                old_owner = await self._resolver.resolve_user(old_owner_id)
                await old_owner.set_created_session_id(None)
                await old_owner.send_dm(f"You've transferred {self.name} to {new_owner.display_name}")

            await new_owner.send_dm(f"You are now the owner of {self.name}")
            logger.info(
                "Session %s ownership moved from %s to %s", self.session_id, old_owner_id, new_owner_id
            )

            if new_owner_id not in self.confirmed and new_owner_id not in self.waitlisted:
                if self.num_confirmed < self.capacity:
                    await self._view.add_to_confirmed(new_owner_id)
                    await new_owner.added_to_session(self)
                else:
                    await self._view.add_to_waitlist(new_owner_id)
                    await new_owner.added_to_waitlist(self, self.num_waitlisted)
                await self.refresh_announcement()
                await self._fire_if_able()

    # ------------------------------------------------------------------ #
    # Termination
    # ------------------------------------------------------------------ #

    async def terminate(self, started: bool = False) -> bool:
        """
        Close the session, notify every member and delete it from the store.

        Only the first call has any effect. Later calls return ``False``
        without sending notifications or touching the store.
        """

        async with self._lock():
            return await self._terminate(started)

    async def _terminate(self, started: bool) -> bool:
        if self.closed:
            logger.debug("Session %s already closed; ignoring terminate", self.session_id)
            return False

        await self._view.mark_closed()
        logger.info(
            "Session %s %s", self.session_id, "started" if started else "cancelled"
        )

        confirmed = list(self.confirmed)
        waitlisted = list(self.waitlisted)
        for user_id in confirmed:
            user = await self._resolver.resolve_user(user_id)
            await user.session_closed(self, started=started, waitlisted=False)
        for user_id in waitlisted:
            user = await self._resolver.resolve_user(user_id)
            await user.session_closed(self, started=started, waitlisted=True)

        await self._resolver.notifier.delete_announcement(self.session_id)
        await self._resolver.driver.delete_session_from_database(self.server_id, self.session_id)
        self._resolver.forget_session(self.session_id)
        return True

    # ------------------------------------------------------------------ #
    # Messaging
    # ------------------------------------------------------------------ #

    async def broadcast(self, text: str, include_waitlist: bool = False) -> int:
        """DM ``text`` to members other than the owner; return the number delivered."""

        if not text or not text.strip():
            raise EmptyMessageError()

        message = f"**Message from the owner of {self.name}:**\n{text.strip()}"
        recipients = list(self.confirmed)
        if include_waitlist:
            recipients.extend(self.waitlisted)

        delivered = 0
        for user_id in recipients:
            if user_id == self.owner_id:
                continue
            user = await self._resolver.resolve_user(user_id)
            if await user.send_dm(message):
                delivered += 1
        return delivered

    async def refresh_announcement(self) -> None:
        if self.closed:
            return
        await self._resolver.notifier.edit_announcement(
            self.session_id, f"{self.to_announcement()}\n\n{JOIN_INSTRUCTIONS}"
        )

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def _when(self) -> str:
        if self.date is None:
            return "Ad-hoc event - Join now!"
        return f"Scheduled for: ___{self.date:%A %B %d, %Y at %H:%M}___"

    def build_attendance_string(self) -> str:
        tail = (
            "Session will launch when capacity is reached"
            if self.fire_when_full
            else f"Waitlisted: {self.num_waitlisted}"
        )
        return f"Number joined: {self.num_confirmed} <> Capacity: {self.capacity} <> {tail}"

    def to_announcement(self) -> str:
        return "\n".join(
            [
                f"**{self.name}**",
                self._when(),
                self.build_attendance_string(),
                "#-#-#-#-#-#-#-#",
                self.description,
            ]
        )

    def to_simple_string(self) -> str:
        return f"**{self.name}**  {self._when()} [{self.build_attendance_string()}] -- {self.description}"

    def to_owner_string(self, include_waitlist: bool = False) -> str:
        notifier = self._resolver.notifier

        def _names(user_ids: tuple[UserId, ...]) -> str:
            return "".join(f"\n- {notifier.display_name(uid) or uid}" for uid in user_ids)

        text = f"{self.build_attendance_string()}\nJoined:{_names(self.confirmed)}"
        if include_waitlist:
            text += f"\nWaitlist:{_names(self.waitlisted)}"
        return text

    def _lock(self):
        return self._resolver.session_lock(self.session_id)

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError(self.session_id)

    def __repr__(self) -> str:
        return f"<Session {self.server_id}/{self.session_id} closed={self.closed}>"
