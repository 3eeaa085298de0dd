"""Membership bookkeeping and direct messages for one user of one server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from draft_bot.database import SessionId, UserId, UserView
from draft_bot.errors import NotFoundError

if TYPE_CHECKING:
    from .resolver import Resolver
    from .session import Session

logger = logging.getLogger(__name__)

UNKNOWN_DISPLAY_NAME = "<UNKNOWN USER>"


class DraftUser:
    """Domain wrapper around a :class:`UserView`.

    Sessions are referenced by id only and resolved through the shared
    :class:`Resolver` when needed.
    """

    def __init__(self, view: UserView, resolver: "Resolver") -> None:
        self._view = view
        self._resolver = resolver

    @property
    def user_id(self) -> UserId:
        return self._view.user_id

    @property
    def display_name(self) -> str:
        return self._resolver.notifier.display_name(self.user_id) or UNKNOWN_DISPLAY_NAME

    @property
    def created_session_id(self) -> SessionId | None:
        return self._view.created_session_id

    @property
    def joined_session_ids(self) -> tuple[SessionId, ...]:
        return self._view.joined_session_ids

    @property
    def waitlisted_session_ids(self) -> tuple[SessionId, ...]:
        return self._view.waitlisted_session_ids

    async def set_created_session_id(self, session_id: SessionId | None) -> None:
        await self._view.set_created_session_id(session_id)

    # ------------------------------------------------------------------ #
    # Membership callbacks invoked by Session
    # ------------------------------------------------------------------ #

    async def added_to_session(self, session: "Session") -> None:
        await self._view.added_to_session(session.session_id)
        await self.send_dm(f"You're confirmed for {session.name}")

    async def removed_from_session(self, session: "Session") -> None:
        await self._view.removed_from_session(session.session_id)
        await self.send_dm(f"You've been removed from {session.name}")

    async def added_to_waitlist(self, session: "Session", position: int) -> None:
        await self._view.added_to_waitlist(session.session_id)
        await self.send_dm(
            f"You've been waitlisted for {session.name}.  You're in position: {position}"
        )

    async def removed_from_waitlist(self, session: "Session") -> None:
        await self._view.removed_from_waitlist(session.session_id)
        await self.send_dm(f"You've been removed from the waitlist for {session.name}")

    async def upgraded_from_waitlist(self, session: "Session") -> None:
        await self._view.upgraded_from_waitlist(session.session_id)
        await self.send_dm(f"You've been upgraded from the waitlist for {session.name}")

    async def session_closed(self, session: "Session", started: bool, waitlisted: bool) -> None:
        await self._view.session_closed(session.session_id)

        if not started:
            await self.send_dm(session.format_message(session.parameters.cancel_message))
        elif waitlisted:
            await self.send_dm(session.format_message(session.parameters.waitlist_message))
        else:
            await self.send_dm(session.format_message(session.parameters.confirm_message))

    # ------------------------------------------------------------------ #
    # Informational DMs
    # ------------------------------------------------------------------ #

    async def list_sessions(self) -> None:
        lines = ["**Sessions you are confirmed for:**"]
        for session_id in self.joined_session_ids:
            session = await self._try_resolve(session_id)
            if session is not None:
                lines.append(f"- {session.to_simple_string()}")

        if self.waitlisted_session_ids:
            lines.append("**Sessions you are waitlisted for:**")
            for session_id in self.waitlisted_session_ids:
                session = await self._try_resolve(session_id)
                if session is None:
                    continue
                position = session.get_waitlist_index_of(self.user_id) + 1
                lines.append(
                    f"- {session.to_simple_string()} || You are in position {position} of {session.num_waitlisted}"
                )

        await self.send_dm("\n".join(lines))

    async def print_owned_session_info(self) -> None:
        session_id = self.created_session_id
        if not session_id:
            await self.send_dm("Cannot send info - you haven't created a session")
            return
        session = await self._resolver.resolve_session(session_id)
        await self.send_dm(session.to_owner_string(include_waitlist=True))

    async def send_dm(self, text: str | None) -> bool:
        if not text:
            return False
        delivered = await self._resolver.notifier.send_direct(self.user_id, text)
        if not delivered:
            logger.warning("Could not deliver DM to user %s", self.user_id)
        return delivered

    async def _try_resolve(self, session_id: SessionId) -> "Session" | None:
        try:
            return await self._resolver.resolve_session(session_id)
        except NotFoundError:
            logger.debug("User %s references missing session %s", self.user_id, session_id)
            return None

    def __repr__(self) -> str:
        return f"<DraftUser {self.user_id}>"
