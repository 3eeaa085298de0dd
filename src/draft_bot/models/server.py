"""
Per-server orchestration of session lifecycle events.

``DraftServer`` turns external events (commands, reactions, scheduled
triggers) into :class:`Session`/:class:`DraftUser` operations. Each public
coroutine finishes every step it starts before returning; in particular
closing an owner's previous session completes before a new one is posted.
Domain errors propagate to the caller unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from draft_bot.config.sessions import Sessions
from draft_bot.database import ServerId, SessionId, UserId, default_parameters
from draft_bot.errors import (
    AnnouncementError,
    InvalidParameterError,
    NoActiveSessionError,
    NotFoundError,
    OwnershipMismatchError,
)

from .resolver import Resolver
from .session import Session
from .templates import SessionTemplateCache
from .user import DraftUser

logger = logging.getLogger(__name__)

PLACEHOLDER_ANNOUNCEMENT = "Setting up session..."


class DraftServer:
    def __init__(
        self,
        resolver: Resolver,
        sessions_cfg: Sessions,
        templates: SessionTemplateCache | None = None,
        emoji: str = "🌟",
    ) -> None:
        self.resolver = resolver
        self._sessions_cfg = sessions_cfg
        self._templates = templates or SessionTemplateCache()
        self.emoji = emoji

    @property
    def server_id(self) -> ServerId:
        return self.resolver.server_id

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    async def create_session(
        self,
        owner_id: UserId | None,
        template_name: str | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> Session:
        """
        Post an announcement and create a session for it.

        An owner who already has a session gets it cancelled first. Unowned
        sessions come from automated triggers.
        """

        owner: DraftUser | None = None
        if owner_id is not None:
            owner = await self.resolver.resolve_user(owner_id)
            if owner.created_session_id:
                logger.info(
                    "Closing prior session %s of user %s before creating a new one",
                    owner.created_session_id,
                    owner_id,
                )
                try:
                    await self._terminate_owned(owner, started=False)
                except NotFoundError:
                    # The prior session is already gone; only the stale link remains.
                    logger.warning(
                        "Prior session %s of user %s no longer exists; clearing link",
                        owner.created_session_id,
                        owner_id,
                    )
                    await owner.set_created_session_id(None)

        params = self._build_overrides(owner, template_name, overrides)
        defaults = default_parameters(self._sessions_cfg)

        session_id = await self.resolver.notifier.post_announcement(PLACEHOLDER_ANNOUNCEMENT)
        if not session_id:
            raise AnnouncementError()

        await self.resolver.driver.create_session(
            self.server_id, session_id, defaults, params, owner_id=owner_id
        )
        logger.info("Created session %s in server %s (owner=%s)", session_id, self.server_id, owner_id)

        session = await self.resolver.resolve_session(session_id)
        if owner is not None:
            await owner.set_created_session_id(session_id)
            await session.add_player(owner.user_id)
        else:
            await session.refresh_announcement()

        if not session.closed:
            await self.resolver.notifier.react_to_announcement(session_id, self.emoji)
        return session

    def _build_overrides(
        self,
        owner: DraftUser | None,
        template_name: str | None,
        overrides: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        if owner is not None:
            name = self._sessions_cfg.DEFAULT_SESSION_NAME.replace("{owner}", owner.display_name)
        else:
            name = self._sessions_cfg.DEFAULT_UNOWNED_SESSION_NAME
        params: dict[str, Any] = {"name": name}

        if template_name:
            template = self._templates.get_template(self.server_id, template_name)
            if template is None:
                raise InvalidParameterError(f"Could not find a template named {template_name!r}")
            params.update(template)

        params.update(overrides or {})
        return params

    def list_templates(self) -> list[str]:
        return self._templates.list_templates(self.server_id)

    # ------------------------------------------------------------------ #
    # Owner-addressed lifecycle
    # ------------------------------------------------------------------ #

    async def start_session_owned_by_user(self, owner_id: UserId) -> None:
        owner = await self.resolver.resolve_user(owner_id)
        await self._terminate_owned(owner, started=True)

    async def close_session_owned_by_user(self, owner_id: UserId) -> None:
        owner = await self.resolver.resolve_user(owner_id)
        await self._terminate_owned(owner, started=False)

    async def _terminate_owned(self, owner: DraftUser, started: bool) -> None:
        session = await self.get_owned_session(owner.user_id, owner=owner)
        await session.terminate(started=started)
        await owner.set_created_session_id(None)

    async def get_owned_session(self, owner_id: UserId, owner: DraftUser | None = None) -> Session:
        """Resolve the session ``owner_id`` created, checking both sides of the link."""

        owner = owner or await self.resolver.resolve_user(owner_id)
        session_id = owner.created_session_id
        if not session_id:
            raise NoActiveSessionError()

        session = await self.resolver.resolve_session(session_id)
        if session.owner_id != owner.user_id:
            raise OwnershipMismatchError(owner.user_id, session_id)
        return session

    # ------------------------------------------------------------------ #
    # Id-addressed lifecycle (system triggers)
    # ------------------------------------------------------------------ #

    async def start_session(self, session_id: SessionId) -> None:
        await self._terminate_by_id(session_id, started=True)

    async def close_session(self, session_id: SessionId) -> None:
        await self._terminate_by_id(session_id, started=False)

    async def _terminate_by_id(self, session_id: SessionId, started: bool) -> None:
        session = await self.resolver.resolve_session(session_id)
        owner_id = session.owner_id
        await session.terminate(started=started)
        if owner_id is not None:
            owner = await self.resolver.resolve_user(owner_id)
            if owner.created_session_id == session_id:
                await owner.set_created_session_id(None)

    # ------------------------------------------------------------------ #
    # Best-effort lookups
    # ------------------------------------------------------------------ #

    async def get_session_from_user(self, user_id: UserId) -> Session | None:
        user = await self.resolver.resolve_user(user_id)
        if not user.created_session_id:
            return None
        return await self.get_session_from_announcement_message(user.created_session_id)

    async def get_session_from_announcement_message(self, message_id: SessionId) -> Session | None:
        try:
            return await self.resolver.resolve_session(message_id)
        except NotFoundError:
            return None

    # ------------------------------------------------------------------ #
    # Member-facing operations
    # ------------------------------------------------------------------ #

    async def join(self, message_id: SessionId, user_id: UserId) -> bool:
        """Add ``user_id`` to the session announced by ``message_id``, if any."""

        session = await self.get_session_from_announcement_message(message_id)
        if session is None:
            return False
        await session.add_player(user_id)
        return True

    async def leave(self, message_id: SessionId, user_id: UserId) -> bool:
        session = await self.get_session_from_announcement_message(message_id)
        if session is None:
            return False
        await session.remove_player(user_id)
        return True

    async def broadcast(self, owner_id: UserId, text: str, include_waitlist: bool = False) -> int:
        session = await self.get_session_from_user(owner_id)
        if session is None:
            raise NoActiveSessionError("Unable to broadcast - you don't have an open session")
        return await session.broadcast(text, include_waitlist)

    async def transfer_ownership(self, owner_id: UserId, new_owner_id: UserId) -> Session:
        session = await self.get_owned_session(owner_id)
        await session.change_owner(new_owner_id)
        return session
