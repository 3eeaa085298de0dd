"""
Outbound side effects consumed by the session core.

``Notifier`` is a :class:`typing.Protocol` so the Discord client
(:class:`draft_bot.clients.notifier.DiscordNotifier`) and plain test doubles
satisfy the same static contract. Every method reports success as a bool
instead of raising; the core never depends on a notification landing.
"""

from __future__ import annotations

from typing import Protocol

from draft_bot.database.records import SessionId, UserId


class Notifier(Protocol):
    async def send_direct(self, user_id: UserId, text: str) -> bool: ...

    async def edit_announcement(self, session_id: SessionId, content: str) -> bool: ...

    async def delete_announcement(self, session_id: SessionId) -> bool: ...

    async def react_to_announcement(self, session_id: SessionId, emoji: str) -> bool: ...

    async def post_announcement(self, content: str) -> SessionId | None:
        """Post a new announcement and return its id, which becomes the session id."""
        ...

    async def announcement_exists(self, session_id: SessionId) -> bool: ...

    def display_name(self, user_id: UserId) -> str | None: ...


__all__ = ["Notifier"]
