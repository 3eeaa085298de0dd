from __future__ import annotations

import logging
from datetime import datetime
from typing import Awaitable, Callable

import discord
from discord import app_commands
from discord.ext import commands

from .. import register_cog
from draft_bot.errors import DraftBotError, InvalidParameterError
from draft_bot.models import DraftServer, Session

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "yes", "y", "on", "1"}
_FALSE_WORDS = {"false", "no", "n", "off", "0"}

EDITABLE_ATTRIBUTES = ["name", "capacity", "description", "date", "fire_when_full", "url"]


# ----------------------------- Edit Helpers ----------------------------- #


def _parse_bool(raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise InvalidParameterError(f"Expected true or false, got {raw!r}")


def _parse_datetime(raw: str) -> datetime | None:
    if raw.strip().lower() in {"", "none", "clear"}:
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InvalidParameterError(
            f"Could not understand date {raw!r} - use YYYY-MM-DD HH:MM"
        ) from exc


async def apply_edit(session: Session, attribute: str, raw: str) -> None:
    """Parse ``raw`` for ``attribute`` and write it through the matching setter."""

    if attribute == "name":
        await session.set_name(raw.strip())
    elif attribute == "capacity":
        try:
            capacity = int(raw)
        except ValueError as exc:
            raise InvalidParameterError(f"Capacity must be a whole number, got {raw!r}") from exc
        await session.set_capacity(capacity)
    elif attribute == "description":
        await session.set_description(raw)
    elif attribute == "date":
        await session.set_date(_parse_datetime(raw))
    elif attribute == "fire_when_full":
        await session.set_fire_when_full(_parse_bool(raw))
    elif attribute == "url":
        await session.set_template_url(raw.strip())
    else:
        raise InvalidParameterError(f"Unknown attribute {attribute!r}")


# ----------------------------- Command Definitions ----------------------------- #


@register_cog
class SessionCommands(commands.Cog):
    """
    Slash commands for owning and following draft sessions.

    Every command defers ephemerally, runs against the guild's
    :class:`DraftServer` and reports domain errors back to the caller.
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _run(
        self,
        interaction: discord.Interaction,
        action: Callable[[DraftServer, str], Awaitable[str]],
    ) -> None:
        if interaction.guild is None:
            await interaction.response.send_message(
                "Draft commands only work inside a server.", ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        server = self.bot.server_for(interaction.guild)
        try:
            reply = await action(server, str(interaction.user.id))
        except DraftBotError as exc:
            reply = self.bot.config.core.format_error(exc)
        except Exception:
            logger.exception("Command %s failed", getattr(interaction.command, "name", "?"))
            reply = self.bot.config.core.format_error("Something went wrong")
        await interaction.followup.send(reply, ephemeral=True)

    @app_commands.command(name="create", description="Create a new draft session that you own.")
    @app_commands.describe(template="Name of a session template for this server.")
    async def create(self, interaction: discord.Interaction, template: str | None = None) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            session = await server.create_session(user_id, template)
            return f"Created {session.name}"

        await self._run(interaction, action)

    @app_commands.command(name="start", description="Start your session now.")
    async def start(self, interaction: discord.Interaction) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            await server.start_session_owned_by_user(user_id)
            return "Session started"

        await self._run(interaction, action)

    @app_commands.command(name="delete", description="Cancel your session.")
    async def delete(self, interaction: discord.Interaction) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            await server.close_session_owned_by_user(user_id)
            return "Session deleted"

        await self._run(interaction, action)

    @app_commands.command(name="edit", description="Change a setting of your session.")
    @app_commands.describe(attribute="Setting to change.", value="New value.")
    @app_commands.choices(
        attribute=[app_commands.Choice(name=a, value=a) for a in EDITABLE_ATTRIBUTES]
    )
    async def edit(self, interaction: discord.Interaction, attribute: str, value: str) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            session = await server.get_owned_session(user_id)
            await apply_edit(session, attribute, value)
            return f"Updated {attribute} of {session.name}"

        await self._run(interaction, action)

    @app_commands.command(name="info", description="DM yourself the attendance of your session.")
    async def info(self, interaction: discord.Interaction) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            user = await server.resolver.resolve_user(user_id)
            await user.print_owned_session_info()
            return "Check your DMs"

        await self._run(interaction, action)

    @app_commands.command(name="list", description="DM yourself the sessions you are part of.")
    async def list_sessions(self, interaction: discord.Interaction) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            user = await server.resolver.resolve_user(user_id)
            await user.list_sessions()
            return "Check your DMs"

        await self._run(interaction, action)

    @app_commands.command(name="broadcast", description="DM every member of your session.")
    @app_commands.describe(
        message="Text to send.",
        include_waitlist="Also message waitlisted members.",
    )
    async def broadcast(
        self, interaction: discord.Interaction, message: str, include_waitlist: bool = False
    ) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            delivered = await server.broadcast(user_id, message, include_waitlist)
            return f"Message delivered to {delivered} member(s)"

        await self._run(interaction, action)

    @app_commands.command(name="transfer", description="Give your session to another member.")
    @app_commands.describe(member="The new owner.")
    async def transfer(self, interaction: discord.Interaction, member: discord.Member) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            if member.bot:
                raise InvalidParameterError("Sessions can't be given to bots")
            session = await server.transfer_ownership(user_id, str(member.id))
            return f"{session.name} now belongs to {member.display_name}"

        await self._run(interaction, action)

    @app_commands.command(name="templates", description="List session templates for this server.")
    async def templates(self, interaction: discord.Interaction) -> None:
        async def action(server: DraftServer, user_id: str) -> str:
            names = server.list_templates()
            if not names:
                return "No templates are configured for this server"
            return "Templates: " + ", ".join(names)

        await self._run(interaction, action)
