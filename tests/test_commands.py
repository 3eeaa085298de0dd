import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest
from discord.ext import commands as discord_commands

from draft_bot import commands as db_commands
from draft_bot.commands.handlers import sessions as session_commands
from draft_bot.config import Config
from draft_bot.errors import InvalidCapacityError, InvalidParameterError


async def _collect_cogs():
    bot = discord_commands.Bot(command_prefix="!", intents=discord.Intents.none())
    try:
        await db_commands.setup(bot)
        names = {cmd.name for cmd in bot.tree.get_commands()}
        return set(bot.cogs.keys()), names
    finally:
        await bot.close()


def test_setup_registers_known_cogs():
    cogs, names = asyncio.run(_collect_cogs())

    assert {"Help", "SessionCommands"}.issubset(cogs)
    assert {
        "create",
        "start",
        "delete",
        "edit",
        "info",
        "list",
        "broadcast",
        "transfer",
        "templates",
        "help",
    } <= names


def test_apply_edit_parses_values(make_session):
    async def scenario():
        session = await make_session(capacity=4)
        await session_commands.apply_edit(session, "capacity", "6")
        await session_commands.apply_edit(session, "fire_when_full", "Yes")
        await session_commands.apply_edit(session, "date", "2026-04-01 18:00")
        await session_commands.apply_edit(session, "name", "  Friday Cube ")
        return session

    session = asyncio.run(scenario())

    assert session.capacity == 6
    assert session.fire_when_full is True
    assert session.date.hour == 18
    assert session.name == "Friday Cube"


@pytest.mark.parametrize(
    "attribute, value, error",
    [
        ("capacity", "lots", InvalidParameterError),
        ("capacity", "0", InvalidCapacityError),
        ("fire_when_full", "maybe", InvalidParameterError),
        ("date", "someday", InvalidParameterError),
        ("colour", "blue", InvalidParameterError),
    ],
)
def test_apply_edit_rejects_bad_input(make_session, attribute, value, error):
    async def scenario():
        session = await make_session()
        await session_commands.apply_edit(session, attribute, value)

    with pytest.raises(error):
        asyncio.run(scenario())


def _interaction(user_id="owner"):
    return SimpleNamespace(
        guild=SimpleNamespace(id=1),
        user=SimpleNamespace(id=user_id),
        command=SimpleNamespace(name="test"),
        response=SimpleNamespace(defer=AsyncMock(), send_message=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )


def test_run_reports_domain_errors_ephemerally(server):
    bot = SimpleNamespace(config=Config({}), server_for=lambda guild: server)
    cog = session_commands.SessionCommands(bot)
    interaction = _interaction()

    async def action(srv, user_id):
        await srv.close_session_owned_by_user(user_id)
        return "unreachable"

    asyncio.run(cog._run(interaction, action))

    interaction.response.defer.assert_awaited_once_with(ephemeral=True, thinking=True)
    interaction.followup.send.assert_awaited_once_with(
        "You don't have an open session (If this doesn't make sense, please inform an admin)",
        ephemeral=True,
    )


def test_run_replies_with_action_result(server):
    bot = SimpleNamespace(config=Config({}), server_for=lambda guild: server)
    cog = session_commands.SessionCommands(bot)
    interaction = _interaction()

    async def action(srv, user_id):
        session = await srv.create_session(user_id)
        return f"Created {session.name}"

    asyncio.run(cog._run(interaction, action))

    interaction.followup.send.assert_awaited_once_with("Created Olivia's Session", ephemeral=True)


def test_run_outside_guild_is_refused(server):
    bot = SimpleNamespace(config=Config({}), server_for=lambda guild: server)
    cog = session_commands.SessionCommands(bot)
    interaction = _interaction()
    interaction.guild = None

    asyncio.run(cog._run(interaction, AsyncMock()))

    interaction.response.send_message.assert_awaited_once()
    interaction.followup.send.assert_not_awaited()
