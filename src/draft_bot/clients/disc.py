"""Discord bot bootstrap utilities."""

from __future__ import annotations

import logging

import discord
from discord.ext import commands as discord_commands

from draft_bot import commands as db_commands
from draft_bot.config import Config, core
from draft_bot.event_hooks import reaction_hook, ready_hook
from draft_bot.models import BotContext, DraftServer
from draft_bot.scheduling import SessionScheduler

from .notifier import DiscordNotifier

logger = logging.getLogger(__name__)

# --- Intents --------------------------------------------------------------- #
intents = discord.Intents.all()


class DraftBot(discord_commands.Bot):
    """Draft scheduling bot with slash command support."""

    def __init__(self, config: Config | None = None) -> None:
        super().__init__(command_prefix=discord_commands.when_mentioned, intents=intents)
        self.config = config or Config.default()
        self.context: BotContext | None = None
        self.scheduler: SessionScheduler | None = None

    async def setup_hook(self) -> None:
        """Open the storage context, register slash commands and sync them."""

        self.context = BotContext(self.config)
        await db_commands.setup(self)

        try:
            synced = await self.tree.sync()
            logger.info("Synced %d application command(s)", len(synced))
        except Exception:
            logger.exception("Failed to sync application commands")

    def server_for(self, guild: discord.Guild) -> DraftServer:
        """Return the :class:`DraftServer` that handles ``guild``."""

        if self.context is None:
            raise RuntimeError("Bot context is not initialised yet")
        return self.context.get_server(
            str(guild.id),
            lambda: DiscordNotifier(self, guild, self.config.core.DRAFT_CHANNEL_NAME),
        )

    async def close(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()
        if self.context is not None:
            await self.context.close()
        await super().close()


bot = DraftBot()


@bot.event
async def on_ready() -> None:
    await ready_hook.handle(bot)


@bot.event
async def on_raw_reaction_add(payload: discord.RawReactionActionEvent) -> None:
    await reaction_hook.handle(bot, payload, added=True)


@bot.event
async def on_raw_reaction_remove(payload: discord.RawReactionActionEvent) -> None:
    await reaction_hook.handle(bot, payload, added=False)


def run() -> None:
    """Start the Discord bot using configuration from the environment."""

    if not core.DISCORD_API_TOKEN:
        logger.error("No DISCORD_API_TOKEN configured. Cannot run client.")
        return

    try:
        bot.run(core.DISCORD_API_TOKEN, log_handler=None)
    except discord.LoginFailure as exc:
        logger.error("Login failed: %s", exc)
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected error while running client: %s", exc)
