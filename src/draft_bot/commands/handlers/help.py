from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from .. import register_cog

HELP_TEXT = """\
**Draft bot commands**
`/create [template]` - post a new session you own (closes your previous one)
`/start` - start your session now and notify everyone
`/delete` - cancel your session
`/edit <attribute> <value>` - change name, capacity, description, date, fire_when_full or url
`/info` - DM yourself the attendance of your session
`/list` - DM yourself the sessions you joined or are waitlisted for
`/broadcast <message> [include_waitlist]` - DM the members of your session
`/transfer <member>` - hand your session to someone else
`/templates` - list the session templates for this server
React to an announcement with {emoji} to join, remove the reaction to leave."""


@register_cog
class Help(commands.Cog):
    """Describe the slash commands."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="help", description="Explain how to use the draft bot.")
    async def help(self, interaction: discord.Interaction) -> None:
        emoji = self.bot.config.core.EMOJI
        await interaction.response.send_message(HELP_TEXT.format(emoji=emoji), ephemeral=True)
