"""
Base Cog Class

Shared setup for the ticket cogs: a per-cog logger, access to the
ticket manager, and a fallback for app command errors that never reached
a ``handle_errors`` boundary (checks and cooldowns run before it).
"""

import logging
from typing import Optional

import discord
from discord.ext import commands
from discord import app_commands

from core.ticket_manager import TicketManager
from errors.handlers import send_error_embed


class BaseCog(commands.Cog):
    """Base cog class with common functionality for all command cogs."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.ticket_manager: Optional[TicketManager] = None

    async def cog_load(self):
        """Pick up the bot's ticket manager."""
        self.ticket_manager = getattr(self.bot, 'ticket_manager', None)
        if self.ticket_manager is None:
            self.logger.warning("Ticket manager not available - ticket commands will report an error")

        self.logger.info(f"{self.__class__.__name__} cog loaded")

    async def cog_unload(self):
        self.logger.info(f"{self.__class__.__name__} cog unloaded")

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Answer app command errors raised outside the command body."""
        command_name = interaction.command.name if interaction.command else "unknown"
        self.logger.error(f"App command error in /{command_name}: {error}")

        if isinstance(error, app_commands.CommandOnCooldown):
            title = "⏰ Command on Cooldown"
            description = f"Please wait {error.retry_after:.1f} seconds before using this command again."
        elif isinstance(error, app_commands.NoPrivateMessage):
            title = "❌ Server Only"
            description = "This command can only be used in ticket channels."
        else:
            title = "❌ Command Error"
            description = "An error occurred while executing the command."

        await send_error_embed(interaction, title, description)
