#!/usr/bin/env python3
"""
Support Ticket Bot - Main Entry Point

Direct-message a support menu to users, route each request into a private
ticket channel, and let staff claim and close tickets with slash commands.
"""

import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_manager import BotConfig, ConfigManager
from core.ticket_manager import TicketManager
from core.ticket_registry import TicketRegistry
from errors.exceptions import ConfigurationError
from logging_config import setup_logging, get_logger

logger = logging.getLogger(__name__)

COMMANDS_DIR = Path(__file__).resolve().parent / "commands"
NON_EXTENSION_MODULES = {"base_cog.py"}


def discover_extensions(commands_dir: Path = COMMANDS_DIR) -> List[str]:
    """Dotted names of the cog modules in ``commands/``, sorted."""
    if not commands_dir.is_dir():
        return []
    return [
        f"commands.{path.stem}"
        for path in sorted(commands_dir.glob("*.py"))
        if not path.name.startswith("__") and path.name not in NON_EXTENSION_MODULES
    ]


class TicketBot(commands.Bot):
    """
    Discord client for the support ticket workflow.

    Owns the ticket registry and manager; cogs pick the manager up in
    ``cog_load``, so both are created before any extension is loaded.
    """

    def __init__(self, config: BotConfig):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.dm_messages = True
        intents.message_content = True

        super().__init__(command_prefix=commands.when_mentioned, intents=intents, help_command=None)

        self.config = config
        self.ticket_registry: Optional[TicketRegistry] = None
        self.ticket_manager: Optional[TicketManager] = None
        self._shutdown_initiated = False

    async def setup_hook(self):
        logger.info("Starting bot setup...")

        self.ticket_registry = TicketRegistry()
        self.ticket_manager = TicketManager(self, self.ticket_registry, self.config)

        await self.load_extensions()
        await self.sync_commands()

        logger.info("Bot setup completed successfully")

    async def load_extensions(self):
        """Load every cog module; a broken module is logged and skipped."""
        extensions = discover_extensions()
        if not extensions:
            logger.warning(f"No command extensions found in {COMMANDS_DIR}")
            return

        failed = []
        for name in extensions:
            try:
                await self.load_extension(name)
            except commands.ExtensionError as e:
                logger.error(f"❌ Failed to load extension {name}: {e}", exc_info=True)
                failed.append(name)
            else:
                logger.info(f"✅ Loaded extension: {name}")

        logger.info(f"Extension loading complete: {len(extensions) - len(failed)} loaded, {len(failed)} failed")

    async def sync_commands(self):
        """Register the slash commands with the support guild only."""
        guild = discord.Object(id=self.config.guild_id)
        self.tree.copy_global_to(guild=guild)
        synced = await self.tree.sync(guild=guild)
        logger.info(f"✅ Synced {len(synced)} slash commands to guild {self.config.guild_id}")

    async def on_ready(self):
        logger.info(f"🟢 Logged in as {self.user}")

        if self.get_guild(self.config.guild_id) is None:
            logger.error(f"Bot is not a member of the configured guild {self.config.guild_id}")

        await self.change_presence(activity=discord.Activity(
            type=discord.ActivityType.listening,
            name="DMs | message me for support"
        ))

    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel):
        if self.ticket_manager is not None:
            self.ticket_manager.forget_channel(channel)

    async def on_error(self, event_method, *args, **kwargs):
        """Log listener exceptions instead of printing them."""
        logger.error(f"Error in event {event_method}", exc_info=True)

    async def close(self):
        if self._shutdown_initiated:
            return
        self._shutdown_initiated = True

        logger.info("Bot is shutting down...")

        if self.ticket_manager is not None:
            pending = len(self.ticket_manager.pending_deletions)
            if pending:
                logger.warning(f"Shutting down with {pending} ticket channel deletions still pending")

            open_tickets = self.ticket_registry.open_tickets()
            if open_tickets:
                numbers = ", ".join(ticket.display_number for ticket in open_tickets)
                logger.warning(f"Discarding in-memory state for {len(open_tickets)} open tickets: {numbers}")

        await super().close()


def validate_environment(config_manager: ConfigManager) -> bool:
    """
    Log every configuration problem at once.

    Returns:
        bool: True if the environment holds a usable configuration
    """
    errors = config_manager.validate_configuration()
    for error in errors:
        logger.error(error)

    if errors:
        logger.error("Please check your .env file or environment configuration")
        return False
    return True


def install_signal_handlers(bot: TicketBot):
    """Close the bot cleanly on SIGTERM and SIGINT where the loop supports it."""
    loop = asyncio.get_running_loop()

    def request_shutdown(signal_name: str):
        logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        loop.create_task(bot.close())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, request_shutdown, sig.name)
        except NotImplementedError:
            logger.debug(f"Signal handler for {sig.name} not supported on this platform")


async def main():
    load_dotenv()

    # Configured before validation so configuration errors reach the log files
    setup_logging(log_dir=os.getenv('LOG_DIR', 'logs'), log_level=os.getenv('LOG_LEVEL', 'INFO'))
    main_logger = get_logger(__name__)
    main_logger.info("Starting Support Ticket Bot...")

    config_manager = ConfigManager()
    if not validate_environment(config_manager):
        sys.exit(1)

    try:
        config = config_manager.load()
    except ConfigurationError as e:
        main_logger.error(str(e))
        sys.exit(1)

    bot = TicketBot(config)
    install_signal_handlers(bot)

    try:
        main_logger.info("Connecting to Discord...")
        await bot.start(config.token)
    except discord.LoginFailure:
        main_logger.error("Invalid Discord token. Please check your DISCORD_TOKEN environment variable.")
        sys.exit(1)
    except discord.HTTPException as e:
        main_logger.error(f"HTTP error connecting to Discord: {e}")
        sys.exit(1)
    finally:
        await bot.close()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")


if __name__ == "__main__":
    run()
