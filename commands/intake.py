"""
Intake Cog

Answers direct messages with the support-type menu and turns a menu
selection into a ticket channel.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from commands.base_cog import BaseCog
from core.messages import MENU_PROMPT, MENU_PLACEHOLDER, TICKET_CREATED
from core.ticket_manager import TicketManager
from errors import handle_errors, log_error, ConfigurationError
from models.ticket import SUPPORT_OPTIONS

logger = logging.getLogger(__name__)

SUPPORT_TYPE_CUSTOM_ID = "support_type"


async def resolve_issue_text(message: discord.Message) -> str:
    """
    Text of the direct message the menu was sent in reply to.

    Falls back to the menu message's own content when the original
    message is gone or was never referenced.
    """
    reference = message.reference
    if reference is None or reference.message_id is None:
        return message.content

    original = reference.cached_message
    if original is None and isinstance(reference.resolved, discord.Message):
        original = reference.resolved

    if original is None:
        try:
            original = await message.channel.fetch_message(reference.message_id)
        except discord.HTTPException as e:
            logger.warning(f"Could not fetch original message {reference.message_id}: {e}")
            return message.content

    return original.content or message.content


class SupportTypeSelect(discord.ui.Select):
    """Dropdown menu for the support type."""

    def __init__(self):
        options = [
            discord.SelectOption(label=option.label, value=option.value, emoji=option.emoji)
            for option in SUPPORT_OPTIONS
        ]
        super().__init__(
            placeholder=MENU_PLACEHOLDER,
            min_values=1,
            max_values=1,
            options=options,
            custom_id=SUPPORT_TYPE_CUSTOM_ID
        )

    @handle_errors
    async def callback(self, interaction: discord.Interaction):
        await self.view.route_selection(interaction, self.values[0])


class SupportTypeView(discord.ui.View):
    """
    View carrying the support-type menu.

    With ``timeout=None`` the view is registered once at startup as a
    persistent view, so menus keep working after the message-bound
    instance expires or the bot restarts.
    """

    def __init__(self, ticket_manager: Optional[TicketManager], timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self.ticket_manager = ticket_manager
        self.add_item(SupportTypeSelect())

    async def route_selection(self, interaction: discord.Interaction, support_type: str):
        """Create the ticket for a selection and clear the menu."""
        if self.ticket_manager is None:
            raise ConfigurationError(
                "Ticket manager is not initialized",
                user_message="Ticket system is currently unavailable. Please try again later."
            )

        await interaction.response.defer()

        issue = await resolve_issue_text(interaction.message)
        ticket = await self.ticket_manager.create_ticket(interaction.user, support_type, issue)

        await interaction.edit_original_response(content=TICKET_CREATED, view=None)
        logger.info(f"Routed {support_type} request from {interaction.user.id} to ticket {ticket.display_number}")


class IntakeCog(BaseCog):
    """Cog that presents the support menu in direct messages."""

    async def cog_load(self):
        """Register the persistent support menu."""
        await super().cog_load()
        self.bot.add_view(SupportTypeView(self.ticket_manager))

    def build_menu(self) -> SupportTypeView:
        menu_timeout = self.ticket_manager.config.menu_timeout if self.ticket_manager else None
        return SupportTypeView(self.ticket_manager, timeout=menu_timeout)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Reply to a requester's direct message with the support menu."""
        if message.guild is not None or message.author.bot:
            return

        try:
            await message.reply(content=MENU_PROMPT, view=self.build_menu())
        except discord.HTTPException as e:
            log_error(e, context="send_support_menu", user_id=message.author.id)
            return

        self.logger.debug(f"Sent support menu to user {message.author.id}")


async def setup(bot: commands.Bot):
    """Setup function to add the cog to the bot."""
    await bot.add_cog(IntakeCog(bot))
