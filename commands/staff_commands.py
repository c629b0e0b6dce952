"""
Staff Commands Cog

Implements the /claim and /close slash commands used by staff inside
ticket channels.
"""

import discord
from discord.ext import commands
from discord import app_commands

from commands.base_cog import BaseCog
from core.messages import CLAIM_SUCCESS, CLOSING_TICKET, NOTIFY_FAILED
from errors import handle_errors, require_staff_role


class StaffCommands(BaseCog):
    """Cog containing the staff ticket lifecycle commands."""

    @app_commands.command(name="claim", description="Claim this ticket.")
    @app_commands.guild_only()
    @handle_errors
    @require_staff_role()
    async def claim(self, interaction: discord.Interaction):
        """
        Claim the ticket this command is used in.

        Moves the channel into the claimant's ``claimed-<username>``
        category and notifies the ticket's requester by direct message.
        """
        await interaction.response.defer()

        ticket = await self.ticket_manager.claim_ticket(interaction.channel, interaction.user)
        await interaction.followup.send(CLAIM_SUCCESS)

        notified = await self.ticket_manager.notify_requester(ticket, interaction.user)
        if not notified:
            await interaction.followup.send(NOTIFY_FAILED, ephemeral=True)

    @app_commands.command(name="close", description="Close this ticket.")
    @app_commands.guild_only()
    @handle_errors
    @require_staff_role()
    async def close(self, interaction: discord.Interaction):
        """
        Close the ticket this command is used in.

        The acknowledgment is sent first; the channel is deleted once the
        configured close delay has passed, even if the acknowledgment fails.
        """
        ticket = self.ticket_manager.close_ticket(interaction.channel, interaction.user)
        try:
            await interaction.response.send_message(CLOSING_TICKET)
        finally:
            self.ticket_manager.schedule_deletion(interaction.channel, ticket)


async def setup(bot: commands.Bot):
    """Setup function to add the cog to the bot."""
    await bot.add_cog(StaffCommands(bot))
