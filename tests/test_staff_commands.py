"""
Tests for the /claim and /close staff commands.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

import discord
from discord import app_commands

from conftest import http_error, make_interaction, REQUESTER_ID, STAFF_ID
from commands.staff_commands import StaffCommands
from core.messages import CLAIM_SUCCESS, CLOSING_TICKET, NOTIFY_FAILED
from models.ticket import TicketState


@pytest.fixture
def staff_cog(mock_bot, ticket_manager):
    cog = StaffCommands(mock_bot)
    cog.ticket_manager = ticket_manager
    return cog


@pytest.fixture
def requester_dm(mock_bot):
    """Make the requester reachable by direct message."""
    user = MagicMock(spec=discord.User)
    user.id = REQUESTER_ID
    user.send = AsyncMock()
    mock_bot.fetch_user.return_value = user
    return user


class TestClaimCommand:
    """Test cases for /claim."""

    @pytest.mark.asyncio
    async def test_unauthorized_claim_is_denied(self, staff_cog, mock_member, ticket_channel):
        interaction = make_interaction(mock_member, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.claim.callback(staff_cog, interaction)

        interaction.response.send_message.assert_awaited_once()
        kwargs = interaction.response.send_message.call_args.kwargs
        assert kwargs['ephemeral'] is True
        assert kwargs['embed'].description == "You do not have permission."
        ticket_channel.edit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_claim_moves_and_notifies(self, staff_cog, ticket_manager, mock_guild, mock_staff,
                                            mock_requester, requester_dm):
        ticket = await ticket_manager.create_ticket(mock_requester, "technical", "Server is down")

        ticket_channel = MagicMock(spec=discord.TextChannel)
        ticket_channel.id = ticket.channel_id
        ticket_channel.name = ticket.channel_name
        ticket_channel.guild = mock_guild
        ticket_channel.edit = AsyncMock()
        interaction = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.claim.callback(staff_cog, interaction)

        interaction.response.defer.assert_awaited_once()
        ticket_channel.edit.assert_awaited_once()
        assert ticket_channel.edit.call_args.kwargs['category'].name == "claimed-staffuser"
        interaction.followup.send.assert_awaited_once_with(CLAIM_SUCCESS)
        requester_dm.send.assert_awaited_once()
        assert "StaffUser" in requester_dm.send.call_args.args[0]
        assert ticket.state == TicketState.CLAIMED
        assert ticket.claimed_by == STAFF_ID

    @pytest.mark.asyncio
    async def test_claim_reports_failed_notification(self, staff_cog, mock_staff, ticket_channel, mock_bot):
        """Test an adopted ticket is claimed but staff learn nobody was notified."""
        interaction = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.claim.callback(staff_cog, interaction)

        ticket_channel.edit.assert_awaited_once()
        assert interaction.followup.send.await_args_list[0].args == (CLAIM_SUCCESS,)
        last = interaction.followup.send.await_args_list[-1]
        assert last.args == (NOTIFY_FAILED,)
        assert last.kwargs == {'ephemeral': True}
        mock_bot.fetch_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_claim_outside_ticket_channel(self, staff_cog, mock_staff, ticket_channel):
        ticket_channel.name = "general"
        interaction = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)
        interaction.response.is_done.return_value = True

        await staff_cog.claim.callback(staff_cog, interaction)

        ticket_channel.edit.assert_not_awaited()
        embed = interaction.followup.send.call_args.kwargs['embed']
        assert embed.description == "This command can only be used in ticket channels."

    @pytest.mark.asyncio
    async def test_claim_without_ticket_manager(self, mock_bot, mock_staff, ticket_channel):
        cog = StaffCommands(mock_bot)
        interaction = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)

        await cog.claim.callback(cog, interaction)

        embed = interaction.response.send_message.call_args.kwargs['embed']
        assert embed.title == "⚙️ Configuration Error"


class TestCloseCommand:
    """Test cases for /close."""

    @pytest.mark.asyncio
    async def test_close_acknowledges_then_deletes(self, staff_cog, ticket_manager, mock_staff, ticket_channel):
        interaction = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.close.callback(staff_cog, interaction)

        interaction.response.send_message.assert_awaited_once_with(CLOSING_TICKET)
        ticket_channel.delete.assert_not_awaited()

        await asyncio.gather(*ticket_manager.pending_deletions)

        ticket_channel.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_admin_identity_may_close(self, staff_cog, ticket_manager, ticket_channel):
        admin = MagicMock(spec=discord.Member)
        admin.id = ticket_manager.config.admin_user_id
        admin.roles = []
        interaction = make_interaction(admin, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.close.callback(staff_cog, interaction)

        interaction.response.send_message.assert_awaited_once_with(CLOSING_TICKET)
        await asyncio.gather(*ticket_manager.pending_deletions)

    @pytest.mark.asyncio
    async def test_unauthorized_close_is_denied(self, staff_cog, ticket_manager, mock_member, ticket_channel):
        interaction = make_interaction(mock_member, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.close.callback(staff_cog, interaction)

        embed = interaction.response.send_message.call_args.kwargs['embed']
        assert embed.description == "You do not have permission."
        assert not ticket_manager.pending_deletions
        ticket_channel.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_close_is_rejected(self, staff_cog, ticket_manager, mock_staff, ticket_channel):
        """Test a ticket already closing schedules no second deletion."""
        first = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)
        second = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.close.callback(staff_cog, first)
        await staff_cog.close.callback(staff_cog, second)

        assert len(ticket_manager.pending_deletions) == 1
        embed = second.response.send_message.call_args.kwargs['embed']
        assert embed.description == "This ticket is already closing."

        await asyncio.gather(*ticket_manager.pending_deletions)
        ticket_channel.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_channel_deleted_when_acknowledgment_fails(self, staff_cog, ticket_manager, mock_staff,
                                                             ticket_channel):
        """Test an expired interaction still gets its ticket channel deleted."""
        interaction = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)
        interaction.response.send_message.side_effect = http_error(discord.NotFound, 404, "Unknown interaction")

        await staff_cog.close.callback(staff_cog, interaction)

        assert len(ticket_manager.pending_deletions) == 1
        await asyncio.gather(*ticket_manager.pending_deletions)
        ticket_channel.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_retries_failed_deletion(self, staff_cog, ticket_manager, mock_staff, ticket_channel):
        """Test a second /close deletes a channel whose first deletion failed."""
        ticket_channel.delete.side_effect = [http_error(discord.HTTPException, 503, "Service Unavailable"), None]
        first = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)
        second = make_interaction(mock_staff, channel=ticket_channel, guild=ticket_channel.guild)

        await staff_cog.close.callback(staff_cog, first)
        await asyncio.gather(*ticket_manager.pending_deletions)
        await staff_cog.close.callback(staff_cog, second)
        await asyncio.gather(*ticket_manager.pending_deletions)

        second.response.send_message.assert_awaited_once_with(CLOSING_TICKET)
        assert ticket_channel.delete.await_count == 2
        assert ticket_manager.registry.get_ticket(ticket_channel.id) is None


class TestAppCommandErrors:
    """Test cases for errors raised before a command body runs."""

    @pytest.mark.asyncio
    async def test_direct_message_use_is_rejected(self, staff_cog, mock_staff):
        interaction = make_interaction(mock_staff)
        interaction.command = MagicMock()
        interaction.command.name = "claim"

        await staff_cog.cog_app_command_error(interaction, app_commands.NoPrivateMessage())

        embed = interaction.response.send_message.call_args.kwargs['embed']
        assert embed.title == "❌ Server Only"
        assert interaction.response.send_message.call_args.kwargs['ephemeral'] is True

    @pytest.mark.asyncio
    async def test_other_errors_get_generic_reply(self, staff_cog, mock_staff):
        interaction = make_interaction(mock_staff)
        interaction.command = None

        await staff_cog.cog_app_command_error(interaction, app_commands.AppCommandError("boom"))

        embed = interaction.response.send_message.call_args.kwargs['embed']
        assert embed.title == "❌ Command Error"
