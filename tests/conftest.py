"""
Shared fixtures for the ticket bot tests.

Discord objects are spec'd mocks; no gateway connection is made.
"""

import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest

import discord
from discord.ext import commands

from config.config_manager import BotConfig
from core.ticket_manager import TicketManager
from core.ticket_registry import TicketRegistry

GUILD_ID = 12345
STAFF_ROLE_ID = 67890
ADMIN_ROLE_ID = 11111
ADMIN_USER_ID = 99999
REQUESTER_ID = 54321
STAFF_ID = 98765


def http_error(cls=discord.HTTPException, status=500, message="error"):
    """Build a discord.py HTTP exception without a real response."""
    response = MagicMock()
    response.status = status
    response.reason = "Error"
    return cls(response, message)


def make_role(role_id):
    role = MagicMock(spec=discord.Role)
    role.id = role_id
    return role


@pytest.fixture
def config():
    return BotConfig(
        token="test-token",
        guild_id=GUILD_ID,
        staff_role_id=STAFF_ROLE_ID,
        admin_role_id=ADMIN_ROLE_ID,
        admin_user_id=ADMIN_USER_ID,
        close_delay=0.05
    )


@pytest.fixture
def mock_guild():
    """Create a mock guild that records created categories and channels."""
    guild = MagicMock(spec=discord.Guild)
    guild.id = GUILD_ID
    guild.categories = []
    guild.default_role = MagicMock(spec=discord.Role)
    guild.me = MagicMock(spec=discord.Member)

    roles = {STAFF_ROLE_ID: make_role(STAFF_ROLE_ID), ADMIN_ROLE_ID: make_role(ADMIN_ROLE_ID)}
    guild.get_role = MagicMock(side_effect=roles.get)

    ids = itertools.count(1000)

    async def create_category(name, **kwargs):
        category = MagicMock(spec=discord.CategoryChannel)
        category.id = next(ids)
        category.name = name
        return category

    async def create_text_channel(name, **kwargs):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = next(ids) * 1000
        channel.name = name
        channel.guild = guild
        channel.category = kwargs.get('category')
        channel.send = AsyncMock()
        channel.edit = AsyncMock()
        channel.delete = AsyncMock()
        return channel

    guild.create_category = AsyncMock(side_effect=create_category)
    guild.create_text_channel = AsyncMock(side_effect=create_text_channel)
    return guild


@pytest.fixture
def mock_bot(mock_guild):
    bot = MagicMock(spec=commands.Bot)
    bot.get_guild = MagicMock(return_value=mock_guild)
    bot.get_user = MagicMock(return_value=None)
    bot.fetch_user = AsyncMock()
    return bot


@pytest.fixture
def registry():
    return TicketRegistry()


@pytest.fixture
def ticket_manager(mock_bot, registry, config):
    return TicketManager(mock_bot, registry, config)


@pytest.fixture
def mock_requester():
    """Create a mock DM user."""
    user = MagicMock(spec=discord.User)
    user.id = REQUESTER_ID
    user.name = "requester"
    user.mention = f"<@{REQUESTER_ID}>"
    user.bot = False
    return user


@pytest.fixture
def mock_staff():
    """Create a mock member holding the staff role."""
    staff = MagicMock(spec=discord.Member)
    staff.id = STAFF_ID
    staff.name = "StaffUser"
    staff.mention = f"<@{STAFF_ID}>"
    staff.roles = [make_role(STAFF_ROLE_ID)]
    return staff


@pytest.fixture
def mock_member():
    """Create a mock member without any staff access."""
    member = MagicMock(spec=discord.Member)
    member.id = 22222
    member.name = "Member"
    member.roles = [make_role(33333)]
    return member


@pytest.fixture
def ticket_channel(mock_guild):
    """Create a mock text channel named like a ticket."""
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = 44444000
    channel.name = "ticket-001"
    channel.guild = mock_guild
    channel.category = None
    channel.send = AsyncMock()
    channel.edit = AsyncMock()
    channel.delete = AsyncMock()
    return channel


def make_interaction(user, channel=None, guild=None):
    """Create a mock interaction whose response is not yet done."""
    interaction = MagicMock(spec=discord.Interaction)
    interaction.user = user
    interaction.channel = channel
    interaction.guild = guild
    interaction.response = MagicMock()
    interaction.response.is_done = MagicMock(return_value=False)
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    return interaction
