"""
Ticket Manager for the Support Ticket Bot.

This module provides the core ticket lifecycle: routing a support-type
selection into a private ticket channel, claiming a ticket into a
per-staff category, and closing it with a delayed channel deletion.
"""

import asyncio
import logging
import re
from typing import Dict, Optional, Set, Tuple

import discord
from discord.ext import commands

from config.config_manager import BotConfig
from core.messages import new_ticket_message, claimed_notification
from core.ticket_registry import TicketRegistry
from errors.exceptions import (
    ConfigurationError, TicketCreationError, TicketUpdateError,
    TicketNotFoundError, TicketStateError, NotificationError
)
from errors.handlers import log_error
from models.ticket import (
    Ticket, TicketState, UNCLAIMED_CATEGORY_NAME, CLAIMED_CATEGORY_PREFIX,
    TICKET_CHANNEL_PREFIX, claimed_category_name, format_ticket_number,
    priority_for, category_label
)

logger = logging.getLogger(__name__)

TICKET_CHANNEL_PATTERN = re.compile(rf"{TICKET_CHANNEL_PREFIX}(\d+)")
UNKNOWN_SUPPORT_TYPE = "unknown"


class TicketManager:
    """
    Core ticket management system.

    Handles ticket lifecycle operations on top of the Discord client and
    records every change in the injected TicketRegistry.
    """

    def __init__(self, bot: commands.Bot, registry: TicketRegistry, config: BotConfig):
        """
        Initialize TicketManager.

        Args:
            bot: Discord bot instance
            registry: Owner of in-memory ticket state
            config: Bot configuration (guild, roles, close delay)
        """
        self.bot = bot
        self.registry = registry
        self.config = config
        self._category_locks: Dict[Tuple[int, str], asyncio.Lock] = {}
        self._created_categories: Dict[Tuple[int, str], discord.CategoryChannel] = {}
        self._pending_deletions: Dict[int, asyncio.Task] = {}

    @property
    def pending_deletions(self) -> Set[asyncio.Task]:
        return set(self._pending_deletions.values())

    def is_deletion_pending(self, channel_id: int) -> bool:
        return channel_id in self._pending_deletions

    def is_authorized(self, user: discord.abc.User) -> bool:
        """
        Check whether a user may claim and close tickets.

        Args:
            user: Member (or user, outside a guild) invoking a staff command

        Returns:
            bool: True for the staff role, the admin role or the admin identity
        """
        if self.config.admin_user_id is not None and user.id == self.config.admin_user_id:
            return True

        allowed = set(self.config.authorized_role_ids)
        roles = getattr(user, 'roles', None) or []
        return any(role.id in allowed for role in roles)

    def get_support_guild(self) -> discord.Guild:
        """
        Resolve the configured support guild.

        Raises:
            ConfigurationError: If the bot is not in the configured guild
        """
        guild = self.bot.get_guild(self.config.guild_id)
        if guild is None:
            raise ConfigurationError(
                f"Guild {self.config.guild_id} is not available to the bot",
                config_key='GUILD_ID',
                user_message="The support server is currently unavailable. Please try again later."
            )
        return guild

    async def _get_category_lock(self, key: Tuple[int, str]) -> asyncio.Lock:
        """
        Get or create a lock for a category name to prevent duplicate creation.

        Args:
            key: (guild ID, category name)

        Returns:
            asyncio.Lock: Lock for the category name
        """
        if key not in self._category_locks:
            self._category_locks[key] = asyncio.Lock()
        return self._category_locks[key]

    async def find_or_create_category(self, guild: discord.Guild, name: str) -> discord.CategoryChannel:
        """
        Return the category called ``name``, creating it if absent.

        Concurrent callers for the same name are serialized, and a category
        created here is remembered until it shows up in the guild cache.

        Args:
            guild: Guild to search
            name: Exact category name

        Returns:
            discord.CategoryChannel: Existing or newly created category
        """
        key = (guild.id, name)
        lock = await self._get_category_lock(key)
        async with lock:
            category = discord.utils.get(guild.categories, name=name)
            if category is not None:
                self._created_categories.pop(key, None)
                return category

            category = self._created_categories.get(key)
            if category is not None:
                return category

            category = await guild.create_category(name, reason="Ticket routing")
            self._created_categories[key] = category
            logger.info(f"Created category {name} ({category.id}) in guild {guild.id}")
            return category

    def _ticket_overwrites(self, guild: discord.Guild) -> Dict[object, discord.PermissionOverwrite]:
        """Hide the channel from everyone except the staff and admin roles."""
        overwrites = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False)
        }

        for role_id in self.config.authorized_role_ids:
            role = guild.get_role(role_id)
            if role is None:
                logger.warning(f"Configured role {role_id} not found in guild {guild.id}")
                continue
            overwrites[role] = discord.PermissionOverwrite(view_channel=True, send_messages=True)

        if guild.me is not None:
            overwrites[guild.me] = discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                manage_channels=True
            )

        return overwrites

    async def create_ticket(self, requester: discord.abc.User, support_type: str, issue: str) -> Ticket:
        """
        Route a support-type selection into a new ticket channel.

        Args:
            requester: User who picked the support type
            support_type: Selected menu value (``technical``, ``general``, ...)
            issue: Text quoted in the ticket's opening message

        Returns:
            Ticket: Created ticket record

        Raises:
            ConfigurationError: If the support guild is unavailable
            TicketCreationError: If the category or channel cannot be created
        """
        guild = self.get_support_guild()

        try:
            category = await self.find_or_create_category(guild, UNCLAIMED_CATEGORY_NAME)
            number = self.registry.next_ticket_number()
            channel = await guild.create_text_channel(
                name=f"{TICKET_CHANNEL_PREFIX}{format_ticket_number(number)}",
                category=category,
                overwrites=self._ticket_overwrites(guild),
                reason=f"Support ticket requested by {requester} ({requester.id})"
            )
        except discord.Forbidden:
            raise TicketCreationError("Bot lacks permission to create ticket channels", reason="forbidden")
        except discord.HTTPException as e:
            raise TicketCreationError(f"Failed to create ticket channel: {e}", reason="http")

        ticket = Ticket.for_selection(
            number=number,
            channel_id=channel.id,
            requester_id=requester.id,
            support_type=support_type,
            issue=issue
        )
        self.registry.add_ticket(ticket)

        await channel.send(new_ticket_message(
            requester.id,
            ticket.issue,
            ticket.category,
            ticket.priority,
            ticket.formatted_created_at
        ))

        logger.info(
            f"Created ticket {ticket.display_number} ({ticket.priority}) for user {requester.id} "
            f"in channel {channel.id}"
        )
        return ticket

    def resolve_ticket(self, channel: discord.abc.GuildChannel) -> Ticket:
        """
        Find the ticket record for a channel.

        Channels named ``ticket-<digits>`` without a record (for example after
        a restart) are adopted with an unknown requester.

        Raises:
            TicketNotFoundError: If the channel is not a ticket channel
        """
        ticket = self.registry.get_ticket(channel.id)
        if ticket is not None:
            return ticket

        match = TICKET_CHANNEL_PATTERN.fullmatch(getattr(channel, 'name', None) or '')
        if match is None:
            raise TicketNotFoundError(f"Channel {channel.id} is not a ticket channel", channel_id=channel.id)

        parent = getattr(channel, 'category', None)
        parent_name = getattr(parent, 'name', None) or ''
        state = TicketState.CLAIMED if parent_name.startswith(CLAIMED_CATEGORY_PREFIX) else TicketState.UNCLAIMED

        ticket = Ticket(
            number=int(match.group(1)),
            channel_id=channel.id,
            requester_id=None,
            support_type=UNKNOWN_SUPPORT_TYPE,
            category=category_label(UNKNOWN_SUPPORT_TYPE),
            priority=priority_for(UNKNOWN_SUPPORT_TYPE),
            created_at=discord.utils.snowflake_time(channel.id),
            state=state
        )
        self.registry.add_ticket(ticket)
        logger.info(f"Adopted untracked ticket channel {channel.name} ({channel.id}) as {state.value}")
        return ticket

    async def claim_ticket(self, channel: discord.TextChannel, staff: discord.Member) -> Ticket:
        """
        Move a ticket channel into the claimant's category.

        Args:
            channel: Ticket channel the command was used in
            staff: Authorized claimant

        Returns:
            Ticket: The claimed ticket

        Raises:
            TicketNotFoundError: If the channel is not a ticket channel
            TicketStateError: If the ticket is already closing
            TicketUpdateError: If the channel cannot be moved
        """
        ticket = self.resolve_ticket(channel)
        if not ticket.is_open:
            raise TicketStateError(
                f"Ticket {ticket.display_number} is closed and cannot be claimed",
                current_state=ticket.state.value,
                user_message="This ticket is closing and can no longer be claimed."
            )

        category = await self.find_or_create_category(channel.guild, claimed_category_name(staff.name))

        try:
            await channel.edit(
                category=category,
                sync_permissions=False,
                reason=f"Ticket {ticket.display_number} claimed by {staff}"
            )
        except discord.Forbidden:
            raise TicketUpdateError(
                "Bot lacks permission to move ticket channel",
                ticket_number=ticket.number,
                stage="claim",
                user_message="The bot could not move this ticket. Please check bot permissions."
            )
        except discord.HTTPException as e:
            raise TicketUpdateError(f"Failed to move ticket channel: {e}", ticket_number=ticket.number, stage="claim")

        ticket.claim(staff.id)
        logger.info(f"Ticket {ticket.display_number} claimed by staff {staff.id}")
        return ticket

    async def notify_requester(self, ticket: Ticket, staff: discord.abc.User) -> bool:
        """
        Tell the ticket's requester that their ticket was claimed.

        Args:
            ticket: Claimed ticket
            staff: Claimant named in the message

        Returns:
            bool: False when the requester is unknown or cannot be messaged
        """
        if ticket.requester_id is None:
            log_error(
                NotificationError(f"Ticket {ticket.display_number} has no known requester"),
                context="notify_requester"
            )
            return False

        try:
            requester = self.bot.get_user(ticket.requester_id)
            if requester is None:
                requester = await self.bot.fetch_user(ticket.requester_id)
            await requester.send(claimed_notification(staff.name))
        except discord.HTTPException as e:
            log_error(
                NotificationError(
                    f"Could not notify requester {ticket.requester_id} of ticket {ticket.display_number}: {e}",
                    user_id=ticket.requester_id
                ),
                context="notify_requester",
                user_id=ticket.requester_id
            )
            return False

        logger.info(f"Notified requester {ticket.requester_id} that ticket {ticket.display_number} was claimed")
        return True

    def close_ticket(self, channel: discord.TextChannel, staff: discord.abc.User) -> Ticket:
        """
        Mark a ticket closed and drop its requester mapping.

        The channel itself is removed by ``schedule_deletion``. A closed
        ticket whose channel deletion failed may be closed again, which
        lets staff retry the deletion.

        Raises:
            TicketNotFoundError: If the channel is not a ticket channel
            TicketStateError: If the ticket's channel deletion is already pending
        """
        ticket = self.resolve_ticket(channel)

        if self.is_deletion_pending(ticket.channel_id):
            raise TicketStateError(
                f"Ticket {ticket.display_number} is already closing",
                current_state=ticket.state.value,
                user_message="This ticket is already closing."
            )

        if not ticket.is_open:
            logger.info(f"Retrying deletion of closed ticket {ticket.display_number} for staff {staff.id}")
            return ticket

        ticket.close()

        if ticket.requester_id is not None:
            self.registry.remove(ticket.requester_id, ticket.channel_id)

        logger.info(f"Ticket {ticket.display_number} closed by staff {staff.id}", extra={'ticket': ticket.to_dict()})
        return ticket

    def schedule_deletion(self, channel: discord.TextChannel, ticket: Ticket) -> asyncio.Task:
        """
        Delete the ticket channel once the close delay has elapsed.

        Returns:
            asyncio.Task: The scheduled deletion; it is not cancelled on close
        """
        existing = self._pending_deletions.get(channel.id)
        if existing is not None:
            return existing

        task = asyncio.create_task(self._delete_after_delay(channel, ticket))
        self._pending_deletions[channel.id] = task
        task.add_done_callback(lambda done: self._forget_deletion(channel.id, done))
        return task

    def _forget_deletion(self, channel_id: int, task: asyncio.Task) -> None:
        if self._pending_deletions.get(channel_id) is task:
            del self._pending_deletions[channel_id]

    def forget_channel(self, channel: discord.abc.GuildChannel) -> None:
        """
        Drop local state for a deleted channel.

        A deleted category is evicted from the created-category cache so the
        next lookup creates it again; a deleted ticket channel loses its record.
        """
        if isinstance(channel, discord.CategoryChannel):
            stale = [key for key, category in self._created_categories.items() if category.id == channel.id]
            for key in stale:
                del self._created_categories[key]
                logger.info(f"Forgot deleted category {key[1]} ({channel.id}) in guild {key[0]}")
            return

        ticket = self.registry.discard_ticket(channel.id)
        if ticket is not None:
            if ticket.requester_id is not None:
                self.registry.remove(ticket.requester_id, ticket.channel_id)
            logger.info(f"Forgot ticket {ticket.display_number}: channel {channel.id} was deleted")

    async def _delete_after_delay(self, channel: discord.TextChannel, ticket: Ticket) -> None:
        await asyncio.sleep(self.config.close_delay)

        try:
            await channel.delete(reason=f"Ticket {ticket.display_number} closed")
        except discord.NotFound:
            logger.info(f"Ticket channel {channel.id} was already deleted")
        except discord.HTTPException as e:
            log_error(
                TicketUpdateError(
                    f"Failed to delete ticket channel {channel.id}: {e}",
                    ticket_number=ticket.number,
                    stage="delete"
                ),
                context="delete_ticket_channel"
            )
            return
        else:
            logger.info(f"Deleted channel {channel.id} for ticket {ticket.display_number}")

        self.registry.discard_ticket(channel.id)
