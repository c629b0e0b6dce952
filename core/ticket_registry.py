"""
In-memory ticket registry.

Owns every piece of mutable ticket state for the lifetime of the process:
the requester-to-channel map, the ticket records keyed by channel, and the
ticket number counter. Methods are synchronous so each call completes
without an await point inside the event loop.
"""

import logging
from typing import Dict, List, Optional

from models.ticket import Ticket

logger = logging.getLogger(__name__)


class TicketRegistry:
    """Single owner of open-ticket state. Nothing here is persisted."""

    def __init__(self, start_number: int = 1):
        if start_number < 1:
            raise ValueError(f"start_number must be at least 1, got {start_number}")
        self._next_number = start_number
        self._channels_by_requester: Dict[int, int] = {}
        self._tickets_by_channel: Dict[int, Ticket] = {}

    def next_ticket_number(self) -> int:
        """Allocate the next ticket number. Numbers are never reused."""
        number = self._next_number
        self._next_number += 1
        return number

    def set(self, requester_id: int, channel_id: int) -> None:
        """Point a requester at a channel, replacing any previous mapping."""
        previous = self._channels_by_requester.get(requester_id)
        if previous is not None and previous != channel_id:
            logger.info(f"Requester {requester_id} now maps to channel {channel_id} (was {previous})")
        self._channels_by_requester[requester_id] = channel_id

    def get(self, requester_id: int) -> Optional[int]:
        return self._channels_by_requester.get(requester_id)

    def remove(self, requester_id: int, channel_id: Optional[int] = None) -> bool:
        """
        Drop a requester mapping.

        When ``channel_id`` is given the mapping is only dropped if it still
        points at that channel, so closing an older ticket never clears a
        newer one.
        """
        current = self._channels_by_requester.get(requester_id)
        if current is None:
            return False
        if channel_id is not None and current != channel_id:
            return False
        del self._channels_by_requester[requester_id]
        return True

    def add_ticket(self, ticket: Ticket) -> None:
        """Record a ticket and map its requester to it."""
        self._tickets_by_channel[ticket.channel_id] = ticket
        if ticket.requester_id is not None:
            self.set(ticket.requester_id, ticket.channel_id)

    def get_ticket(self, channel_id: int) -> Optional[Ticket]:
        return self._tickets_by_channel.get(channel_id)

    def discard_ticket(self, channel_id: int) -> Optional[Ticket]:
        """Forget a ticket record once its channel is gone."""
        return self._tickets_by_channel.pop(channel_id, None)

    def open_tickets(self) -> List[Ticket]:
        return [ticket for ticket in self._tickets_by_channel.values() if ticket.is_open]

    def __contains__(self, requester_id: int) -> bool:
        return requester_id in self._channels_by_requester

    def __len__(self) -> int:
        return len(self._channels_by_requester)
