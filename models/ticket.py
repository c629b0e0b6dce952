"""
Ticket data model for the support ticket bot.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, NamedTuple, Optional

from errors.exceptions import TicketStateError

UNCLAIMED_CATEGORY_NAME = "unclaimed-tickets"
CLAIMED_CATEGORY_PREFIX = "claimed-"
TICKET_CHANNEL_PREFIX = "ticket-"

PRIORITY_HIGH = "HIGH PRIORITY"
PRIORITY_MEDIUM = "Medium"
PRIORITY_LOW = "Low"


class SupportOption(NamedTuple):
    """One entry of the support-type select menu."""
    label: str
    value: str
    emoji: str


SUPPORT_OPTIONS: List[SupportOption] = [
    SupportOption(label="Technical Support", value="technical", emoji="🛠️"),
    SupportOption(label="General Questions", value="general", emoji="💬"),
    SupportOption(label="Other", value="other", emoji="❓"),
]


def priority_for(support_type: str) -> str:
    """Priority for a support type; unknown values are Low."""
    if support_type == "technical":
        return PRIORITY_HIGH
    if support_type == "general":
        return PRIORITY_MEDIUM
    return PRIORITY_LOW


def category_label(support_type: str) -> str:
    """Capitalize the first character only, e.g. ``technical`` -> ``Technical``."""
    return support_type[:1].upper() + support_type[1:]


def format_ticket_number(number: int) -> str:
    """Zero pad to at least three digits: 1 -> ``001``, 1000 -> ``1000``."""
    return str(number).zfill(3)


def claimed_category_name(username: str) -> str:
    return f"{CLAIMED_CATEGORY_PREFIX}{username.lower()}"


class TicketState(Enum):
    """Enumeration for ticket state values."""
    UNCLAIMED = "unclaimed"
    CLAIMED = "claimed"
    CLOSED = "closed"


@dataclass
class Ticket:
    """
    Data model representing a support ticket channel.

    Attributes:
        number: Sequential ticket number (process lifetime)
        channel_id: Discord channel ID of the ticket channel
        requester_id: Discord user ID of the requester (None when unknown)
        support_type: Selected support type value
        category: Display label derived from the support type
        priority: Priority derived from the support type
        created_at: Wall-clock time the ticket was requested
        issue: Text quoted in the intake message
        state: Current lifecycle state
        claimed_by: Discord user ID of the current claimant
        closed_at: Timestamp when the ticket was closed
    """
    number: int
    channel_id: int
    requester_id: Optional[int]
    support_type: str
    category: str
    priority: str
    created_at: datetime
    issue: str = ""
    state: TicketState = TicketState.UNCLAIMED
    claimed_by: Optional[int] = None
    closed_at: Optional[datetime] = None

    @classmethod
    def for_selection(cls, number: int, channel_id: int, requester_id: Optional[int],
                      support_type: str, issue: str = "",
                      created_at: Optional[datetime] = None) -> 'Ticket':
        """Build an unclaimed ticket from a menu selection."""
        return cls(
            number=number,
            channel_id=channel_id,
            requester_id=requester_id,
            support_type=support_type,
            category=category_label(support_type),
            priority=priority_for(support_type),
            created_at=created_at or datetime.now(),
            issue=issue
        )

    @property
    def display_number(self) -> str:
        return format_ticket_number(self.number)

    @property
    def channel_name(self) -> str:
        return f"{TICKET_CHANNEL_PREFIX}{self.display_number}"

    @property
    def formatted_created_at(self) -> str:
        return self.created_at.strftime("%c")

    @property
    def is_open(self) -> bool:
        return self.state is not TicketState.CLOSED

    def claim(self, staff_id: int) -> None:
        """Move the ticket to CLAIMED; re-claiming hands it to the new claimant."""
        if self.state is TicketState.CLOSED:
            raise TicketStateError(
                f"Ticket {self.display_number} is closed and cannot be claimed",
                current_state=self.state.value,
                user_message="This ticket is closing and can no longer be claimed."
            )
        self.state = TicketState.CLAIMED
        self.claimed_by = staff_id

    def close(self, closed_at: Optional[datetime] = None) -> None:
        if self.state is TicketState.CLOSED:
            raise TicketStateError(
                f"Ticket {self.display_number} is already closed",
                current_state=self.state.value
            )
        self.state = TicketState.CLOSED
        self.closed_at = closed_at or datetime.now()

    def to_dict(self) -> dict:
        """Convert ticket to dictionary representation."""
        return {
            'number': self.number,
            'channel_id': self.channel_id,
            'requester_id': self.requester_id,
            'support_type': self.support_type,
            'category': self.category,
            'priority': self.priority,
            'created_at': self.created_at,
            'issue': self.issue,
            'state': self.state.value,
            'claimed_by': self.claimed_by,
            'closed_at': self.closed_at
        }
