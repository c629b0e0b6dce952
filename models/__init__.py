# Models package for ticket data structures

from .ticket import (
    Ticket,
    TicketState,
    SupportOption,
    SUPPORT_OPTIONS,
    priority_for,
    category_label,
    format_ticket_number
)

__all__ = [
    'Ticket',
    'TicketState',
    'SupportOption',
    'SUPPORT_OPTIONS',
    'priority_for',
    'category_label',
    'format_ticket_number'
]
