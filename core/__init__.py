# Core package for ticket routing state and lifecycle

from .ticket_registry import TicketRegistry
from .ticket_manager import TicketManager

__all__ = [
    'TicketRegistry',
    'TicketManager'
]
