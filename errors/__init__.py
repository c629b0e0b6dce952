"""
Error handling module for the Support Ticket Bot.

This module provides custom exception classes and error handling utilities
for consistent error management across the bot.
"""

from .exceptions import (
    TicketBotError,
    PermissionError,
    ConfigurationError,
    TicketCreationError,
    TicketUpdateError,
    TicketNotFoundError,
    TicketStateError,
    NotificationError
)

from .handlers import (
    handle_errors,
    send_error_embed,
    format_error_message,
    describe_error,
    log_error,
    require_staff_role
)

__all__ = [
    # Exception classes
    'TicketBotError',
    'PermissionError',
    'ConfigurationError',
    'TicketCreationError',
    'TicketUpdateError',
    'TicketNotFoundError',
    'TicketStateError',
    'NotificationError',

    # Handler functions
    'handle_errors',
    'send_error_embed',
    'format_error_message',
    'describe_error',
    'log_error',
    'require_staff_role'
]
