"""
Exception types raised by the ticket workflow.

Every error carries two messages: the technical one passed to the
constructor (logged) and ``user_message`` (shown in the error embed).
"""

from typing import Optional, Dict, Any


class TicketBotError(Exception):
    """
    Base exception for all ticket bot errors.

    Subclasses set ``error_code`` and ``default_user_message``; both can
    still be overridden per instance.
    """

    error_code: Optional[str] = None
    default_user_message: Optional[str] = None

    def __init__(self, message: str, user_message: Optional[str] = None,
                 error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize TicketBotError.

        Args:
            message: Technical error message for logging
            user_message: Text for the requester or staff member
            error_code: Category used to pick the log level
            details: Extra context appended to detailed error messages
        """
        super().__init__(message)
        self.user_message = user_message or self.default_user_message or message
        self.error_code = error_code or self.error_code
        self.details = details or {}


class PermissionError(TicketBotError):
    """
    Caller may not run a staff command.

    Raised when the caller holds neither the staff role, the admin role
    nor the configured admin identity.
    """

    error_code = "PERMISSION_ERROR"
    default_user_message = "You do not have permission."

    def __init__(self, message: str, required_permission: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_permission = required_permission


class ConfigurationError(TicketBotError):
    """
    Missing or malformed settings.

    Also raised at runtime when the configured support guild is not
    visible to the bot.
    """

    error_code = "CONFIG_ERROR"
    default_user_message = "Bot configuration error. Please contact an administrator."

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_key = config_key


class TicketCreationError(TicketBotError):
    """The unclaimed category or the ticket channel could not be created."""

    error_code = "TICKET_CREATE_ERROR"
    default_user_message = "Failed to create your ticket. Please try again or contact support."

    def __init__(self, message: str, reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reason = reason


class TicketUpdateError(TicketBotError):
    """A ticket channel could not be moved (``stage="claim"``) or deleted (``stage="delete"``)."""

    error_code = "TICKET_UPDATE_ERROR"
    default_user_message = "Failed to update the ticket. Please try again or contact support."

    def __init__(self, message: str, ticket_number: Optional[int] = None,
                 stage: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.ticket_number = ticket_number
        self.stage = stage


class TicketNotFoundError(TicketBotError):
    error_code = "TICKET_NOT_FOUND"
    default_user_message = "This command can only be used in ticket channels."

    def __init__(self, message: str, channel_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.channel_id = channel_id


class TicketStateError(TicketBotError):
    """Closed tickets can be neither claimed nor closed again."""

    error_code = "TICKET_STATE_ERROR"
    default_user_message = "This ticket is already closing."

    def __init__(self, message: str, current_state: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state


class NotificationError(TicketBotError):
    """A requester could not be reached by direct message."""

    error_code = "NOTIFY_ERROR"
    default_user_message = "The ticket creator could not be notified."

    def __init__(self, message: str, user_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.user_id = user_id
