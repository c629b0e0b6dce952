"""
Error handling utilities and decorators for the Support Ticket Bot.

``handle_errors`` is the boundary for interaction callbacks and slash
commands: whatever the wrapped handler raises is logged and answered with
an ephemeral error embed, and nothing reaches the event loop.
"""

import logging
import functools
from typing import Optional, Callable, Tuple, Union

import discord
from discord.ext import commands

from .exceptions import TicketBotError, PermissionError, ConfigurationError

logger = logging.getLogger(__name__)

ReplyTarget = Union[discord.Interaction, commands.Context]

# Error codes caused by what a user did rather than by the bot
EXPECTED_ERROR_CODES = frozenset({
    'PERMISSION_ERROR', 'TICKET_STATE_ERROR', 'TICKET_NOT_FOUND', 'NOTIFY_ERROR'
})

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def log_error(error: Exception, context: Optional[str] = None,
              user_id: Optional[int] = None, guild_id: Optional[int] = None,
              additional_info: Optional[dict] = None) -> None:
    """
    Log an error with context information.

    Expected errors are warnings, Discord API failures are errors, and
    anything else is an error with its traceback.

    Args:
        error: The exception that occurred
        context: Where the error occurred (handler or operation name)
        user_id: ID of the user involved (if applicable)
        guild_id: ID of the guild involved (if applicable)
        additional_info: Extra fields written to structured log files
    """
    where = context or "unknown"
    who = f"user={user_id} guild={guild_id}"
    extra = {'error_type': type(error).__name__, 'context': where}
    if additional_info:
        extra.update(additional_info)

    if isinstance(error, TicketBotError):
        level = logging.WARNING if error.error_code in EXPECTED_ERROR_CODES else logging.ERROR
        logger.log(level, f"Bot error [{error.error_code}] in {where}: {error} ({who})", extra=extra)
    elif isinstance(error, discord.HTTPException):
        logger.error(f"Discord API error in {where}: {error} ({who})", extra=extra)
    else:
        logger.error(f"Unexpected error in {where}: {error!r} ({who})", exc_info=error, extra=extra)


def format_error_message(error: Exception) -> str:
    """Text shown to the user for an error."""
    if not isinstance(error, TicketBotError):
        return GENERIC_ERROR_MESSAGE
    return error.user_message


def describe_error(error: Exception) -> Tuple[str, str, Optional[discord.Color]]:
    """Embed title, description and color for an error reply."""
    if isinstance(error, PermissionError):
        return "❌ Permission Denied", format_error_message(error), discord.Color.orange()
    if isinstance(error, ConfigurationError):
        return "⚙️ Configuration Error", format_error_message(error), discord.Color.orange()
    if isinstance(error, TicketBotError):
        return "❌ Error", format_error_message(error), None
    if isinstance(error, discord.Forbidden):
        return ("❌ Permission Error",
                "The bot doesn't have permission to perform this action. Please check bot permissions.", None)
    if isinstance(error, discord.NotFound):
        return "❌ Not Found", "The requested resource was not found. It may have been deleted.", None
    if isinstance(error, discord.HTTPException):
        return "❌ API Error", "A Discord API error occurred. Please try again later.", None
    return ("❌ Unexpected Error",
            "An unexpected error occurred. The issue has been logged and will be investigated.", None)


async def send_error_embed(interaction_or_context: ReplyTarget,
                           title: str, description: str,
                           color: Optional[discord.Color] = None,
                           ephemeral: bool = True) -> None:
    """
    Send an error embed to the user.

    Interactions that were already answered or deferred get a followup.
    A failure to send is logged, never raised.
    """
    embed = discord.Embed(
        title=title,
        description=description,
        color=color or discord.Color.red(),
        timestamp=discord.utils.utcnow()
    )
    embed.set_footer(text="Ticket Bot Error")

    try:
        if not isinstance(interaction_or_context, discord.Interaction):
            await interaction_or_context.send(embed=embed)
        elif interaction_or_context.response.is_done():
            await interaction_or_context.followup.send(embed=embed, ephemeral=ephemeral)
        else:
            await interaction_or_context.response.send_message(embed=embed, ephemeral=ephemeral)
    except discord.HTTPException as e:
        logger.error(f"Failed to send error embed: {e}")


def _find_reply_target(args: tuple) -> Optional[ReplyTarget]:
    for arg in args:
        if isinstance(arg, (discord.Interaction, commands.Context)):
            return arg
    return None


def handle_errors(func: Callable) -> Callable:
    """
    Decorator for interaction callbacks and slash commands.

    The first Interaction (or Context) argument receives the error reply.
    Without one, the error is only logged.
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            target = _find_reply_target(args)
            user = None
            guild = None
            if isinstance(target, discord.Interaction):
                user, guild = target.user, target.guild
            elif target is not None:
                user, guild = target.author, target.guild

            log_error(
                e,
                context=func.__name__,
                user_id=user.id if user is not None else None,
                guild_id=guild.id if guild is not None else None
            )

            if target is not None:
                title, description, color = describe_error(e)
                await send_error_embed(target, title, description, color=color)

    return wrapper


def require_staff_role(error_message: Optional[str] = None) -> Callable:
    """
    Decorator to require staff or admin authorization for a cog command.

    The wrapped method's cog must expose a ``ticket_manager``; authorization
    is delegated to ``TicketManager.is_authorized``. Place it below
    ``handle_errors`` so the raised PermissionError becomes a denial reply.

    Args:
        error_message: Custom error message for permission denial
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            ticket_manager = getattr(self, 'ticket_manager', None)
            if ticket_manager is None:
                raise ConfigurationError(
                    "Ticket manager is not initialized",
                    user_message="Ticket system is currently unavailable. Please try again later."
                )

            if not ticket_manager.is_authorized(interaction.user):
                raise PermissionError(
                    f"User {interaction.user.id} holds neither the staff role, the admin role nor the admin identity",
                    required_permission="staff_role",
                    user_message=error_message
                )

            return await func(self, interaction, *args, **kwargs)

        return wrapper
    return decorator
