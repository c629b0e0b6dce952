"""
Logging configuration module for the Support Ticket Bot.

This module provides logging setup with console output, file rotation
and compression of rotated files.
"""

from .logger import setup_logging, get_logger, TicketBotLogger
from .formatters import TicketBotFormatter
from .handlers import RotatingFileHandler

__all__ = [
    'setup_logging',
    'get_logger',
    'TicketBotLogger',
    'TicketBotFormatter',
    'RotatingFileHandler'
]
