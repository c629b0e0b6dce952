"""
Logging setup for the Support Ticket Bot.

Configures the root logger once with console output plus size-rotated
``bot.log`` and ``error.log`` files. Modules keep using
``logging.getLogger(__name__)`` and inherit these handlers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Dict

from .formatters import TicketBotFormatter
from .handlers import RotatingFileHandler

MB = 1024 * 1024

# (file name, max bytes, backups, minimum level or None for the configured level)
LOG_FILES = (
    ("bot.log", 10 * MB, 5, None),
    ("error.log", 5 * MB, 3, logging.ERROR),
)


class TicketBotLogger:
    """Owns the root logger configuration for the running bot."""

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO", use_colors: Optional[bool] = None):
        """
        Args:
            log_dir: Directory for the log files (created if missing)
            log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
            use_colors: Color console output (defaults to whether stdout is a TTY)
        """
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.use_colors = sys.stdout.isatty() if use_colors is None else use_colors
        self.loggers: Dict[str, logging.Logger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._configure_root()

    def _build_handlers(self):
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(self.log_level)
        console.setFormatter(TicketBotFormatter(use_colors=self.use_colors))
        yield console

        for name, max_bytes, backup_count, level in LOG_FILES:
            handler = RotatingFileHandler(
                filename=str(self.log_dir / name),
                max_bytes=max_bytes,
                backup_count=backup_count,
                encoding='utf-8'
            )
            handler.setLevel(level if level is not None else self.log_level)
            handler.setFormatter(TicketBotFormatter(use_colors=False, include_extra=True))
            yield handler

    def _configure_root(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        for handler in self._build_handlers():
            root_logger.addHandler(handler)

        # Gateway and HTTP debug output from discord.py stays out of the logs
        logging.getLogger("discord").setLevel(max(self.log_level, logging.INFO))

    def get_logger(self, name: str) -> logging.Logger:
        if name not in self.loggers:
            self.loggers[name] = logging.getLogger(name)
        return self.loggers[name]


_logger_instance: Optional[TicketBotLogger] = None


def setup_logging(log_dir: str = "logs", log_level: str = "INFO",
                  use_colors: Optional[bool] = None) -> TicketBotLogger:
    """Configure logging for the process, replacing any earlier setup."""
    global _logger_instance

    _logger_instance = TicketBotLogger(log_dir, log_level, use_colors)
    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger, configuring default logging on first use.

    Args:
        name: Logger name (usually __name__)
    """
    if _logger_instance is None:
        setup_logging()

    return _logger_instance.get_logger(name)
