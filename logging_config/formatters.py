"""
Log formatter for the Support Ticket Bot.
"""

import json
import logging
from typing import Dict, Any

LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
RESET = '\033[0m'

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}


def extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """
    Collect the ``extra=`` fields of a record.

    Containers are rendered as JSON so they stay on one line.
    """
    fields = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRIBUTES or key.startswith('_'):
            continue
        if isinstance(value, (dict, list, tuple)):
            try:
                value = json.dumps(value, default=str)
            except ValueError:
                value = str(value)
        fields[key] = value
    return fields


class TicketBotFormatter(logging.Formatter):
    """
    ``time - logger - level - message`` formatter.

    The console variant colors the level name; the file variant appends
    ``extra=`` fields as ``| key=value`` pairs.
    """

    def __init__(self, use_colors: bool = True, include_extra: bool = False):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt='%Y-%m-%d %H:%M:%S')
        self.use_colors = use_colors
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in LEVEL_COLORS:
            record.levelname = f"{LEVEL_COLORS[levelname]}{levelname}{RESET}"
        try:
            formatted = super().format(record)
        finally:
            # Other handlers share this record
            record.levelname = levelname

        if self.include_extra:
            fields = extra_fields(record)
            if fields:
                formatted += " | " + " | ".join(f"{k}={v}" for k, v in fields.items())

        return formatted
