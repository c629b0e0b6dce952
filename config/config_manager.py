"""
Configuration management system for the Support Ticket Bot.

This module loads and validates the bot settings from the process
environment (populated from a ``.env`` file by the entry point).
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Mapping
import logging

from errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CLOSE_DELAY_SECONDS = 3.0
DEFAULT_MENU_TIMEOUT_SECONDS = 900.0
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class BotConfig:
    """Runtime settings for the ticket bot."""

    token: str
    guild_id: int
    staff_role_id: int
    admin_role_id: Optional[int] = None
    admin_user_id: Optional[int] = None
    close_delay: float = DEFAULT_CLOSE_DELAY_SECONDS
    menu_timeout: float = DEFAULT_MENU_TIMEOUT_SECONDS
    log_level: str = "INFO"
    log_dir: str = "logs"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.token, str) or not self.token.strip():
            raise ValueError("token must be a non-empty string")

        for name in ('guild_id', 'staff_role_id'):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"Invalid {name}: {value}")

        for name in ('admin_role_id', 'admin_user_id'):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value <= 0):
                raise ValueError(f"Invalid {name}: {value}")

        if self.close_delay < 0:
            raise ValueError(f"close_delay must not be negative: {self.close_delay}")

        if self.menu_timeout <= 0:
            raise ValueError(f"menu_timeout must be positive: {self.menu_timeout}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}")

    @property
    def authorized_role_ids(self) -> List[int]:
        """Role IDs allowed to claim and close tickets."""
        return [role_id for role_id in (self.staff_role_id, self.admin_role_id) if role_id]

    def to_dict(self) -> Dict[str, Any]:
        """Convert BotConfig to a dictionary with the token masked."""
        return {
            'token': '***',
            'guild_id': self.guild_id,
            'staff_role_id': self.staff_role_id,
            'admin_role_id': self.admin_role_id,
            'admin_user_id': self.admin_user_id,
            'close_delay': self.close_delay,
            'menu_timeout': self.menu_timeout,
            'log_level': self.log_level,
            'log_dir': self.log_dir
        }


class ConfigManager:
    """Reads the bot configuration from environment variables."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize ConfigManager.

        Args:
            environ: Mapping to read variables from (defaults to os.environ)
        """
        self.environ = os.environ if environ is None else environ
        self.config: Optional[BotConfig] = None

    def _get(self, *names: str) -> Optional[str]:
        for name in names:
            value = self.environ.get(name)
            if value is not None and value.strip():
                return value.strip()
        return None

    def _parse_id(self, name: str, errors: List[str], required: bool = True) -> Optional[int]:
        raw = self._get(name)
        if raw is None:
            if required:
                errors.append(f"Missing required environment variable: {name}")
            return None
        try:
            value = int(raw)
        except ValueError:
            errors.append(f"{name} must be a numeric Discord ID, got {raw!r}")
            return None
        if value <= 0:
            errors.append(f"{name} must be a positive Discord ID, got {value}")
            return None
        return value

    def _parse_seconds(self, name: str, default: float, errors: List[str]) -> float:
        raw = self._get(name)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError:
            errors.append(f"{name} must be a number of seconds, got {raw!r}")
            return default
        if value < 0:
            errors.append(f"{name} must not be negative, got {value}")
            return default
        return value

    def _collect(self) -> tuple:
        errors: List[str] = []
        values: Dict[str, Any] = {}

        token = self._get('DISCORD_TOKEN', 'TOKEN')
        if token is None:
            errors.append("Missing required environment variable: DISCORD_TOKEN")
        values['token'] = token

        values['guild_id'] = self._parse_id('GUILD_ID', errors)
        values['staff_role_id'] = self._parse_id('STAFF_ROLE', errors)
        values['admin_role_id'] = self._parse_id('ADMIN_ROLE', errors, required=False)
        values['admin_user_id'] = self._parse_id('ADMIN_ID', errors, required=False)
        values['close_delay'] = self._parse_seconds('CLOSE_DELAY_SECONDS', DEFAULT_CLOSE_DELAY_SECONDS, errors)
        values['menu_timeout'] = self._parse_seconds('MENU_TIMEOUT_SECONDS', DEFAULT_MENU_TIMEOUT_SECONDS, errors)
        if values['menu_timeout'] == 0:
            errors.append("MENU_TIMEOUT_SECONDS must be greater than zero")
            values['menu_timeout'] = DEFAULT_MENU_TIMEOUT_SECONDS

        log_level = (self._get('LOG_LEVEL') or 'INFO').upper()
        if log_level not in VALID_LOG_LEVELS:
            errors.append(f"Invalid LOG_LEVEL: {log_level}. Must be one of {VALID_LOG_LEVELS}")
            log_level = 'INFO'
        values['log_level'] = log_level
        values['log_dir'] = self._get('LOG_DIR') or 'logs'

        return values, errors

    def validate_configuration(self) -> List[str]:
        """
        Validate the environment without building a config.

        Returns:
            List of validation errors (empty if valid)
        """
        _, errors = self._collect()
        return errors

    def load(self) -> BotConfig:
        """
        Build the BotConfig from the environment.

        Raises:
            ConfigurationError: If any variable is missing or malformed
        """
        values, errors = self._collect()
        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors),
                details={'errors': errors}
            )

        try:
            self.config = BotConfig(**values)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        logger.info(f"Configuration loaded for guild {self.config.guild_id}", extra={'config': self.config.to_dict()})
        return self.config
