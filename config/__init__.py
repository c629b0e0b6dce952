# Configuration package for bot settings

from errors.exceptions import ConfigurationError
from .config_manager import ConfigManager, BotConfig

__all__ = ['ConfigManager', 'BotConfig', 'ConfigurationError']
