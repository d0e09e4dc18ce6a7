"""
Utilities Module
================

Common utilities shared across the application:
- logger: Context loggers with levels, child contexts and bound fields
- config: Environment configuration and MissingCredentialError
"""

from buddybot.utils.config import Config, MissingCredentialError, get_config
from buddybot.utils.logger import Logger, logger, set_log_level

__all__ = ["Logger", "logger", "set_log_level", "get_config", "Config", "MissingCredentialError"]
