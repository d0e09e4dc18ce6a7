"""
Logger Utility
==============

Context-aware logging for the robots, router and transports.

Every component creates its own logger with a short context name, so a
single turn can be followed across the router, the robot and the tool loop:

    [2025-01-31T10:30:00] [INFO] [Router] Selected robot: SlackyAnthropicAgent
    [2025-01-31T10:30:01] [INFO] [SlackyAnthropicAgent:ToolLoop] Executing tool: sumo_logic_query

Loggers can also carry bound fields. The processor binds the conversation
id once per message and every line it logs for that turn includes it.

Usage:
    from buddybot.utils.logger import Logger, logger

    logger.info("Application started")

    router_logger = Logger("Router")
    router_logger.debug("Routing message", {"rule": "slack_context"})

    turn_logger = Logger("Processor").bind(conversation_id="C1:1700000000.1")
    turn_logger.info("Stored reply")
"""

import json
import os
import sys
from datetime import datetime
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Numeric levels; a message is printed when its level >= the minimum."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class Colors:
    RESET = "\033[0m"
    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    DIM = "\033[2m"


_LEVEL_NAMES = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "WARN": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
}

# Set by set_log_level(); takes precedence over LOG_LEVEL
_level_override: LogLevel | None = None


def parse_log_level(name: str | None) -> LogLevel:
    """Map a level name (any case) to a LogLevel, defaulting to INFO."""
    return _LEVEL_NAMES.get((name or "INFO").upper(), LogLevel.INFO)


def set_log_level(name: str | None) -> LogLevel:
    """
    Set the minimum level for every logger, including existing ones.

    main() calls this with the configured LOG_LEVEL after loading .env.
    """
    global _level_override
    _level_override = parse_log_level(name)
    return _level_override


def _current_level() -> LogLevel:
    if _level_override is not None:
        return _level_override
    return parse_log_level(os.getenv("LOG_LEVEL"))


class Logger:
    """
    A context-aware logger with colored output.

    Example:
        logger = Logger("RobotChatAnthropic")
        logger.info("Provider request sent")

        loop_logger = logger.child("ToolLoop")
        loop_logger.debug("Tool round finished", {"round": 2})
    """

    def __init__(self, context: str = "", fields: dict[str, Any] | None = None):
        """
        Args:
            context: Prefix shown on every line (e.g., "Router", "Store")
            fields: Structured data merged into every line's data
        """
        self.context = context
        self.fields = dict(fields or {})

    def child(self, child_context: str) -> "Logger":
        """A logger for a sub-component, e.g. [SlackyAnthropicAgent:ToolLoop]."""
        new_context = f"{self.context}:{child_context}" if self.context else child_context
        return Logger(new_context, self.fields)

    def bind(self, **fields: Any) -> "Logger":
        """A logger with the same context that adds `fields` to every line."""
        return Logger(self.context, {**self.fields, **fields})

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level >= _current_level()

    def _format_message(self, level: str, message: str, color: str) -> str:
        """Output format: [TIMESTAMP] [LEVEL] [context] message"""
        timestamp = datetime.now().isoformat(timespec="seconds")
        context_str = f"[{self.context}] " if self.context else ""

        return (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{color}[{level}]{Colors.RESET} "
            f"{context_str}{message}"
        )

    def _log(
        self,
        level: LogLevel,
        level_name: str,
        color: str,
        message: str,
        data: dict[str, Any] | None = None
    ) -> None:
        if not self.is_enabled_for(level):
            return

        stream = sys.stderr if level >= LogLevel.ERROR else sys.stdout
        print(self._format_message(level_name, message, color), file=stream)

        merged = {**self.fields, **(data or {})}
        if merged:
            data_str = json.dumps(merged, indent=2, default=str)
            print(f"{Colors.DIM}{data_str}{Colors.RESET}", file=stream)

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Only shown when LOG_LEVEL=DEBUG."""
        self._log(LogLevel.DEBUG, "DEBUG", Colors.DEBUG, message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._log(LogLevel.INFO, "INFO", Colors.INFO, message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        """
        Log a warning message.

        Warnings are for situations that don't prevent operation but
        should be noted, like a tool name declared by two catalogs or a
        robot registered without its API key.
        """
        self._log(LogLevel.WARNING, "WARN", Colors.WARNING, message, data)

    def error(self, message: str, error: BaseException | None = None) -> None:
        """
        Log an error message.

        Args:
            message: What failed
            error: Optional exception; its type and message are included
        """
        data = None
        if error:
            data = {
                "error_type": type(error).__name__,
                "error_message": str(error),
            }
        self._log(LogLevel.ERROR, "ERROR", Colors.ERROR, message, data)


# Default logger instance for general use
logger = Logger("BuddyBot")
