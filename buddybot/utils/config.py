"""
Configuration Management
========================

Centralized configuration for the robots, the forms API client and the
Slack transport. All environment variables are read and typed here.

Provider credentials are optional at load time: a robot whose key is
missing can still be constructed and registered, it reports itself as not
configured, and raises MissingCredentialError on first use. Slack
credentials are only demanded when the Slack app is actually started.

Usage:
    from buddybot.utils.config import get_config

    config = get_config()
    print(config.anthropic.model)
    print(config.robot.max_tool_rounds)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


class MissingCredentialError(ValueError):
    """
    Raised when a credential needed by a robot, tool or transport is absent.

    The message always names the environment variable so the operator knows
    what to set.
    """

    def __init__(self, variable: str, purpose: str = ""):
        self.variable = variable
        detail = f" ({purpose})" if purpose else ""
        super().__init__(
            f"Missing required environment variable: {variable}{detail}. "
            f"Please ensure {variable} is set in your .env file."
        )


def _optional(name: str, default: str) -> str:
    """Get an optional environment variable with a default."""
    return os.getenv(name) or default


def _optional_secret(name: str) -> str | None:
    """Get an optional credential; empty strings count as unset."""
    return os.getenv(name) or None


def _optional_int(name: str, default: int) -> int:
    """
    Get an optional integer environment variable.

    Args:
        name: The environment variable name
        default: Default value if not set or invalid

    Returns:
        The integer value or the default
    """
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"Warning: {name} is not a valid integer, using default: {default}")
        return default


def _optional_float(name: str, default: float) -> float:
    """Get an optional float environment variable."""
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        print(f"Warning: {name} is not a valid number, using default: {default}")
        return default


def _optional_bool(name: str, default: bool) -> bool:
    """
    Get an optional boolean environment variable.

    Returns:
        True if value is 'true' (case-insensitive), False otherwise
    """
    value = os.getenv(name)
    if not value:
        return default
    return value.lower() == "true"


# ==============================================================================
# Configuration Dataclasses
# ==============================================================================

@dataclass(frozen=True)
class AnthropicConfig:
    """Anthropic API configuration."""
    api_key: str | None   # sk-ant-... API key
    model: str            # Model for messages.create
    max_tokens: int       # Completion budget per request


@dataclass(frozen=True)
class OpenAIConfig:
    """OpenAI API configuration."""
    api_key: str | None   # sk-... API key
    model: str            # Model for chat completions


@dataclass(frozen=True)
class SlackConfig:
    """Slack API configuration (only needed to run the Slack app)."""
    bot_token: str | None       # xoxb-... token for bot operations
    app_token: str | None       # xapp-... token for Socket Mode
    signing_secret: str | None  # For verifying Slack requests

    def require(self) -> "SlackConfig":
        """Return self, raising MissingCredentialError for any unset token."""
        for variable, value in (
            ("SLACK_BOT_TOKEN", self.bot_token),
            ("SLACK_APP_TOKEN", self.app_token),
            ("SLACK_SIGNING_SECRET", self.signing_secret),
        ):
            if not value:
                raise MissingCredentialError(variable, "Slack transport")
        return self


@dataclass(frozen=True)
class FormsApiConfig:
    """Forms REST API configuration used by the form tools."""
    token: str | None
    base_url: str


@dataclass(frozen=True)
class RobotConfig:
    """Orchestration tuning."""
    max_tool_rounds: int          # Provider round-trips per reply
    history_limit: int            # Messages snapshotted per turn
    follow_up_delay_seconds: float  # Gap between delayed multi-part messages
    feedback_dir: Path            # Where feedback and rating records are written
    enable_openai_robot: bool     # Register RobotChatOpenAI in the default registry


@dataclass(frozen=True)
class Config:
    """
    Root configuration object.

    Access via:
        config = get_config()
        config.anthropic.api_key
        config.robot.history_limit
    """
    anthropic: AnthropicConfig
    openai: OpenAIConfig
    slack: SlackConfig
    forms: FormsApiConfig
    robot: RobotConfig
    log_level: str


def load_config() -> Config:
    """
    Load all configuration from the environment.

    Loads .env first, then applies defaults for everything optional.

    Returns:
        Config: The typed configuration
    """
    load_dotenv()

    project_root = Path(__file__).parent.parent.parent
    feedback_dir = Path(_optional("FEEDBACK_DIR", "data/feedback"))
    if not feedback_dir.is_absolute():
        feedback_dir = project_root / feedback_dir

    return Config(
        anthropic=AnthropicConfig(
            api_key=_optional_secret("ANTHROPIC_API_KEY"),
            model=_optional("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022"),
            max_tokens=_optional_int("ANTHROPIC_MAX_TOKENS", 1024),
        ),
        openai=OpenAIConfig(
            api_key=_optional_secret("OPENAI_API_KEY"),
            model=_optional("OPENAI_MODEL", "gpt-4o"),
        ),
        slack=SlackConfig(
            bot_token=_optional_secret("SLACK_BOT_TOKEN"),
            app_token=_optional_secret("SLACK_APP_TOKEN"),
            signing_secret=_optional_secret("SLACK_SIGNING_SECRET"),
        ),
        forms=FormsApiConfig(
            token=_optional_secret("FORMS_API_TOKEN"),
            base_url=_optional("FORMS_API_BASE_URL", "https://www.formstack.com/api/v2"),
        ),
        robot=RobotConfig(
            max_tool_rounds=_optional_int("ROBOT_MAX_TOOL_ROUNDS", 10),
            history_limit=_optional_int("ROBOT_HISTORY_LIMIT", 20),
            follow_up_delay_seconds=_optional_float("ROBOT_FOLLOW_UP_DELAY_SECONDS", 2.0),
            feedback_dir=feedback_dir,
            enable_openai_robot=_optional_bool("ENABLE_OPENAI_ROBOT", True),
        ),
        log_level=_optional("LOG_LEVEL", "info"),
    )


# ==============================================================================
# Singleton Pattern
# ==============================================================================

_config_instance: Config | None = None


def get_config() -> Config:
    """
    Get the singleton configuration instance.

    The configuration is loaded on first access and cached for subsequent calls.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
