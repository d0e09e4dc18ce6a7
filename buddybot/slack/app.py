"""
Slack Bolt App
==============

Creates the Slack Bolt application and its Socket Mode handler.

Socket Mode keeps a WebSocket open to Slack, so no public URL is needed.
Slack credentials are only checked here: the robots, the router and the
processor run without them.
"""

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from buddybot.utils.config import SlackConfig, get_config
from buddybot.utils.logger import Logger

logger = Logger("SlackApp")


def create_slack_app(slack_config: SlackConfig | None = None) -> AsyncApp:
    """
    Create the Slack Bolt app.

    Raises:
        MissingCredentialError: If a Slack token is not configured
    """
    slack = (slack_config or get_config().slack).require()

    app = AsyncApp(
        token=slack.bot_token,
        signing_secret=slack.signing_secret,
    )

    logger.info("Slack Bolt app created")
    return app


async def create_socket_handler(
    app: AsyncApp,
    slack_config: SlackConfig | None = None,
) -> AsyncSocketModeHandler:
    """Create a Socket Mode handler for the app."""
    slack = (slack_config or get_config().slack).require()

    handler = AsyncSocketModeHandler(app=app, app_token=slack.app_token)

    logger.info("Socket Mode handler created")
    return handler
