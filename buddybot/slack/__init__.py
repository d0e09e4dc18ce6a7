"""
Slack Integration
=================

The Slack transport:
- Bolt app and Socket Mode handler creation
- Event handlers that feed mentions and DMs to the robot processor
"""

from buddybot.slack.app import create_slack_app, create_socket_handler
from buddybot.slack.handlers import register_handlers

__all__ = ["create_slack_app", "create_socket_handler", "register_handlers"]
