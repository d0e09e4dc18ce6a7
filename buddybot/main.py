"""
BuddyBot - Main Entry Point
===========================

This is the main entry point for the bot. It:
1. Loads configuration
2. Builds the robot registry and the conversation store
3. Creates the robot processor
4. Sets up Slack handlers
5. Starts the bot

Run with:
    python -m buddybot.main

Or after installing:
    buddybot
"""

import asyncio
import signal
import sys

from buddybot.utils.config import get_config
from buddybot.utils.logger import Logger, set_log_level

# Initialize logging early
main_logger = Logger("Main")


async def main():
    """
    Main async entry point.

    Initializes all components and runs the bot.
    """
    main_logger.info("Starting BuddyBot...")

    try:
        # 1. Load configuration
        main_logger.info("Loading configuration...")
        config = get_config()
        set_log_level(config.log_level)

        # 2. Build robots
        main_logger.info("Registering robots...")
        from buddybot.robots import build_default_registry
        registry = build_default_registry(config)

        for robot in registry.all():
            if not robot.is_configured():
                main_logger.warning(f"Robot {robot.name} is registered but not configured")

        # 3. Conversation store and processor
        main_logger.info("Initializing conversation store...")
        from buddybot.agent.core import RobotProcessor
        from buddybot.memory import InMemoryConversationStore
        store = InMemoryConversationStore()
        processor = RobotProcessor(
            registry,
            store,
            history_limit=config.robot.history_limit,
        )

        # 4. Create Slack app
        main_logger.info("Creating Slack app...")
        from buddybot.slack.app import create_slack_app, create_socket_handler
        app = create_slack_app(config.slack)

        # 5. Register event handlers
        main_logger.info("Registering event handlers...")
        from buddybot.slack.handlers import register_handlers
        register_handlers(app, processor, store)

        # 6. Start the Socket Mode handler
        main_logger.info("Starting Socket Mode connection...")
        handler = await create_socket_handler(app, config.slack)

        # Set up graceful shutdown
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(
                sig,
                lambda: asyncio.create_task(_shutdown(handler, processor))
            )

        main_logger.info(
            "BuddyBot is running! Press Ctrl+C to stop.",
            {"robots": registry.names()},
        )
        await handler.start_async()

    except KeyboardInterrupt:
        main_logger.info("Received interrupt signal")
    except Exception as e:
        main_logger.error("Failed to start bot", e)
        sys.exit(1)


async def _shutdown(handler, processor):
    """
    Graceful shutdown handler.

    Args:
        handler: The Socket Mode handler
        processor: The robot processor (pending supplements are flushed)
    """
    main_logger.info("Shutting down...")

    await processor.wait_for_delayed()

    # Close the socket connection
    await handler.close_async()

    main_logger.info("Shutdown complete")


def run():
    """
    Synchronous entry point.

    This is called when running with `buddybot` command.
    """
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
