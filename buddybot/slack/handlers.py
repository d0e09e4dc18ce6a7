"""
Slack Event Handlers
====================

Feeds Slack events into the robot processor and posts replies in-thread.

Event Types:
- app_mention: someone mentions the bot in a channel
- message.im: direct messages to the bot
- message (threads): follow-ups that pass the trigger-word check
- /buddybot: slash command for help and status

Handler Pattern:
    1. Receive event from Slack
    2. Store the customer message in the conversation store
    3. Process it (routing uses the raw text, mention token included)
    4. Reply in the thread; multi-part supplements follow in the same thread

Each Slack thread is one conversation: "<channel>:<thread_ts>".
"""

import re
from typing import TYPE_CHECKING

from slack_bolt.async_app import AsyncAck, AsyncApp, AsyncSay

from buddybot.agent.core import ProcessingRequest
from buddybot.memory.messages import (
    ConversationMessage,
    CreateMessageDto,
    MessageContent,
    UserRole,
)
from buddybot.robots.router import should_process_message
from buddybot.utils.logger import Logger

if TYPE_CHECKING:
    from buddybot.agent.core import RobotProcessor
    from buddybot.memory.store import ConversationStore

logger = Logger("Handlers")

MENTION_TOKEN = re.compile(r"<@[A-Z0-9]+>")

# Set during registration
_processor: "RobotProcessor | None" = None
_store: "ConversationStore | None" = None


def register_handlers(
    app: AsyncApp,
    processor: "RobotProcessor",
    store: "ConversationStore",
) -> None:
    """
    Register all event handlers with the Slack app.

    Args:
        app: The Bolt app instance
        processor: Processor that produces robot replies
        store: Store the customer messages are written to
    """
    global _processor, _store
    _processor = processor
    _store = store

    app.event("app_mention")(_handle_mention)
    app.event("message")(_handle_message)
    app.command("/buddybot")(_handle_command)

    logger.info("Registered Slack event handlers")


def conversation_id_for(channel_id: str, thread_ts: str | None) -> str:
    return f"{channel_id}:{thread_ts}" if thread_ts else channel_id


def strip_mentions(text: str) -> str:
    """Remove <@U123> tokens; used only for display and emptiness checks."""
    return MENTION_TOKEN.sub("", text).strip()


async def _reply_to(
    text: str,
    user_id: str | None,
    channel_id: str,
    thread_ts: str | None,
    say: AsyncSay,
) -> None:
    """Store the message, run the processor, and post the replies."""
    conversation_id = conversation_id_for(channel_id, thread_ts)

    customer_message = await _store.create_message(CreateMessageDto(
        conversation_id=conversation_id,
        from_role=UserRole.CUSTOMER,
        to_role=UserRole.ROBOT,
        content=MessageContent.text(text),
        author_user_id=user_id,
    ))

    async def post_delayed(message: ConversationMessage) -> None:
        await say(text=message.content.payload, thread_ts=thread_ts)

    result = await _processor.process_message(
        ProcessingRequest(
            content=text,
            conversation_id=conversation_id,
            from_user_id=user_id,
            message=customer_message,
        ),
        on_delayed=post_delayed,
    )

    logger.info(
        f"Replied in {conversation_id}",
        {"robot": result.robot_name, "processed": result.processed},
    )
    await say(text=result.response, thread_ts=thread_ts)


async def _handle_mention(event: dict, say: AsyncSay) -> None:
    """
    Handle @mentions of the bot in channels.

    The raw text, mention token included, is what gets routed, so every
    mention reaches the Slack agent.
    """
    if _processor is None or _store is None:
        logger.error("Processor not initialized")
        await say("Sorry, I'm still starting up. Please try again in a moment.")
        return

    user_id = event.get("user")
    channel_id = event.get("channel")
    text = event.get("text", "")
    thread_ts = event.get("thread_ts") or event.get("ts")

    if not strip_mentions(text):
        await say(
            text="Hi! How can I help? Mention a form id (formId: 12345) and I'll take a look.",
            thread_ts=thread_ts,
        )
        return

    logger.info(f"Mention from {user_id} in {channel_id}: {strip_mentions(text)[:50]}...")

    try:
        await _reply_to(text, user_id, channel_id, thread_ts, say)
    except Exception as e:
        logger.error("Error handling mention", e)
        await say(
            text="Sorry, I encountered an error processing your request.",
            thread_ts=thread_ts,
        )


async def _handle_message(event: dict, say: AsyncSay) -> None:
    """
    Handle direct messages and un-mentioned thread follow-ups.

    DMs are always answered. In channels, a thread reply without a mention
    is answered only when it passes the trigger-word check; replies that
    mention the bot arrive as app_mention instead.
    """
    # Ignore bot messages (including our own) and edits/deletes
    if event.get("bot_id") or event.get("subtype"):
        return

    text = event.get("text", "")
    if event.get("channel_type") != "im":
        if not event.get("thread_ts") or MENTION_TOKEN.search(text):
            return
        if not should_process_message(text):
            return

    if _processor is None or _store is None:
        logger.error("Processor not initialized")
        await say("Sorry, I'm still starting up. Please try again in a moment.")
        return

    user_id = event.get("user")
    channel_id = event.get("channel")
    thread_ts = event.get("thread_ts")

    if not text.strip():
        return

    logger.info(f"Message from {user_id} in {channel_id}: {text[:50]}...")

    try:
        await _reply_to(text, user_id, channel_id, thread_ts, say)
    except Exception as e:
        logger.error("Error handling message", e)
        await say(
            text="Sorry, I encountered an error processing your request.",
            thread_ts=thread_ts,
        )


async def _handle_command(ack: AsyncAck, command: dict, say: AsyncSay) -> None:
    """
    Handle the /buddybot slash command.

    - /buddybot help - Show help
    - /buddybot status - Show which robots are registered and configured
    """
    await ack()

    if _processor is None:
        await say("Sorry, I'm still starting up.")
        return

    text = command.get("text", "").strip().lower()

    if text == "help" or not text:
        await say(text=HELP_TEXT)

    elif text == "status":
        lines = ["*Robot Status*"]
        for robot in _processor.registry.all():
            state = "ready" if robot.is_configured() else "not configured"
            lines.append(f"- {robot.name} v{robot.version}: {state}")
        await say(text="\n".join(lines))

    else:
        await say(text=f"Unknown command: `{text}`. Try `/buddybot help`")


HELP_TEXT = """*iStackBuddy* - Forms Core support in Slack

*Commands:*
- `/buddybot help` - Show this help message
- `/buddybot status` - Show which robots are available

*Usage:*
- Mention me in any channel and I'll answer in the thread
- Include a form id (for example `formId: 12345`) and I'll look at the form
- Tell me what you think of an answer and I'll record your feedback
"""
