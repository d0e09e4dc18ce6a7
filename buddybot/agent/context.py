"""
Conversation History Adapter
============================

Turns stored, role-tagged conversation messages into the two-party
(user/assistant) turn list a provider expects.

Role mapping:
    cx-customer, cx-agent, cx-supervisor -> "user"
    robot                                -> "assistant"

The current message is always appended last, as "user".

Relevance filter:
    Robot replies often carry internal tool chatter: raw JSON tool output
    or lines like "Executing tool..." and "**Tool: ...**". Sending that
    back to a provider wastes context and confuses the model, so any
    robot text message that starts with "{" or contains a tool-execution
    marker is dropped before adaptation. Customer, agent and supervisor
    messages are always kept.

Only text/plain messages are adapted; anything else is skipped.
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from buddybot.memory.messages import ConversationMessage, UserRole
from buddybot.utils.logger import Logger

logger = Logger("History")


HistoryProvider = Callable[[], list[ConversationMessage]]

TOOL_CHATTER_MARKERS = (
    "Executing ",
    "**Tool:",
    "**Tool Error:",
    "Error executing ",
    "[Function call:",
)

_ROLE_MAP = {
    UserRole.CUSTOMER: "user",
    UserRole.AGENT: "user",
    UserRole.SUPERVISOR: "user",
    UserRole.ROBOT: "assistant",
}


@dataclass(frozen=True)
class Turn:
    """
    One provider-facing conversation turn.

    Attributes:
        role: "user" or "assistant"
        content: Plain text
    """
    role: str
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


def is_tool_chatter(message: ConversationMessage) -> bool:
    """True for robot text that looks like internal tool output."""
    if message.from_role != UserRole.ROBOT:
        return False
    text = message.text_payload
    if text is None:
        return False
    if text.lstrip().startswith("{"):
        return True
    return any(marker in text for marker in TOOL_CHATTER_MARKERS)


def filter_relevant(messages: Iterable[ConversationMessage]) -> list[ConversationMessage]:
    """Drop tool chatter and non-text messages, keeping the original order."""
    kept = []
    for message in messages:
        if message.text_payload is None:
            continue
        if is_tool_chatter(message):
            logger.debug(f"Dropping tool chatter from history: {message.id}")
            continue
        kept.append(message)
    return kept


def adapt_history(
    history: Iterable[ConversationMessage],
    current: ConversationMessage | str,
) -> list[Turn]:
    """
    Build the provider turn list for one request.

    Args:
        history: Stored messages, oldest first
        current: The message being answered (a message or its text)

    Returns:
        Turns oldest first, ending with the current message as "user".
        A history entry with the same id as `current` is skipped so a
        message already persisted by the transport is not sent twice.
    """
    if isinstance(current, ConversationMessage):
        current_id = current.id
        current_text = current.text_payload or ""
    else:
        current_id = None
        current_text = current

    turns = []
    for message in filter_relevant(history):
        if current_id is not None and message.id == current_id:
            continue
        text = message.text_payload
        if not text or not text.strip():
            continue
        turns.append(Turn(role=_ROLE_MAP.get(message.from_role, "user"), content=text))

    turns.append(Turn(role="user", content=current_text))
    return turns


def snapshot_history(get_history: HistoryProvider | None) -> list[ConversationMessage]:
    """Call the history provider once; no provider means no history."""
    if get_history is None:
        return []
    return list(get_history())
