"""
Conversation Store
==================

The store is the sole source of truth for conversation history. The
robots only ever see a snapshot taken at the start of a call; appends
made while a call is in flight are not visible to it.

ConversationStore is the interface the processor depends on.
InMemoryConversationStore is a non-durable implementation:

- Lives only in RAM (cleared on restart)
- Keeps at most `max_messages` per conversation, dropping the oldest
- Returns messages oldest first, ordered by created_at
"""

from typing import Protocol

from buddybot.memory.messages import ConversationMessage, CreateMessageDto
from buddybot.utils.logger import Logger

logger = Logger("Store")


class ConversationStore(Protocol):
    """What the orchestration layer needs from a conversation store."""

    async def get_last_messages(
        self,
        conversation_id: str,
        limit: int,
    ) -> list[ConversationMessage]:
        ...

    async def create_message(self, dto: CreateMessageDto) -> ConversationMessage:
        ...


class InMemoryConversationStore:
    """
    In-memory conversation storage.

    Example:
        store = InMemoryConversationStore(max_messages=200)

        await store.create_message(CreateMessageDto(
            conversation_id="C1",
            from_role=UserRole.CUSTOMER,
            to_role=UserRole.ROBOT,
            content=MessageContent.text("Hello!"),
        ))

        history = await store.get_last_messages("C1", limit=20)
    """

    def __init__(self, max_messages: int = 500):
        self.max_messages = max_messages
        # conversation_id -> messages, oldest first
        self._conversations: dict[str, list[ConversationMessage]] = {}

    async def create_message(self, dto: CreateMessageDto) -> ConversationMessage:
        """
        Persist a new message and return it.

        If the conversation exceeds max_messages, older messages are removed.
        """
        message = ConversationMessage(
            conversation_id=dto.conversation_id,
            from_role=dto.from_role,
            to_role=dto.to_role,
            content=dto.content,
            message_type=dto.message_type,
            author_user_id=dto.author_user_id,
        )
        self.add(message)
        return message

    def add(self, message: ConversationMessage) -> None:
        """Insert an already-built message (keeps created_at ordering)."""
        messages = self._conversations.setdefault(message.conversation_id, [])
        messages.append(message)
        messages.sort(key=lambda m: m.created_at)

        if len(messages) > self.max_messages:
            del messages[: len(messages) - self.max_messages]

        logger.debug(
            f"Stored message {message.id}",
            {"conversation_id": message.conversation_id, "from_role": message.from_role.value},
        )

    async def get_last_messages(
        self,
        conversation_id: str,
        limit: int,
    ) -> list[ConversationMessage]:
        """
        Get the most recent messages of a conversation, oldest first.

        The returned list is a copy; later appends do not change it.
        """
        if limit <= 0:
            return []
        messages = self._conversations.get(conversation_id, [])
        return list(messages[-limit:])

    def clear(self, conversation_id: str) -> None:
        """Drop one conversation."""
        self._conversations.pop(conversation_id, None)

    def clear_all(self) -> None:
        """Clear all conversations (e.g., for shutdown)."""
        self._conversations.clear()

    def get_conversation_count(self) -> int:
        return len(self._conversations)

    def get_message_count(self, conversation_id: str) -> int:
        return len(self._conversations.get(conversation_id, []))
