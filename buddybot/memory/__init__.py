"""
Conversation Memory
===================

The conversation data model and the store the processor reads history
from and writes replies to.

This module provides:
- ConversationMessage, MessageContent, MessageEnvelope: the data model
- UserRole, MessageType: role and message-kind enums
- ConversationStore: the interface the processor depends on
- InMemoryConversationStore: a non-durable implementation

Usage:
    from buddybot.memory import InMemoryConversationStore, CreateMessageDto

    store = InMemoryConversationStore()
    await store.create_message(CreateMessageDto(...))
    history = await store.get_last_messages("C123", limit=20)
"""

from buddybot.memory.messages import (
    ConversationMessage,
    CreateMessageDto,
    MessageContent,
    MessageEnvelope,
    MessageType,
    UserRole,
)
from buddybot.memory.store import ConversationStore, InMemoryConversationStore

__all__ = [
    "ConversationMessage",
    "CreateMessageDto",
    "MessageContent",
    "MessageEnvelope",
    "MessageType",
    "UserRole",
    "ConversationStore",
    "InMemoryConversationStore",
]
