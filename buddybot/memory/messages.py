"""
Conversation Messages
=====================

The data model shared by the store, the history adapter and the robots.

A ConversationMessage is one role-tagged unit of conversation content.
Messages are frozen: the orchestration code never mutates a stored
message, it builds a new one (see ConversationMessage.with_content).

Only the "text/plain" content type is consumed by the robots; other
content types pass through the store untouched.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


TEXT_PLAIN = "text/plain"


class UserRole(str, Enum):
    """Who authored (or is addressed by) a message."""
    CUSTOMER = "cx-customer"
    AGENT = "cx-agent"
    SUPERVISOR = "cx-supervisor"
    ROBOT = "robot"


class MessageType(str, Enum):
    """Kind of message as stored."""
    TEXT = "text"
    SYSTEM = "system"
    ROBOT = "robot"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class MessageContent:
    """
    Tagged message body.

    Attributes:
        type: MIME-like content type, e.g. "text/plain"
        payload: The body; a string for text/plain
    """
    type: str
    payload: Any

    @classmethod
    def text(cls, payload: str) -> "MessageContent":
        """Build a text/plain content."""
        return cls(type=TEXT_PLAIN, payload=payload)

    @property
    def is_text(self) -> bool:
        return self.type == TEXT_PLAIN

    def to_dict(self) -> dict:
        return {"type": self.type, "payload": self.payload}


@dataclass(frozen=True)
class ConversationMessage:
    """
    A single stored message.

    Attributes:
        conversation_id: Conversation the message belongs to
        from_role: Author role
        to_role: Addressee role
        content: Message body
        message_type: Stored message kind
        author_user_id: Optional id of the human or robot author
        id: Unique message id
        created_at / updated_at: Timestamps (UTC)
    """
    conversation_id: str
    from_role: UserRole
    to_role: UserRole
    content: MessageContent
    message_type: MessageType = MessageType.TEXT
    author_user_id: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @classmethod
    def text(
        cls,
        conversation_id: str,
        payload: str,
        from_role: UserRole = UserRole.CUSTOMER,
        to_role: UserRole = UserRole.ROBOT,
        **kwargs: Any,
    ) -> "ConversationMessage":
        """Convenience constructor for a text/plain message."""
        return cls(
            conversation_id=conversation_id,
            from_role=from_role,
            to_role=to_role,
            content=MessageContent.text(payload),
            **kwargs,
        )

    @property
    def text_payload(self) -> str | None:
        """The text body, or None for non-text content."""
        if self.content.is_text and isinstance(self.content.payload, str):
            return self.content.payload
        return None

    def with_content(self, content: MessageContent) -> "ConversationMessage":
        """Return a copy carrying new content and a fresh updated_at."""
        return replace(self, content=content, updated_at=_now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "fromRole": self.from_role.value,
            "toRole": self.to_role.value,
            "messageType": self.message_type.value,
            "authorUserId": self.author_user_id,
            "content": self.content.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class CreateMessageDto:
    """Input for ConversationStore.create_message."""
    conversation_id: str
    from_role: UserRole
    to_role: UserRole
    content: MessageContent
    message_type: MessageType = MessageType.TEXT
    author_user_id: str | None = None


class EnvelopeDirection(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"


@dataclass(frozen=True)
class MessageEnvelope:
    """
    Transient wrapper used at the request/response boundary.

    Never persisted.
    """
    envelope_payload: ConversationMessage
    request_or_response: EnvelopeDirection = EnvelopeDirection.REQUEST
    message_id: str = field(default_factory=_new_id)

    @classmethod
    def response_to(cls, request: "MessageEnvelope", payload: ConversationMessage) -> "MessageEnvelope":
        """Build the response envelope for a request."""
        return cls(
            envelope_payload=payload,
            request_or_response=EnvelopeDirection.RESPONSE,
            message_id=request.message_id,
        )
