"""Tests for the message model and the in-memory conversation store."""

from buddybot.memory import (
    ConversationMessage,
    CreateMessageDto,
    InMemoryConversationStore,
    MessageContent,
    MessageEnvelope,
    MessageType,
    UserRole,
)
from buddybot.memory.messages import EnvelopeDirection


def _dto(text, conversation_id="C1", role=UserRole.CUSTOMER) -> CreateMessageDto:
    return CreateMessageDto(
        conversation_id=conversation_id,
        from_role=role,
        to_role=UserRole.ROBOT,
        content=MessageContent.text(text),
    )


class TestInMemoryConversationStore:
    async def test_create_returns_stored_message(self, store):
        message = await store.create_message(_dto("hello"))

        assert message.text_payload == "hello"
        assert message.conversation_id == "C1"
        assert message.id
        assert store.get_message_count("C1") == 1

    async def test_last_messages_oldest_first(self, store):
        for text in ("one", "two", "three"):
            await store.create_message(_dto(text))

        messages = await store.get_last_messages("C1", limit=2)

        assert [m.text_payload for m in messages] == ["two", "three"]

    async def test_conversations_are_separate(self, store):
        await store.create_message(_dto("a", "C1"))
        await store.create_message(_dto("b", "C2"))

        assert [m.text_payload for m in await store.get_last_messages("C2", 10)] == ["b"]
        assert store.get_conversation_count() == 2

    async def test_snapshot_is_a_copy(self, store):
        await store.create_message(_dto("first"))
        snapshot = await store.get_last_messages("C1", 10)

        await store.create_message(_dto("second"))

        assert [m.text_payload for m in snapshot] == ["first"]

    async def test_limit_zero_and_unknown_conversation(self, store):
        await store.create_message(_dto("x"))

        assert await store.get_last_messages("C1", 0) == []
        assert await store.get_last_messages("missing", 5) == []

    async def test_oldest_messages_are_trimmed(self):
        store = InMemoryConversationStore(max_messages=3)
        for i in range(5):
            await store.create_message(_dto(str(i)))

        assert [m.text_payload for m in await store.get_last_messages("C1", 10)] == ["2", "3", "4"]

    async def test_clear(self, store):
        await store.create_message(_dto("x"))
        store.clear("C1")
        assert store.get_message_count("C1") == 0

        await store.create_message(_dto("y", "C2"))
        store.clear_all()
        assert store.get_conversation_count() == 0


class TestMessages:
    def test_non_text_has_no_text_payload(self):
        message = ConversationMessage(
            conversation_id="C1",
            from_role=UserRole.ROBOT,
            to_role=UserRole.CUSTOMER,
            content=MessageContent(type="application/json", payload={"a": 1}),
            message_type=MessageType.ROBOT,
        )
        assert message.text_payload is None

    def test_with_content_keeps_identity(self):
        message = ConversationMessage.text("C1", "original")

        updated = message.with_content(MessageContent.text("changed"))

        assert updated.id == message.id
        assert updated.text_payload == "changed"
        assert message.text_payload == "original"

    def test_to_dict(self):
        data = ConversationMessage.text("C1", "hi", author_user_id="U1").to_dict()

        assert data["conversationId"] == "C1"
        assert data["fromRole"] == "cx-customer"
        assert data["toRole"] == "robot"
        assert data["content"] == {"type": "text/plain", "payload": "hi"}
        assert data["authorUserId"] == "U1"

    def test_envelope_response_keeps_message_id(self):
        request = MessageEnvelope(ConversationMessage.text("C1", "q"))
        response = MessageEnvelope.response_to(request, ConversationMessage.text("C1", "a"))

        assert response.message_id == request.message_id
        assert response.request_or_response == EnvelopeDirection.RESPONSE
