"""Tests for the robot processor: routing, history snapshots and persistence."""

import random
from unittest.mock import AsyncMock, MagicMock

from buddybot.agent.core import ROBOT_UNAVAILABLE_TEXT, ProcessingRequest, RobotProcessor
from buddybot.memory import CreateMessageDto, MessageContent, MessageType, UserRole
from buddybot.robots import ChatRobotParrot, RobotChatAnthropic, RobotRegistry, ResponseMode
from buddybot.tools import EMPTY_CATALOG


def _registry(*robots) -> RobotRegistry:
    registry = RobotRegistry()
    for robot in robots:
        registry.register(robot)
    return registry


async def test_default_route_stores_reply(store):
    processor = RobotProcessor(_registry(ChatRobotParrot(rng=random.Random(1))), store)

    result = await processor.process_message(ProcessingRequest(content="hello", conversation_id="C1"))

    assert result.processed
    assert result.robot_name == "ChatRobotParrot"
    assert result.response_mode == ResponseMode.IMMEDIATE
    assert result.response.endswith(") hello")

    stored = await store.get_last_messages("C1", 10)
    assert len(stored) == 1
    assert stored[0] is result.message
    assert stored[0].from_role == UserRole.ROBOT
    assert stored[0].to_role == UserRole.CUSTOMER
    assert stored[0].message_type == MessageType.ROBOT
    assert stored[0].author_user_id == "ChatRobotParrot"


async def test_unregistered_robot(store):
    processor = RobotProcessor(_registry(ChatRobotParrot()), store)

    result = await processor.process_message(ProcessingRequest(content="<@U1> hi", conversation_id="C1"))

    assert result.response == ROBOT_UNAVAILABLE_TEXT
    assert not result.processed
    assert result.robot_name == "SlackyAnthropicAgent"
    assert await store.get_last_messages("C1", 10) == []


async def test_multi_part_supplements_are_stored_and_forwarded(store, scripted):
    provider = scripted([scripted.text("Looking at form 42."), scripted.text("Anything else?")])
    robot = RobotChatAnthropic(provider, EMPTY_CATALOG, follow_up_delay_seconds=0)
    processor = RobotProcessor(_registry(robot), store)
    forwarded = []

    result = await processor.process_message(
        ProcessingRequest(content="formId: 42 is broken", conversation_id="C1"),
        on_delayed=forwarded.append,
    )
    await processor.wait_for_delayed()

    assert result.response == "Looking at form 42."
    assert result.response_mode == ResponseMode.MULTI_PART
    assert [m.text_payload for m in forwarded] == ["Anything else?"]

    stored = [m.text_payload for m in await store.get_last_messages("C1", 10)]
    assert sorted(stored) == ["Anything else?", "Looking at form 42."]


async def test_robot_sees_history_snapshot(store, scripted):
    await store.create_message(CreateMessageDto(
        conversation_id="C1",
        from_role=UserRole.CUSTOMER,
        to_role=UserRole.ROBOT,
        content=MessageContent.text("earlier"),
    ))
    current = await store.create_message(CreateMessageDto(
        conversation_id="C1",
        from_role=UserRole.CUSTOMER,
        to_role=UserRole.ROBOT,
        content=MessageContent.text("formId: 1 help"),
    ))
    provider = scripted([scripted.text("ok"), scripted.text("more")])
    robot = RobotChatAnthropic(provider, EMPTY_CATALOG, follow_up_delay_seconds=0)
    processor = RobotProcessor(_registry(robot), store, history_limit=5)

    await processor.process_message(
        ProcessingRequest(content="formId: 1 help", conversation_id="C1", message=current)
    )
    await processor.wait_for_delayed()

    assert provider.requests[0]["messages"] == [
        {"role": "user", "content": "earlier"},
        {"role": "user", "content": "formId: 1 help"},
    ]


async def test_store_failure_becomes_apology():
    failing_store = MagicMock()
    failing_store.get_last_messages = AsyncMock(side_effect=RuntimeError("db down"))
    processor = RobotProcessor(_registry(ChatRobotParrot()), failing_store)

    result = await processor.process_message(ProcessingRequest(content="hello", conversation_id="C1"))

    assert result.response == "Sorry, I encountered an error processing your request: db down"
    assert not result.processed
    assert result.error == "db down"
