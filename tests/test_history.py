"""Tests for the conversation history adapter."""

from buddybot.agent.context import (
    Turn,
    adapt_history,
    filter_relevant,
    is_tool_chatter,
    snapshot_history,
)
from buddybot.memory.messages import ConversationMessage, MessageContent, UserRole


def _msg(text, role=UserRole.CUSTOMER) -> ConversationMessage:
    return ConversationMessage.text("C1", text, from_role=role)


def test_tool_json_from_robot_is_dropped():
    history = [
        _msg("hi"),
        _msg('{"tool":"x"}', UserRole.ROBOT),
        _msg("hello", UserRole.ROBOT),
    ]

    turns = adapt_history(history, "next")

    assert turns == [
        Turn("user", "hi"),
        Turn("assistant", "hello"),
        Turn("user", "next"),
    ]


def test_human_roles_map_to_user():
    history = [
        _msg("from agent", UserRole.AGENT),
        _msg("from supervisor", UserRole.SUPERVISOR),
        _msg("from robot", UserRole.ROBOT),
    ]

    roles = [turn.role for turn in adapt_history(history, "now")]

    assert roles == ["user", "user", "assistant", "user"]


def test_current_message_is_last_and_not_duplicated():
    earlier = _msg("earlier")
    current = _msg("current question")

    turns = adapt_history([earlier, current], current)

    assert turns == [Turn("user", "earlier"), Turn("user", "current question")]


def test_only_robot_json_counts_as_chatter():
    assert not is_tool_chatter(_msg('{"formId": 1}'))
    assert not is_tool_chatter(_msg('  {"formId": 1}', UserRole.AGENT))
    assert is_tool_chatter(_msg('  {"formId": 1}', UserRole.ROBOT))


def test_agent_and_supervisor_turns_are_never_filtered():
    history = [
        _msg('{"note": "customer account id 42"}', UserRole.AGENT),
        _msg("Executing the refund now, please hold", UserRole.AGENT),
        _msg("Error executing the export was on our side", UserRole.SUPERVISOR),
    ]

    turns = adapt_history(history, "thanks")

    assert [turn.content for turn in turns] == [
        '{"note": "customer account id 42"}',
        "Executing the refund now, please hold",
        "Error executing the export was on our side",
        "thanks",
    ]
    assert {turn.role for turn in turns} == {"user"}


def test_tool_markers_from_robot_are_dropped():
    history = [
        _msg("**Tool: sumo_logic_query**\n\nresult", UserRole.ROBOT),
        _msg("Error executing boom: kaboom", UserRole.ROBOT),
        _msg("A real answer", UserRole.ROBOT),
    ]

    assert [m.text_payload for m in filter_relevant(history)] == ["A real answer"]


def test_non_text_and_empty_messages_are_skipped():
    image = ConversationMessage(
        conversation_id="C1",
        from_role=UserRole.CUSTOMER,
        to_role=UserRole.ROBOT,
        content=MessageContent(type="image/png", payload=b"..."),
    )

    turns = adapt_history([image, _msg("   ")], "question")

    assert turns == [Turn("user", "question")]


def test_empty_history():
    assert adapt_history([], "only") == [Turn("user", "only")]


def test_snapshot_calls_provider_once():
    calls = []

    def get_history():
        calls.append(1)
        return [_msg("a")]

    assert len(snapshot_history(get_history)) == 1
    assert calls == [1]
    assert snapshot_history(None) == []
