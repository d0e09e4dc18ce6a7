"""Tests for content-based robot selection."""

import pytest

from buddybot.robots import ChatRobotParrot, RobotRegistry, RobotRouter, ResponseMode, select_route
from buddybot.robots.router import has_form_reference, is_slack_context, should_process_message


@pytest.mark.parametrize(
    "content, robot_name, mode",
    [
        ("<@U123ABC> why is formId: 42 broken?", "SlackyAnthropicAgent", ResponseMode.MULTI_PART),
        ("Hey iStackBuddy, can you help?", "SlackyAnthropicAgent", ResponseMode.MULTI_PART),
        ("ask slacky about it", "SlackyAnthropicAgent", ResponseMode.MULTI_PART),
        ("formId: 42 is not sending emails", "RobotChatAnthropic", ResponseMode.MULTI_PART),
        ("check form: {12345}", "RobotChatAnthropic", ResponseMode.MULTI_PART),
        ("hello", "ChatRobotParrot", ResponseMode.IMMEDIATE),
        ("my form is broken", "ChatRobotParrot", ResponseMode.IMMEDIATE),
        ("", "ChatRobotParrot", ResponseMode.IMMEDIATE),
    ],
)
def test_select_route(content, robot_name, mode):
    route = select_route(content)

    assert route.robot_name == robot_name
    assert route.response_mode == mode


def test_slack_context_beats_form_reference():
    content = "<@U999> formId: 1"

    assert is_slack_context(content)
    assert has_form_reference(content)
    assert select_route(content).rule_name == "slack_context"


def test_routing_is_deterministic():
    decisions = {select_route("formId: 7 help") for _ in range(20)}
    assert len(decisions) == 1


def test_router_resolves_robot_from_registry():
    registry = RobotRegistry()
    parrot = ChatRobotParrot()
    registry.register(parrot)

    decision = RobotRouter(registry).route("hello")

    assert decision.robot is parrot
    assert decision.rule_name == "default"


def test_router_reports_unregistered_robot():
    decision = RobotRouter(RobotRegistry()).route("<@U1> hi")

    assert decision.robot is None
    assert decision.robot_name == "SlackyAnthropicAgent"


@pytest.mark.parametrize(
    "content, expected",
    [
        ("@robot are you there?", True),
        ("I need HELP", True),
        ("sso login loops", True),
        ("<@U42> hi", True),
        ("formId: 12", True),
        ("lunch at noon?", False),
    ],
)
def test_should_process_message(content, expected):
    assert should_process_message(content) is expected
