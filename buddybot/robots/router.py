"""
Robot Router
============

Chooses which robot answers a message, and how.

Routing is a pure function of the message text: no history, no
randomness. Rules are checked in order and the first match wins:

    1. slack_context   - "<@U" mention token, or "istackbuddy" / "slacky"
                         -> SlackyAnthropicAgent, multi_part
    2. form_reference  - "formId: 123", "form: {123}", ...
                         -> RobotChatAnthropic, multi_part
    3. default         - anything else
                         -> ChatRobotParrot, immediate

Rules 1 and 2 can both match one message; the order breaks the tie.
Rule 3 always matches, so every message gets exactly one decision.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from buddybot.robots.base import Robot
from buddybot.robots.registry import RobotRegistry
from buddybot.utils.logger import Logger

logger = Logger("Router")


class ResponseMode(str, Enum):
    IMMEDIATE = "immediate"
    MULTI_PART = "multi_part"


FORM_REFERENCE = re.compile(r"(formId|form):\s*\{?\d+\}?", re.IGNORECASE)
SLACK_BRANDS = ("istackbuddy", "slacky")


def is_slack_context(content: str) -> bool:
    if "<@U" in content:
        return True
    lowered = content.lower()
    return any(brand in lowered for brand in SLACK_BRANDS)


def has_form_reference(content: str) -> bool:
    return FORM_REFERENCE.search(content) is not None


@dataclass(frozen=True)
class RoutingRule:
    """One row of the routing table."""
    name: str
    matches: Callable[[str], bool]
    robot_name: str
    response_mode: ResponseMode


ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule("slack_context", is_slack_context, "SlackyAnthropicAgent", ResponseMode.MULTI_PART),
    RoutingRule("form_reference", has_form_reference, "RobotChatAnthropic", ResponseMode.MULTI_PART),
    RoutingRule("default", lambda content: True, "ChatRobotParrot", ResponseMode.IMMEDIATE),
)


@dataclass(frozen=True)
class Route:
    """The robot name and mode chosen for a message, before registry lookup."""
    robot_name: str
    response_mode: ResponseMode
    rule_name: str


@dataclass(frozen=True)
class RoutingDecision:
    """
    The resolved choice for one message. Never persisted.

    `robot` is None when the chosen robot is not registered.
    """
    robot: Robot | None
    robot_name: str
    response_mode: ResponseMode
    rule_name: str


def select_route(content: str, rules: tuple[RoutingRule, ...] = ROUTING_RULES) -> Route:
    """Apply the rule table to `content` and return the first match."""
    for rule in rules:
        if rule.matches(content):
            return Route(rule.robot_name, rule.response_mode, rule.name)
    raise LookupError("Routing table has no matching rule")


def should_process_message(content: str) -> bool:
    """
    Trigger check used by transports that see every message in a channel.

    True for messages addressed to the robot or mentioning forms, SSO or
    help. Slack mentions always count.
    """
    lowered = content.lower()
    return (
        "@robot" in content
        or is_slack_context(content)
        or any(word in lowered for word in ("help", "form", "sso", "formstack"))
        or has_form_reference(content)
    )


class RobotRouter:
    """
    Resolves routing decisions against a registry.

    Example:
        router = RobotRouter(registry)
        decision = router.route("<@U123> help with formId: 42")
        decision.robot_name     # "SlackyAnthropicAgent"
        decision.response_mode  # ResponseMode.MULTI_PART
    """

    def __init__(self, registry: RobotRegistry, rules: tuple[RoutingRule, ...] = ROUTING_RULES):
        self.registry = registry
        self.rules = rules

    def route(self, content: str) -> RoutingDecision:
        chosen = select_route(content, self.rules)
        robot = self.registry.get(chosen.robot_name)
        if robot is None:
            logger.warning(f"Robot {chosen.robot_name} is not registered", {"rule": chosen.rule_name})
        else:
            logger.debug(
                f"Selected robot: {chosen.robot_name}",
                {"rule": chosen.rule_name, "mode": chosen.response_mode.value},
            )
        return RoutingDecision(robot, chosen.robot_name, chosen.response_mode, chosen.rule_name)
