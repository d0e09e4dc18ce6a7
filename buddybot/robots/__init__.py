"""
Robots
======

Pluggable agents that answer conversation messages.

This module provides:
- Robot / StreamingCallbacks: the contract every robot implements
- ChatRobotParrot, RobotChatAnthropic, SlackyAnthropicAgent, RobotChatOpenAI
- RobotRegistry / build_default_registry: name -> robot lookup
- RobotRouter / select_route: content-based choice of robot and mode
"""

from buddybot.robots.anthropic_robots import RobotChatAnthropic, SlackyAnthropicAgent
from buddybot.robots.base import Robot, StreamingCallbacks, ToolLoopRobot
from buddybot.robots.openai_robots import RobotChatOpenAI
from buddybot.robots.parrot import ChatRobotParrot
from buddybot.robots.registry import RobotRegistry, build_default_registry
from buddybot.robots.router import (
    ResponseMode,
    RobotRouter,
    RoutingDecision,
    select_route,
    should_process_message,
)

__all__ = [
    "Robot",
    "StreamingCallbacks",
    "ToolLoopRobot",
    "ChatRobotParrot",
    "RobotChatAnthropic",
    "SlackyAnthropicAgent",
    "RobotChatOpenAI",
    "RobotRegistry",
    "build_default_registry",
    "ResponseMode",
    "RobotRouter",
    "RoutingDecision",
    "select_route",
    "should_process_message",
]
