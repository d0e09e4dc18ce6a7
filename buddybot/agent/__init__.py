"""
Agent System
============

The orchestration layer between transports and robots:

1. The history adapter turns stored messages into provider turns
2. The tool-call loop drives a provider through tool use to an answer
3. The processor (buddybot.agent.core) routes a message to a robot,
   runs the chosen response mode and persists the replies

This module provides:
- Turn, adapt_history, filter_relevant: conversation history adapter
- ToolCallLoop, ProviderAdapter, ToolOutcome: the tool-call loop

RobotProcessor is imported from buddybot.agent.core directly; it depends
on buddybot.robots, which in turn builds on this package.
"""

from buddybot.agent.context import Turn, adapt_history, filter_relevant
from buddybot.agent.tools_executor import (
    ProviderAdapter,
    ProviderReply,
    ToolCall,
    ToolCallLoop,
    ToolOutcome,
)

__all__ = [
    "Turn",
    "adapt_history",
    "filter_relevant",
    "ProviderAdapter",
    "ProviderReply",
    "ToolCall",
    "ToolCallLoop",
    "ToolOutcome",
]
