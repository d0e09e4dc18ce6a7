"""
Parrot Robot
============

ChatRobotParrot repeats the message back with a random number prefix:

    "hello" -> "(4821) hello"

It costs nothing to run and needs no credentials, which makes it the
fallback route and a handy stand-in while testing transports. Streaming
splits the reply into five roughly equal chunks.
"""

import asyncio
import math
import random
from typing import AsyncIterator

from buddybot.agent.context import HistoryProvider
from buddybot.agent.tools_executor import Emit, ToolOutcome
from buddybot.memory.messages import ConversationMessage, MessageContent
from buddybot.robots.base import Robot


class ChatRobotParrot(Robot):
    """Echo robot used as the default route."""

    name = "ChatRobotParrot"
    version = "1.0.0"
    model_name = "parrot"
    model_version = "1.0"
    context_window_size_in_tokens = 4096
    description_short = "Repeats messages back with a random number prefix."
    description_long = (
        "A testing robot that echoes every message with a random number prefix. "
        "Useful for exercising immediate, streaming and multi-part delivery "
        "without any provider cost."
    )

    CHUNK_COUNT = 5

    def __init__(
        self,
        follow_up_delay_seconds: float = 0.3,
        chunk_delay_seconds: float = 0.0,
        rng: random.Random | None = None,
    ):
        super().__init__(follow_up_delay_seconds=follow_up_delay_seconds)
        self.chunk_delay_seconds = chunk_delay_seconds
        self._rng = rng or random.Random()

    def parrot(self, text: str) -> str:
        return f"({self._rng.randrange(10000)}) {text}"

    async def generate(
        self,
        message: ConversationMessage,
        history: list[ConversationMessage],
        emit: Emit,
        tool_outcomes: list[ToolOutcome] | None = None,
    ) -> str:
        response = self.parrot(message.text_payload or "")

        size = max(1, math.ceil(len(response) / self.CHUNK_COUNT))
        for start in range(0, len(response), size):
            if self.chunk_delay_seconds:
                await asyncio.sleep(self.chunk_delay_seconds)
            await emit(response[start:start + size])

        return response

    async def delayed_responses(
        self,
        message: ConversationMessage,
        immediate: MessageContent,
        tool_outcomes: list[ToolOutcome],
        get_history: HistoryProvider | None,
    ) -> AsyncIterator[MessageContent]:
        await asyncio.sleep(self.follow_up_delay_seconds)
        yield MessageContent.text(f"Follow-up chat response for: {message.text_payload or ''}")
