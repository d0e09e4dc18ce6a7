"""
Robot Contract
==============

Every robot answers a message in three ways:

1. Immediate: one awaited reply
       content = await robot.accept_message_immediate_response(message, get_history)

2. Streaming: results reported through callbacks
       await robot.accept_message_stream_response(message, callbacks, get_history)

3. Multi-part: an immediate reply now, supplementary content later
       content = await robot.accept_message_multi_part_response(
           message, delayed_callback, get_history
       )

Default composition:
    multi-part -> immediate -> streaming

so a concrete robot only implements `generate()`; the base class turns
that into the three modes and enforces their guarantees:

- Immediate never raises; failures become "I encountered an error: ..."
- Streaming fires exactly one terminal signal. On success that is
  on_stream_finished + on_full_message_received; on failure on_error
  only, or, without on_error, an "Error in streaming response: ..." chunk
- Multi-part always returns the immediate reply; a delayed failure is
  delivered as "Error in delayed response: ..." through the same callback

History is passed per call as `get_history`, a zero-argument callable
returning stored messages. It is called once, at the start of the call.
"""

import asyncio
import inspect
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable

from buddybot.agent.context import HistoryProvider, adapt_history, snapshot_history
from buddybot.agent.tools_executor import Emit, ProviderAdapter, ToolCallLoop, ToolOutcome
from buddybot.memory.messages import ConversationMessage, MessageContent
from buddybot.tools import ToolCatalog
from buddybot.utils.logger import Logger


Callback = Callable[..., Any | Awaitable[Any]]
DelayedCallback = Callable[[MessageContent], Any | Awaitable[Any]]


@dataclass
class StreamingCallbacks:
    """
    Consumer hooks for the streaming mode.

    Each hook may be a plain function or a coroutine function.

    Attributes:
        on_stream_chunk_received: Called with every text chunk (required)
        on_stream_start: Called with the incoming message before the first chunk
        on_stream_finished: Called with the full text on success
        on_full_message_received: Called with the full text on success
        on_error: Called with the exception on failure
    """
    on_stream_chunk_received: Callable[[str], Any]
    on_stream_start: Callback | None = None
    on_stream_finished: Callback | None = None
    on_full_message_received: Callback | None = None
    on_error: Callback | None = None


class Robot(ABC):
    """
    Base class for all robots.

    Subclasses set the identity attributes and implement generate().
    """

    name: str = "Robot"
    version: str = "1.0.0"
    model_name: str = ""
    model_version: str = ""
    context_window_size_in_tokens: int = 0
    description_short: str = ""
    description_long: str = ""

    def __init__(self, follow_up_delay_seconds: float = 2.0):
        self.follow_up_delay_seconds = follow_up_delay_seconds
        self.logger = Logger(self.name)
        self._delayed_tasks: set[asyncio.Task] = set()

    # ==========================================================================
    # Identity and readiness
    # ==========================================================================

    def is_configured(self) -> bool:
        """Whether this robot has what it needs to answer (e.g. an API key)."""
        return True

    def ensure_ready(self) -> None:
        """Raise MissingCredentialError if the robot cannot answer."""

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough token estimate: one token per four characters."""
        return math.ceil(len(text) / 4)

    def describe(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "modelName": self.model_name,
            "modelVersion": self.model_version,
            "contextWindowSizeInTokens": self.context_window_size_in_tokens,
            "descriptionShort": self.description_short,
        }

    # ==========================================================================
    # What subclasses implement
    # ==========================================================================

    @abstractmethod
    async def generate(
        self,
        message: ConversationMessage,
        history: list[ConversationMessage],
        emit: Emit,
        tool_outcomes: list[ToolOutcome] | None = None,
    ) -> str:
        """
        Produce the reply, emitting text as it becomes known.

        May raise; the callers fold exceptions into the mode's error channel.

        Returns:
            The full reply text (the concatenation of everything emitted)
        """

    async def delayed_responses(
        self,
        message: ConversationMessage,
        immediate: MessageContent,
        tool_outcomes: list[ToolOutcome],
        get_history: HistoryProvider | None,
    ) -> AsyncIterator[MessageContent]:
        """Supplementary content for multi-part mode. None by default."""
        return
        yield

    # ==========================================================================
    # Streaming
    # ==========================================================================

    async def accept_message_stream_response(
        self,
        message: ConversationMessage,
        callbacks: StreamingCallbacks,
        get_history: HistoryProvider | None = None,
    ) -> None:
        """Stream a reply through `callbacks`; returns once a terminal signal has fired."""
        await self._stream(message, callbacks, get_history, None)

    async def _stream(
        self,
        message: ConversationMessage,
        callbacks: StreamingCallbacks,
        get_history: HistoryProvider | None,
        tool_outcomes: list[ToolOutcome] | None,
    ) -> None:
        async def emit(chunk: str) -> None:
            await self._invoke("on_stream_chunk_received", callbacks.on_stream_chunk_received, chunk)

        try:
            self.ensure_ready()
            history = snapshot_history(get_history)
            await self._invoke("on_stream_start", callbacks.on_stream_start, message)
            content = await self.generate(message, history, emit, tool_outcomes)
        except Exception as e:
            self.logger.error("Error in streaming response", e)
            if callbacks.on_error is not None:
                await self._invoke("on_error", callbacks.on_error, e)
            else:
                await emit(f"Error in streaming response: {e}")
            return

        await self._invoke("on_stream_finished", callbacks.on_stream_finished, content)
        await self._invoke("on_full_message_received", callbacks.on_full_message_received, content)

    async def _invoke(self, hook: str, callback: Callback | None, *args: Any) -> None:
        """Call a consumer hook. Its exceptions are logged and not propagated."""
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.error(f"Callback {hook} raised", e)

    # ==========================================================================
    # Immediate
    # ==========================================================================

    async def accept_message_immediate_response(
        self,
        message: ConversationMessage,
        get_history: HistoryProvider | None = None,
    ) -> MessageContent:
        """Answer with a single reply. Never raises."""
        return await self._immediate(message, get_history, None)

    async def _immediate(
        self,
        message: ConversationMessage,
        get_history: HistoryProvider | None,
        tool_outcomes: list[ToolOutcome] | None,
    ) -> MessageContent:
        chunks: list[str] = []
        errors: list[BaseException] = []

        await self._stream(
            message,
            StreamingCallbacks(
                on_stream_chunk_received=chunks.append,
                on_error=errors.append,
            ),
            get_history,
            tool_outcomes,
        )

        if errors:
            return MessageContent.text(f"I encountered an error: {errors[0]}")
        return MessageContent.text("".join(chunks))

    # ==========================================================================
    # Multi-part
    # ==========================================================================

    async def accept_message_multi_part_response(
        self,
        message: ConversationMessage,
        delayed_callback: DelayedCallback,
        get_history: HistoryProvider | None = None,
    ) -> MessageContent:
        """
        Return the immediate reply and schedule the delayed supplement.

        The supplement runs as a background task; use wait_for_delayed()
        to wait for it.
        """
        tool_outcomes: list[ToolOutcome] = []
        immediate = await self._immediate(message, get_history, tool_outcomes)

        task = asyncio.create_task(
            self._deliver_delayed(message, immediate, tool_outcomes, delayed_callback, get_history)
        )
        self._delayed_tasks.add(task)
        task.add_done_callback(self._delayed_tasks.discard)

        return immediate

    async def _deliver_delayed(
        self,
        message: ConversationMessage,
        immediate: MessageContent,
        tool_outcomes: list[ToolOutcome],
        delayed_callback: DelayedCallback,
        get_history: HistoryProvider | None,
    ) -> None:
        try:
            async for content in self.delayed_responses(message, immediate, tool_outcomes, get_history):
                await self._invoke("delayed_callback", delayed_callback, content)
        except Exception as e:
            self.logger.error("Error in delayed response", e)
            await self._invoke(
                "delayed_callback",
                delayed_callback,
                MessageContent.text(f"Error in delayed response: {e}"),
            )

    async def wait_for_delayed(self) -> None:
        """Wait until every scheduled delayed delivery has finished."""
        while self._delayed_tasks:
            await asyncio.gather(*list(self._delayed_tasks))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ToolLoopRobot(Robot):
    """
    A robot backed by an LLM provider and a tool catalog.

    generate() adapts the history, then runs a ToolCallLoop. In multi-part
    mode the delayed supplement is one message per tool outcome of the
    immediate run or, when no tools were used, a follow-up request.
    """

    system_prompt: str = ""

    def __init__(
        self,
        provider: ProviderAdapter,
        catalog: ToolCatalog,
        max_tool_rounds: int = 10,
        follow_up_delay_seconds: float = 2.0,
    ):
        super().__init__(follow_up_delay_seconds=follow_up_delay_seconds)
        self.provider = provider
        self.catalog = catalog
        self.max_tool_rounds = max_tool_rounds

        if not self.is_configured():
            self.logger.warning(
                f"{self.name} is not configured: "
                f"{getattr(provider, 'credential_variable', 'credential')} is missing"
            )

    @property
    def model_name(self) -> str:
        return getattr(self.provider, "model", "")

    def is_configured(self) -> bool:
        return self.provider.is_configured()

    def ensure_ready(self) -> None:
        self.provider.ensure_ready()

    async def generate(
        self,
        message: ConversationMessage,
        history: list[ConversationMessage],
        emit: Emit,
        tool_outcomes: list[ToolOutcome] | None = None,
    ) -> str:
        turns = adapt_history(history, message)
        loop = ToolCallLoop(
            self.provider,
            self.catalog,
            max_rounds=self.max_tool_rounds,
            log=self.logger.child("ToolLoop"),
        )
        return await loop.run(self.system_prompt, turns, emit, tool_outcomes)

    def follow_up_prompt(self, text: str) -> str:
        return f'Follow up on: "{text}". Is there anything else I can help you with regarding this topic?'

    async def delayed_responses(
        self,
        message: ConversationMessage,
        immediate: MessageContent,
        tool_outcomes: list[ToolOutcome],
        get_history: HistoryProvider | None,
    ) -> AsyncIterator[MessageContent]:
        if tool_outcomes:
            for outcome in tool_outcomes:
                await asyncio.sleep(self.follow_up_delay_seconds)
                if outcome.is_error:
                    yield MessageContent.text(f"**Tool Error: {outcome.tool_name}**\n\n{outcome.content}")
                else:
                    yield MessageContent.text(f"**Tool: {outcome.tool_name}**\n\n{outcome.content}")
            return

        await asyncio.sleep(self.follow_up_delay_seconds)
        self.ensure_ready()
        follow_up = message.with_content(
            MessageContent.text(self.follow_up_prompt(message.text_payload or ""))
        )

        async def discard(_chunk: str) -> None:
            pass

        text = await self.generate(follow_up, snapshot_history(get_history), discard)
        yield MessageContent.text(text)
