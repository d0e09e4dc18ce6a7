"""
Tool-Call Execution Loop
========================

Drives a provider through zero or more tool invocations to a final answer.

States:
    AWAITING_PROVIDER -> (TOOL_USE_REQUESTED <-> EXECUTING_TOOLS) -> FINISHED

The loop:
    1. Build a request from the system prompt, the adapted history and the
       catalog's tool declarations
    2. Submit it; the reply carries text segments and tool calls
    3. Emit every text segment as soon as it is known
    4. If the provider wants tools: run each call through the catalog, emit
       "\\n\\n<result>" (or "\\n\\nError executing <tool>: <message>"), append
       the assistant turn and the tool outcomes, and go back to 2
    5. Otherwise finish; the emitted text, concatenated, is the answer

A tool failure never aborts the loop: exceptions from the catalog and
unparseable arguments both become inline error text and the loop carries
on. If nothing at all was emitted, the loop emits "No response generated."

A provider that asks for tools N times runs exactly N rounds as long as N
is within max_rounds. Past the cap the pending calls are not executed and
the loop emits a short note saying it stopped, so the reply shows it.

The loop knows nothing about a specific provider. A ProviderAdapter
(see buddybot.robots.providers) translates turns, declarations and tool
outcomes to and from the provider's wire shapes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from buddybot.agent.context import Turn
from buddybot.tools import ToolCatalog, ToolDeclaration
from buddybot.utils.logger import Logger

logger = Logger("ToolLoop")


NO_RESPONSE_TEXT = "No response generated."
ROUND_CAP_TEXT = "\n\n(Stopped after {rounds} tool rounds without a final answer.)"
DEFAULT_MAX_TOOL_ROUNDS = 10

Emit = Callable[[str], Awaitable[None]]


class LoopState(str, Enum):
    AWAITING_PROVIDER = "awaiting_provider"
    TOOL_USE_REQUESTED = "tool_use_requested"
    EXECUTING_TOOLS = "executing_tools"
    FINISHED = "finished"


@dataclass
class ToolCall:
    """
    A tool invocation requested by the provider.

    Attributes:
        id: The provider's call id (for matching results)
        name: The tool name
        arguments: Parsed arguments, or None if they could not be parsed
        parse_error: Why parsing failed, when it did
    """
    id: str
    name: str
    arguments: dict[str, Any] | None
    parse_error: str | None = None


@dataclass
class ProviderReply:
    """
    One provider response, normalized.

    Attributes:
        text_segments: Text blocks in the order the provider produced them
        tool_calls: Requested tool invocations
        wants_tools: The provider signalled that it needs tool results
        raw: The provider's own response object, for the adapter
    """
    text_segments: list[str] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    wants_tools: bool = False
    raw: Any = None


@dataclass(frozen=True)
class ToolOutcome:
    """The rendered result of one tool invocation."""
    tool_call_id: str
    tool_name: str
    content: str
    is_error: bool = False


class ProviderAdapter(ABC):
    """
    Provider-specific request formatting and response parsing.

    Messages are kept in the provider's own format between rounds; the loop
    only ever appends what the adapter returns.
    """

    name: str = "provider"

    def is_configured(self) -> bool:
        """Whether the credentials this provider needs are present."""
        return True

    def ensure_ready(self) -> None:
        """Raise MissingCredentialError if the provider cannot be called."""

    @abstractmethod
    def initial_messages(self, turns: list[Turn]) -> list[dict]:
        """Convert adapted history turns into provider messages."""

    @abstractmethod
    async def create(
        self,
        system_prompt: str,
        messages: list[dict],
        tools: list[ToolDeclaration],
    ) -> ProviderReply:
        """Submit one request and normalize the reply."""

    @abstractmethod
    def continuation_messages(
        self,
        reply: ProviderReply,
        outcomes: list[ToolOutcome],
    ) -> list[dict]:
        """Messages to append after a tool round: the assistant turn, then results."""


class ToolCallLoop:
    """
    Runs the request/execute/resubmit cycle for one reply.

    A loop holds per-run state (state, rounds); build one per reply.

    Example:
        loop = ToolCallLoop(provider, catalog, max_rounds=10)
        outcomes: list[ToolOutcome] = []
        text = await loop.run(system_prompt, turns, emit, outcomes)
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        catalog: ToolCatalog,
        max_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        log: Logger | None = None,
    ):
        self.provider = provider
        self.catalog = catalog
        self.max_rounds = max_rounds
        self.logger = log or logger
        self.state = LoopState.FINISHED
        self.rounds = 0

    async def run(
        self,
        system_prompt: str,
        turns: list[Turn],
        emit: Emit,
        outcomes: list[ToolOutcome] | None = None,
    ) -> str:
        """
        Run the loop to completion.

        Args:
            system_prompt: Robot-specific system text
            turns: Adapted history ending with the current message
            emit: Awaited once per text segment or tool result
            outcomes: If given, every ToolOutcome is appended to it

        Returns:
            Everything emitted, concatenated in order

        Raises:
            Whatever the provider raises; tool failures never propagate
        """
        declarations = self.catalog.tool_definitions
        messages = self.provider.initial_messages(turns)
        emitted: list[str] = []
        rounds = 0

        async def _emit(text: str) -> None:
            emitted.append(text)
            await emit(text)

        while True:
            self.state = LoopState.AWAITING_PROVIDER
            reply = await self.provider.create(system_prompt, messages, declarations)

            for segment in reply.text_segments:
                if segment:
                    await _emit(segment)

            if not (reply.wants_tools and reply.tool_calls):
                break

            if rounds >= self.max_rounds:
                self.logger.warning(
                    f"Stopping after {rounds} tool rounds; provider still requests tools",
                    {"pending": [call.name for call in reply.tool_calls]},
                )
                await _emit(ROUND_CAP_TEXT.format(rounds=rounds))
                break

            self.state = LoopState.TOOL_USE_REQUESTED
            rounds += 1
            self.logger.debug(
                f"Tool round {rounds}",
                {"tools": [call.name for call in reply.tool_calls]},
            )

            self.state = LoopState.EXECUTING_TOOLS
            round_outcomes = []
            for call in reply.tool_calls:
                outcome = await self.execute(call)
                round_outcomes.append(outcome)
                if outcomes is not None:
                    outcomes.append(outcome)
                await _emit(f"\n\n{outcome.content}")

            messages = messages + self.provider.continuation_messages(reply, round_outcomes)

        self.state = LoopState.FINISHED
        self.rounds = rounds

        if not emitted:
            await _emit(NO_RESPONSE_TEXT)

        return "".join(emitted)

    async def execute(self, call: ToolCall) -> ToolOutcome:
        """Execute one tool call, folding any failure into error text."""
        if call.arguments is None:
            message = f"Error parsing arguments for {call.name}: {call.parse_error or 'invalid arguments'}"
            self.logger.warning(message)
            return ToolOutcome(call.id, call.name, message, is_error=True)

        self.logger.info(f"Executing tool: {call.name}")
        try:
            result = await self.catalog.execute_tool_call(call.name, call.arguments)
        except Exception as e:
            self.logger.error(f"Tool execution failed: {call.name}", e)
            return ToolOutcome(call.id, call.name, f"Error executing {call.name}: {e}", is_error=True)

        return ToolOutcome(call.id, call.name, result)
