"""
Provider Adapters
=================

Provider-specific request formatting and response parsing for the
tool-call loop.

Key differences between the two providers:

Anthropic (messages API)
    - System prompt is a separate top-level parameter
    - Tools are declared with `input_schema`
    - The reply is a list of content blocks (text / tool_use)
    - stop_reason == "tool_use" means "run these tools and come back"
    - Tool results go back as `tool_result` blocks inside a user turn

OpenAI (chat completions API)
    - System prompt is the first message
    - Tools are declared as functions with `parameters`
    - Tool call arguments arrive as a JSON string that must be parsed
    - Tool results go back as one "tool" role message per call

Clients are created lazily. A missing API key raises
MissingCredentialError the first time the client is needed, naming the
environment variable.
"""

import json

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from buddybot.agent.context import Turn
from buddybot.agent.tools_executor import ProviderAdapter, ProviderReply, ToolCall, ToolOutcome
from buddybot.tools import ToolDeclaration
from buddybot.utils.config import MissingCredentialError
from buddybot.utils.logger import Logger

logger = Logger("Providers")


class AnthropicProvider(ProviderAdapter):
    """
    Anthropic Claude adapter.

    Example:
        provider = AnthropicProvider(api_key, "claude-3-5-sonnet-20241022", max_tokens=1024)
        reply = await provider.create(system_prompt, messages, declarations)
    """

    name = "anthropic"
    credential_variable = "ANTHROPIC_API_KEY"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        max_tokens: int = 1024,
        client: AsyncAnthropic | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def ensure_ready(self) -> None:
        if not self.is_configured():
            raise MissingCredentialError(self.credential_variable, "Anthropic robots")

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            self.ensure_ready()
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    def initial_messages(self, turns: list[Turn]) -> list[dict]:
        return [turn.to_dict() for turn in turns]

    async def create(
        self,
        system_prompt: str,
        messages: list[dict],
        tools: list[ToolDeclaration],
    ) -> ProviderReply:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = [declaration.to_anthropic_tool() for declaration in tools]

        logger.debug(
            "anthropic.create",
            {"model": self.model, "messages": len(messages), "tools": len(tools)},
        )
        response = await self.client.messages.create(**kwargs)

        text_segments = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_segments.append(block.text)
            elif block.type == "tool_use":
                if isinstance(block.input, dict):
                    tool_calls.append(ToolCall(block.id, block.name, block.input))
                else:
                    tool_calls.append(ToolCall(
                        block.id,
                        block.name,
                        None,
                        parse_error=f"expected an object, got {type(block.input).__name__}",
                    ))

        return ProviderReply(
            text_segments=text_segments,
            tool_calls=tool_calls,
            wants_tools=response.stop_reason == "tool_use",
            raw=response,
        )

    def continuation_messages(
        self,
        reply: ProviderReply,
        outcomes: list[ToolOutcome],
    ) -> list[dict]:
        assistant_blocks = []
        for block in reply.raw.content:
            if block.type == "text":
                assistant_blocks.append({"type": "text", "text": block.text})
            elif block.type == "tool_use":
                assistant_blocks.append({
                    "type": "tool_use",
                    "id": block.id,
                    "name": block.name,
                    "input": block.input if isinstance(block.input, dict) else {},
                })

        return [
            {"role": "assistant", "content": assistant_blocks},
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": outcome.tool_call_id,
                        "content": outcome.content,
                        "is_error": outcome.is_error,
                    }
                    for outcome in outcomes
                ],
            },
        ]


class OpenAIProvider(ProviderAdapter):
    """
    OpenAI chat completions adapter.

    Example:
        provider = OpenAIProvider(api_key, "gpt-4o")
        reply = await provider.create(system_prompt, messages, declarations)
    """

    name = "openai"
    credential_variable = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        client: AsyncOpenAI | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self._client = client

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def ensure_ready(self) -> None:
        if not self.is_configured():
            raise MissingCredentialError(self.credential_variable, "OpenAI robots")

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self.ensure_ready()
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def initial_messages(self, turns: list[Turn]) -> list[dict]:
        return [turn.to_dict() for turn in turns]

    async def create(
        self,
        system_prompt: str,
        messages: list[dict],
        tools: list[ToolDeclaration],
    ) -> ProviderReply:
        kwargs = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
        }
        if tools:
            kwargs["tools"] = [declaration.to_openai_function() for declaration in tools]
            kwargs["tool_choice"] = "auto"

        logger.debug(
            "openai.create",
            {"model": self.model, "messages": len(messages), "tools": len(tools)},
        )
        response = await self.client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        message = choice.message

        tool_calls = []
        for tc in message.tool_calls or []:
            tool_calls.append(_parse_openai_tool_call(tc))

        return ProviderReply(
            text_segments=[message.content] if message.content else [],
            tool_calls=tool_calls,
            wants_tools=bool(tool_calls),
            raw=response,
        )

    def continuation_messages(
        self,
        reply: ProviderReply,
        outcomes: list[ToolOutcome],
    ) -> list[dict]:
        message = reply.raw.choices[0].message
        assistant = {
            "role": "assistant",
            "content": message.content,
            "tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments,
                    },
                }
                for tc in message.tool_calls or []
            ],
        }
        results = [
            {
                "role": "tool",
                "tool_call_id": outcome.tool_call_id,
                "content": outcome.content,
            }
            for outcome in outcomes
        ]
        return [assistant, *results]


def _parse_openai_tool_call(tc) -> ToolCall:
    """Parse the JSON argument string of one OpenAI tool call."""
    raw = tc.function.arguments or "{}"
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse tool arguments for {tc.function.name}: {e}")
        return ToolCall(tc.id, tc.function.name, None, parse_error=str(e))

    if not isinstance(arguments, dict):
        return ToolCall(
            tc.id,
            tc.function.name,
            None,
            parse_error=f"expected an object, got {type(arguments).__name__}",
        )
    return ToolCall(tc.id, tc.function.name, arguments)
