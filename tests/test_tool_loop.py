"""Tests for the provider-agnostic tool-call loop."""

import pytest

from buddybot.agent.context import Turn
from buddybot.agent.tools_executor import (
    NO_RESPONSE_TEXT,
    ROUND_CAP_TEXT,
    LoopState,
    ToolCall,
    ToolCallLoop,
    ToolOutcome,
)

TURNS = [Turn("user", "help me")]


class Collector:
    def __init__(self):
        self.chunks: list[str] = []

    async def __call__(self, chunk: str) -> None:
        self.chunks.append(chunk)


class TestToolCallLoop:
    async def test_plain_answer(self, scripted, echo_catalog):
        provider = scripted([scripted.text("Hello", " there")])
        emit = Collector()

        text = await ToolCallLoop(provider, echo_catalog).run("system", TURNS, emit)

        assert text == "Hello there"
        assert emit.chunks == ["Hello", " there"]
        assert provider.requests[0]["system"] == "system"
        assert provider.requests[0]["tools"] == ["echo", "lookup", "boom"]

    async def test_tool_rounds_then_answer(self, scripted, echo_catalog):
        provider = scripted([
            scripted.tools(ToolCall("1", "echo", {"text": "a"}), text="Checking."),
            scripted.tools(ToolCall("2", "lookup", {"id": "7"})),
            scripted.text("All done."),
        ])
        emit = Collector()
        outcomes: list[ToolOutcome] = []
        loop = ToolCallLoop(provider, echo_catalog)

        text = await loop.run("system", TURNS, emit, outcomes)

        assert emit.chunks[0] == "Checking."
        assert emit.chunks[1] == "\n\necho: a"
        assert emit.chunks[2].startswith("\n\n{")
        assert emit.chunks[3] == "All done."
        assert text == "".join(emit.chunks)
        assert [o.tool_name for o in outcomes] == ["echo", "lookup"]
        assert loop.rounds == 2
        assert loop.state == LoopState.FINISHED

        # Each resubmission carries the previous request plus the tool round
        assert len(provider.requests) == 3
        assert len(provider.requests[1]["messages"]) == 3
        assert len(provider.requests[2]["messages"]) == 5

    async def test_parse_error_does_not_abort(self, scripted, echo_catalog):
        provider = scripted([
            scripted.tools(
                ToolCall("1", "echo", None, parse_error="Expecting value"),
                ToolCall("2", "echo", {"text": "still runs"}),
            ),
            scripted.text("Finished."),
        ])
        emit = Collector()
        outcomes: list[ToolOutcome] = []

        await ToolCallLoop(provider, echo_catalog).run("s", TURNS, emit, outcomes)

        assert emit.chunks == [
            "\n\nError parsing arguments for echo: Expecting value",
            "\n\necho: still runs",
            "Finished.",
        ]
        assert outcomes[0].is_error
        assert not outcomes[1].is_error

    async def test_tool_exception_becomes_text(self, scripted, echo_catalog):
        provider = scripted([
            scripted.tools(ToolCall("1", "boom", {})),
            scripted.text("Recovered."),
        ])
        emit = Collector()

        text = await ToolCallLoop(provider, echo_catalog).run("s", TURNS, emit)

        assert text == "\n\nError executing boom: kaboom" + "Recovered."

    async def test_unknown_tool_becomes_text(self, scripted, echo_catalog):
        provider = scripted([
            scripted.tools(ToolCall("1", "nope", {})),
            scripted.text("ok"),
        ])
        emit = Collector()

        await ToolCallLoop(provider, echo_catalog).run("s", TURNS, emit)

        assert emit.chunks[0] == (
            "\n\nError executing nope: Unknown tool: nope. Available tools: echo, lookup, boom"
        )

    async def test_empty_reply_yields_fallback(self, scripted, echo_catalog):
        provider = scripted([scripted.text("")])
        emit = Collector()

        text = await ToolCallLoop(provider, echo_catalog).run("s", TURNS, emit)

        assert text == NO_RESPONSE_TEXT
        assert emit.chunks == [NO_RESPONSE_TEXT]

    async def test_round_cap_adds_visible_note(self, scripted, echo_catalog):
        provider = scripted([
            scripted.tools(ToolCall(str(i), "echo", {"text": str(i)})) for i in range(5)
        ])
        emit = Collector()
        loop = ToolCallLoop(provider, echo_catalog, max_rounds=2)

        text = await loop.run("s", TURNS, emit)

        assert loop.rounds == 2
        assert len(provider.requests) == 3
        assert text == "\n\necho: 0\n\necho: 1" + ROUND_CAP_TEXT.format(rounds=2)
        assert emit.chunks[-1] == "\n\n(Stopped after 2 tool rounds without a final answer.)"

    @pytest.mark.parametrize("requested", [0, 1, 10])
    async def test_runs_exactly_the_requested_rounds_within_cap(self, scripted, echo_catalog, requested):
        provider = scripted(
            [scripted.tools(ToolCall(str(i), "echo", {"text": str(i)})) for i in range(requested)]
            + [scripted.text("Final.")]
        )
        loop = ToolCallLoop(provider, echo_catalog, max_rounds=10)

        text = await loop.run("s", TURNS, Collector())

        assert loop.rounds == requested
        assert len(provider.requests) == requested + 1
        assert text.endswith("Final.")
        assert "Stopped after" not in text

    async def test_provider_errors_propagate(self, scripted, echo_catalog):
        provider = scripted([RuntimeError("provider down")])

        with pytest.raises(RuntimeError, match="provider down"):
            await ToolCallLoop(provider, echo_catalog).run("s", TURNS, Collector())
