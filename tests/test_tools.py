"""Tests for tool catalogs and composite dispatch."""

import pytest

from buddybot.tools import (
    EMPTY_CATALOG,
    Tool,
    ToolCatalog,
    ToolDeclaration,
    UnknownToolError,
    create_composite_tool_set,
    render_tool_result,
)

SCHEMA = {"type": "object", "properties": {"text": {"type": "string"}}}


def _catalog(name: str, *tool_names: str) -> ToolCatalog:
    return ToolCatalog(name, [
        Tool(tool_name, f"{tool_name} tool", SCHEMA, lambda params, n=tool_name, c=name: f"{c}:{n}")
        for tool_name in tool_names
    ])


class TestToolCatalog:
    async def test_executes_sync_handler(self, echo_catalog):
        assert await echo_catalog.execute_tool_call("echo", {"text": "hi"}) == "echo: hi"

    async def test_executes_async_handler_and_renders_json(self, echo_catalog):
        result = await echo_catalog.execute_tool_call("lookup", {"id": "42"})
        assert result == '{\n  "id": "42",\n  "status": "active"\n}'

    async def test_unknown_tool_lists_available_names(self, echo_catalog):
        with pytest.raises(UnknownToolError) as exc_info:
            await echo_catalog.execute_tool_call("nope", {})
        assert str(exc_info.value) == "Unknown tool: nope. Available tools: echo, lookup, boom"
        assert exc_info.value.tool_name == "nope"

    async def test_executor_errors_propagate(self, echo_catalog):
        with pytest.raises(RuntimeError, match="kaboom"):
            await echo_catalog.execute_tool_call("boom", {})

    def test_duplicate_name_rejected(self):
        with pytest.raises(ValueError, match="declared twice"):
            _catalog("dupes", "a", "a")

    def test_declarations_keep_order(self):
        catalog = _catalog("c", "b", "a", "c")
        assert catalog.tool_names() == ["b", "a", "c"]
        assert all(isinstance(d, ToolDeclaration) for d in catalog.tool_definitions)
        assert len(catalog) == 3

    def test_subset(self):
        catalog = _catalog("c", "a", "b", "c")
        assert catalog.subset("c", "a").tool_names() == ["a", "c"]

    def test_subset_unknown_name(self):
        with pytest.raises(UnknownToolError):
            _catalog("c", "a").subset("zzz")

    def test_empty_catalog(self):
        assert EMPTY_CATALOG.tool_definitions == []


class TestToolDeclaration:
    def test_anthropic_shape(self):
        declaration = ToolDeclaration("echo", "Echo", SCHEMA)
        assert declaration.to_anthropic_tool() == {
            "name": "echo",
            "description": "Echo",
            "input_schema": SCHEMA,
        }

    def test_openai_shape(self):
        declaration = ToolDeclaration("echo", "Echo", SCHEMA)
        assert declaration.to_openai_function() == {
            "type": "function",
            "function": {"name": "echo", "description": "Echo", "parameters": SCHEMA},
        }


class TestCompositeToolCatalog:
    def test_definitions_are_concatenated(self):
        composite = create_composite_tool_set(_catalog("one", "a", "b"), _catalog("two", "c"))
        assert composite.tool_names() == ["a", "b", "c"]

    async def test_dispatches_to_declaring_catalog(self):
        composite = create_composite_tool_set(_catalog("one", "a"), _catalog("two", "c"))
        assert await composite.execute_tool_call("c", {}) == "two:c"

    async def test_first_catalog_wins_on_collision(self):
        composite = create_composite_tool_set(_catalog("one", "shared"), _catalog("two", "shared"))
        assert await composite.execute_tool_call("shared", {}) == "one:shared"
        # Both declarations are still advertised
        assert composite.tool_names() == ["shared", "shared"]

    async def test_unknown_tool_lists_every_catalog(self):
        composite = create_composite_tool_set(_catalog("one", "a"), _catalog("two", "b"))
        with pytest.raises(UnknownToolError, match="Unknown tool: x. Available tools: a, b"):
            await composite.execute_tool_call("x", {})

    async def test_subset_across_catalogs(self):
        composite = create_composite_tool_set(_catalog("one", "a", "b"), _catalog("two", "c", "d"))
        subset = composite.subset("d", "a")
        assert subset.tool_names() == ["a", "d"]
        assert await subset.execute_tool_call("d", {}) == "two:d"
        assert not subset.declares("b")

    def test_empty_composite(self):
        composite = create_composite_tool_set()
        assert composite.tool_names() == []
        assert len(composite) == 0


class TestRenderToolResult:
    def test_strings_pass_through(self):
        assert render_tool_result("plain") == "plain"

    def test_values_are_json(self):
        assert render_tool_result([1, 2]) == "[\n  1,\n  2\n]"
