"""
Tool Catalogs
=============

Tools are capabilities a robot can invoke in the middle of a reply.

Each tool has a name, a description and a JSON Schema for its input. The
model decides which tools to call; the tool-call loop executes them through
a catalog and feeds the rendered result back to the model.

This module provides:
- ToolDeclaration: the provider-agnostic declaration of one tool
- Tool: a declaration paired with the coroutine that executes it
- ToolCatalog: an immutable set of tools plus the dispatcher for them
- CompositeToolCatalog / create_composite_tool_set: several catalogs merged
  into one dispatch surface, first catalog wins on name collisions
- UnknownToolError: raised when nothing declares the requested name

A catalog never swallows errors: execute_tool_call returns the rendered
result text or raises. The tool-call loop turns exceptions into inline
"Error executing ..." text.

Example:
    async def lookup(params: dict) -> str:
        return f"Looked up {params['id']}"

    catalog = ToolCatalog("lookup", [
        Tool(
            name="lookup",
            description="Look up a record by id",
            input_schema={
                "type": "object",
                "properties": {"id": {"type": "string"}},
                "required": ["id"],
            },
            execute=lookup,
        ),
    ])

    tools = create_composite_tool_set(catalog, other_catalog.subset("x"))
    text = await tools.execute_tool_call("lookup", {"id": "42"})
"""

import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from buddybot.utils.logger import Logger

logger = Logger("Tools")


ToolHandler = Callable[[dict], Awaitable[Any] | Any]


class UnknownToolError(LookupError):
    """Raised when a tool name is not declared by any catalog consulted."""

    def __init__(self, tool_name: str, available: Iterable[str]):
        self.tool_name = tool_name
        self.available = list(available)
        super().__init__(
            f"Unknown tool: {tool_name}. Available tools: {', '.join(self.available)}"
        )


@dataclass(frozen=True)
class ToolDeclaration:
    """
    What the model is told about a tool.

    Attributes:
        name: Unique identifier within a catalog
        description: What the tool does (shown to the model)
        input_schema: JSON Schema for the arguments
    """
    name: str
    description: str
    input_schema: dict

    def to_anthropic_tool(self) -> dict:
        """Anthropic messages API tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def to_openai_function(self) -> dict:
        """OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


@dataclass(frozen=True)
class Tool:
    """
    A tool declaration together with its executor.

    The executor receives the parsed arguments dict. It may be a coroutine
    function or a plain function, and may return a string or any
    JSON-serializable value.
    """
    name: str
    description: str
    input_schema: dict
    execute: ToolHandler

    @property
    def declaration(self) -> ToolDeclaration:
        return ToolDeclaration(self.name, self.description, self.input_schema)


def render_tool_result(result: Any) -> str:
    """Render an executor's return value as conversation text."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, default=str)


class ToolCatalog:
    """
    An immutable, named set of tools.

    Invariant: every declared name resolves to an executor. Declaring the
    same name twice in one catalog is rejected at construction.
    """

    def __init__(self, name: str, tools: Iterable[Tool]):
        self.name = name
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Tool '{tool.name}' is declared twice in catalog '{name}'")
            self._tools[tool.name] = tool

        self._definitions = tuple(tool.declaration for tool in self._tools.values())
        logger.debug(f"Built catalog '{name}'", {"tools": list(self._tools)})

    @property
    def tool_definitions(self) -> list[ToolDeclaration]:
        return list(self._definitions)

    def tool_names(self) -> list[str]:
        return [declaration.name for declaration in self._definitions]

    def declares(self, tool_name: str) -> bool:
        return tool_name in self._tools

    async def execute_tool_call(self, tool_name: str, args: dict) -> str:
        """
        Execute a tool by name.

        Raises:
            UnknownToolError: If the name is not declared here
            Exception: Whatever the executor raises, unchanged
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            raise UnknownToolError(tool_name, self.tool_names())

        logger.info(f"Executing tool: {tool_name}", {"catalog": self.name})
        result = tool.execute(args)
        if inspect.isawaitable(result):
            result = await result
        return render_tool_result(result)

    def subset(self, *tool_names: str) -> "ToolCatalog":
        """
        A new catalog restricted to the named tools.

        Raises:
            UnknownToolError: If a requested name is not declared here
        """
        for tool_name in tool_names:
            if tool_name not in self._tools:
                raise UnknownToolError(tool_name, self.tool_names())
        wanted = set(tool_names)
        return ToolCatalog(
            f"{self.name}[{','.join(tool_names)}]",
            [tool for name, tool in self._tools.items() if name in wanted],
        )

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"ToolCatalog({self.name!r}, tools={self.tool_names()!r})"


class CompositeToolCatalog(ToolCatalog):
    """
    Several catalogs merged into one dispatch surface.

    Declarations are the concatenation of the member catalogs' declarations,
    in construction order. Dispatch is first-match-wins: the first catalog
    declaring a name executes it. A name declared by more than one catalog
    is allowed but logged as a configuration warning.
    """

    def __init__(self, *catalogs: ToolCatalog):
        self.name = "+".join(catalog.name for catalog in catalogs) or "empty"
        self.catalogs = tuple(catalogs)
        self._definitions = tuple(
            declaration
            for catalog in self.catalogs
            for declaration in catalog.tool_definitions
        )

        seen: dict[str, str] = {}
        for catalog in self.catalogs:
            for tool_name in catalog.tool_names():
                if tool_name in seen:
                    logger.warning(
                        f"Tool '{tool_name}' is declared by more than one catalog; "
                        f"'{seen[tool_name]}' takes precedence over '{catalog.name}'"
                    )
                else:
                    seen[tool_name] = catalog.name

    def declares(self, tool_name: str) -> bool:
        return any(catalog.declares(tool_name) for catalog in self.catalogs)

    async def execute_tool_call(self, tool_name: str, args: dict) -> str:
        for catalog in self.catalogs:
            if catalog.declares(tool_name):
                return await catalog.execute_tool_call(tool_name, args)
        raise UnknownToolError(tool_name, self.tool_names())

    def subset(self, *tool_names: str) -> ToolCatalog:
        for tool_name in tool_names:
            if not self.declares(tool_name):
                raise UnknownToolError(tool_name, self.tool_names())
        members = []
        for catalog in self.catalogs:
            names = [n for n in tool_names if catalog.declares(n)]
            if names:
                members.append(catalog.subset(*names))
        return CompositeToolCatalog(*members)

    def __repr__(self) -> str:
        return f"CompositeToolCatalog({[c.name for c in self.catalogs]!r})"


def create_composite_tool_set(*catalogs: ToolCatalog) -> CompositeToolCatalog:
    """Merge catalogs into one; the first catalog declaring a name executes it."""
    return CompositeToolCatalog(*catalogs)


EMPTY_CATALOG = ToolCatalog("empty", [])


__all__ = [
    "Tool",
    "ToolDeclaration",
    "ToolCatalog",
    "CompositeToolCatalog",
    "UnknownToolError",
    "EMPTY_CATALOG",
    "create_composite_tool_set",
    "render_tool_result",
]
