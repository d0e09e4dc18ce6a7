"""
Shared fixtures.

Credential environment variables are cleared for every test so a
developer's real keys never reach a provider, and the config singleton is
reset so each test reads the environment it sets up.
"""

import pytest

from buddybot.agent.tools_executor import ProviderAdapter, ProviderReply, ToolCall
from buddybot.memory import InMemoryConversationStore
from buddybot.tools import Tool, ToolCatalog
from buddybot.utils.config import MissingCredentialError, reset_config

_CREDENTIAL_ENV_VARS = [
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "SLACK_BOT_TOKEN",
    "SLACK_APP_TOKEN",
    "SLACK_SIGNING_SECRET",
    "FORMS_API_TOKEN",
]


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    for var in _CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


class ScriptedProvider(ProviderAdapter):
    """
    A provider that replays canned replies and records every request.

    A reply may be an Exception instance, which is raised instead.
    """

    name = "scripted"
    credential_variable = "SCRIPTED_API_KEY"
    model = "scripted-1"

    def __init__(self, replies, configured=True):
        self.replies = list(replies)
        self.configured = configured
        self.requests: list[dict] = []

    def is_configured(self) -> bool:
        return self.configured

    def ensure_ready(self) -> None:
        if not self.configured:
            raise MissingCredentialError(self.credential_variable)

    def initial_messages(self, turns):
        return [turn.to_dict() for turn in turns]

    async def create(self, system_prompt, messages, tools):
        self.requests.append({
            "system": system_prompt,
            "messages": list(messages),
            "tools": [declaration.name for declaration in tools],
        })
        if not self.replies:
            raise AssertionError("ScriptedProvider ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def continuation_messages(self, reply, outcomes):
        return [
            {"role": "assistant", "tool_calls": [call.name for call in reply.tool_calls]},
            {"role": "tool", "results": [outcome.content for outcome in outcomes]},
        ]

    @staticmethod
    def text(*segments: str) -> ProviderReply:
        return ProviderReply(text_segments=list(segments))

    @staticmethod
    def tools(*calls: ToolCall, text: str | None = None) -> ProviderReply:
        return ProviderReply(
            text_segments=[text] if text else [],
            tool_calls=list(calls),
            wants_tools=True,
        )


@pytest.fixture
def scripted():
    return ScriptedProvider


@pytest.fixture
def echo_catalog():
    def echo(params: dict) -> str:
        return f"echo: {params.get('text', '')}"

    async def lookup(params: dict) -> dict:
        return {"id": params["id"], "status": "active"}

    def boom(params: dict) -> str:
        raise RuntimeError("kaboom")

    schema = {"type": "object", "properties": {}}
    return ToolCatalog("test", [
        Tool("echo", "Echo the text back", schema, echo),
        Tool("lookup", "Look up a record", schema, lookup),
        Tool("boom", "Always fails", schema, boom),
    ])


@pytest.fixture
def store():
    return InMemoryConversationStore()
