"""
OpenAI Robots
=============

RobotChatOpenAI runs the shared tool-call loop through the chat
completions API. It is registered alongside the Claude robots and can be
addressed by name; the default routing table does not select it.
"""

from buddybot.robots.base import ToolLoopRobot


OPENAI_PROMPT = """\
You are iStackBuddy, an assistant for Intellistack Forms Core (formerly Formstack).

Help users troubleshoot forms: configuration, logic, calculations, submit
actions and SSO. Use the available tools to look at real form data before
answering, keep answers short, and state clearly when a tool fails.
"""


class RobotChatOpenAI(ToolLoopRobot):
    """GPT-backed chat robot with tool support."""

    name = "RobotChatOpenAI"
    version = "1.0.0"
    model_version = "2024-08-06"
    context_window_size_in_tokens = 128000
    description_short = "OpenAI chat robot with tool support"
    description_long = (
        "Answers with an OpenAI chat model, using the same tool catalogs and "
        "the same tool-call loop as the Claude robots."
    )
    system_prompt = OPENAI_PROMPT
