"""
Anthropic Robots
================

Claude-backed robots. Both run the shared tool-call loop through an
AnthropicProvider; they differ in identity, system prompt and catalog.

- RobotChatAnthropic: form troubleshooting. Routed to when a message
  carries a form reference such as "formId: 12345".
- SlackyAnthropicAgent: the Slack-facing support assistant. Routed to for
  Slack mentions and brand names; carries the full Slacky catalog.
"""

from buddybot.robots.base import ToolLoopRobot


FORM_ROBOT_PROMPT = """\
You are an iStackBuddy robot specializing in Intellistack Forms Core troubleshooting.

"Forms Core" is Intellistack's legacy forms product (formerly known as "Formstack").

Your expertise areas:
- Form configuration: fields, sections, visibility logic and calculations
- Form integrations (submit actions), notification and confirmation emails
- SSO protected forms and SSO auto-fill mapping
- Tracing submissions through logs

When a form id is mentioned, use the form tools to look at the actual form
before answering. Report concrete findings (field ids, labels, broken
references) and suggest the next step. If a tool fails, say what failed
and continue with what you know.
"""

SLACKY_PROMPT = """\
You are iStackBuddy, a specialized AI assistant for Intellistack Forms Core troubleshooting, operating within Slack.

"Forms Core" is Intellistack's legacy forms product (formerly known as "Formstack").

Your Slack context:
- You're responding to users in Slack channels
- Keep responses concise and well-formatted for Slack
- Provide actionable help quickly

Your expertise areas:
- SSO troubleshooting (forms password protected / SSO protected, not account access SSO)
- Form troubleshooting (logic, rendering, configuration issues)
- Form configuration: field/section setup, visibility logic, calculations
- Form integration (submit actions) issues

Your tools include Sumo Logic query guidance, SSO auto-fill assistance, form
overview, logic validation and calculation validation. When a user shares
feedback about you or rates an answer, record it with the feedback or rating
tool.
"""


class RobotChatAnthropic(ToolLoopRobot):
    """Claude robot for form troubleshooting."""

    name = "RobotChatAnthropic"
    version = "1.0.0"
    model_version = "20241022"
    context_window_size_in_tokens = 200000
    description_short = (
        "Anthropic Claude chat robot for intelligent conversations and "
        "troubleshooting with tool support"
    )
    description_long = (
        "Answers form questions with Claude, looking up the form itself through "
        "the forms API: overview, logic validation and calculation validation."
    )
    system_prompt = FORM_ROBOT_PROMPT


class SlackyAnthropicAgent(ToolLoopRobot):
    """Claude robot for Slack conversations."""

    name = "SlackyAnthropicAgent"
    version = "1.0.0"
    model_version = "20241022"
    context_window_size_in_tokens = 200000
    description_short = "Slack-specialized Claude agent for Forms Core support"
    description_long = (
        "Answers Slack mentions with Claude. Carries the Slacky catalog (Sumo "
        "Logic guidance, SSO auto-fill help, feedback and ratings) together "
        "with the form tools."
    )
    system_prompt = SLACKY_PROMPT
