"""
BuddyBot - Robot Response Orchestration
=======================================

A Slack support assistant that routes each incoming message to one of
several interchangeable robots and returns the reply immediately, as a
stream, or as an immediate reply followed by delayed supplements.

This package provides:
- Robots: an echo robot, Anthropic agents with form and Slack tools, an OpenAI agent
- A content-based router and a robot registry
- Tool catalogs with composite, first-match dispatch
- A provider-agnostic tool-call loop
- A processor that persists replies to a conversation store
- A Slack transport
"""

__version__ = "1.0.0"
