"""Prompt templates.

A template is any callable ``(goal, context) -> str``.
"""

from __future__ import annotations

import json
from typing import Any, Callable

PromptTemplate = Callable[[str, Any], str]

SINGLE_TOOL_CALL_INSTRUCTION = "Only make a single tool call to achieve the above goal."


def wrap_in_xml(tag_name: str, content: str) -> str:
    return f"<{tag_name}>{content}</{tag_name}>"


def serialize_context(context: Any) -> str:
    return json.dumps(context, default=str)


def text_template(goal: str, context: Any = None) -> str:
    """Context block (when there is context) followed by the goal."""
    preamble = wrap_in_xml("context", serialize_context(context)) if context is not None else ""
    return f"{preamble}\n\n{goal or ''}".strip()


def tool_call_template(goal: str, context: Any = None) -> str:
    """Text template plus the instruction to make at most one tool call."""
    return f"{text_template(goal, context)}\n\n{SINGLE_TOOL_CALL_INSTRUCTION}".strip()
