"""OpenAI Chat-Completions conversions.

These helpers bridge UMP conversations and the ``list[dict[str, Any]]`` shape
expected by OpenAI-compatible chat endpoints.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, cast

from agentic_team.core.messages import (
    Message,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


def _coerce_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _maybe_parse_json(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return cast(dict[str, Any], value)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {"raw_arguments": value}
        if isinstance(parsed, dict):
            return cast(dict[str, Any], parsed)
        return {"_": parsed}
    return {"_": value}


def messages_to_openai_chat(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert UMP messages into OpenAI Chat-Completions-shaped dicts."""

    output: list[dict[str, Any]] = []
    for msg in messages or []:
        if msg.role == Role.TOOL:
            tr = next((b for b in msg.content if isinstance(b, ToolResultBlock)), None)
            if tr is None:
                output.append({"role": "tool", "content": msg.get_text_content()})
            else:
                output.append({"role": "tool", "tool_call_id": tr.tool_use_id, "content": tr.content})
            continue

        entry: dict[str, Any] = {"role": msg.role.value, "content": msg.get_text_content()}
        tool_calls: list[dict[str, Any]] = []
        for block in msg.get_tool_uses():
            tool_calls.append(
                {
                    "id": block.id,
                    "type": "function",
                    "function": {
                        "name": block.name,
                        "arguments": block.raw_input if block.raw_input is not None else json.dumps(block.input, ensure_ascii=False),
                    },
                },
            )
        if tool_calls:
            entry["tool_calls"] = tool_calls
        output.append(entry)

        # Tool results folded into a non-tool message still need their own role=tool entry.
        for block in msg.content:
            if isinstance(block, ToolResultBlock):
                output.append({"role": "tool", "tool_call_id": block.tool_use_id, "content": block.content})

    return output


def message_from_openai_chat(raw: Mapping[str, Any]) -> Message:
    """Convert one OpenAI chat message dict (e.g. ``choice.message.model_dump()``) into UMP."""

    role_raw = _coerce_str(raw.get("role") or "assistant").lower()
    try:
        role = Role(role_raw)
    except ValueError:
        logger.warning(f"Unknown role {role_raw!r} in chat message; coercing to assistant")
        role = Role.ASSISTANT

    blocks: list[Any] = []
    text = _coerce_str(raw.get("content"))
    if text:
        blocks.append(TextBlock(text=text))

    tool_calls_raw = raw.get("tool_calls")
    if isinstance(tool_calls_raw, list):
        for call_any in cast(list[Any], tool_calls_raw):
            call = cast(Mapping[str, Any], call_any) if isinstance(call_any, Mapping) else {}
            function_any = call.get("function")
            func = cast(Mapping[str, Any], function_any) if isinstance(function_any, Mapping) else {}
            args_raw: Any = func.get("arguments")
            blocks.append(
                ToolUseBlock(
                    id=_coerce_str(call.get("id")) or "tool_call",
                    name=_coerce_str(func.get("name")) or "unknown",
                    input=_maybe_parse_json(args_raw),
                    raw_input=args_raw if isinstance(args_raw, str) else None,
                ),
            )

    if role == Role.TOOL:
        blocks = [ToolResultBlock(tool_use_id=_coerce_str(raw.get("tool_call_id")), content=text)]

    return Message(role=role, content=blocks)
