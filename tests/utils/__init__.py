# Copyright (c) Nex-AGI. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Test utilities and helper functions.

This module contains utility functions and helpers for testing.
"""

import json
from typing import Any


def mock_llm_response(content: str | None, tool_calls: list[dict[str, Any]] | None = None, total_tokens: int = 150) -> dict[str, Any]:
    """Create a chat.completion payload (validate with ``ChatCompletion.model_validate``)."""
    message: dict[str, Any] = {"content": content, "role": "assistant"}
    finish_reason = "stop"

    if tool_calls:
        message["tool_calls"] = tool_calls
        finish_reason = "tool_calls"

    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
        "usage": {"prompt_tokens": total_tokens - 50, "completion_tokens": 50, "total_tokens": total_tokens},
    }


def mock_tool_call(tool_name: str, arguments: dict[str, Any], call_id: str = "call_123") -> dict[str, Any]:
    """Create a mock tool call."""
    return {"id": call_id, "type": "function", "function": {"name": tool_name, "arguments": json.dumps(arguments)}}
