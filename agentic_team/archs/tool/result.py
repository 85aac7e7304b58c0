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

"""Tool result types.

RFC-0003: 工具结果标记类型

A tool either finishes normally (``Ok``) or asks the session runtime to end
the current session early (``Suspend``). Keeping the two as distinct types
means a payload that happens to contain a ``suspend`` key is still just data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Ok:
    """Ordinary tool result."""

    value: Any = None


@dataclass(frozen=True)
class Suspend:
    """Suspension marker: the runtime must stop the session after this call.

    RFC-0003: 挂起信号
    """

    reason: str
    data: dict[str, Any] = field(default_factory=lambda: dict[str, Any]())


ToolResult = Ok | Suspend


@dataclass(frozen=True)
class ToolError:
    """Tool operation error return.

    RFC-0003: 工具操作错误

    Codes: not_found | invalid_state | invalid_arguments | permission_denied | tool_failed

    ``status`` 固定为 ``"error"``，便于 agent 在下一轮自行纠正参数。
    """

    error: str
    code: str
    status: str = "error"
