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

"""Team coordination tools.

RFC-0002: Team 协作工具集

YAML-defined tools bound per agent to an ``AgentTeamContext``.
"""

from __future__ import annotations

import functools
from importlib import import_module
from pathlib import Path
from typing import TYPE_CHECKING

from agentic_team.archs.tool.tool import Tool

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext

_TOOL_DIR = Path(__file__).parent

_ALL_TOOL_NAMES: list[str] = [
    "ask",
    "tell",
    "get_task_brief",
    "check_team_status",
    "assign_task",
    "wait_for_task_completions",
]

_MANAGER_ONLY: set[str] = {"assign_task", "wait_for_task_completions"}


@functools.cache
def _load_tool(name: str) -> Tool:
    """Load a team tool by name.

    RFC-0002: 按名称加载 team tool（YAML + Python binding）

    Loaded once per process; callers get per-agent copies through ``Tool.bind``.
    """
    yaml_path = str(_TOOL_DIR / f"{name}.yaml")
    module = import_module(f"agentic_team.archs.team.tools.{name}")
    binding = getattr(module, name)  # noqa: B009
    return Tool.from_yaml(yaml_path, binding=binding)


def coordination_tool_names(*, is_manager: bool) -> list[str]:
    return [name for name in _ALL_TOOL_NAMES if is_manager or name not in _MANAGER_ONLY]


def get_manager_tools() -> list[Tool]:
    """Get all tools for the team manager.

    RFC-0002: Manager 工具集（全部 6 个）
    """
    return [_load_tool(name) for name in coordination_tool_names(is_manager=True)]


def get_worker_tools() -> list[Tool]:
    """Get tools for worker agents (no assign_task / wait_for_task_completions).

    RFC-0002: Worker 工具集（排除 manager-only 工具）
    """
    return [_load_tool(name) for name in coordination_tool_names(is_manager=False)]


def build_coordination_tools(context: AgentTeamContext) -> list[Tool]:
    """Coordination tools for ``context.agent_id`` with the context bound in."""
    tools = get_manager_tools() if context.is_manager else get_worker_tools()
    return [tool.bind(context=context) for tool in tools]
