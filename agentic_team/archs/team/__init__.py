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

"""Team coordination module.

RFC-0002: Agent Team 协作系统

Uses lazy imports so ``types`` can be imported without pulling in the
runner and runtime modules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import (
    AgentRunResult,
    AgentState,
    BlockedAgent,
    InvalidReplyError,
    InvalidTransitionError,
    MessageNotFoundError,
    Task,
    TeamError,
    TeamMember,
    TeamMessage,
    TeamRunResult,
    TeamState,
    TeamStateInvariantError,
    ToolError,
    UnknownAgentError,
    WorkItem,
)

if TYPE_CHECKING:
    from .agent_team import AgentTeam as AgentTeam
    from .callbacks import TeamCallbacks as TeamCallbacks
    from .message_bus import TeamMessageBus as TeamMessageBus
    from .runner import AgentRunner as AgentRunner
    from .state import AgentTeamContext as AgentTeamContext
    from .state import TeamStateStore as TeamStateStore
    from .state import dump_team_state as dump_team_state
    from .state import load_team_state as load_team_state
    from .task_board import TaskBoard as TaskBoard

__all__ = [
    "AgentRunResult",
    "AgentRunner",
    "AgentState",
    "AgentTeam",
    "AgentTeamContext",
    "BlockedAgent",
    "InvalidReplyError",
    "InvalidTransitionError",
    "MessageNotFoundError",
    "Task",
    "TaskBoard",
    "TeamCallbacks",
    "TeamError",
    "TeamMember",
    "TeamMessage",
    "TeamMessageBus",
    "TeamRunResult",
    "TeamState",
    "TeamStateInvariantError",
    "TeamStateStore",
    "ToolError",
    "UnknownAgentError",
    "WorkItem",
    "dump_team_state",
    "load_team_state",
]


def __getattr__(name: str) -> object:
    """Lazy imports to break circular dependency chain."""
    if name == "AgentTeam":
        from .agent_team import AgentTeam

        return AgentTeam
    if name == "AgentRunner":
        from .runner import AgentRunner

        return AgentRunner
    if name == "TeamCallbacks":
        from .callbacks import TeamCallbacks

        return TeamCallbacks
    if name == "TaskBoard":
        from .task_board import TaskBoard

        return TaskBoard
    if name == "TeamMessageBus":
        from .message_bus import TeamMessageBus

        return TeamMessageBus
    if name in ("AgentTeamContext", "TeamStateStore", "dump_team_state", "load_team_state"):
        from . import state

        return getattr(state, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
