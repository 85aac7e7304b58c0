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

"""Team coordination types and exceptions.

RFC-0002: AgentTeam 协作类型定义

Persisted entities (``Task``, ``TeamMessage``, ``AgentState``, ``TeamState``)
are pydantic models so the whole team state dumps to plain JSON. Derived
records and tool results are frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

from agentic_team.archs.tool.result import ToolError
from agentic_team.core.messages import Message

if TYPE_CHECKING:
    from agentic_team.archs.runtime.base import SuspendInfo
    from agentic_team.archs.tool.tool import Tool

TaskStatus = Literal["queued", "active", "completed"]
MessageType = Literal["ask", "tell"]
MessageStatus = Literal["pending", "delivered"]
AgentStatus = Literal["idle", "working", "blocked"]
StopReason = Literal["goal_complete", "external_block", "deadlock", "idle", "stopped", "max_iterations"]

# queued → active → completed; a task may also be created active
TASK_TRANSITIONS: dict[str, set[str]] = {
    "queued": {"active"},
    "active": {"completed"},
    "completed": set(),
}


# --- Exceptions ---


class TeamError(Exception):
    """Base class for team coordination errors."""


class UnknownAgentError(TeamError):
    """Raised when an operation references an agent id with no AgentState."""

    def __init__(self, agent_id: str, detail: str = "not found") -> None:
        super().__init__(f"Agent {agent_id} {detail}")
        self.agent_id = agent_id


class MessageNotFoundError(TeamError):
    """Raised when a message id does not exist."""


class InvalidReplyError(TeamError):
    """Raised when a reply (or a block) references a message that is not an ask."""


class InvalidTransitionError(TeamError):
    """Raised on a task or message status change outside the allowed transitions."""


class TeamStateInvariantError(TeamError):
    """Raised when a (restored) TeamState violates its invariants."""


# --- Persisted state ---


class Task(BaseModel):
    """Unit of work assigned by one agent to another.

    RFC-0002: 任务
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    title: str
    brief: str
    assignee: str
    created_by: str
    status: TaskStatus = "queued"
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None
    completion_summary: str | None = None


class TeamMessage(BaseModel):
    """Ask / tell message between agents (or an external party).

    RFC-0002: 队内消息
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    from_agent_id: str
    to_agent_id: str
    type: MessageType
    content: str
    in_reply_to: str | None = None
    status: MessageStatus = "pending"
    created_at: datetime = Field(default_factory=datetime.now)


class AgentState(BaseModel):
    """Per-agent run state, kept for the team's whole lifetime.

    RFC-0002: Agent 运行状态
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    role: str
    status: AgentStatus = "idle"
    current_task: str | None = None
    blocked_on: str | None = None
    conversation_history: list[Message] = Field(default_factory=lambda: list[Message]())


class TeamState(BaseModel):
    """Aggregate root: everything needed to resume a team.

    RFC-0002: 团队状态（唯一可持久化对象）

    ``agent_states`` iterates in insertion order; work items and blocked
    agents are computed in that order.
    """

    model_config = ConfigDict(extra="forbid")

    tasks: list[Task] = Field(default_factory=lambda: list[Task]())
    messages: list[TeamMessage] = Field(default_factory=lambda: list[TeamMessage]())
    agent_states: dict[str, AgentState] = Field(default_factory=lambda: dict[str, AgentState]())
    goal_complete: bool = False
    goal_summary: str | None = None


# --- Team members ---


@dataclass
class TeamMember:
    """Static description of one agent: prompt and domain tools.

    RFC-0002: 团队成员定义

    ``role`` is a free-form label shown to the other agents; it grants nothing.
    """

    id: str
    role: str
    system_prompt: str = ""
    tools: list[Tool] = field(default_factory=list)


# --- Derived records ---


@dataclass(frozen=True)
class WorkItem:
    """An agent with an active task, ready to run.

    RFC-0002: 待执行工作项
    """

    agent_id: str
    task_id: str
    task: Task


@dataclass(frozen=True)
class BlockedAgent:
    """An agent waiting for a reply to ``message_id``."""

    agent_id: str
    message_id: str


@dataclass(frozen=True)
class AgentRunResult:
    """Normalized outcome of one agent session.

    RFC-0002: 单次 agent 运行结果

    ``completion_reason`` is one of task_complete | suspended | max_turns | error,
    or another terminal reason reported by the runtime (end_turn, token_limit, stopped).
    """

    agent_id: str
    completion_reason: str
    final_output: str = ""
    completed: bool = False
    suspended: bool = False
    suspend_info: SuspendInfo | None = None
    error: BaseException | None = None


@dataclass(frozen=True)
class TeamRunResult:
    """Outcome of ``AgentTeam.run``.

    RFC-0002: 团队运行结果
    """

    complete: bool
    blocked_agents: list[BlockedAgent] = field(default_factory=lambda: list[BlockedAgent]())
    iterations: int = 0
    stop_reason: StopReason = "goal_complete"


# --- Tool result types ---


@dataclass(frozen=True)
class TellResult:
    """tell return value."""

    message_id: str
    in_reply_to: str | None = None
    success: bool = True


@dataclass(frozen=True)
class TaskBriefResult:
    """get_task_brief return value.

    RFC-0002: 当前任务简报
    """

    task_id: str
    title: str
    brief: str
    status: str


@dataclass(frozen=True)
class NoTaskResult:
    """get_task_brief return value when the agent holds no task."""

    has_task: bool = False
    message: str = "You have no current task assigned"


@dataclass(frozen=True)
class AgentStatusInfo:
    """Per-agent row of check_team_status."""

    agent_id: str
    role: str
    status: str
    current_task: str | None
    blocked_on: str | None
    active_tasks: int
    queued_tasks: int
    completed_tasks: int


@dataclass(frozen=True)
class TeamStatusResult:
    """check_team_status return value.

    RFC-0002: 团队状态汇总
    """

    team_size: int
    agents: list[AgentStatusInfo]
    total_tasks: int
    active_tasks: int
    queued_tasks: int
    completed_tasks: int


@dataclass(frozen=True)
class AssignTaskResult:
    """assign_task return value.

    RFC-0002: 任务分配结果
    """

    task_id: str
    status: str
    message: str
    success: bool = True


@dataclass(frozen=True)
class AllTasksCompleteResult:
    """wait_for_task_completions return value when nothing is outstanding."""

    all_complete: bool = True
    message: str = "All tasks are complete. You can now call task_complete to finish your work."


__all__ = [
    "TASK_TRANSITIONS",
    "AgentRunResult",
    "AgentState",
    "AgentStatus",
    "AgentStatusInfo",
    "AllTasksCompleteResult",
    "AssignTaskResult",
    "BlockedAgent",
    "InvalidReplyError",
    "InvalidTransitionError",
    "MessageNotFoundError",
    "MessageStatus",
    "MessageType",
    "NoTaskResult",
    "StopReason",
    "Task",
    "TaskBriefResult",
    "TaskStatus",
    "TeamError",
    "TeamMember",
    "TeamMessage",
    "TeamRunResult",
    "TeamState",
    "TeamStateInvariantError",
    "TeamStatusResult",
    "TellResult",
    "ToolError",
    "UnknownAgentError",
    "WorkItem",
]
