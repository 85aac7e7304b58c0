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

"""Team state store and the per-agent tool context.

RFC-0002: 团队状态存储与 Team 上下文容器

``TeamStateStore`` owns one ``TeamState`` and answers lookups over it. Each
``AgentTeam`` builds its own store; nothing here is shared between teams.
``AgentTeamContext`` is the lightweight object bound into coordination tools.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any, cast

from pydantic import ValidationError

from .types import (
    AgentState,
    Task,
    TeamMessage,
    TeamState,
    TeamStateInvariantError,
    UnknownAgentError,
)

if TYPE_CHECKING:
    from .agent_team import AgentTeam
    from .message_bus import TeamMessageBus
    from .task_board import TaskBoard

logger = logging.getLogger(__name__)


class AgentTeamContext:
    """Team context bound into one agent's coordination tools.

    RFC-0002: Team 上下文容器

    Tools receive this as their ``context`` keyword argument.
    """

    __slots__ = ("agent_id", "team", "task_board", "message_bus", "is_manager")

    def __init__(
        self,
        *,
        agent_id: str,
        team: AgentTeam,
        task_board: TaskBoard,
        message_bus: TeamMessageBus,
        is_manager: bool,
    ) -> None:
        self.agent_id = agent_id
        self.team = team
        self.task_board = task_board
        self.message_bus = message_bus
        self.is_manager = is_manager


class TeamStateStore:
    """Holds the ``TeamState`` aggregate plus lookup and invariant helpers.

    RFC-0002: 团队状态存储
    """

    def __init__(self, state: TeamState | None = None) -> None:
        self._state = state if state is not None else TeamState()

    @property
    def state(self) -> TeamState:
        return self._state

    # --- agents ---

    def ensure_agent(self, agent_id: str, role: str) -> AgentState:
        """Create the AgentState for ``agent_id`` unless it already exists."""
        existing = self._state.agent_states.get(agent_id)
        if existing is not None:
            return existing
        agent = AgentState(id=agent_id, role=role)
        self._state.agent_states[agent_id] = agent
        return agent

    def has_agent(self, agent_id: str) -> bool:
        return agent_id in self._state.agent_states

    def get_agent(self, agent_id: str) -> AgentState:
        agent = self._state.agent_states.get(agent_id)
        if agent is None:
            raise UnknownAgentError(agent_id)
        return agent

    def agents(self) -> list[AgentState]:
        """All agent states in insertion order."""
        return list(self._state.agent_states.values())

    # --- tasks & messages ---

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self._state.tasks if t.id == task_id), None)

    def get_message(self, message_id: str) -> TeamMessage | None:
        return next((m for m in self._state.messages if m.id == message_id), None)

    def add_task(self, task: Task) -> None:
        self._state.tasks.append(task)

    def add_message(self, message: TeamMessage) -> None:
        self._state.messages.append(message)

    # --- invariants ---

    def check_invariants(self) -> None:
        """Raise ``TeamStateInvariantError`` on the first violated invariant."""
        state = self._state
        task_ids = Counter(t.id for t in state.tasks)
        dup_tasks = [tid for tid, n in task_ids.items() if n > 1]
        if dup_tasks:
            raise TeamStateInvariantError(f"Duplicate task ids: {dup_tasks}")
        message_ids = Counter(m.id for m in state.messages)
        dup_messages = [mid for mid, n in message_ids.items() if n > 1]
        if dup_messages:
            raise TeamStateInvariantError(f"Duplicate message ids: {dup_messages}")

        for agent_id, agent in state.agent_states.items():
            if agent.id != agent_id:
                raise TeamStateInvariantError(f"Agent state keyed {agent_id} has id {agent.id}")
            # 1. blocked ⇔ blocked_on
            if (agent.status == "blocked") != (agent.blocked_on is not None):
                raise TeamStateInvariantError(f"Agent {agent_id} has status={agent.status} but blocked_on={agent.blocked_on}")
            # 2. blocked_on 只能指向 ask
            if agent.blocked_on is not None:
                msg = self.get_message(agent.blocked_on)
                if msg is None or msg.type != "ask":
                    raise TeamStateInvariantError(f"Agent {agent_id} is blocked on {agent.blocked_on}, which is not an ask")
            # 3. 非阻塞时 working ⇔ current_task
            if agent.status != "blocked" and (agent.status == "working") != (agent.current_task is not None):
                raise TeamStateInvariantError(f"Agent {agent_id} has status={agent.status} but current_task={agent.current_task}")
            # 4. current_task 必须是该 agent 的 active 任务
            if agent.current_task is not None:
                task = self.get_task(agent.current_task)
                if task is None or task.status != "active" or task.assignee != agent_id:
                    raise TeamStateInvariantError(f"Agent {agent_id} current_task {agent.current_task} is not an active task assigned to it")

        # 5. 每个 assignee 至多一个 active 任务，且必须绑定为 current_task
        active = Counter(t.assignee for t in state.tasks if t.status == "active")
        for assignee, count in active.items():
            if count > 1:
                raise TeamStateInvariantError(f"Agent {assignee} has {count} active tasks")
        for task in state.tasks:
            if task.status == "active":
                owner = state.agent_states.get(task.assignee)
                if owner is None or owner.current_task != task.id:
                    raise TeamStateInvariantError(f"Active task {task.id} is not bound as {task.assignee}'s current task")


def dump_team_state(state: TeamState) -> dict[str, Any]:
    """Serialize ``state`` to JSON-compatible primitives.

    RFC-0002: 状态序列化

    ``agent_states`` becomes an ordered list of ``[agent_id, agent_state]`` pairs.
    """
    data = state.model_dump(mode="json")
    data["agent_states"] = [[agent_id, agent] for agent_id, agent in data["agent_states"].items()]
    return data


def load_team_state(data: dict[str, Any]) -> TeamState:
    """Rebuild a ``TeamState`` from ``dump_team_state`` output and check its invariants.

    RFC-0002: 状态反序列化
    """
    payload = dict(data)
    pairs_raw = payload.get("agent_states", [])
    if not isinstance(pairs_raw, list):
        raise TeamStateInvariantError("agent_states must be a list of [agent_id, agent_state] pairs")

    agent_states: dict[str, Any] = {}
    for pair in cast(list[Any], pairs_raw):
        if not isinstance(pair, (list, tuple)) or len(cast(list[Any], pair)) != 2:
            raise TeamStateInvariantError(f"Malformed agent_states entry: {pair!r}")
        agent_id, agent = cast(list[Any], pair)
        if agent_id in agent_states:
            raise TeamStateInvariantError(f"Duplicate agent id in agent_states: {agent_id}")
        agent_states[str(agent_id)] = agent
    payload["agent_states"] = agent_states

    try:
        state = TeamState.model_validate(payload)
    except ValidationError as e:
        raise TeamStateInvariantError(f"Invalid team state: {e}") from e

    TeamStateStore(state).check_invariants()
    logger.debug(f"Loaded team state: {len(state.tasks)} tasks, {len(state.messages)} messages, {len(state.agent_states)} agents")
    return state
