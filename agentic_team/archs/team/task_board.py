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

"""Task lifecycle for AgentTeam collaboration.

RFC-0002: 任务生命周期管理

Enforces one active task per agent with FIFO queueing, and turns a
completion into a notification for the task creator plus the promotion of
the next queued task.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import TYPE_CHECKING

from agentic_team.core.messages import Message

from .ids import TaskIdGenerator, generate_task_id
from .prompt_builder import TeamPromptBuilder
from .types import TASK_TRANSITIONS, InvalidTransitionError, Task, TaskStatus

if TYPE_CHECKING:
    from .callbacks import TeamEventEmitter
    from .message_bus import TeamMessageBus
    from .state import TeamStateStore

logger = logging.getLogger(__name__)


def _transition(task: Task, status: TaskStatus) -> None:
    """Move ``task`` to ``status`` or raise ``InvalidTransitionError``."""
    if status not in TASK_TRANSITIONS[task.status]:
        raise InvalidTransitionError(f"Task {task.id} cannot go from {task.status} to {status}")
    task.status = status


class TaskBoard:
    """In-memory task board backed by the team's ``TeamStateStore``.

    RFC-0002: 任务面板
    """

    def __init__(
        self,
        *,
        store: TeamStateStore,
        events: TeamEventEmitter,
        message_bus: TeamMessageBus,
        manager_id: str,
        id_generator: TaskIdGenerator | None = None,
        prompts: TeamPromptBuilder | None = None,
    ) -> None:
        self._store = store
        self._events = events
        self._message_bus = message_bus
        self._manager_id = manager_id
        self._next_id = id_generator or generate_task_id
        self._prompts = prompts or TeamPromptBuilder()

    # --- queries ---

    def get_task(self, task_id: str) -> Task | None:
        return self._store.get_task(task_id)

    def current_task_of(self, agent_id: str) -> Task | None:
        """The agent's bound current task, if any."""
        agent = self._store.get_agent(agent_id)
        if agent.current_task is None:
            return None
        return self._store.get_task(agent.current_task)

    def tasks_for(self, agent_id: str) -> list[Task]:
        return [t for t in self._store.state.tasks if t.assignee == agent_id]

    def incomplete_tasks(self) -> list[Task]:
        """Active and queued tasks in creation order."""
        return [t for t in self._store.state.tasks if t.status in ("active", "queued")]

    def status_counts(self, agent_id: str | None = None) -> dict[str, int]:
        """Task counts by status, for one agent or the whole team."""
        tasks = self._store.state.tasks if agent_id is None else self.tasks_for(agent_id)
        counts = Counter(t.status for t in tasks)
        return {status: counts.get(status, 0) for status in ("active", "queued", "completed")}

    # --- mutations ---

    async def assign_task(
        self,
        *,
        creator_id: str,
        assignee_id: str,
        title: str,
        brief: str,
    ) -> Task:
        """Create a task for ``assignee_id``; active if the assignee is free, else queued.

        RFC-0002: 创建并分配任务

        Raises UnknownAgentError if the assignee has no AgentState.
        """
        assignee = self._store.get_agent(assignee_id)
        task = Task(
            id=self._next_id(self._store.state.tasks),
            title=title,
            brief=brief,
            assignee=assignee_id,
            created_by=creator_id,
        )

        # 1. 空闲 agent 直接激活并绑定
        if assignee.current_task is None:
            task.status = "active"
            assignee.current_task = task.id
            if assignee.status != "blocked":
                assignee.status = "working"

        # 2. 入库并通知
        self._store.add_task(task)
        logger.info(f"Task {task.id} assigned to {assignee_id}: {title} ({task.status})")
        await self._events.task_created(task)
        if task.status == "active":
            await self._events.task_activated(task)
        return task

    async def complete_task(self, agent_id: str, summary: str) -> Task | None:
        """Handle a ``task_complete`` from ``agent_id``.

        RFC-0002: 任务完成处理

        - manager: marks the goal complete and returns ``None``
        - worker without a current task: no-op, returns ``None``
        - otherwise: completes the task, notifies its creator and promotes the
          oldest queued task for the agent

        Raises UnknownAgentError for unknown agents.
        """
        agent = self._store.get_agent(agent_id)

        if agent_id == self._manager_id:
            state = self._store.state
            state.goal_complete = True
            state.goal_summary = summary
            logger.info(f"Goal completed by manager: {summary}")
            await self._events.goal_complete(summary)
            return None

        task = self.current_task_of(agent_id)
        if task is None:
            logger.info(f"Agent {agent_id} finished its session without a current task")
            return None

        # 1. 标记完成并释放 agent
        _transition(task, "completed")
        task.completed_at = datetime.now()
        task.completion_summary = summary
        agent.current_task = None
        if agent.status != "blocked":
            agent.status = "idle"
        logger.info(f"Task {task.id} completed by {agent_id}")
        await self._events.task_completed(task)

        # 2. 给任务创建者发送完成通知（pending，等待其下次运行时读取）
        await self._message_bus.notify(
            from_agent_id=agent_id,
            to_agent_id=task.created_by,
            content=self._prompts.task_completed(task, summary),
        )

        # 3. 提升该 agent 最早排队的任务
        await self._promote_next(agent_id)
        return task

    async def _promote_next(self, agent_id: str) -> Task | None:
        queued = next((t for t in self._store.state.tasks if t.assignee == agent_id and t.status == "queued"), None)
        if queued is None:
            return None

        agent = self._store.get_agent(agent_id)
        _transition(queued, "active")
        agent.current_task = queued.id
        if agent.status != "blocked":
            agent.status = "working"
        agent.conversation_history.append(
            Message.user(self._prompts.task_assigned(queued), source="task_assignment", task_id=queued.id),
        )
        logger.info(f"Task {queued.id} activated for {agent_id}")
        await self._events.task_activated(queued)
        return queued
