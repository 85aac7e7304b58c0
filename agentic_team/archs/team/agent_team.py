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

"""Team coordinator and run loop.

RFC-0002: AgentTeam 协调器与运行循环

One manager and N workers share a private ``TeamStateStore``. The run loop
runs agents strictly one at a time: every tool call mutates shared state
without locks, so sessions must never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from .callbacks import TeamCallbacks, TeamEventEmitter
from .ids import MessageIdGenerator, TaskIdGenerator
from .message_bus import TeamMessageBus
from .prompt_builder import TeamPromptBuilder
from .runner import AgentRunner
from .state import TeamStateStore, dump_team_state
from .task_board import TaskBoard
from .types import (
    AgentRunResult,
    BlockedAgent,
    StopReason,
    TeamMember,
    TeamMessage,
    TeamRunResult,
    TeamState,
    WorkItem,
)

if TYPE_CHECKING:
    from agentic_team.archs.runtime.base import AgentSessionRuntime
    from agentic_team.archs.runtime.model_config import ModelConfig

logger = logging.getLogger(__name__)

DEFAULT_EXTERNAL_IDS: tuple[str, ...] = ("BigBoss",)
DEFAULT_MAX_ITERATIONS = 100


class AgentTeam:
    """Team coordinator.

    RFC-0002: AgentTeam 协调器

    Tracks task and message lifecycles, decides who runs next each
    iteration and detects termination (goal complete, external block,
    deadlock, stop request, iteration limit).
    """

    def __init__(
        self,
        *,
        manager: TeamMember,
        members: Sequence[TeamMember],
        goal: str,
        runtime: AgentSessionRuntime,
        model_config: ModelConfig | None = None,
        team_id: str | None = None,
        callbacks: TeamCallbacks | None = None,
        resume_from: TeamState | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        max_turns_per_session: int | None = None,
        token_limit: int | None = None,
        external_ids: Iterable[str] = DEFAULT_EXTERNAL_IDS,
        generate_task_id: TaskIdGenerator | None = None,
        generate_message_id: MessageIdGenerator | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        # 1. 校验成员定义
        ids = [manager.id, *(m.id for m in members)]
        duplicates = sorted({agent_id for agent_id in ids if ids.count(agent_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate agent ids in team: {duplicates}")
        if resume_from is not None:
            unknown = [agent_id for agent_id in resume_from.agent_states if agent_id not in ids]
            if unknown:
                raise ValueError(f"Restored state has agents that are not members of this team: {unknown}")

        self._team_id = team_id or uuid4().hex
        self._manager = manager
        self._members: dict[str, TeamMember] = {m.id: m for m in [manager, *members]}
        self.goal = goal
        self.model_config = model_config
        self.max_iterations = max_iterations
        self.max_turns_per_session = max_turns_per_session
        self.token_limit = token_limit
        self.external_ids: frozenset[str] = frozenset(external_ids)
        self._logger = logger if logger is not None else logging.getLogger(__name__)

        # 2. 私有状态存储；恢复时校验不变量，并补齐新成员的 AgentState
        if resume_from is not None:
            self._store = TeamStateStore(resume_from)
            self._store.check_invariants()
        else:
            self._store = TeamStateStore()
        for member in self._members.values():
            self._store.ensure_agent(member.id, member.role)

        # 3. 服务组装
        prompts = TeamPromptBuilder()
        self._events = TeamEventEmitter(callbacks, lambda: self._store.state)
        self._message_bus = TeamMessageBus(
            store=self._store,
            events=self._events,
            id_generator=generate_message_id,
            prompts=prompts,
        )
        self._task_board = TaskBoard(
            store=self._store,
            events=self._events,
            message_bus=self._message_bus,
            manager_id=manager.id,
            id_generator=generate_task_id,
            prompts=prompts,
        )
        self._runner = AgentRunner(team=self, runtime=runtime, prompts=prompts)

        # Run-loop control
        self._running = False
        self._stop_requested = False
        self._run_finished: asyncio.Event | None = None

    # --- properties ---

    @property
    def team_id(self) -> str:
        return self._team_id

    @property
    def manager_id(self) -> str:
        return self._manager.id

    @property
    def state(self) -> TeamState:
        return self._store.state

    @property
    def store(self) -> TeamStateStore:
        return self._store

    @property
    def task_board(self) -> TaskBoard:
        return self._task_board

    @property
    def message_bus(self) -> TeamMessageBus:
        return self._message_bus

    @property
    def runner(self) -> AgentRunner:
        return self._runner

    @property
    def is_goal_complete(self) -> bool:
        return self._store.state.goal_complete

    @property
    def is_running(self) -> bool:
        return self._running

    def get_member(self, agent_id: str) -> TeamMember | None:
        return self._members.get(agent_id)

    # --- derived views ---

    def get_next_work(self) -> list[WorkItem]:
        """Every non-blocked agent whose current task is active, in agent order."""
        work: list[WorkItem] = []
        for agent in self._store.agents():
            if agent.status == "blocked" or agent.current_task is None:
                continue
            task = self._store.get_task(agent.current_task)
            if task is not None and task.status == "active":
                work.append(WorkItem(agent_id=agent.id, task_id=task.id, task=task))
        return work

    def get_blocked_agents(self) -> list[BlockedAgent]:
        return [
            BlockedAgent(agent_id=agent.id, message_id=agent.blocked_on)
            for agent in self._store.agents()
            if agent.status == "blocked" and agent.blocked_on is not None
        ]

    def get_externally_blocked(self) -> list[BlockedAgent]:
        """Blocked agents whose ask went to an unknown or reserved external id."""
        external: list[BlockedAgent] = []
        for blocked in self.get_blocked_agents():
            ask = self._store.get_message(blocked.message_id)
            target = ask.to_agent_id if ask is not None else None
            if target is None or target in self.external_ids or not self._store.has_agent(target):
                external.append(blocked)
        return external

    def _find_responder(self) -> str | None:
        """First non-blocked agent with an undelivered inbound message."""
        for agent in self._store.agents():
            if agent.status != "blocked" and self._message_bus.pending_inbound(agent.id):
                return agent.id
        return None

    def _manager_blocked(self) -> bool:
        return self._store.get_agent(self.manager_id).status == "blocked"

    # --- operations ---

    async def run_agent(self, agent_id: str) -> AgentRunResult:
        """Run one session for ``agent_id`` (see ``AgentRunner.run_agent``)."""
        return await self._runner.run_agent(agent_id)

    async def deliver_message_reply(self, message_id: str, content: str) -> TeamMessage | None:
        """Answer an ask from outside the team; unknown or non-ask ids are logged and ignored."""
        return await self._message_bus.deliver_message_reply(message_id, content)

    def export_state(self) -> dict[str, Any]:
        """Current state as JSON-compatible primitives (see ``dump_team_state``)."""
        return dump_team_state(self._store.state)

    def _result(self, stop_reason: StopReason, iterations: int, blocked: list[BlockedAgent] | None = None) -> TeamRunResult:
        complete = self.is_goal_complete
        if complete:
            stop_reason = "goal_complete"
        self._logger.info(f"Team run complete. Goal complete: {complete}, Iterations: {iterations}, Reason: {stop_reason}")
        return TeamRunResult(
            complete=complete,
            blocked_agents=blocked if blocked is not None else self.get_blocked_agents(),
            iterations=iterations,
            stop_reason=stop_reason,
        )

    async def run(self) -> TeamRunResult:
        """Run the team until the goal completes, it blocks, stalls, is stopped or runs out of iterations.

        RFC-0002: 团队自主运行循环

        Never raises for agent failures. Raises RuntimeError if a run is already in progress.
        """
        if self._running:
            raise RuntimeError(f"Team {self._team_id} is already running")
        self._running = True
        self._stop_requested = False
        self._run_finished = asyncio.Event()
        try:
            return await self._run_loop()
        finally:
            self._running = False
            self._run_finished.set()

    async def _run_loop(self) -> TeamRunResult:
        log = self._logger
        log.info(f"Starting autonomous team run for goal: {self.goal}")
        iterations = 0

        if self.is_goal_complete:
            return self._result("goal_complete", iterations, [])

        # 1. Seed: manager 先运行一次
        if not self._manager_blocked():
            await self.run_agent(self.manager_id)

        while iterations < self.max_iterations:
            if self.is_goal_complete:
                return self._result("goal_complete", iterations, [])
            if self._stop_requested:
                return self._result("stopped", iterations)

            iterations += 1
            log.info(f"=== Iteration {iterations} ===")

            # 2. 外部阻塞：必须由调用方提供回复
            external = self.get_externally_blocked()
            if external:
                log.info(f"Agents blocked on external input: {', '.join(b.agent_id for b in external)}")
                return self._result("external_block", iterations, external)

            # 3. 计算工作项
            work = self.get_next_work()
            blocked = self.get_blocked_agents()

            if not work and blocked:
                # 4. 无工作但有内部阻塞：运行能回复的 agent，否则死锁
                responder = self._find_responder()
                if responder is None:
                    log.info(f"Team deadlocked: {', '.join(b.agent_id for b in blocked)} blocked with no responder")
                    return self._result("deadlock", iterations, blocked)
                log.info(f"Running {responder} to answer pending messages")
                await self.run_agent(responder)
                if responder == self.manager_id:
                    continue
            elif not work:
                # 5. 无工作且无阻塞：让 manager 重新评估
                await self.run_agent(self.manager_id)
                if self.is_goal_complete:
                    return self._result("goal_complete", iterations, [])
                if not self.get_next_work() and not self.get_blocked_agents():
                    log.info("No work and no blocked agents after manager pass")
                    return self._result("idle", iterations, [])
                continue
            else:
                # 6. 顺序执行工作项
                for item in work:
                    if self.is_goal_complete or self._stop_requested:
                        break
                    log.info(f"Running {item.agent_id} on task {item.task_id}...")
                    await self.run_agent(item.agent_id)

            # 7. Manager 批后复查（回复者运行后同样执行）
            if not self.is_goal_complete and not self._stop_requested and not self._manager_blocked():
                await self.run_agent(self.manager_id)

        if self.is_goal_complete:
            return self._result("goal_complete", iterations, [])
        if self._stop_requested:
            return self._result("stopped", iterations)
        log.info(f"Reached max iterations ({self.max_iterations})")
        return self._result("max_iterations", iterations)

    async def stop(self) -> TeamState:
        """Request a cooperative stop and wait until the run loop has exited.

        RFC-0002: 协作式停止

        Must be called from a task other than the one running ``run()``.
        """
        if not self._running or self._run_finished is None:
            return self._store.state
        self._logger.info(f"Stopping team {self._team_id}")
        self._stop_requested = True
        await self._runner.stop_all()
        await self._run_finished.wait()
        return self._store.state
