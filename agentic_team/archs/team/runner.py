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

"""Agent runner adapter.

RFC-0002: 单次 agent 会话执行适配器

Wraps one session of the external runtime: builds the system prompt, tool
table and opening message, tracks the in-flight session so it can be
stopped, and normalizes the result into an ``AgentRunResult``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentic_team.archs.runtime.base import (
    TASK_COMPLETE_TOOL,
    AgentSession,
    SessionCallbacks,
    SessionRequest,
    SuspendInfo,
)
from agentic_team.core.messages import Message

from .prompt_builder import TeamPromptBuilder
from .state import AgentTeamContext
from .tools import build_coordination_tools
from .types import AgentRunResult, UnknownAgentError

if TYPE_CHECKING:
    from agentic_team.archs.runtime.base import AgentSessionRuntime
    from agentic_team.archs.tool.tool import Tool

    from .agent_team import AgentTeam

logger = logging.getLogger(__name__)


class AgentRunner:
    """Runs single agent sessions for an ``AgentTeam``.

    RFC-0002: Agent 会话执行
    """

    def __init__(
        self,
        *,
        team: AgentTeam,
        runtime: AgentSessionRuntime,
        prompts: TeamPromptBuilder | None = None,
    ) -> None:
        self._team = team
        self._runtime = runtime
        self._prompts = prompts or TeamPromptBuilder()
        self._active_sessions: set[AgentSession] = set()

    @property
    def active_sessions(self) -> set[AgentSession]:
        return set(self._active_sessions)

    # --- session building ---

    def build_tools(self, agent_id: str) -> list[Tool]:
        """Coordination tools plus the member's domain tools; coordination wins on name collisions.

        RFC-0002: 协作工具与领域工具合并
        """
        team = self._team
        member = team.get_member(agent_id)
        context = AgentTeamContext(
            agent_id=agent_id,
            team=team,
            task_board=team.task_board,
            message_bus=team.message_bus,
            is_manager=agent_id == team.manager_id,
        )
        tools = build_coordination_tools(context)
        reserved = {tool.name for tool in tools} | {TASK_COMPLETE_TOOL}
        for tool in member.tools if member is not None else []:
            if tool.name in reserved:
                logger.warning(f"Domain tool '{tool.name}' of {agent_id} collides with a coordination tool; keeping the coordination tool")
                continue
            tools.append(tool)
        return tools

    def build_system_prompt(self, agent_id: str) -> str:
        team = self._team
        member = team.get_member(agent_id)
        return self._prompts.build_system_prompt(
            base_prompt=member.system_prompt if member is not None else "",
            agent=team.store.get_agent(agent_id),
            manager_id=team.manager_id,
            members=team.store.agents(),
            external_ids=team.external_ids,
        )

    async def build_initial_message(self, agent_id: str) -> Message | None:
        """Opening user turn: goal (fresh manager), unseen task brief, pending messages.

        RFC-0002: 构建初始消息

        Pending tells shown here are marked delivered; asks stay pending
        until they are answered.
        """
        team = self._team
        agent = team.store.get_agent(agent_id)
        history = agent.conversation_history

        # 1. 新会话的 manager 附带目标
        goal = team.goal if agent_id == team.manager_id and not history else None

        # 2. 对话中尚未出现过的当前任务附带简报
        task = team.task_board.current_task_of(agent_id)
        if task is not None and any(m.metadata.get("task_id") == task.id for m in history):
            task = None

        # 3. 待读消息摘要
        pending = team.message_bus.pending_inbound(agent_id)

        text = self._prompts.build_initial_message(goal=goal, task=task, pending=pending)
        for msg in pending:
            if msg.type == "tell":
                await team.message_bus.mark_delivered(msg)

        if text is None:
            return None
        metadata: dict[str, str] = {"source": "session_start"}
        if task is not None:
            metadata["task_id"] = task.id
        return Message.user(text, **metadata)

    # --- execution ---

    async def run_agent(self, agent_id: str) -> AgentRunResult:
        """Run one session for ``agent_id`` and normalize its outcome.

        RFC-0002: 执行单次 agent 会话

        Raises UnknownAgentError when the agent has no AgentState or no member
        configuration. Runtime failures are returned as ``completion_reason="error"``.
        """
        team = self._team
        agent = team.store.get_agent(agent_id)
        member = team.get_member(agent_id)
        if member is None:
            raise UnknownAgentError(agent_id, "has no member configuration")

        async def on_suspend(session_id: str, info: SuspendInfo) -> None:
            message_id = info.data.get("message_id")
            if message_id:
                await team.message_bus.block_agent(agent_id, str(message_id))

        async def on_messages_update(session_id: str, messages: list[Message]) -> None:
            agent.conversation_history = list(messages)

        logger.info(f"Running agent {agent_id}...")
        try:
            request = SessionRequest(
                session_id=agent_id,
                system_prompt=self.build_system_prompt(agent_id),
                tools=self.build_tools(agent_id),
                model_config=team.model_config,
                prior_conversation=list(agent.conversation_history),
                initial_message=await self.build_initial_message(agent_id),
                max_turns=team.max_turns_per_session,
                token_limit=team.token_limit,
                callbacks=SessionCallbacks(on_suspend=on_suspend, on_messages_update=on_messages_update),
            )
            session = self._runtime.start_session(request)
            self._active_sessions.add(session)
            try:
                result = await session
            finally:
                self._active_sessions.discard(session)

            agent.conversation_history = list(result.final_conversation)

            if result.completion_reason == "suspended":
                # on_suspend 未被 runtime 调用时在此补齐阻塞
                if result.suspend_info is not None:
                    await on_suspend(agent_id, result.suspend_info)
                return AgentRunResult(
                    agent_id=agent_id,
                    completion_reason="suspended",
                    final_output=result.final_output,
                    suspended=True,
                    suspend_info=result.suspend_info,
                )

            if result.completion_reason == TASK_COMPLETE_TOOL:
                await team.task_board.complete_task(agent_id, result.final_output)
                return AgentRunResult(
                    agent_id=agent_id,
                    completion_reason=TASK_COMPLETE_TOOL,
                    final_output=result.final_output,
                    completed=True,
                )

            logger.info(f"Agent {agent_id} session ended: {result.completion_reason}")
            return AgentRunResult(
                agent_id=agent_id,
                completion_reason=result.completion_reason,
                final_output=result.final_output,
            )
        except Exception as e:
            logger.error(f"Error running agent {agent_id}: {e}", exc_info=True)
            return AgentRunResult(agent_id=agent_id, completion_reason="error", error=e)

    async def stop_all(self) -> None:
        """Ask every tracked session to stop and wait for each."""
        sessions = list(self._active_sessions)
        if sessions:
            logger.info(f"Stopping {len(sessions)} active session(s)")
        for session in sessions:
            await session.stop()
