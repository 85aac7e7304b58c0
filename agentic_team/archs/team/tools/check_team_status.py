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

"""check_team_status tool — per-agent status and task counts.

RFC-0002: 团队状态汇总
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentic_team.archs.team.types import AgentStatusInfo, TeamStatusResult

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext


async def check_team_status(context: AgentTeamContext) -> TeamStatusResult:
    """Summarize every agent (in team order) plus team-wide task totals."""
    board = context.task_board
    agents: list[AgentStatusInfo] = []
    for agent in context.team.state.agent_states.values():
        counts = board.status_counts(agent.id)
        agents.append(
            AgentStatusInfo(
                agent_id=agent.id,
                role=agent.role,
                status=agent.status,
                current_task=agent.current_task,
                blocked_on=agent.blocked_on,
                active_tasks=counts["active"],
                queued_tasks=counts["queued"],
                completed_tasks=counts["completed"],
            )
        )

    totals = board.status_counts()
    return TeamStatusResult(
        team_size=len(agents),
        agents=agents,
        total_tasks=sum(totals.values()),
        active_tasks=totals["active"],
        queued_tasks=totals["queued"],
        completed_tasks=totals["completed"],
    )
