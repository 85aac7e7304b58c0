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

"""assign_task tool — manager delegates a task to a team member.

RFC-0002: 分配任务
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentic_team.archs.team.types import AssignTaskResult, ToolError, UnknownAgentError

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext


async def assign_task(
    assignee: str,
    title: str,
    brief: str,
    context: AgentTeamContext,
) -> AssignTaskResult | ToolError:
    """Assign a task to ``assignee``.

    RFC-0002: 分配任务

    - 仅 manager 可调用
    - 未知 assignee 返回 not_found，由 manager 在下一轮自行纠正
    - assignee 空闲时任务立即激活，否则排队
    """
    if not context.is_manager:
        return ToolError(error="Only the manager can assign tasks", code="permission_denied")

    try:
        task = await context.task_board.assign_task(
            creator_id=context.agent_id,
            assignee_id=assignee,
            title=title,
            brief=brief,
        )
    except UnknownAgentError:
        return ToolError(error=f"Unknown team member: {assignee}", code="not_found")

    if task.status == "active":
        message = f"Task {task.id} assigned and activated"
    else:
        message = f"Task {task.id} queued (agent is busy)"
    return AssignTaskResult(task_id=task.id, status=task.status, message=message)
