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

"""get_task_brief tool — read the caller's current task."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentic_team.archs.team.types import NoTaskResult, TaskBriefResult

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext


async def get_task_brief(context: AgentTeamContext) -> TaskBriefResult | NoTaskResult:
    """Return the caller's current task, or ``NoTaskResult`` when it holds none."""
    task = context.task_board.current_task_of(context.agent_id)
    if task is None:
        return NoTaskResult()
    return TaskBriefResult(
        task_id=task.id,
        title=task.title,
        brief=task.brief,
        status=task.status,
    )
