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

"""wait_for_task_completions tool — manager backpressure instead of polling.

RFC-0002: 等待任务完成
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentic_team.archs.team.types import AllTasksCompleteResult, ToolError
from agentic_team.archs.tool.result import Suspend

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext

logger = logging.getLogger(__name__)

WAITING_FOR_TASK_COMPLETIONS = "waiting_for_task_completions"


async def wait_for_task_completions(context: AgentTeamContext) -> AllTasksCompleteResult | Suspend | ToolError:
    """Suspend the manager until outstanding tasks complete.

    RFC-0002: 等待任务完成

    没有 active/queued 任务时返回提示，manager 可直接 task_complete；
    否则挂起会话，列出未完成任务 id。
    """
    if not context.is_manager:
        return ToolError(error="Only the manager can wait for task completions", code="permission_denied")

    incomplete = context.task_board.incomplete_tasks()
    if not incomplete:
        return AllTasksCompleteResult()

    logger.info(f"Manager waiting for {len(incomplete)} incomplete tasks")
    return Suspend(
        reason=WAITING_FOR_TASK_COMPLETIONS,
        data={"incomplete_tasks": [t.id for t in incomplete], "count": len(incomplete)},
    )
