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

"""ask tool — ask a teammate or external contact and pause until the reply.

RFC-0002: 提问并挂起
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentic_team.archs.tool.result import Suspend

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext


async def ask(
    to: str,
    question: str,
    context: AgentTeamContext,
) -> Suspend:
    """Ask ``to`` a question.

    RFC-0002: 提问并挂起

    创建 pending 的 ask 消息并返回 Suspend，runtime 据此提前结束会话；
    runner 的 on_suspend 回调再把调用者标记为 blocked。
    """
    return await context.message_bus.ask(
        from_agent_id=context.agent_id,
        to_agent_id=to,
        question=question,
    )
