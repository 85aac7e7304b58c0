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

"""tell tool — send a message, optionally as the reply to an ask.

RFC-0002: 告知 / 回复
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentic_team.archs.team.types import InvalidReplyError, MessageNotFoundError, TellResult, ToolError

if TYPE_CHECKING:
    from agentic_team.archs.team.state import AgentTeamContext


async def tell(
    to: str,
    message: str,
    context: AgentTeamContext,
    in_reply_to: str | None = None,
) -> TellResult | ToolError:
    """Send ``message`` to ``to``.

    RFC-0002: 告知 / 回复

    - in_reply_to 指向不存在的消息 → not_found
    - in_reply_to 指向非 ask 消息 → invalid_state
    """
    try:
        msg = await context.message_bus.tell(
            from_agent_id=context.agent_id,
            to_agent_id=to,
            content=message,
            in_reply_to=in_reply_to,
        )
    except MessageNotFoundError as e:
        return ToolError(error=str(e), code="not_found")
    except InvalidReplyError as e:
        return ToolError(error=str(e), code="invalid_state")

    return TellResult(message_id=msg.id, in_reply_to=msg.in_reply_to)
