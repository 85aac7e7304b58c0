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

"""Team message bus for ask/tell communication.

RFC-0002: 队内消息总线

``ask`` suspends the sender until a reply arrives; ``tell`` never suspends
and may close out an earlier ask, either explicitly (``in_reply_to``) or by
the reply-matching heuristic. Replies unblock the asker and are appended to
its conversation so it sees the answer when it resumes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentic_team.archs.tool.result import Suspend
from agentic_team.core.messages import Message

from .ids import MessageIdGenerator, generate_message_id
from .prompt_builder import TeamPromptBuilder
from .types import (
    InvalidReplyError,
    InvalidTransitionError,
    MessageNotFoundError,
    MessageStatus,
    MessageType,
    TeamMessage,
)

if TYPE_CHECKING:
    from .callbacks import TeamEventEmitter
    from .state import TeamStateStore

logger = logging.getLogger(__name__)

WAITING_FOR_REPLY = "waiting_for_reply"


def _preview(text: str, limit: int = 50) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


class TeamMessageBus:
    """In-memory message router backed by the team's ``TeamStateStore``.

    RFC-0002: 队内消息投递
    """

    def __init__(
        self,
        *,
        store: TeamStateStore,
        events: TeamEventEmitter,
        id_generator: MessageIdGenerator | None = None,
        prompts: TeamPromptBuilder | None = None,
    ) -> None:
        self._store = store
        self._events = events
        self._next_id = id_generator or generate_message_id
        self._prompts = prompts or TeamPromptBuilder()

    # --- helpers ---

    def _new_message(
        self,
        *,
        from_agent_id: str,
        to_agent_id: str,
        message_type: MessageType,
        content: str,
        status: MessageStatus,
        in_reply_to: str | None = None,
    ) -> TeamMessage:
        msg = TeamMessage(
            id=self._next_id(self._store.state.messages),
            from_agent_id=from_agent_id,
            to_agent_id=to_agent_id,
            type=message_type,
            content=content,
            status=status,
            in_reply_to=in_reply_to,
        )
        self._store.add_message(msg)
        return msg

    def _require_ask(self, message_id: str) -> TeamMessage:
        msg = self._store.get_message(message_id)
        if msg is None:
            raise MessageNotFoundError(f"Message {message_id} not found")
        if msg.type != "ask":
            raise InvalidReplyError(f"Message {message_id} is a {msg.type}, not an ask")
        return msg

    def _heuristic_reply_target(self, from_agent_id: str, to_agent_id: str) -> TeamMessage | None:
        """The ask a bare tell answers: the first pending ask sent by the recipient to the teller.

        Only a blocked recipient is waiting for an answer; a bare tell to anyone else stays a plain tell.
        """
        if not self._store.has_agent(to_agent_id) or self._store.get_agent(to_agent_id).status != "blocked":
            return None
        for msg in self._store.state.messages:
            if msg.type == "ask" and msg.status == "pending" and msg.from_agent_id == to_agent_id and msg.to_agent_id == from_agent_id:
                return msg
        return None

    async def _resolve_ask(self, ask: TeamMessage, reply: TeamMessage) -> None:
        """Mark ``ask`` delivered and unblock the asker if it waits on exactly this ask."""
        if ask.status == "pending":
            await self.mark_delivered(ask)

        if not self._store.has_agent(ask.from_agent_id):
            return
        asker = self._store.get_agent(ask.from_agent_id)
        if asker.blocked_on != ask.id:
            return

        # 1. 解除阻塞：仍持有任务则回到 working，否则 idle
        asker.blocked_on = None
        asker.status = "working" if asker.current_task is not None else "idle"
        # 2. 注入回复，使 agent 恢复时能看到答案
        asker.conversation_history.append(
            Message.user(self._prompts.reply(reply.from_agent_id, reply.content), source="reply", message_id=ask.id),
        )
        logger.info(f"Agent {asker.id} unblocked with reply to {ask.id}")
        await self._events.agent_unblocked(asker, ask.id)

    # --- queries ---

    def pending_inbound(self, agent_id: str) -> list[TeamMessage]:
        """Undelivered messages addressed to ``agent_id``, oldest first."""
        return [m for m in self._store.state.messages if m.to_agent_id == agent_id and m.status == "pending"]

    # --- public API ---

    async def ask(self, *, from_agent_id: str, to_agent_id: str, question: str) -> Suspend:
        """Create a pending ask and return the suspension marker for the caller's session.

        RFC-0002: 提问（挂起会话）
        """
        msg = self._new_message(
            from_agent_id=from_agent_id,
            to_agent_id=to_agent_id,
            message_type="ask",
            content=question,
            status="pending",
        )
        logger.info(f"Agent {from_agent_id} asked {to_agent_id}: {_preview(question)}")
        await self._events.message_sent(msg)
        return Suspend(reason=WAITING_FOR_REPLY, data={"message_id": msg.id, "to": to_agent_id})

    async def tell(
        self,
        *,
        from_agent_id: str,
        to_agent_id: str,
        content: str,
        in_reply_to: str | None = None,
    ) -> TeamMessage:
        """Send a delivered tell, closing out the ask it answers.

        RFC-0002: 告知（可作为回复）

        Raises MessageNotFoundError / InvalidReplyError when ``in_reply_to``
        does not name an ask; no message is created in that case.
        """
        if in_reply_to is not None:
            ask = self._require_ask(in_reply_to)
        else:
            ask = self._heuristic_reply_target(from_agent_id, to_agent_id)

        msg = self._new_message(
            from_agent_id=from_agent_id,
            to_agent_id=to_agent_id,
            message_type="tell",
            content=content,
            status="delivered",
            in_reply_to=ask.id if ask is not None else None,
        )
        logger.info(f"Agent {from_agent_id} told {to_agent_id}: {_preview(content)}")
        await self._events.message_sent(msg)

        if ask is not None:
            await self._resolve_ask(ask, msg)
        return msg

    async def notify(self, *, from_agent_id: str, to_agent_id: str, content: str) -> TeamMessage:
        """Queue a pending tell (e.g. a task completion notice) for the recipient's next session."""
        msg = self._new_message(
            from_agent_id=from_agent_id,
            to_agent_id=to_agent_id,
            message_type="tell",
            content=content,
            status="pending",
        )
        await self._events.message_sent(msg)
        return msg

    async def deliver_message_reply(self, message_id: str, content: str) -> TeamMessage | None:
        """Answer an ask from outside the team (e.g. a human operator).

        RFC-0002: 外部回复投递

        A missing or non-ask ``message_id`` is logged and ignored: nothing
        changes and no callback fires.
        """
        ask = self._store.get_message(message_id)
        if ask is None or ask.type != "ask":
            logger.error(f"Cannot deliver reply - message {message_id} not found or not an ask")
            return None

        reply = self._new_message(
            from_agent_id=ask.to_agent_id,
            to_agent_id=ask.from_agent_id,
            message_type="tell",
            content=content,
            status="delivered",
            in_reply_to=ask.id,
        )
        logger.info(f"External reply to {message_id} from {ask.to_agent_id}: {_preview(content)}")
        await self._events.message_sent(reply)
        await self._resolve_ask(ask, reply)
        return reply

    async def block_agent(self, agent_id: str, message_id: str) -> None:
        """Mark ``agent_id`` blocked on the ask ``message_id``.

        RFC-0002: 阻塞 agent

        Raises UnknownAgentError for unknown agents and InvalidReplyError when
        the message is not an ask. Blocking again on the same id is a no-op.
        """
        agent = self._store.get_agent(agent_id)
        self._require_ask(message_id)
        if agent.status == "blocked" and agent.blocked_on == message_id:
            return
        agent.status = "blocked"
        agent.blocked_on = message_id
        logger.info(f"Agent {agent_id} blocked waiting for message {message_id}")
        await self._events.agent_blocked(agent, message_id)

    async def mark_delivered(self, message: TeamMessage) -> None:
        """pending → delivered."""
        if message.status != "pending":
            raise InvalidTransitionError(f"Message {message.id} is already {message.status}")
        message.status = "delivered"
        await self._events.message_delivered(message)
