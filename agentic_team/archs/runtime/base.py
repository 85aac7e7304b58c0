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

"""Agent session runtime contract.

RFC-0004: Agent 会话运行时契约

The team core only depends on this shape: start a session from a
``SessionRequest`` and await its ``SessionResult``. How turns are executed
is up to the runtime.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from agentic_team.core.messages import Message

if TYPE_CHECKING:
    from agentic_team.archs.runtime.model_config import ModelConfig
    from agentic_team.archs.tool.tool import Tool

logger = logging.getLogger(__name__)

CompletionReason = Literal["task_complete", "suspended", "max_turns", "end_turn", "token_limit", "stopped", "error"]

TASK_COMPLETE_TOOL = "task_complete"


@dataclass(frozen=True)
class SuspendInfo:
    """Why a session ended early: the first ``Suspend`` tool result.

    RFC-0004: 挂起信息
    """

    reason: str
    data: dict[str, Any] = field(default_factory=lambda: dict[str, Any]())
    tool_name: str | None = None


@dataclass
class SessionCallbacks:
    """Hooks the runtime awaits while a session runs."""

    on_suspend: Callable[[str, SuspendInfo], Awaitable[None]] | None = None
    on_messages_update: Callable[[str, list[Message]], Awaitable[None]] | None = None


@dataclass
class SessionRequest:
    """Everything a runtime needs to run one agent session.

    RFC-0004: 会话请求
    """

    session_id: str
    system_prompt: str
    tools: list[Tool]
    model_config: ModelConfig | None = None
    prior_conversation: list[Message] = field(default_factory=lambda: list[Message]())
    initial_message: Message | None = None
    max_turns: int | None = None
    token_limit: int | None = None
    callbacks: SessionCallbacks = field(default_factory=SessionCallbacks)


@dataclass(frozen=True)
class SessionResult:
    """Terminal outcome of a session."""

    final_conversation: list[Message]
    completion_reason: str
    final_output: str = ""
    suspend_info: SuspendInfo | None = None


@runtime_checkable
class AgentSession(Protocol):
    """Awaitable handle of an in-flight session."""

    session_id: str

    def __await__(self) -> Generator[Any, None, SessionResult]: ...

    async def stop(self) -> None: ...


@runtime_checkable
class AgentSessionRuntime(Protocol):
    """Starts agent sessions."""

    def start_session(self, request: SessionRequest) -> AgentSession: ...


class AsyncioAgentSession:
    """``AgentSession`` backed by an ``asyncio.Task`` and a cooperative stop event.

    RFC-0004: 基于 asyncio.Task 的会话句柄

    ``body`` receives the stop event and should check it between turns.
    """

    def __init__(self, session_id: str, body: Callable[[asyncio.Event], Awaitable[SessionResult]]) -> None:
        self.session_id = session_id
        self._stop_event = asyncio.Event()
        self._task: asyncio.Future[SessionResult] = asyncio.ensure_future(body(self._stop_event))

    def __await__(self) -> Generator[Any, None, SessionResult]:
        return self._task.__await__()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def done(self) -> bool:
        return self._task.done()

    async def stop(self) -> None:
        """Request a stop and wait for the session to wind down."""
        if self._task.done():
            return
        logger.info(f"Stopping session {self.session_id}")
        self._stop_event.set()
        # The owner awaiting the session observes its result or exception.
        await asyncio.wait([self._task])
