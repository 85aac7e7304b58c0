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

"""Observable team transitions.

RFC-0002: 团队事件回调

Every hook may be sync or async; the emitter awaits it before the core moves
on, so hooks can persist state. ``on_state_change`` fires after each of the
other events with the current ``TeamState``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .types import AgentState, Task, TeamMessage, TeamState

logger = logging.getLogger(__name__)

Hook = Callable[..., Awaitable[Any] | Any]


@dataclass
class TeamCallbacks:
    """Optional hooks for every observable transition."""

    on_task_created: Callable[[Task], Awaitable[Any] | Any] | None = None
    on_task_activated: Callable[[Task], Awaitable[Any] | Any] | None = None
    on_task_completed: Callable[[Task], Awaitable[Any] | Any] | None = None
    on_message_sent: Callable[[TeamMessage], Awaitable[Any] | Any] | None = None
    on_message_delivered: Callable[[TeamMessage], Awaitable[Any] | Any] | None = None
    on_agent_blocked: Callable[[AgentState, str], Awaitable[Any] | Any] | None = None
    on_agent_unblocked: Callable[[AgentState, str], Awaitable[Any] | Any] | None = None
    on_goal_complete: Callable[[str], Awaitable[Any] | Any] | None = None
    on_state_change: Callable[[TeamState], Awaitable[Any] | Any] | None = None


class TeamEventEmitter:
    """Awaits ``TeamCallbacks`` hooks in order."""

    def __init__(self, callbacks: TeamCallbacks | None, state_getter: Callable[[], TeamState]) -> None:
        self._callbacks = callbacks or TeamCallbacks()
        self._state_getter = state_getter

    async def _call(self, hook: Hook | None, *args: Any) -> None:
        if hook is None:
            return
        result = hook(*args)
        if inspect.isawaitable(result):
            await result

    async def _emit(self, event: str, *args: Any) -> None:
        logger.debug(f"Team event: {event}")
        await self._call(getattr(self._callbacks, f"on_{event}"), *args)
        await self._call(self._callbacks.on_state_change, self._state_getter())

    async def task_created(self, task: Task) -> None:
        await self._emit("task_created", task)

    async def task_activated(self, task: Task) -> None:
        await self._emit("task_activated", task)

    async def task_completed(self, task: Task) -> None:
        await self._emit("task_completed", task)

    async def message_sent(self, message: TeamMessage) -> None:
        await self._emit("message_sent", message)

    async def message_delivered(self, message: TeamMessage) -> None:
        await self._emit("message_delivered", message)

    async def agent_blocked(self, agent: AgentState, message_id: str) -> None:
        await self._emit("agent_blocked", agent, message_id)

    async def agent_unblocked(self, agent: AgentState, message_id: str) -> None:
        await self._emit("agent_unblocked", agent, message_id)

    async def goal_complete(self, summary: str) -> None:
        await self._emit("goal_complete", summary)
