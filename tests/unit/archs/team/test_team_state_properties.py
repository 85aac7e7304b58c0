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

"""Property-based tests for team state invariants.

*For any* interleaving of assign / complete / ask / reply operations, the
team state keeps its invariants, task statuses only move forward, and the
state survives a JSON round-trip unchanged.
"""

from __future__ import annotations

import asyncio
import json

from hypothesis import given, settings
from hypothesis import strategies as st

from agentic_team.archs.team.callbacks import TeamEventEmitter
from agentic_team.archs.team.ids import next_prefixed_id
from agentic_team.archs.team.message_bus import TeamMessageBus
from agentic_team.archs.team.state import TeamStateStore, dump_team_state, load_team_state
from agentic_team.archs.team.task_board import TaskBoard
from agentic_team.archs.team.types import TeamState

WORKERS = ("w0", "w1", "w2")
_RANK = {"queued": 0, "active": 1, "completed": 2}

operation = st.tuples(
    st.sampled_from(["assign", "complete", "ask", "reply", "tell"]),
    st.integers(min_value=0, max_value=len(WORKERS) - 1),
)


async def apply_operations(operations: list[tuple[str, int]]) -> TeamState:
    store = TeamStateStore()
    store.ensure_agent("lead", "manager")
    for worker in WORKERS:
        store.ensure_agent(worker, "worker")
    events = TeamEventEmitter(None, lambda: store.state)
    bus = TeamMessageBus(store=store, events=events)
    board = TaskBoard(store=store, events=events, message_bus=bus, manager_id="lead")
    seen: dict[str, str] = {}

    for name, index in operations:
        worker_id = WORKERS[index]
        worker = store.get_agent(worker_id)
        if name == "assign":
            await board.assign_task(creator_id="lead", assignee_id=worker_id, title="t", brief="b")
        elif name == "complete":
            await board.complete_task(worker_id, "done")
        elif name == "ask" and worker.status != "blocked":
            suspend = await bus.ask(from_agent_id=worker_id, to_agent_id="lead", question="?")
            await bus.block_agent(worker_id, suspend.data["message_id"])
        elif name == "reply" and worker.blocked_on is not None:
            await bus.tell(from_agent_id="lead", to_agent_id=worker_id, content="ok", in_reply_to=worker.blocked_on)
        elif name == "tell":
            await bus.tell(from_agent_id="lead", to_agent_id=worker_id, content="fyi")

        store.check_invariants()
        for task in store.state.tasks:
            previous = seen.get(task.id)
            if previous is not None:
                assert _RANK[task.status] - _RANK[previous] in (0, 1)
            seen[task.id] = task.status
        for msg in store.state.messages:
            if msg.type == "tell" and msg.from_agent_id == "lead":
                assert msg.status == "delivered"

    return store.state


class TestTeamStateProperties:
    @settings(max_examples=60, deadline=None)
    @given(operations=st.lists(operation, max_size=25))
    def test_invariants_hold_for_any_interleaving(self, operations: list[tuple[str, int]]):
        state = asyncio.run(apply_operations(operations))

        active_by_agent: dict[str, int] = {}
        for task in state.tasks:
            if task.status == "active":
                active_by_agent[task.assignee] = active_by_agent.get(task.assignee, 0) + 1
        assert all(count == 1 for count in active_by_agent.values())

    @settings(max_examples=40, deadline=None)
    @given(operations=st.lists(operation, max_size=25))
    def test_state_round_trips_through_json(self, operations: list[tuple[str, int]]):
        state = asyncio.run(apply_operations(operations))

        restored = load_team_state(json.loads(json.dumps(dump_team_state(state))))

        assert restored == state
        assert list(restored.agent_states) == ["lead", *WORKERS]

    @given(numbers=st.lists(st.integers(min_value=1, max_value=99999), unique=True), noise=st.lists(st.text(max_size=8).filter(lambda s: not s.startswith("T-"))))
    def test_next_id_never_collides(self, numbers: list[int], noise: list[str]):
        existing = [f"T-{n:04d}" for n in numbers] + noise

        new_id = next_prefixed_id("T", existing)

        assert new_id not in existing
        assert int(new_id.split("-")[1]) == max(numbers, default=0) + 1
