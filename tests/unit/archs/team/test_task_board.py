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

"""Unit tests for TaskBoard."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from agentic_team.archs.team.callbacks import TeamCallbacks, TeamEventEmitter
from agentic_team.archs.team.message_bus import TeamMessageBus
from agentic_team.archs.team.state import TeamStateStore
from agentic_team.archs.team.task_board import TaskBoard, _transition
from agentic_team.archs.team.types import InvalidTransitionError, UnknownAgentError

# --- Helpers ---


class EventRecorder:
    """Collects (event, payload) pairs from every TeamCallbacks hook."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []
        self.state_changes = 0

    def callbacks(self) -> TeamCallbacks:
        async def on_state_change(state: Any) -> None:
            self.state_changes += 1

        return TeamCallbacks(
            on_task_created=lambda task: self.events.append(("task_created", task.id)),
            on_task_activated=lambda task: self.events.append(("task_activated", task.id)),
            on_task_completed=lambda task: self.events.append(("task_completed", task.id)),
            on_message_sent=lambda msg: self.events.append(("message_sent", msg.id)),
            on_message_delivered=lambda msg: self.events.append(("message_delivered", msg.id)),
            on_agent_blocked=lambda agent, mid: self.events.append(("agent_blocked", agent.id)),
            on_agent_unblocked=lambda agent, mid: self.events.append(("agent_unblocked", agent.id)),
            on_goal_complete=lambda summary: self.events.append(("goal_complete", summary)),
            on_state_change=on_state_change,
        )

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


def make_board(
    recorder: EventRecorder | None = None,
    workers: tuple[str, ...] = ("worker",),
    **kwargs: Any,
) -> tuple[TeamStateStore, TeamMessageBus, TaskBoard]:
    store = TeamStateStore()
    store.ensure_agent("lead", "manager")
    for worker in workers:
        store.ensure_agent(worker, worker)
    events = TeamEventEmitter(recorder.callbacks() if recorder else None, lambda: store.state)
    bus = TeamMessageBus(store=store, events=events)
    board = TaskBoard(store=store, events=events, message_bus=bus, manager_id="lead", **kwargs)
    return store, bus, board


async def assign(board: TaskBoard, assignee: str = "worker", title: str = "Research") -> Any:
    return await board.assign_task(creator_id="lead", assignee_id=assignee, title=title, brief=f"{title} brief")


class TestAssignTask:
    def test_idle_assignee_gets_active_task(self):
        async def run():
            recorder = EventRecorder()
            store, _, board = make_board(recorder)

            task = await assign(board)

            assert task.id == "T-0001"
            assert task.status == "active"
            assert task.created_by == "lead"
            worker = store.get_agent("worker")
            assert worker.status == "working"
            assert worker.current_task == "T-0001"
            assert recorder.names() == ["task_created", "task_activated"]
            assert recorder.state_changes == 2

        asyncio.run(run())

    def test_busy_assignee_gets_queued_task_without_activation(self):
        async def run():
            recorder = EventRecorder()
            store, _, board = make_board(recorder)
            await assign(board, title="First")
            recorder.events.clear()

            task = await assign(board, title="Second")

            assert task.id == "T-0002"
            assert task.status == "queued"
            assert store.get_agent("worker").current_task == "T-0001"
            assert recorder.names() == ["task_created"]

        asyncio.run(run())

    def test_unknown_assignee_raises_and_creates_nothing(self):
        async def run():
            store, _, board = make_board()

            with pytest.raises(UnknownAgentError):
                await assign(board, assignee="ghost")

            assert store.state.tasks == []

        asyncio.run(run())

    def test_blocked_assignee_keeps_blocked_status(self):
        async def run():
            store, bus, board = make_board()
            suspend = await bus.ask(from_agent_id="worker", to_agent_id="lead", question="Scope?")
            await bus.block_agent("worker", suspend.data["message_id"])

            task = await assign(board)

            worker = store.get_agent("worker")
            assert task.status == "active"
            assert worker.status == "blocked"
            assert worker.current_task == task.id
            store.check_invariants()

        asyncio.run(run())

    def test_custom_id_generator(self):
        async def run():
            _, _, board = make_board(id_generator=lambda tasks: f"job-{len(tasks) + 1}")

            first = await assign(board)
            second = await assign(board)

            assert [first.id, second.id] == ["job-1", "job-2"]

        asyncio.run(run())


class TestCompleteTask:
    def test_worker_completion_notifies_creator(self):
        async def run():
            recorder = EventRecorder()
            store, bus, board = make_board(recorder)
            await assign(board)

            task = await board.complete_task("worker", "done")

            assert task is not None
            assert task.status == "completed"
            assert task.completed_at is not None
            assert task.completion_summary == "done"
            worker = store.get_agent("worker")
            assert worker.status == "idle"
            assert worker.current_task is None

            inbox = bus.pending_inbound("lead")
            assert len(inbox) == 1
            assert inbox[0].from_agent_id == "worker"
            assert inbox[0].type == "tell"
            assert "done" in inbox[0].content
            assert 'Task T-0001 "Research" completed' in inbox[0].content
            assert "task_completed" in recorder.names()
            store.check_invariants()

        asyncio.run(run())

    def test_completion_promotes_oldest_queued_task(self):
        async def run():
            store, _, board = make_board()
            await assign(board, title="First")
            await assign(board, title="Second")
            await assign(board, title="Third")

            await board.complete_task("worker", "first done")

            assert [t.status for t in store.state.tasks] == ["completed", "active", "queued"]
            worker = store.get_agent("worker")
            assert worker.status == "working"
            assert worker.current_task == "T-0002"
            last = worker.conversation_history[-1]
            assert last.metadata == {"source": "task_assignment", "task_id": "T-0002"}
            assert "# New Task Assigned: Second" in last.get_text_content()
            store.check_invariants()

        asyncio.run(run())

    def test_manager_completion_completes_goal(self):
        async def run():
            recorder = EventRecorder()
            store, bus, board = make_board(recorder)

            result = await board.complete_task("lead", "all finished")

            assert result is None
            assert store.state.goal_complete is True
            assert store.state.goal_summary == "all finished"
            assert ("goal_complete", "all finished") in recorder.events
            assert store.state.messages == []

        asyncio.run(run())

    def test_worker_without_task_is_noop(self):
        async def run():
            recorder = EventRecorder()
            store, _, board = make_board(recorder)

            assert await board.complete_task("worker", "nothing to do") is None
            assert store.state.messages == []
            assert recorder.events == []

        asyncio.run(run())

    def test_unknown_agent_raises(self):
        async def run():
            _, _, board = make_board()
            with pytest.raises(UnknownAgentError):
                await board.complete_task("ghost", "done")

        asyncio.run(run())


class TestTransitions:
    def test_only_forward_transitions_allowed(self):
        async def run():
            _, _, board = make_board()
            await assign(board, title="First")
            queued = await assign(board, title="Second")
            active = board.get_task("T-0001")
            assert active is not None

            with pytest.raises(InvalidTransitionError):
                _transition(queued, "completed")
            with pytest.raises(InvalidTransitionError):
                _transition(active, "queued")

            _transition(active, "completed")
            with pytest.raises(InvalidTransitionError):
                _transition(active, "active")

        asyncio.run(run())


class TestQueries:
    def test_status_counts_and_incomplete_tasks(self):
        async def run():
            _, _, board = make_board(workers=("researcher", "writer"))
            await assign(board, assignee="researcher", title="A")
            await assign(board, assignee="researcher", title="B")
            await assign(board, assignee="writer", title="C")
            await board.complete_task("writer", "C done")

            assert board.status_counts() == {"active": 1, "queued": 1, "completed": 1}
            assert board.status_counts("researcher") == {"active": 1, "queued": 1, "completed": 0}
            assert [t.id for t in board.incomplete_tasks()] == ["T-0001", "T-0002"]
            assert [t.title for t in board.tasks_for("writer")] == ["C"]
            assert board.current_task_of("writer") is None

        asyncio.run(run())
