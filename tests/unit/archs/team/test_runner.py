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

"""Unit tests for AgentRunner."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from agentic_team.archs.runtime.base import SessionRequest
from agentic_team.archs.team.agent_team import AgentTeam
from agentic_team.archs.team.callbacks import TeamCallbacks
from agentic_team.archs.team.state import TeamStateStore
from agentic_team.archs.team.types import TeamMember, UnknownAgentError
from agentic_team.archs.tool.tool import Tool
from tests.utils.team_runtime import ScriptedRuntime, call, complete, make_team


def make_tool(name: str) -> Tool:
    return Tool(
        name=name,
        description=f"{name} tool",
        input_schema={"type": "object", "properties": {"query": {"type": "string"}}},
        implementation=lambda query="": f"{name}: {query}",
    )


class TestBuildSession:
    def test_system_prompt_has_member_prompt_and_roster(self):
        team = make_team(ScriptedRuntime())

        prompt = team.runner.build_system_prompt("researcher")

        assert prompt.startswith("You are the researcher.")
        assert "You are researcher (researcher)." in prompt
        assert "Your manager is lead." in prompt
        assert "- writer (writer)" in prompt
        assert "External contacts you may ask: BigBoss" in prompt
        assert "assign_task" not in prompt

    def test_manager_prompt_mentions_delegation(self):
        team = make_team(ScriptedRuntime())
        prompt = team.runner.build_system_prompt("lead")
        assert "the manager of this team" in prompt
        assert "wait_for_task_completions" in prompt

    def test_domain_tools_merged_coordination_wins(self, caplog):
        team = AgentTeam(
            manager=TeamMember(id="lead", role="manager"),
            members=[TeamMember(id="researcher", role="researcher", tools=[make_tool("web_search"), make_tool("tell"), make_tool("task_complete")])],
            goal="g",
            runtime=ScriptedRuntime(),
        )

        with caplog.at_level(logging.WARNING):
            tools = team.runner.build_tools("researcher")

        names = [t.name for t in tools]
        assert names == ["ask", "tell", "get_task_brief", "check_team_status", "web_search"]
        assert tools[1].description != "tell tool"
        assert "collides with a coordination tool" in caplog.text


class TestInitialMessage:
    def test_fresh_manager_sees_goal(self):
        async def run():
            team = make_team(ScriptedRuntime(), goal="Ship the report")

            msg = await team.runner.build_initial_message("lead")

            assert msg is not None
            assert msg.get_text_content().startswith("# Your Goal\n\nShip the report")
            assert msg.metadata == {"source": "session_start"}

        asyncio.run(run())

    def test_idle_worker_with_nothing_pending_gets_none(self):
        async def run():
            team = make_team(ScriptedRuntime())
            assert await team.runner.build_initial_message("researcher") is None

        asyncio.run(run())

    def test_task_brief_shown_once_and_pending_digest(self):
        async def run():
            team = make_team(ScriptedRuntime())
            await team.task_board.assign_task(creator_id="lead", assignee_id="researcher", title="Research", brief="Find data")
            await team.message_bus.notify(from_agent_id="writer", to_agent_id="researcher", content="Use metric units")
            await team.message_bus.ask(from_agent_id="lead", to_agent_id="researcher", question="ETA?")

            msg = await team.runner.build_initial_message("researcher")

            assert msg is not None
            text = msg.get_text_content()
            assert "# Your Current Task: Research" in text
            assert "Task ID: T-0001" in text
            assert "From writer (message M-0001):\nUse metric units" in text
            assert "From lead (message M-0002):\n**Question:** ETA?" in text
            assert msg.metadata == {"source": "session_start", "task_id": "T-0001"}
            # tells are consumed, asks wait for a reply
            assert [m.status for m in team.state.messages] == ["delivered", "pending"]

            team.state.agent_states["researcher"].conversation_history.append(msg)
            again = await team.runner.build_initial_message("researcher")

            assert again is not None
            assert "# Your Current Task" not in again.get_text_content()
            assert "**Question:** ETA?" in again.get_text_content()

        asyncio.run(run())


class TestRunAgent:
    def test_unknown_agent_raises(self):
        async def run():
            team = make_team(ScriptedRuntime())
            with pytest.raises(UnknownAgentError):
                await team.run_agent("ghost")

        asyncio.run(run())

    def test_agent_state_without_member_raises(self):
        async def run():
            store = TeamStateStore()
            store.ensure_agent("lead", "manager")
            store.ensure_agent("retired", "worker")
            team = make_team(ScriptedRuntime(), workers=(), resume_from=store.state)

            with pytest.raises(UnknownAgentError):
                await team.run_agent("retired")

        asyncio.run(run())

    def test_task_complete_completes_current_task(self):
        async def run():
            runtime = ScriptedRuntime()
            runtime.add("researcher", [call("get_task_brief"), complete("found it")])
            team = make_team(runtime)
            await team.task_board.assign_task(creator_id="lead", assignee_id="researcher", title="Research", brief="Find data")

            result = await team.run_agent("researcher")

            assert result.completed is True
            assert result.completion_reason == "task_complete"
            assert result.final_output == "found it"
            assert team.state.tasks[0].status == "completed"
            history = team.state.agent_states["researcher"].conversation_history
            assert history[0].metadata["task_id"] == "T-0001"
            assert len(history) == 5

        asyncio.run(run())

    def test_suspension_blocks_agent_once(self):
        async def run():
            runtime = ScriptedRuntime()
            runtime.add("researcher", [call("ask", to="lead", question="Scope?"), complete("never reached")])
            blocked: list[str] = []
            team = make_team(runtime, callbacks=TeamCallbacks(on_agent_blocked=lambda agent, mid: blocked.append(mid)))

            result = await team.run_agent("researcher")

            assert result.suspended is True
            assert result.completion_reason == "suspended"
            assert result.suspend_info is not None
            assert result.suspend_info.data["message_id"] == "M-0001"
            researcher = team.state.agent_states["researcher"]
            assert researcher.status == "blocked"
            assert researcher.blocked_on == "M-0001"
            assert blocked == ["M-0001"]

        asyncio.run(run())

    def test_runtime_error_becomes_error_result(self):
        async def run():
            runtime = MagicMock()
            runtime.start_session.side_effect = RuntimeError("boom")
            team = make_team(runtime)

            result = await team.run_agent("lead")

            assert result.completion_reason == "error"
            assert isinstance(result.error, RuntimeError)
            assert team.runner.active_sessions == set()

        asyncio.run(run())

    def test_other_reasons_pass_through(self):
        async def run():
            runtime = ScriptedRuntime()
            runtime.add("lead", [call("check_team_status")])
            team = make_team(runtime)

            result = await team.run_agent("lead")

            assert result.completion_reason == "end_turn"
            assert not result.completed and not result.suspended
            request: SessionRequest = runtime.requests[0]
            assert request.initial_message is not None
            assert request.prior_conversation == []

        asyncio.run(run())
