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

"""Unit tests for the team coordination tools."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from agentic_team.archs.team.state import AgentTeamContext
from agentic_team.archs.team.tools import (
    build_coordination_tools,
    coordination_tool_names,
    get_manager_tools,
    get_worker_tools,
)
from agentic_team.archs.team.types import (
    AllTasksCompleteResult,
    AssignTaskResult,
    NoTaskResult,
    TaskBriefResult,
    TeamStatusResult,
    TellResult,
    ToolError,
)
from agentic_team.archs.tool.result import Ok, Suspend
from agentic_team.archs.tool.tool import Tool
from tests.utils.team_runtime import ScriptedRuntime, make_team


def tools_for(team, agent_id: str) -> dict[str, Tool]:
    return {tool.name: tool for tool in team.runner.build_tools(agent_id)}


class TestToolLoading:
    def test_manager_gets_all_tools(self):
        names = [t.name for t in get_manager_tools()]
        assert names == ["ask", "tell", "get_task_brief", "check_team_status", "assign_task", "wait_for_task_completions"]

    def test_worker_tools_exclude_manager_only(self):
        names = [t.name for t in get_worker_tools()]
        assert names == ["ask", "tell", "get_task_brief", "check_team_status"]
        assert coordination_tool_names(is_manager=False) == names

    def test_schemas_do_not_expose_context(self):
        for tool in get_manager_tools():
            assert "context" not in tool.input_schema.get("properties", {})

    def test_bound_tools_carry_context(self):
        team = make_team(ScriptedRuntime())
        context = AgentTeamContext(
            agent_id="researcher",
            team=team,
            task_board=team.task_board,
            message_bus=team.message_bus,
            is_manager=False,
        )
        tools = build_coordination_tools(context)
        assert [t.name for t in tools] == ["ask", "tell", "get_task_brief", "check_team_status"]

    def test_definitions_loaded_once_and_bound_per_agent(self):
        team = make_team(ScriptedRuntime())
        get_manager_tools()

        with patch("agentic_team.archs.team.tools.Tool.from_yaml") as mock_from_yaml:
            first = tools_for(team, "researcher")["tell"]
            second = tools_for(team, "writer")["tell"]

        mock_from_yaml.assert_not_called()
        assert first is not second
        assert get_worker_tools()[1] is get_worker_tools()[1]
        assert first.implementation.keywords["context"].agent_id == "researcher"
        assert second.implementation.keywords["context"].agent_id == "writer"


class TestAssignTaskTool:
    def test_assign_to_idle_then_busy(self):
        async def run():
            team = make_team(ScriptedRuntime())
            tools = tools_for(team, "lead")

            first = await tools["assign_task"].execute(assignee="researcher", title="Research", brief="Find data")
            second = await tools["assign_task"].execute(assignee="researcher", title="More", brief="Find more")

            assert isinstance(first, Ok)
            assert first.value == AssignTaskResult(task_id="T-0001", status="active", message="Task T-0001 assigned and activated")
            assert second.value == AssignTaskResult(task_id="T-0002", status="queued", message="Task T-0002 queued (agent is busy)")

        asyncio.run(run())

    def test_unknown_assignee_returns_not_found(self):
        async def run():
            team = make_team(ScriptedRuntime())
            result = await tools_for(team, "lead")["assign_task"].execute(assignee="ghost", title="x", brief="y")

            assert isinstance(result.value, ToolError)
            assert result.value.code == "not_found"
            assert "ghost" in result.value.error
            assert team.state.tasks == []

        asyncio.run(run())

    def test_missing_arguments_return_invalid_arguments(self):
        async def run():
            team = make_team(ScriptedRuntime())
            result = await tools_for(team, "lead")["assign_task"].execute(assignee="researcher")

            assert isinstance(result.value, ToolError)
            assert result.value.code == "invalid_arguments"

        asyncio.run(run())

    def test_worker_cannot_assign_through_unbound_context(self):
        async def run():
            team = make_team(ScriptedRuntime())
            context = AgentTeamContext(
                agent_id="researcher",
                team=team,
                task_board=team.task_board,
                message_bus=team.message_bus,
                is_manager=False,
            )
            tool = next(t for t in get_manager_tools() if t.name == "assign_task").bind(context=context)

            result = await tool.execute(assignee="writer", title="x", brief="y")

            assert result.value.code == "permission_denied"

        asyncio.run(run())


class TestMessagingTools:
    def test_ask_returns_suspend(self):
        async def run():
            team = make_team(ScriptedRuntime())
            result = await tools_for(team, "researcher")["ask"].execute(to="lead", question="Which market?")

            assert isinstance(result, Suspend)
            assert result.data == {"message_id": "M-0001", "to": "lead"}

        asyncio.run(run())

    def test_tell_reply_and_errors(self):
        async def run():
            team = make_team(ScriptedRuntime())
            await tools_for(team, "researcher")["ask"].execute(to="lead", question="Which market?")
            await team.message_bus.block_agent("researcher", "M-0001")
            tell = tools_for(team, "lead")["tell"]

            missing = await tell.execute(to="researcher", message="x", in_reply_to="M-0404")
            reply = await tell.execute(to="researcher", message="Europe", in_reply_to="M-0001")
            not_ask = await tell.execute(to="researcher", message="x", in_reply_to=reply.value.message_id)

            assert missing.value.code == "not_found"
            assert reply.value == TellResult(message_id="M-0002", in_reply_to="M-0001")
            assert not_ask.value.code == "invalid_state"
            assert team.state.agent_states["researcher"].status == "idle"

        asyncio.run(run())

    def test_context_argument_cannot_be_overridden(self):
        async def run():
            team = make_team(ScriptedRuntime())
            result = await tools_for(team, "researcher")["tell"].execute(to="lead", message="hi", context="spoofed")

            assert isinstance(result.value, TellResult)
            assert team.state.messages[0].from_agent_id == "researcher"

        asyncio.run(run())


class TestStatusTools:
    def test_get_task_brief(self):
        async def run():
            team = make_team(ScriptedRuntime())
            brief_tool = tools_for(team, "researcher")["get_task_brief"]

            assert (await brief_tool.execute()).value == NoTaskResult()

            await team.task_board.assign_task(creator_id="lead", assignee_id="researcher", title="Research", brief="Find data")
            result = await brief_tool.execute()

            assert result.value == TaskBriefResult(task_id="T-0001", title="Research", brief="Find data", status="active")

        asyncio.run(run())

    def test_check_team_status(self):
        async def run():
            team = make_team(ScriptedRuntime())
            board = team.task_board
            await board.assign_task(creator_id="lead", assignee_id="researcher", title="A", brief="a")
            await board.assign_task(creator_id="lead", assignee_id="researcher", title="B", brief="b")
            await board.assign_task(creator_id="lead", assignee_id="writer", title="C", brief="c")
            await board.complete_task("writer", "done")

            result = (await tools_for(team, "lead")["check_team_status"].execute()).value

            assert isinstance(result, TeamStatusResult)
            assert result.team_size == 3
            assert [a.agent_id for a in result.agents] == ["lead", "researcher", "writer"]
            researcher = result.agents[1]
            assert (researcher.status, researcher.current_task) == ("working", "T-0001")
            assert (researcher.active_tasks, researcher.queued_tasks, researcher.completed_tasks) == (1, 1, 0)
            assert (result.total_tasks, result.active_tasks, result.queued_tasks, result.completed_tasks) == (3, 1, 1, 1)

        asyncio.run(run())

    @pytest.mark.anyio
    async def test_wait_for_task_completions(self):
        team = make_team(ScriptedRuntime())
        wait = tools_for(team, "lead")["wait_for_task_completions"]

        assert (await wait.execute()).value == AllTasksCompleteResult()

        await team.task_board.assign_task(creator_id="lead", assignee_id="researcher", title="A", brief="a")
        await team.task_board.assign_task(creator_id="lead", assignee_id="researcher", title="B", brief="b")
        result = await wait.execute()

        assert isinstance(result, Suspend)
        assert result.reason == "waiting_for_task_completions"
        assert result.data == {"incomplete_tasks": ["T-0001", "T-0002"], "count": 2}
