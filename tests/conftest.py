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

"""
Pytest configuration and fixtures for agentic_team tests.

This module provides shared fixtures, configuration, and utilities
for all tests in the agentic_team test suite.
"""

import os
from pathlib import Path
from textwrap import dedent

import pytest

from agentic_team.archs.team.types import TeamMember
from tests.utils.team_runtime import ScriptedRuntime


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment for all tests."""
    os.environ.setdefault("TESTING", "true")
    os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")  # Use smaller model for tests
    os.environ.setdefault("LLM_API_KEY", "test-key-not-used")
    yield


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def runtime() -> ScriptedRuntime:
    """Empty scripted runtime; tests add sessions per agent."""
    return ScriptedRuntime()


@pytest.fixture
def manager_member() -> TeamMember:
    return TeamMember(id="lead", role="manager", system_prompt="You lead the team.")


@pytest.fixture
def team_yaml(tmp_path: Path) -> Path:
    """Minimal valid team configuration on disk."""
    (tmp_path / "researcher.md").write_text("You research things.", encoding="utf-8")
    path = tmp_path / "team.yaml"
    path.write_text(
        dedent(
            """\
            name: report-team
            goal: Write a short report on ${variables.topic}
            variables:
              topic: electric scooters
            llm_config:
              model: gpt-4o-mini
              temperature: 0.2
            manager:
              id: lead
              system_prompt: You coordinate the team.
            members:
              - id: researcher
                role: researcher
                system_prompt: ./researcher.md
                system_prompt_type: file
              - id: writer
                role: writer
                system_prompt: You write.
            max_iterations: 20
            """
        ),
        encoding="utf-8",
    )
    return path
