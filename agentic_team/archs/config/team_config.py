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

"""Team configuration loaded from YAML.

RFC-0005: 团队 YAML 配置

Example::

    goal: Write a short market report on ${variables.topic}
    variables:
      topic: electric scooters
    llm_config:
      model: ${env.OPENAI_MODEL}
    manager:
      id: lead
      system_prompt: You coordinate the team.
    members:
      - id: researcher
        role: researcher
        system_prompt: ./prompts/researcher.md
        system_prompt_type: file
        tools:
          - name: web_search
            yaml_path: ./tools/web_search.yaml
            binding: my_tools.search:web_search
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from agentic_team.archs.runtime.model_config import ModelConfig
from agentic_team.archs.team.types import TeamMember, TeamStateInvariantError
from agentic_team.archs.tool.tool import Tool
from agentic_team.utils.common import ConfigError, load_yaml_with_vars

if TYPE_CHECKING:
    from agentic_team.archs.runtime.base import AgentSessionRuntime
    from agentic_team.archs.team.agent_team import AgentTeam
    from agentic_team.archs.team.types import TeamState

logger = logging.getLogger(__name__)


class ToolConfigEntry(BaseModel):
    """Schema for domain tool entries in member configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    yaml_path: str
    binding: str | None = None


class MemberConfig(BaseModel):
    """One team member."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    role: str = "worker"
    system_prompt: str | None = None
    system_prompt_type: Literal["string", "file"] = "string"
    tools: list[ToolConfigEntry] = Field(default_factory=lambda: list[ToolConfigEntry]())


class ManagerConfig(MemberConfig):
    role: str = "manager"


class TeamConfig(BaseModel):
    """Top-level schema for team YAML files."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    goal: str
    manager: ManagerConfig
    members: list[MemberConfig] = Field(default_factory=lambda: list[MemberConfig]())
    llm_config: ModelConfig = Field(default_factory=ModelConfig)
    max_iterations: int = Field(default=100, ge=1)
    max_turns_per_session: int | None = Field(default=None, ge=1)
    token_limit: int | None = Field(default=None, ge=1)
    external_ids: list[str] = Field(default_factory=lambda: ["BigBoss"])

    _base_path: Path = PrivateAttr(default_factory=Path.cwd)

    @property
    def base_path(self) -> Path:
        return self._base_path

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> TeamConfig:
        """Load and validate team configuration from a YAML file."""
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        data = load_yaml_with_vars(path)
        if not isinstance(data, dict) or not data:
            raise ConfigError(f"Empty or invalid configuration file: {config_path}")

        config = cls.from_dict(data)
        config._base_path = path.resolve().parent
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TeamConfig:
        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid team configuration: {_format_validation_error(exc)}") from exc

        ids = [config.manager.id, *(m.id for m in config.members)]
        duplicates = sorted({agent_id for agent_id in ids if ids.count(agent_id) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate agent ids in team configuration: {duplicates}")
        reserved = sorted(set(ids) & set(config.external_ids))
        if reserved:
            raise ConfigError(f"Agent ids collide with external ids: {reserved}")
        return config

    # --- building ---

    def _resolve(self, value: str) -> Path:
        candidate = Path(value)
        return candidate if candidate.is_absolute() else self._base_path / candidate

    def _load_system_prompt(self, member: MemberConfig) -> str:
        if not member.system_prompt:
            return ""
        if member.system_prompt_type == "string":
            return member.system_prompt
        prompt_path = self._resolve(member.system_prompt)
        if not prompt_path.exists():
            raise ConfigError(f"System prompt file not found for {member.id}: {prompt_path}")
        return prompt_path.read_text(encoding="utf-8")

    def _load_tools(self, member: MemberConfig) -> list[Tool]:
        tools: list[Tool] = []
        for entry in member.tools:
            try:
                tool = Tool.from_yaml(str(self._resolve(entry.yaml_path)), binding=entry.binding)
            except Exception as e:
                raise ConfigError(f"Error loading tool '{entry.name}' for {member.id}: {e}") from e
            if tool.name != entry.name:
                logger.warning(f"Tool entry '{entry.name}' of {member.id} loads a tool named '{tool.name}'")
            tools.append(tool)
        return tools

    def build_member(self, member: MemberConfig) -> TeamMember:
        return TeamMember(
            id=member.id,
            role=member.role,
            system_prompt=self._load_system_prompt(member),
            tools=self._load_tools(member),
        )

    def build_team(
        self,
        runtime: AgentSessionRuntime | None = None,
        *,
        team_id: str | None = None,
        resume_from: TeamState | None = None,
        **kwargs: Any,
    ) -> AgentTeam:
        """Build an ``AgentTeam`` from this configuration.

        Without ``runtime`` the default ``OpenAISessionRuntime`` is used.
        Extra keyword arguments go to ``AgentTeam`` (e.g. ``callbacks``).
        """
        from agentic_team.archs.runtime.openai_runtime import OpenAISessionRuntime
        from agentic_team.archs.team.agent_team import AgentTeam

        manager = self.build_member(self.manager)
        members = [self.build_member(m) for m in self.members]
        try:
            return AgentTeam(
                manager=manager,
                members=members,
                goal=self.goal,
                runtime=runtime or OpenAISessionRuntime(model_config=self.llm_config),
                model_config=self.llm_config,
                team_id=team_id or self.name,
                resume_from=resume_from,
                max_iterations=self.max_iterations,
                max_turns_per_session=self.max_turns_per_session,
                token_limit=self.token_limit,
                external_ids=self.external_ids,
                **kwargs,
            )
        except (ValueError, TeamStateInvariantError) as e:
            raise ConfigError(f"Cannot build team '{team_id or self.name}': {e}") from e


def _format_validation_error(exc: ValidationError) -> str:
    """Return a compact, readable validation error summary."""

    formatted_errors: list[str] = []
    for error in exc.errors():
        location = "->".join(str(segment) for segment in error.get("loc", [])) or "root"
        formatted_errors.append(f"{location}: {error.get('msg')}")
    return "; ".join(formatted_errors)
