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

"""Prompt text for team sessions.

RFC-0002: 团队提示词构建

Templates live in ``prompts/*.j2`` and are rendered with Jinja2.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .types import AgentState, Task, TeamMessage

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent / "prompts"


class TeamPromptBuilder:
    """Renders system-prompt team context, initial messages and synthetic turns."""

    def __init__(self, prompts_dir: Path | None = None) -> None:
        self.prompts_dir = prompts_dir or _PROMPTS_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(self.prompts_dir),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _render(self, template_name: str, **context: object) -> str:
        template = self.jinja_env.get_template(f"{template_name}.j2")
        return template.render(**context).strip()

    def build_system_prompt(
        self,
        *,
        base_prompt: str,
        agent: AgentState,
        manager_id: str,
        members: Sequence[AgentState],
        external_ids: Iterable[str] = (),
    ) -> str:
        """Member system prompt followed by the team roster and coordination rules."""
        return self._render(
            "team_context",
            base_prompt=base_prompt.strip(),
            agent_id=agent.id,
            role=agent.role,
            is_manager=agent.id == manager_id,
            manager_id=manager_id,
            members=members,
            external_ids=sorted(external_ids),
        )

    def build_initial_message(
        self,
        *,
        goal: str | None = None,
        task: Task | None = None,
        pending: Sequence[TeamMessage] = (),
    ) -> str | None:
        """Opening user turn for a session, or ``None`` when there is nothing to say."""
        if not goal and task is None and not pending:
            return None
        return self._render("initial_message", goal=goal, task=task, pending=pending)

    def task_assigned(self, task: Task) -> str:
        return self._render("task_assigned", task=task)

    def reply(self, sender: str, content: str) -> str:
        return self._render("reply", sender=sender, content=content)

    def task_completed(self, task: Task, summary: str) -> str:
        return self._render("task_completed", task=task, summary=summary)
