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

"""Run CLI command - run a team from YAML with snapshot persistence."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from dotenv import load_dotenv

from agentic_team.archs.config import ConfigError, TeamConfig
from agentic_team.archs.runtime.base import AgentSessionRuntime
from agentic_team.archs.session import TeamSnapshotStore
from agentic_team.archs.team.agent_team import AgentTeam
from agentic_team.archs.team.types import TeamRunResult

logger = logging.getLogger(__name__)

EXIT_COMPLETE = 0
EXIT_CONFIG_ERROR = 1
EXIT_UNFINISHED = 2


def default_database_url() -> str:
    db_path = Path.home() / ".agentic_team" / "agentic_team.db"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{db_path}"


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Configure arguments for Run command.

    Args:
        parser: ArgumentParser instance
    """
    parser.add_argument(
        "config",
        type=str,
        help="Path to team YAML configuration file",
    )
    parser.add_argument(
        "--db",
        type=str,
        help="Async database URL for team snapshots (default: ~/.agentic_team/agentic_team.db)",
    )
    parser.add_argument(
        "--team-id",
        type=str,
        help="Snapshot key (default: config name, else the config file stem)",
    )
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Discard any stored snapshot and start over",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        help="Override max_iterations from the config",
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Do not prompt for replies to external questions; exit instead",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output (debug level logging)",
    )


def _print_result(team: AgentTeam, result: TeamRunResult) -> None:
    print(f"Run finished after {result.iterations} iteration(s): {result.stop_reason}")
    if result.complete:
        print(f"\nGoal complete:\n{team.state.goal_summary or ''}")
        return
    for blocked in result.blocked_agents:
        print(f"  {blocked.agent_id} is waiting on {blocked.message_id}")


async def _collect_replies(
    team: AgentTeam,
    result: TeamRunResult,
    input_func: Callable[[str], str],
) -> bool:
    """Ask the operator to answer each external question; False if any was left unanswered."""
    for blocked in result.blocked_agents:
        ask = team.store.get_message(blocked.message_id)
        if ask is None:
            continue
        print(f"\n{ask.from_agent_id} asks {ask.to_agent_id} ({ask.id}):\n{ask.content}")
        reply = await asyncio.to_thread(input_func, "Reply> ")
        if not reply.strip():
            return False
        await team.deliver_message_reply(ask.id, reply)
    return True


async def run_team(
    config: TeamConfig,
    args: argparse.Namespace,
    *,
    runtime: AgentSessionRuntime | None = None,
    input_func: Callable[[str], str] = input,
) -> int:
    """Run (or resume) the team until it completes or needs a reply nobody gives.

    Returns:
        Exit code (0 = goal complete, 2 = blocked or unfinished)
    """
    store = TeamSnapshotStore.from_url(args.db or default_database_url())
    try:
        await store.setup()
        team_id = args.team_id or config.name or Path(args.config).stem
        if args.fresh and await store.delete(team_id):
            print(f"Discarded stored snapshot for {team_id}")

        resume_from = await store.load(team_id)
        if resume_from is not None:
            print(f"Resuming team {team_id} ({len(resume_from.tasks)} tasks, {len(resume_from.messages)} messages)")

        try:
            team = config.build_team(runtime, team_id=team_id, resume_from=resume_from)
        except ConfigError as e:
            if resume_from is None:
                raise
            raise ConfigError(f"{e}. Run again with --fresh to discard the stored snapshot.") from e
        while True:
            try:
                result = await team.run()
            finally:
                await store.save(team_id, team.state)
            _print_result(team, result)

            if result.complete:
                return EXIT_COMPLETE
            if result.stop_reason != "external_block" or args.non_interactive:
                return EXIT_UNFINISHED
            if not await _collect_replies(team, result, input_func):
                print("No reply given; state saved, run again to continue.")
                return EXIT_UNFINISHED
            await store.save(team_id, team.state)
    finally:
        await store.close()


def main(args: argparse.Namespace) -> int:
    """Execute Run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 = goal complete, 1 = configuration error, 2 = blocked or unfinished)
    """
    load_dotenv()

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        config = TeamConfig.from_yaml(config_path)
        if args.max_iterations is not None:
            config.max_iterations = args.max_iterations
        return asyncio.run(run_team(config, args))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
