#!/usr/bin/env python3
"""Run a two-agent team (project manager plus technical writer) and print its events."""

import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from agentic_team.archs.config import TeamConfig
from agentic_team.archs.team.callbacks import TeamCallbacks
from agentic_team.archs.team.types import Task, TeamMessage

logging.basicConfig(level=logging.INFO)


def _clip(text: str | None, limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


def on_task_created(task: Task) -> None:
    print(f"\n📋 Task created: {task.id} - {task.title}")
    print(f"   Assigned to: {task.assignee}")


def on_task_completed(task: Task) -> None:
    print(f"\n✅ Task completed: {task.id}")
    print(f"   Summary: {_clip(task.completion_summary, 100)}")


def on_message_sent(message: TeamMessage) -> None:
    print(f"\n💬 Message: {message.from_agent_id} → {message.to_agent_id} ({message.type})")
    print(f"   {_clip(message.content, 80)}")


def on_goal_complete(summary: str) -> None:
    print("\n🎉 Goal complete!")
    print(f"   {summary}")


def main():
    load_dotenv()
    config = TeamConfig.from_yaml(Path(__file__).parent / "team.yaml")
    team = config.build_team(
        callbacks=TeamCallbacks(
            on_task_created=on_task_created,
            on_task_completed=on_task_completed,
            on_message_sent=on_message_sent,
            on_goal_complete=on_goal_complete,
        ),
    )

    print(f"Starting team {team.team_id}")
    print("=" * 60)
    result = asyncio.run(team.run())
    print("=" * 60)
    print(f"Stop reason: {result.stop_reason} after {result.iterations} iterations")
    for blocked in result.blocked_agents:
        print(f"  {blocked.agent_id} is waiting on {blocked.message_id}")


if __name__ == "__main__":
    main()
