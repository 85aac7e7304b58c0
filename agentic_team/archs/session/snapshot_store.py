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

"""Persist and restore team state with SQLModel.

RFC-0006: 团队状态快照存储

Any async SQLAlchemy URL works; ``sqlite+aiosqlite`` is the default used by
the CLI. Typically wired to ``TeamCallbacks.on_state_change`` or called after
each run.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlmodel import SQLModel, select

from agentic_team.archs.team.state import dump_team_state, load_team_state
from agentic_team.archs.team.types import TeamState

from .models import TeamSnapshotModel

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///agentic_team.db"


class TeamSnapshotStore:
    """Async store of ``TeamState`` snapshots keyed by team id."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, url: str = DEFAULT_DATABASE_URL, *, echo: bool = False, **kwargs: Any) -> TeamSnapshotStore:
        """Create store from database URL."""
        if not any(driver in url for driver in ["+asyncpg", "+aiosqlite", "+aiomysql"]):
            raise ValueError(f"URL must contain async driver (+asyncpg, +aiosqlite, or +aiomysql): {url}")

        if "sqlite" in url:
            connect_args = kwargs.pop("connect_args", {})
            connect_args.setdefault("check_same_thread", False)
            connect_args.setdefault("timeout", 30)
            engine = create_async_engine(url, echo=echo, connect_args=connect_args, **kwargs)
        else:
            engine = create_async_engine(url, echo=echo, **kwargs)
        return cls(engine)

    async def setup(self) -> None:
        """Create the snapshot table if needed."""
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all, tables=[TeamSnapshotModel.__table__])  # type: ignore[attr-defined]

    async def save(self, team_id: str, state: TeamState) -> TeamSnapshotModel:
        """Insert or replace the snapshot for ``team_id``."""
        data = dump_team_state(state)
        async with AsyncSession(self._engine, expire_on_commit=False) as session:
            snapshot = await session.get(TeamSnapshotModel, team_id)
            if snapshot is None:
                snapshot = TeamSnapshotModel(team_id=team_id, state=data, goal_complete=state.goal_complete)
                session.add(snapshot)
            else:
                snapshot.state = data
                snapshot.goal_complete = state.goal_complete
                snapshot.updated_at = datetime.now()
            await session.commit()
        logger.debug(f"Saved snapshot for team {team_id}")
        return snapshot

    async def load(self, team_id: str) -> TeamState | None:
        """Return the stored state for ``team_id``, or ``None``."""
        async with AsyncSession(self._engine) as session:
            snapshot = await session.get(TeamSnapshotModel, team_id)
            if snapshot is None:
                return None
            data = dict(snapshot.state)
        logger.info(f"Loaded snapshot for team {team_id}")
        return load_team_state(data)

    async def list_team_ids(self) -> list[str]:
        async with AsyncSession(self._engine) as session:
            result = await session.execute(select(TeamSnapshotModel.team_id))
            return list(result.scalars().all())

    async def delete(self, team_id: str) -> bool:
        """Delete the snapshot; returns whether one existed."""
        async with AsyncSession(self._engine) as session:
            snapshot = await session.get(TeamSnapshotModel, team_id)
            if snapshot is None:
                return False
            await session.delete(snapshot)
            await session.commit()
        logger.info(f"Deleted snapshot for team {team_id}")
        return True

    async def close(self) -> None:
        await self._engine.dispose()
