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

"""Team snapshot model.

RFC-0006: 团队状态快照

Stores the serialized ``TeamState`` of one team as a JSON document.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class TeamSnapshotModel(SQLModel, table=True):
    """Latest persisted state of a team.

    RFC-0006: 团队状态快照模型

    Attributes:
        team_id: Team identifier (primary key).
        state: ``dump_team_state`` output.
        goal_complete: Copy of ``state["goal_complete"]`` for cheap listing.
        created_at: Timestamp when the snapshot was first saved.
        updated_at: Timestamp of the latest save.
    """

    __tablename__ = "team_snapshots"  # type: ignore[assignment]

    team_id: str = Field(primary_key=True)
    state: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    goal_complete: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
