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

"""Default id allocation for tasks and messages.

RFC-0002: 自增 ID 生成

Ids look like ``T-0001`` / ``M-0001``. The next id is max+1 over existing ids
of the same prefix, so gaps and externally seeded ids never collide. Ids that
do not match the pattern are ignored.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence

from .types import Task, TeamMessage

TaskIdGenerator = Callable[[Sequence[Task]], str]
MessageIdGenerator = Callable[[Sequence[TeamMessage]], str]

_ID_WIDTH = 4


def next_prefixed_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """Return ``<prefix>-<max+1>`` zero-padded to four digits."""
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for existing in existing_ids:
        match = pattern.match(existing)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{highest + 1:0{_ID_WIDTH}d}"


def generate_task_id(tasks: Sequence[Task]) -> str:
    return next_prefixed_id("T", (t.id for t in tasks))


def generate_message_id(messages: Sequence[TeamMessage]) -> str:
    return next_prefixed_id("M", (m.id for m in messages))
