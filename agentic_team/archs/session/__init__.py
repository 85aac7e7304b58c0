"""Team state persistence."""

from .models import TeamSnapshotModel
from .snapshot_store import DEFAULT_DATABASE_URL, TeamSnapshotStore

__all__ = ["DEFAULT_DATABASE_URL", "TeamSnapshotModel", "TeamSnapshotStore"]
