"""Session persistence models."""

from .team_snapshot import TeamSnapshotModel

__all__ = ["TeamSnapshotModel"]
