"""Team configuration."""

from agentic_team.archs.runtime.model_config import ModelConfig
from agentic_team.utils.common import ConfigError

from .team_config import ManagerConfig, MemberConfig, TeamConfig, ToolConfigEntry

__all__ = [
    "ConfigError",
    "ManagerConfig",
    "MemberConfig",
    "ModelConfig",
    "TeamConfig",
    "ToolConfigEntry",
]
