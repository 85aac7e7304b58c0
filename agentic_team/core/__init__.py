# pyright: reportUnusedImport=false

"""Core, vendor-agnostic primitives for agentic-team.

Holds the Unified Message Protocol (UMP) data model used for every agent's
conversation history, and adapters to vendor chat payloads.
"""

from .messages import (
    BlockType,
    ContentBlock,
    Message,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
