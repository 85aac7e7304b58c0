"""Unified Message Protocol (UMP) for agent conversations.

Every agent in a team keeps its conversation as ``list[Message]``:

- Message: role + ordered list of typed blocks
- Block: atomic content unit (text, tool use, tool result)

Messages are plain pydantic models so a whole conversation can be dumped to
JSON and restored without losing block types.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ContentBlock(BaseModel):
    """Base class for all content blocks."""

    # Subclasses declare a Literal ``type`` for the discriminated union.


class TextBlock(ContentBlock):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(ContentBlock):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any]
    # Vendor-provided raw JSON arguments, kept so replays are byte-identical.
    raw_input: str | None = None


class ToolResultBlock(ContentBlock):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False


BlockType = TextBlock | ToolUseBlock | ToolResultBlock
DiscriminatedBlock = Annotated[BlockType, Field(discriminator="type")]


def _empty_blocks() -> list[DiscriminatedBlock]:
    return []


class Message(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    role: Role
    content: list[DiscriminatedBlock] = Field(default_factory=_empty_blocks)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def user(cls, text: str, **metadata: Any) -> Message:
        return cls(role=Role.USER, content=[TextBlock(text=text)], metadata=metadata)

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role=Role.ASSISTANT, content=[TextBlock(text=text)])

    @classmethod
    def tool_result(cls, tool_use_id: str, content: str, *, is_error: bool = False) -> Message:
        return cls(
            role=Role.TOOL,
            content=[ToolResultBlock(tool_use_id=tool_use_id, content=content, is_error=is_error)],
        )

    def get_text_content(self) -> str:
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    def get_tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]
