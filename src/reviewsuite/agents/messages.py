"""Conversation turn model shared by the host and the review suite.

A conversation is an ordered list of ``Message`` turns. Each turn has a role
and a list of content segments; only ``text`` segments carry prose, other
segment types (tool calls, images) are preserved but ignored when the suite
extracts an agent's answer.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class MessageRole(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "toolResult"


class ContentPart(BaseModel):
    """One segment of a turn.

    Attributes:
        type: Segment type (``text``, ``toolCall``, ``image`` ...)
        text: Text payload for ``text`` segments
    """

    type: str = "text"
    text: str | None = None


class Message(BaseModel):
    """A single conversation turn.

    Attributes:
        role: Who authored the turn
        content: Ordered content segments; a bare string is accepted and
            wrapped into one text segment
        timestamp: Creation time in milliseconds since the epoch
    """

    role: MessageRole
    content: list[ContentPart] = Field(default_factory=list)
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))

    @field_validator("content", mode="before")
    @classmethod
    def wrap_plain_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [{"type": "text", "text": v}]
        return v

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=MessageRole.USER, content=text)

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=text)

    def text_segments(self) -> list[str]:
        """Return the text of every ``text`` segment, in order."""
        return [
            part.text
            for part in self.content
            if part.type == "text" and isinstance(part.text, str)
        ]

    @property
    def text(self) -> str:
        return "\n".join(self.text_segments())
