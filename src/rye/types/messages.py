"""Message types for rye conversations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Who authored a message."""

    USER = "user"
    ASSISTANT = "assistant"

    @property
    def heading(self) -> str:
        """Section heading label used in the markdown file."""
        return "You" if self is Role.USER else "Assistant"

    @classmethod
    def from_heading(cls, label: str) -> Role:
        for role in cls:
            if role.heading == label:
                return role
        raise ValueError(f"Unknown section heading: {label!r}")


@dataclass(frozen=True, slots=True)
class Message:
    """A single, immutable entry in a conversation."""

    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=Role.ASSISTANT, content=content)


@dataclass(frozen=True, slots=True)
class Flush:
    """A unit of streamed markdown that is safe to render on its own."""

    text: str
    reason: str  # "blank", "heading", "fence", "list", "final"
