"""Conversation listing types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ConversationInfo:
    """Summary of a stored conversation file."""

    id: str
    title: str | None
    path: Path
    modified: datetime
