"""Error taxonomy for rye.

Every failure is raised to the orchestrating caller; nothing is retried.
"""

from __future__ import annotations

from pathlib import Path


class RyeError(Exception):
    """Base class for all rye errors."""


class TransportFailure(RyeError):
    """The delta source failed before or during a streamed reply."""

    def __init__(self, message: str, partial_text: str = "") -> None:
        super().__init__(message)
        self.partial_text = partial_text


class MalformedConversation(RyeError):
    """A conversation file does not follow the markdown layout."""

    def __init__(self, reason: str, path: Path | None = None) -> None:
        where = f"{path}: " if path is not None else ""
        super().__init__(f"{where}{reason}")
        self.reason = reason
        self.path = path


class NotFound(RyeError):
    """No stored conversation matches an identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"No conversation found matching '{identifier}'")
        self.identifier = identifier


class Ambiguous(RyeError):
    """More than one stored conversation matches an identifier."""

    def __init__(self, identifier: str, candidates: list[str]) -> None:
        super().__init__(
            f"'{identifier}' matches {len(candidates)} conversations: "
            + ", ".join(candidates)
        )
        self.identifier = identifier
        self.candidates = candidates


class PersistenceFailure(RyeError):
    """Writing or renaming a conversation file failed.

    ``text`` carries the reply that could not be saved, if any, so the
    caller can still show it.
    """

    def __init__(self, message: str, path: Path | None = None, text: str = "") -> None:
        super().__init__(message)
        self.path = path
        self.text = text


class RenderingFailure(RyeError):
    """A markdown fragment could not be rendered with styling."""

    def __init__(self, message: str, fragment: str) -> None:
        super().__init__(message)
        self.fragment = fragment


class PendingReplyError(RyeError):
    """The last stored message is a user message that has no reply yet."""
