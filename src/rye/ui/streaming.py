"""Boundary buffer for streamed markdown.

Deltas arrive with arbitrary splits.  The buffer only emits a fragment once
it ends on a logical markdown boundary (blank line, heading, closed code
fence, end of a list) so every fragment renders correctly on its own.
"""

from __future__ import annotations

import re
from enum import Enum

from rye.types.messages import Flush

_HEADING_RE = re.compile(r"^ {0,3}#{1,6}(?:\s|$)")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])(?:\s|$)")


class BufferMode(Enum):
    NORMAL = "normal"
    FENCE = "fence"
    LIST = "list"


class BoundaryBuffer:
    """Accumulates text deltas and decides when to flush.

    Concatenating every :class:`Flush` returned by :meth:`consume` plus the
    one returned by :meth:`finalize` reproduces the input exactly.
    """

    def __init__(self) -> None:
        self._pending = ""  # complete lines not yet flushed
        self._line = ""  # current, unterminated line
        self._mode = BufferMode.NORMAL
        self._fence: str | None = None

    @property
    def mode(self) -> BufferMode:
        return self._mode

    @property
    def fence(self) -> str | None:
        """The opening fence delimiter while inside a code block."""
        return self._fence

    @property
    def pending(self) -> str:
        """Text received but not yet flushed."""
        return self._pending + self._line

    def consume(self, delta: str) -> list[Flush]:
        """Feed a delta and return the flushes it completes (possibly none)."""
        if not delta:
            return []
        self._line += delta
        flushes: list[Flush] = []
        while "\n" in self._line:
            line, self._line = self._line.split("\n", 1)
            flushes.extend(self._on_line(line + "\n"))
        return flushes

    def finalize(self) -> Flush:
        """Force out everything still buffered, even inside an open fence."""
        text = self._pending + self._line
        self.clear()
        return Flush(text=text, reason="final")

    def clear(self) -> None:
        self._pending = ""
        self._line = ""
        self._mode = BufferMode.NORMAL
        self._fence = None

    # -- Line classification ---------------------------------------------------

    def _on_line(self, line: str) -> list[Flush]:
        bare = line.rstrip("\r\n")

        if self._mode is BufferMode.FENCE and self._fence is not None:
            self._pending += line
            if _closes_fence(bare, self._fence):
                self._mode = BufferMode.NORMAL
                self._fence = None
                return [self._flush("fence")]
            return []

        opening = _FENCE_RE.match(bare)
        if opening:
            flushes = self._flush_pending("fence")
            self._mode = BufferMode.FENCE
            self._fence = opening.group(1)
            self._pending = line
            return flushes

        if not bare.strip():
            self._pending += line
            self._mode = BufferMode.NORMAL
            return [self._flush("blank")]

        if _HEADING_RE.match(bare):
            flushes = self._flush_pending("heading")
            self._mode = BufferMode.NORMAL
            self._pending = line
            flushes.append(self._flush("heading"))
            return flushes

        if _LIST_ITEM_RE.match(bare) or (
            self._mode is BufferMode.LIST and bare[:1] in (" ", "\t")
        ):
            self._mode = BufferMode.LIST
            self._pending += line
            return []

        if self._mode is BufferMode.LIST:
            # First line after the list: the list is complete.
            flushes = self._flush_pending("list")
            self._mode = BufferMode.NORMAL
            self._pending = line
            return flushes

        self._pending += line
        return []

    def _flush_pending(self, reason: str) -> list[Flush]:
        if not self._pending:
            return []
        if self._mode is BufferMode.LIST:
            reason = "list"
        return [self._flush(reason)]

    def _flush(self, reason: str) -> Flush:
        text, self._pending = self._pending, ""
        return Flush(text=text, reason=reason)


def _closes_fence(bare: str, fence: str) -> bool:
    """A closing fence uses the opening character at least as many times."""
    stripped = bare.strip()
    return (
        len(bare) - len(bare.lstrip(" ")) <= 3
        and len(stripped) >= len(fence)
        and stripped == fence[0] * len(stripped)
    )
