"""Rich-powered terminal output."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markdown import Markdown
from rich.padding import Padding
from rich.text import Text
from rich.theme import Theme

from rye.types.errors import RenderingFailure

logger = logging.getLogger(__name__)

# ── Palette ──────────────────────────────────────────────────────────────────
# One place to re-skin markdown and the REPL chrome.

MARKDOWN_THEME = Theme({
    "markdown.h1": "bold cyan",
    "markdown.h2": "bold cyan",
    "markdown.h3": "cyan",
    "markdown.h4": "cyan",
    "markdown.h5": "cyan",
    "markdown.h6": "cyan",
    "markdown.strong": "bold yellow",
    "markdown.em": "italic green",
    "markdown.code": "magenta",
    "markdown.code_block": "blue",
})

LEFT_MARGIN = 2
SEPARATOR_WIDTH = 60

STYLE_BANNER = "bold #e2e8f0"
STYLE_DIM = "dim #7c7c8a"
STYLE_LABEL = "bold #94a3b8"
STYLE_WARNING = "#fbbf24"
STYLE_ERROR_LABEL = "bold #f87171"
STYLE_ERROR_BODY = "#f87171"


class MarkdownRenderer:
    """Renders flushed markdown fragments and the REPL chrome.

    Holds no markdown state between fragments; the boundary buffer makes
    sure each fragment is complete on its own.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(theme=MARKDOWN_THEME, highlight=False)
        self.failures: list[RenderingFailure] = []

    @property
    def console(self) -> Console:
        return self._console

    def render(self, fragment: str) -> None:
        """Print one markdown fragment; falls back to raw text on error."""
        if not fragment:
            return
        if not fragment.strip():
            self._console.print()
            return
        try:
            self._console.print(Padding(Markdown(fragment), (0, 0, 0, LEFT_MARGIN)))
        except Exception as exc:
            failure = RenderingFailure(f"{type(exc).__name__}: {exc}", fragment)
            self.failures.append(failure)
            logger.warning("Rendering failed, printing raw text: %s", failure)
            self._console.print(Text(fragment.rstrip("\n")), highlight=False)
        if fragment.endswith("\n\n"):
            self._console.print()

    # ── Chrome ───────────────────────────────────────────────────────────────

    def banner(self) -> None:
        self._console.print(Text("🥃 Welcome to Rye - Your LLM conversation tool", style=STYLE_BANNER))
        self._console.print(Text(
            "Conversations are stored in markdown files for easy searching", style=STYLE_DIM,
        ))
        self._console.print(Text("Type /exit to quit, /help for commands", style=STYLE_DIM))
        self._console.print()

    def separator(self, label: str, char: str = "─") -> None:
        """Print a labelled separator block."""
        self._console.print()
        self._console.print(Text(char * SEPARATOR_WIDTH, style=STYLE_DIM))
        self._console.print(Text(label, style=STYLE_LABEL))
        self._console.print(Text(char * SEPARATOR_WIDTH, style=STYLE_DIM))

    def info(self, message: str) -> None:
        self._console.print(Text(message, style=STYLE_DIM))

    def warning(self, message: str) -> None:
        self._console.print(Text(f"Warning: {message}", style=STYLE_WARNING))

    def error(self, message: str) -> None:
        line = Text("✗ ", style=STYLE_ERROR_LABEL)
        line.append(message, style=STYLE_ERROR_BODY)
        self._console.print(line)
