"""Conversation model and its markdown file format.

A conversation file looks like::

    # <title>

    ## You
    <user message>

    ## Assistant
    <assistant message>

Sections alternate strictly, starting with ``## You``.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from rye.types.errors import MalformedConversation
from rye.types.messages import Message, Role

PLACEHOLDER_PREFIX = "Conversation "
MAX_SLUG_LENGTH = 80

_PLACEHOLDER_RE = re.compile(r"^Conversation [0-9a-f]{12}$")
_TITLE_RE = re.compile(r"^# (.*)$")
_SECTION_RE = re.compile(r"^## (You|Assistant)[ \t]*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\r?\n)+")
_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def new_conversation_id() -> str:
    """Generate a new conversation ID."""
    return uuid.uuid4().hex[:12]


def placeholder_title(conversation_id: str) -> str:
    return f"{PLACEHOLDER_PREFIX}{conversation_id}"


def is_placeholder_title(title: str) -> bool:
    return bool(_PLACEHOLDER_RE.match(title))


def normalize_content(text: str) -> str:
    """Drop leading blank lines and trailing whitespace, close open fences.

    Message bodies are stored in this form so they parse back unchanged.  A
    reply cut off inside a code block gets its fence closed, otherwise the
    section headings after it would be read as code.  A body line that looks
    like a section heading outside a fence is indented by one space; it still
    renders as a heading but no longer starts a section.
    """
    text = _LEADING_BLANK_LINES_RE.sub("", text).rstrip()
    lines: list[str] = []
    fence: str | None = None
    for line in text.split("\n"):
        if fence is None and _SECTION_RE.match(line.rstrip("\r")):
            line = " " + line
        lines.append(line)
        fence = _track_fence(line, fence)
    text = "\n".join(lines)
    if fence is not None:
        text += "\n" + fence
    return text


def slugify(title: str) -> str:
    """Filesystem-safe form of *title*: lowercase ``a-z0-9`` joined by ``-``."""
    slug = _SLUG_SEPARATOR_RE.sub("-", title.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def clean_title(title: str) -> str:
    """Collapse a generated title onto a single line."""
    return " ".join(title.split())


@dataclass
class Conversation:
    """An ordered exchange backed by exactly one markdown file."""

    id: str
    path: Path
    title: str | None = None
    messages: list[Message] = field(default_factory=list)
    title_finalized: bool = False

    @property
    def heading(self) -> str:
        """Text of the top-level heading (title or placeholder)."""
        return self.title if self.title is not None else placeholder_title(self.id)

    @property
    def expected_role(self) -> Role:
        """Role the next appended message must have."""
        if self.messages and self.messages[-1].role is Role.USER:
            return Role.ASSISTANT
        return Role.USER

    @property
    def awaiting_reply(self) -> bool:
        """True when the last message is a user message with no reply."""
        return bool(self.messages) and self.messages[-1].role is Role.USER

    def to_markdown(self) -> str:
        return serialize(self.heading, self.messages)


def render_header(title: str) -> str:
    return f"# {title}\n\n"


def render_section(message: Message) -> str:
    return f"## {message.role.heading}\n{message.content}\n\n"


def serialize(title: str, messages: list[Message]) -> str:
    """Render a full conversation file."""
    return render_header(title) + "".join(render_section(m) for m in messages)


def parse(text: str, path: Path | None = None) -> tuple[str | None, list[Message]]:
    """Parse conversation file contents into ``(title, messages)``.

    A placeholder title parses as ``None``.  Raises
    :class:`MalformedConversation` naming the first missing or out-of-order
    marker.
    """
    lines = text.split("\n")
    match = _TITLE_RE.match(lines[0].rstrip()) if lines else None
    if match is None:
        raise MalformedConversation("missing title heading '# <title>' on line 1", path)
    heading = match.group(1).strip()
    title = None if is_placeholder_title(heading) else heading

    messages: list[Message] = []
    role: Role | None = None
    body: list[str] = []
    fence: str | None = None

    def close_section() -> None:
        if role is not None:
            messages.append(Message(role=role, content=normalize_content("\n".join(body))))

    for lineno, line in enumerate(lines[1:], start=2):
        if fence is None:
            section = _SECTION_RE.match(line.rstrip("\r"))
            if section:
                found = Role.from_heading(section.group(1))
                expected = Role.ASSISTANT if role is Role.USER else Role.USER
                if found is not expected:
                    raise MalformedConversation(
                        f"line {lineno}: expected '## {expected.heading}' "
                        f"but found '## {found.heading}'",
                        path,
                    )
                close_section()
                role, body = found, []
                continue

        if role is None:
            if line.strip():
                raise MalformedConversation(
                    f"line {lineno}: missing '## {Role.USER.heading}' section heading", path,
                )
            continue

        body.append(line)
        fence = _track_fence(line, fence)

    close_section()
    if not messages:
        raise MalformedConversation(f"missing '## {Role.USER.heading}' section heading", path)
    return title, messages


def _track_fence(line: str, fence: str | None) -> str | None:
    """Return the open fence delimiter after *line*, if any."""
    bare = line.rstrip("\r\n")
    if fence is None:
        opening = _FENCE_RE.match(bare)
        return opening.group(1) if opening else None
    stripped = bare.strip()
    if len(stripped) >= len(fence) and stripped == fence[0] * len(stripped):
        return None
    return fence
