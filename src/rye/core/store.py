"""Markdown conversation store.

One ``.md`` file per conversation in a single directory.  Files start out
as ``<id>.md`` and are renamed to ``<slug>.md`` once a title exists.
Every write replaces the whole file atomically, so a failed write leaves
the previous bytes untouched.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from rye.core.conversation import (
    Conversation,
    clean_title,
    is_placeholder_title,
    new_conversation_id,
    normalize_content,
    parse,
    render_section,
    serialize,
    slugify,
)
from rye.types.conversation import ConversationInfo
from rye.types.errors import (
    Ambiguous,
    MalformedConversation,
    NotFound,
    PersistenceFailure,
)
from rye.types.messages import Message, Role

logger = logging.getLogger(__name__)

SUFFIX = ".md"


class ConversationStore:
    """Reads and writes conversation files under *directory*."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._dir

    # -- Creation and appends ---------------------------------------------------

    def new_conversation(self) -> Conversation:
        """An in-memory conversation with a fresh, unused ID (nothing written)."""
        while True:
            conversation_id = new_conversation_id()
            path = self._dir / f"{conversation_id}{SUFFIX}"
            if not path.exists():
                return Conversation(id=conversation_id, path=path)

    def create(self, first_user_message: str) -> Conversation:
        """Start a conversation file holding a placeholder title and the first message."""
        conversation = self.new_conversation()
        message = Message.user(normalize_content(first_user_message))
        content = serialize(conversation.heading, [message])
        self._atomic_write(conversation.path, content.encode("utf-8"))
        conversation.messages.append(message)
        logger.debug("Created conversation %s at %s", conversation.id, conversation.path)
        return conversation

    def append(self, conversation: Conversation, message: Message) -> None:
        """Append one message section to the conversation file."""
        self._append_messages(conversation, [message])

    def append_exchange(
        self, conversation: Conversation, user: Message, assistant: Message,
    ) -> None:
        """Append a user message and its reply in a single write."""
        self._append_messages(conversation, [user, assistant])

    def _append_messages(self, conversation: Conversation, messages: list[Message]) -> None:
        normalized = [Message(role=m.role, content=normalize_content(m.content)) for m in messages]

        expected = conversation.expected_role
        for message in normalized:
            if message.role is not expected:
                raise ValueError(
                    f"Cannot append a {message.role.value} message; "
                    f"expected {expected.value}"
                )
            expected = Role.ASSISTANT if message.role is Role.USER else Role.USER

        try:
            existing = conversation.path.read_bytes()
        except OSError as exc:
            raise PersistenceFailure(
                f"Could not read {conversation.path}: {exc}", path=conversation.path,
            ) from exc

        sections = "".join(render_section(m) for m in normalized)
        self._atomic_write(conversation.path, existing + sections.encode("utf-8"))
        conversation.messages.extend(normalized)
        logger.debug(
            "Appended %d message(s) to %s", len(normalized), conversation.path.name,
        )

    # -- Titles -----------------------------------------------------------------

    def rename_on_title(self, conversation: Conversation, generated_title: str) -> Path:
        """Give the conversation its title and move it to ``<slug>.md``.

        Runs once per conversation; later calls return the current path.  On
        a name collision the first free ``<slug>-N.md`` (N >= 2) is used.  If
        anything fails the conversation keeps its current file.
        """
        if conversation.title_finalized:
            logger.debug("Title already set for %s", conversation.path.name)
            return conversation.path

        title = clean_title(generated_title)
        if not title:
            raise ValueError("Cannot rename a conversation to an empty title")

        try:
            existing = conversation.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(
                f"Could not read {conversation.path}: {exc}", path=conversation.path,
            ) from exc
        _, _, rest = existing.partition("\n")
        content = f"# {title}\n{rest}"

        slug = slugify(title)
        target = self._free_path(slug, conversation.path) if slug else conversation.path

        self._atomic_write(target, content.encode("utf-8"))
        if target != conversation.path:
            try:
                conversation.path.unlink()
            except OSError as exc:
                with contextlib.suppress(OSError):
                    target.unlink()
                raise PersistenceFailure(
                    f"Could not rename {conversation.path.name} to {target.name}: {exc}",
                    path=conversation.path,
                ) from exc
            logger.debug("Renamed %s -> %s", conversation.path.name, target.name)

        conversation.path = target
        conversation.title = title
        conversation.title_finalized = True
        return target

    def _free_path(self, slug: str, current: Path) -> Path:
        candidate = self._dir / f"{slug}{SUFFIX}"
        n = 2
        while candidate.exists() and candidate != current:
            candidate = self._dir / f"{slug}-{n}{SUFFIX}"
            n += 1
        if n > 2:
            logger.info("'%s%s' is taken; using %s", slug, SUFFIX, candidate.name)
        return candidate

    # -- Lookup -----------------------------------------------------------------

    def resolve(self, identifier: str) -> Path:
        """Find the file for a full or partial conversation ID.

        An exact file stem wins; otherwise the identifier must be a prefix
        of exactly one stem (the leading ID segment of the file name).
        """
        ident = identifier.strip()
        if ident.endswith(SUFFIX):
            ident = ident[: -len(SUFFIX)]
        if not ident or not self._dir.is_dir():
            raise NotFound(identifier)

        paths = sorted(self._dir.glob(f"*{SUFFIX}"))
        for path in paths:
            if path.stem == ident:
                return path

        matches = [p for p in paths if p.stem.startswith(ident)]
        if not matches:
            raise NotFound(identifier)
        if len(matches) > 1:
            raise Ambiguous(identifier, [p.stem for p in matches])
        return matches[0]

    def load(self, identifier: str) -> Conversation:
        """Resolve *identifier* and parse the matching file."""
        return self.read(self.resolve(identifier))

    def read(self, path: Path) -> Conversation:
        """Parse the conversation stored at *path*."""
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedConversation("file is not valid UTF-8", path) from exc
        except OSError as exc:
            raise PersistenceFailure(f"Could not read {path}: {exc}", path=path) from exc

        title, messages = parse(text, path)
        return Conversation(
            id=path.stem,
            path=path,
            title=title,
            messages=messages,
            title_finalized=title is not None,
        )

    def list_conversations(self) -> list[ConversationInfo]:
        """All stored conversations, newest first."""
        if not self._dir.is_dir():
            return []

        results: list[ConversationInfo] = []
        for path in self._dir.glob(f"*{SUFFIX}"):
            try:
                modified = datetime.fromtimestamp(path.stat().st_mtime)
                with open(path, encoding="utf-8") as f:
                    first_line = f.readline().rstrip()
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable conversation %s: %s", path.name, exc)
                continue

            title: str | None = None
            if first_line.startswith("# "):
                heading = first_line[2:].strip()
                title = None if is_placeholder_title(heading) else heading
            else:
                logger.debug("%s has no title heading", path.name)
            results.append(ConversationInfo(id=path.stem, title=title, path=path, modified=modified))

        results.sort(key=lambda info: info.modified, reverse=True)
        return results

    # -- Writes -----------------------------------------------------------------

    def _atomic_write(self, path: Path, data: bytes) -> None:
        """Replace *path* with *data* in one step (temp file + ``os.replace``)."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as exc:
            raise PersistenceFailure(f"Could not write {path}: {exc}", path=path) from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise PersistenceFailure(f"Could not write {path}: {exc}", path=path) from exc
