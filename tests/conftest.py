"""Test fixtures including MockProvider for deterministic testing."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from rye.core.store import ConversationStore
from rye.types.messages import Message
from rye.ui.terminal import MARKDOWN_THEME, MarkdownRenderer


class MockProvider:
    """A deterministic mock provider for testing.

    Usage:
        provider = MockProvider(replies=[
            ["## Notes\\n", "- a\\n", "Done."],   # deltas of the first reply
            ["Second reply."],
        ], title="My Plan")
    """

    name = "mock"

    def __init__(
        self,
        replies: list[list[str]] | None = None,
        title: str | Exception = "Test Conversation",
        model: str = "mock-model",
    ) -> None:
        self._replies = list(replies or [])
        self._index = 0
        self._title = title
        self._model = model
        self.histories: list[list[Message]] = []
        self.title_requests: list[str] = []

    @property
    def model_id(self) -> str:
        return self._model

    async def generate_response_stream(self, history: list[Message]) -> AsyncIterator[str]:
        """Yield the scripted deltas for the current reply."""
        self.histories.append(list(history))
        deltas = self._replies[self._index] if self._index < len(self._replies) else []
        self._index += 1
        for delta in deltas:
            yield delta

    async def generate_title(self, first_user_message: str) -> str:
        self.title_requests.append(first_user_message)
        if isinstance(self._title, Exception):
            raise self._title
        return self._title


class FailingMockProvider(MockProvider):
    """Yields the scripted deltas, then raises ConnectionError for the first N replies."""

    def __init__(self, replies: list[list[str]], fail_count: int = 1, **kwargs) -> None:
        super().__init__(replies, **kwargs)
        self._fail_count = fail_count
        self._call_count = 0

    async def generate_response_stream(self, history: list[Message]) -> AsyncIterator[str]:
        self._call_count += 1
        failing = self._call_count <= self._fail_count
        async for delta in super().generate_response_stream(history):
            yield delta
        if failing:
            raise ConnectionError(f"Simulated failure #{self._call_count}")


class HangingMockProvider(MockProvider):
    """Yields its deltas and then waits forever (until cancelled)."""

    def __init__(self, replies: list[list[str]], **kwargs) -> None:
        super().__init__(replies, **kwargs)
        self.waiting = asyncio.Event()

    async def generate_response_stream(self, history: list[Message]) -> AsyncIterator[str]:
        async for delta in super().generate_response_stream(history):
            yield delta
        self.waiting.set()
        await asyncio.Event().wait()


class RecordingRenderer(MarkdownRenderer):
    """A MarkdownRenderer writing to a buffer and recording every fragment."""

    def __init__(self) -> None:
        self.buffer = StringIO()
        super().__init__(Console(file=self.buffer, theme=MARKDOWN_THEME, width=400))
        self.fragments: list[str] = []

    def render(self, fragment: str) -> None:
        self.fragments.append(fragment)
        super().render(fragment)

    @property
    def output(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture
def store(tmp_path: Path) -> ConversationStore:
    return ConversationStore(tmp_path / "conversations")


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def mock_provider() -> MockProvider:
    """A simple mock provider that responds with text."""
    return MockProvider(replies=[["I can help with that."]])


def write_conversation(directory: Path, stem: str, body: str = "## You\nhi\n\n") -> Path:
    """Write a minimal, well-formed conversation file."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{stem}.md"
    path.write_text(f"# {stem}\n\n{body}", encoding="utf-8")
    return path
