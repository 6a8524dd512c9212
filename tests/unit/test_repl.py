"""Tests for rye.cli.repl: the interactive loop."""

from __future__ import annotations

import pytest

from rye.cli.repl import Repl
from rye.core.controller import SessionController
from rye.core.store import ConversationStore
from tests.conftest import FailingMockProvider, MockProvider, RecordingRenderer


class FakePromptSession:
    """Returns scripted lines, then raises EOFError (Ctrl+D)."""

    def __init__(self, lines: list[str | BaseException]) -> None:
        self._lines = list(lines)
        self.prompts: list[str] = []

    async def prompt_async(self, message: str) -> str:
        self.prompts.append(message)
        if not self._lines:
            raise EOFError
        line = self._lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line


def _repl(store, provider, renderer, lines) -> tuple[Repl, SessionController]:
    controller = SessionController(store, provider, renderer)
    repl = Repl(controller, renderer, prompt_session=FakePromptSession(lines))
    return repl, controller


class TestRepl:
    @pytest.mark.asyncio
    async def test_conversation_round(self, store: ConversationStore, renderer: RecordingRenderer):
        provider = MockProvider(replies=[["Hi **there**\n"]], title="Greeting")
        repl, controller = _repl(store, provider, renderer, ["", "Hello", "exit"])

        await repl.run()

        conv = controller.conversation
        assert conv is not None
        assert conv.path.name == "greeting.md"
        assert "Saved as greeting.md" in renderer.output
        assert f"Conversation saved to: {conv.path}" in renderer.output

    @pytest.mark.asyncio
    async def test_help_shows_id_and_file(self, store: ConversationStore, renderer: RecordingRenderer):
        provider = MockProvider(replies=[["ok"]], title=RuntimeError("no title"))
        repl, controller = _repl(store, provider, renderer, ["Hello", "/help", "/exit"])
        await repl.run()
        conv = controller.conversation
        assert f"Conversation ID: {conv.id}" in renderer.output
        assert str(conv.path) in renderer.output

    @pytest.mark.asyncio
    async def test_unknown_command_suggests(self, store: ConversationStore, renderer: RecordingRenderer):
        repl, controller = _repl(store, MockProvider(), renderer, ["/re"])
        await repl.run()
        assert "Did you mean: /retry" in renderer.output
        assert controller.conversation is None
        assert "Goodbye!" in renderer.output

    @pytest.mark.asyncio
    async def test_transport_failure_then_retry(self, store: ConversationStore, renderer: RecordingRenderer):
        provider = FailingMockProvider(replies=[["lost"], ["Recovered!"]], title="Retry")
        repl, controller = _repl(
            store, provider, renderer, ["Hello", "Another", "/retry", KeyboardInterrupt()],
        )
        await repl.run()

        output = renderer.output
        assert "Simulated failure #1" in output
        assert "the partial reply was not saved" in output
        assert "Use /retry" in output
        conv = controller.conversation
        assert [m.content for m in conv.messages] == ["Hello", "Recovered!"]

    @pytest.mark.asyncio
    async def test_messages_starting_with_command_words_reach_the_model(
        self, store: ConversationStore, renderer: RecordingRenderer,
    ):
        provider = MockProvider(replies=[["One."], ["Two."], ["Three."]], title="Ideas")
        lines = ["Hello", "exit strategies for a startup?", "help me write a poem", "Exit"]
        repl, controller = _repl(store, provider, renderer, lines)

        await repl.run()

        assert len(provider.histories) == 3
        assert [m.content for m in controller.conversation.messages] == [
            "Hello", "One.",
            "exit strategies for a startup?", "Two.",
            "help me write a poem", "Three.",
        ]
        assert "Conversation ID:" not in renderer.output
