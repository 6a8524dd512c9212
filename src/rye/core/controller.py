"""Turn orchestration: stream a reply, render it live, persist it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from rye.core.conversation import Conversation, normalize_content
from rye.core.store import ConversationStore
from rye.types.errors import PendingReplyError, PersistenceFailure, RyeError, TransportFailure
from rye.types.messages import Message
from rye.types.providers import ProviderAdapter
from rye.ui.streaming import BoundaryBuffer
from rye.ui.terminal import MarkdownRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TurnResult:
    """Outcome of a completed turn."""

    text: str
    conversation: Conversation
    title_changed: bool = False


class SessionController:
    """Runs turns for one conversation.

    The conversation is created on the first turn unless an existing one is
    passed in.  A reply is persisted only once the stream has completed;
    failures and cancellation leave the file as it was before the turn.
    """

    def __init__(
        self,
        store: ConversationStore,
        provider: ProviderAdapter,
        renderer: MarkdownRenderer,
        conversation: Conversation | None = None,
    ) -> None:
        self._store = store
        self._provider = provider
        self._renderer = renderer
        self._conversation = conversation

    @property
    def conversation(self) -> Conversation | None:
        return self._conversation

    @property
    def provider(self) -> ProviderAdapter:
        return self._provider

    async def run_turn(self, text: str) -> TurnResult:
        """Send *text* as the next user message and stream the reply."""
        content = normalize_content(text)
        if not content:
            raise ValueError("Cannot send an empty message")

        conversation = self._conversation
        if conversation is not None and conversation.awaiting_reply:
            raise PendingReplyError(
                "The last message has no reply yet. Use /retry to resend it."
            )

        if conversation is None:
            # The first message is on disk before the stream starts.
            conversation = self._store.create(content)
            self._conversation = conversation
            reply = await self._stream_reply(conversation.messages)
            self._persist(conversation, reply)
        else:
            user = Message.user(content)
            reply = await self._stream_reply([*conversation.messages, user])
            self._persist(conversation, reply, user)

        title_changed = await self._finalize_title(conversation)
        return TurnResult(text=reply, conversation=conversation, title_changed=title_changed)

    async def retry(self) -> TurnResult:
        """Stream a reply for a trailing user message that never got one."""
        conversation = self._conversation
        if conversation is None or not conversation.awaiting_reply:
            raise RyeError("There is no unanswered message to retry.")

        reply = await self._stream_reply(conversation.messages)
        self._persist(conversation, reply)
        title_changed = await self._finalize_title(conversation)
        return TurnResult(text=reply, conversation=conversation, title_changed=title_changed)

    async def _stream_reply(self, history: list[Message]) -> str:
        """Feed deltas through the boundary buffer and render each flush."""
        buffer = BoundaryBuffer()
        parts: list[str] = []

        stream = aiter(self._provider.generate_response_stream(history))
        while True:
            # Only the provider's iteration is a transport failure; buffer and
            # renderer errors propagate unchanged.
            try:
                delta = await anext(stream)
            except StopAsyncIteration:
                break
            except asyncio.CancelledError:
                logger.info("Reply cancelled; discarding %d buffered chars", len(buffer.pending))
                raise
            except Exception as exc:
                partial = "".join(parts) + buffer.pending
                logger.debug("Stream failed after %d chars: %s", len(partial), exc)
                raise TransportFailure(
                    f"Stream error: {str(exc) or type(exc).__name__}", partial_text=partial,
                ) from exc

            for flush in buffer.consume(delta):
                parts.append(flush.text)
                self._renderer.render(flush.text)

        final = buffer.finalize()
        if final.text:
            parts.append(final.text)
            self._renderer.render(final.text)

        reply = "".join(parts)
        if not reply.strip():
            raise TransportFailure("The model returned an empty reply")
        return reply

    def _persist(self, conversation: Conversation, reply: str, user: Message | None = None) -> None:
        assistant = Message.assistant(reply)
        try:
            if user is None:
                self._store.append(conversation, assistant)
            else:
                self._store.append_exchange(conversation, user, assistant)
        except PersistenceFailure as exc:
            exc.text = reply
            raise

    async def _finalize_title(self, conversation: Conversation) -> bool:
        """Title and rename the file after the first exchange."""
        if conversation.title_finalized or len(conversation.messages) != 2:
            return False

        try:
            title = await self._provider.generate_title(conversation.messages[0].content)
        except Exception as exc:
            logger.warning("Could not generate title: %s", exc)
            return False

        try:
            self._store.rename_on_title(conversation, title)
        except (PersistenceFailure, ValueError) as exc:
            logger.warning("Could not set conversation title: %s", exc)
            return False
        return True
