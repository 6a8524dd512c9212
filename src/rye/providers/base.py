"""Base provider with the shared prompts and message conversion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from rye.types.messages import Message

SYSTEM_PROMPT = (
    "You are a helpful assistant. Always respond in markdown format. When referring "
    "to information you've previously provided in this conversation, reference the "
    "relevant sections instead of repeating the information. Be concise and avoid "
    "unnecessary repetition."
)

TITLE_PROMPT = (
    "Generate a concise, descriptive title (max 50 characters) for a conversation "
    'that starts with this user message: "{message}"\n\n'
    "Respond with ONLY the title, no additional text or formatting."
)

TITLE_MAX_TOKENS = 100


class BaseProvider(ABC):
    """Abstract base class for provider adapters.

    A provider can stream a reply to a conversation history and produce a
    short title for a new conversation.  Adding a provider means adding a
    subclass and a registry entry; nothing else changes.

    Parameters
    ----------
    model:
        The model identifier string (e.g. ``"claude-sonnet-4-20250514"``).
    max_tokens:
        Upper bound on generated tokens per reply.
    """

    name: str = "base"

    def __init__(self, model: str, max_tokens: int = 4096) -> None:
        self._model = model
        self._max_tokens = max_tokens

    @property
    def model_id(self) -> str:
        """The model identifier being used by this provider instance."""
        return self._model

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @abstractmethod
    def generate_response_stream(self, history: list[Message]) -> AsyncIterator[str]:
        """Stream a reply to *history*, yielding text deltas in order.

        Implementations are ``async def`` generators.  Any exception raised
        while iterating is treated by the caller as a transport failure.
        """
        ...

    @abstractmethod
    async def generate_title(self, first_user_message: str) -> str:
        """Return a short title for a conversation opened by *first_user_message*."""
        ...

    # ------------------------------------------------------------------
    # Helpers available to sub-classes
    # ------------------------------------------------------------------

    @staticmethod
    def title_prompt(first_user_message: str) -> str:
        return TITLE_PROMPT.format(message=first_user_message)

    @staticmethod
    def to_wire_messages(history: list[Message]) -> list[dict[str, Any]]:
        """Convert messages to the ``{"role", "content"}`` dicts chat APIs expect."""
        return [{"role": m.role.value, "content": m.content} for m in history]

    @staticmethod
    def clean_title(raw: str) -> str:
        """Strip whitespace and wrapping quotes from a generated title."""
        title = raw.strip()
        if len(title) >= 2 and title[0] == title[-1] and title[0] in "\"'":
            title = title[1:-1].strip()
        return title
