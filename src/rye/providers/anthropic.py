"""Anthropic/Claude provider adapter."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from rye.providers.base import SYSTEM_PROMPT, TITLE_MAX_TOKENS, BaseProvider
from rye.types.messages import Message

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseProvider):
    """Provider adapter for Anthropic's Claude models.

    Uses the official ``anthropic`` Python SDK with its async streaming
    interface.

    Parameters
    ----------
    api_key:
        Anthropic API key.  When *None* the SDK will fall back to the
        ``ANTHROPIC_API_KEY`` environment variable.
    model:
        Model ID to use for completions.
    max_tokens:
        Maximum number of tokens per reply.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(model, max_tokens)
        # Defer import so the rest of the codebase can be imported even if the
        # anthropic package is not installed (useful for type checking).
        try:
            from anthropic import AsyncAnthropic
        except ImportError as exc:
            raise ImportError(
                "The 'anthropic' package is required for AnthropicProvider. "
                "Install it with: pip install anthropic"
            ) from exc

        self._client = AsyncAnthropic(api_key=api_key) if api_key else AsyncAnthropic()

    async def generate_response_stream(self, history: list[Message]) -> AsyncIterator[str]:
        """Stream a reply from the Anthropic API, one text delta at a time."""
        logger.debug("Streaming reply from %s (%d messages)", self._model, len(history))
        async with self._client.messages.stream(
            model=self._model,
            max_tokens=self._max_tokens,
            system=SYSTEM_PROMPT,
            messages=self.to_wire_messages(history),  # type: ignore[arg-type]
        ) as stream:
            async for text in stream.text_stream:
                if text:
                    yield text

    async def generate_title(self, first_user_message: str) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=TITLE_MAX_TOKENS,
            messages=[{"role": "user", "content": self.title_prompt(first_user_message)}],
        )
        for block in response.content:
            if getattr(block, "type", None) == "text":
                title = self.clean_title(block.text)
                if title:
                    return title
        raise ValueError("No title generated")
