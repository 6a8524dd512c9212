"""Provider adapter protocol."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from rye.types.messages import Message


@runtime_checkable
class ProviderAdapter(Protocol):
    """Protocol that all provider adapters must implement."""

    name: str

    @property
    def model_id(self) -> str:
        """The model identifier being used."""
        ...

    def generate_response_stream(self, history: list[Message]) -> AsyncIterator[str]:
        """Stream a reply to *history* as text deltas."""
        ...

    async def generate_title(self, first_user_message: str) -> str:
        """Produce a short title for a conversation."""
        ...
