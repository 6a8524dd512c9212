"""Provider registry: name -> adapter class."""

from __future__ import annotations

from rye.core.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from rye.providers.anthropic import AnthropicProvider
from rye.providers.base import BaseProvider

PROVIDERS: dict[str, type[BaseProvider]] = {
    "anthropic": AnthropicProvider,
}

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": DEFAULT_MODEL,
}


def available_providers() -> list[str]:
    return sorted(PROVIDERS)


def create_provider(
    name: str,
    *,
    model: str | None = None,
    api_key: str | None = None,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> BaseProvider:
    """Instantiate the adapter registered under *name*.

    Raises
    ------
    KeyError
        When no provider is registered under *name*.
    """
    key = name.lower()
    cls = PROVIDERS.get(key)
    if cls is None:
        raise KeyError(
            f"Unknown provider '{name}'. Available: {', '.join(available_providers())}"
        )
    return cls(
        api_key=api_key,
        model=model or DEFAULT_MODELS[key],
        max_tokens=max_tokens,
    )
