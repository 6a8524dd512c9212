"""Provider adapters for rye.

Public surface
--------------
- :class:`BaseProvider`       abstract base with the shared prompts
- :class:`AnthropicProvider`  Claude adapter (Anthropic SDK)
- :func:`create_provider`     factory that returns the right adapter
"""

from __future__ import annotations

from rye.providers.anthropic import AnthropicProvider
from rye.providers.base import BaseProvider
from rye.providers.registry import PROVIDERS, available_providers, create_provider

__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "PROVIDERS",
    "available_providers",
    "create_provider",
]
