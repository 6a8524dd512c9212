"""Shared types for rye."""

from rye.types.conversation import ConversationInfo
from rye.types.errors import (
    Ambiguous,
    MalformedConversation,
    NotFound,
    PendingReplyError,
    PersistenceFailure,
    RenderingFailure,
    RyeError,
    TransportFailure,
)
from rye.types.messages import Flush, Message, Role
from rye.types.providers import ProviderAdapter

__all__ = [
    "Ambiguous",
    "ConversationInfo",
    "Flush",
    "MalformedConversation",
    "Message",
    "NotFound",
    "PendingReplyError",
    "PersistenceFailure",
    "ProviderAdapter",
    "RenderingFailure",
    "Role",
    "RyeError",
    "TransportFailure",
]
