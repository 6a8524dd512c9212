"""rye: chat with LLMs from the terminal, stored as markdown.

Usage:
    from rye import ConversationStore, SessionController, create_provider
    from rye.ui.terminal import MarkdownRenderer

    store = ConversationStore("~/.rye")
    controller = SessionController(store, create_provider("anthropic"), MarkdownRenderer())
    result = await controller.run_turn("Hello")
"""

from rye.core.controller import SessionController, TurnResult
from rye.core.conversation import Conversation, parse, serialize, slugify
from rye.core.store import ConversationStore
from rye.providers.registry import create_provider
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
from rye.ui.streaming import BoundaryBuffer

__version__ = "0.1.0"

__all__ = [
    # Core API
    "BoundaryBuffer",
    "Conversation",
    "ConversationStore",
    "SessionController",
    "TurnResult",
    "create_provider",
    "parse",
    "serialize",
    "slugify",
    # Types
    "Flush",
    "Message",
    "Role",
    # Errors
    "Ambiguous",
    "MalformedConversation",
    "NotFound",
    "PendingReplyError",
    "PersistenceFailure",
    "RenderingFailure",
    "RyeError",
    "TransportFailure",
]
