"""Interactive REPL for rye."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Awaitable, Callable
from typing import Any

from rye.core.controller import SessionController, TurnResult
from rye.types.errors import PendingReplyError, PersistenceFailure, RyeError, TransportFailure
from rye.ui.terminal import MarkdownRenderer

logger = logging.getLogger(__name__)

PROMPT = "➤ "


class Repl:
    """Interactive read-eval-print loop.

    Enters a loop: read message -> stream reply -> save -> repeat.
    Ctrl+C cancels the reply being streamed, Ctrl+D exits.
    """

    # Listed in /help in this order
    SLASH_COMMANDS = {
        "/help": "Show commands and where this conversation is stored",
        "/retry": "Resend the last message if it never got a reply",
        "/exit": "Exit rye (or press Ctrl+D)",
    }

    def __init__(
        self,
        controller: SessionController,
        renderer: MarkdownRenderer,
        *,
        vi_mode: bool = False,
        prompt_session: Any | None = None,
    ) -> None:
        self._controller = controller
        self._renderer = renderer
        self._vi_mode = vi_mode
        self._session = prompt_session

    def _prompt_session(self) -> Any:
        if self._session is None:
            from prompt_toolkit import PromptSession
            from prompt_toolkit.history import InMemoryHistory

            self._session = PromptSession(history=InMemoryHistory(), vi_mode=self._vi_mode)
        return self._session

    async def run(self) -> None:
        """Main REPL loop."""
        self._renderer.banner()
        conversation = self._controller.conversation
        if conversation is not None:
            self._renderer.info(f"Continuing conversation: {conversation.heading}")
            if conversation.awaiting_reply:
                self._renderer.warning("The last message has no reply yet. Use /retry to resend it.")

        while True:
            self._renderer.separator("💬 Your Message:")
            try:
                prompt = await self._read_prompt()
            except EOFError:
                break
            except KeyboardInterrupt:
                continue

            if not prompt:
                continue

            # Bare words only count as commands when they are the whole line.
            bare = prompt.lower()
            command = bare.split()[0] if bare.startswith("/") else bare
            if command in ("exit", "/exit", "quit", "/quit"):
                break
            if command in ("help", "/help"):
                self._handle_help()
                continue
            if command == "/retry":
                await self._run_turn(self._controller.retry)
                continue
            if command.startswith("/"):
                matches = [c for c in self.SLASH_COMMANDS if c.startswith(command)]
                if matches:
                    self._renderer.info(f"Unknown command: {command}. Did you mean: {', '.join(matches)}?")
                else:
                    self._renderer.info(f"Unknown command: {command}. Type /help for commands.")
                continue

            await self._run_turn(lambda: self._controller.run_turn(prompt))

        self._print_goodbye()

    async def _read_prompt(self) -> str:
        line = await self._prompt_session().prompt_async(PROMPT)
        return line.strip()

    async def _run_turn(self, turn: Callable[[], Awaitable[TurnResult]]) -> TurnResult | None:
        """Run one turn; Ctrl+C cancels it and every failure is reported."""
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(turn())
        original_handler = signal.getsignal(signal.SIGINT)

        def _cancel_handler(signum: int, frame: Any) -> None:
            loop.call_soon_threadsafe(task.cancel)

        self._renderer.separator("🤖 Assistant Response:", char="═")
        try:
            signal.signal(signal.SIGINT, _cancel_handler)
            result = await task
        except asyncio.CancelledError:
            self._renderer.info("[cancelled] The partial reply was not saved.")
            return None
        except TransportFailure as exc:
            self._renderer.error(f"{exc} (the partial reply was not saved)")
            return None
        except PersistenceFailure as exc:
            self._renderer.error(f"Could not save the reply: {exc}")
            return None
        except PendingReplyError as exc:
            self._renderer.warning(str(exc))
            return None
        except RyeError as exc:
            self._renderer.error(str(exc))
            return None
        finally:
            signal.signal(signal.SIGINT, original_handler)

        if result.title_changed:
            self._renderer.info(f"Saved as {result.conversation.path.name}")
        return result

    def _handle_help(self) -> None:
        self._renderer.info("Commands:")
        for name, desc in self.SLASH_COMMANDS.items():
            self._renderer.info(f"  {name:<8} {desc}")
        conversation = self._controller.conversation
        if conversation is not None:
            self._renderer.info(f"  Conversation ID: {conversation.id}")
            self._renderer.info(f"  File: {conversation.path}")
        else:
            self._renderer.info("  (the conversation file is created with your first message)")

    def _print_goodbye(self) -> None:
        conversation = self._controller.conversation
        if conversation is not None:
            self._renderer.info(f"Conversation saved to: {conversation.path}")
        else:
            self._renderer.info("Goodbye!")
