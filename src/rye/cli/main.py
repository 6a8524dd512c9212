"""CLI entry point for rye."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler

from rye.core.config import RyeConfig, load_config, resolve_api_key
from rye.core.conversation import Conversation
from rye.core.store import ConversationStore
from rye.types.errors import Ambiguous, MalformedConversation, NotFound, PersistenceFailure


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def load_conversation(store: ConversationStore, identifier: str) -> Conversation:
    """Load a conversation or exit with a readable error."""
    try:
        return store.load(identifier)
    except Ambiguous as exc:
        fail(f"'{exc.identifier}' is ambiguous. Matches: {', '.join(exc.candidates)}")
    except NotFound as exc:
        fail(f"Could not find conversation '{exc.identifier}' in {store.directory}")
    except MalformedConversation as exc:
        fail(f"Malformed conversation file {exc.path}: {exc.reason}")
    except PersistenceFailure as exc:
        fail(str(exc))


@click.group(invoke_without_command=True)
@click.option("--continue", "-c", "continue_id", default=None,
              help="Continue a conversation by ID (a unique prefix is enough)")
@click.option("--provider", "-p", default=None, help="LLM provider (default: anthropic)")
@click.option("--model", "-m", default=None, help="Model ID")
@click.option("--dir", "directory", default=None,
              type=click.Path(file_okay=False, path_type=Path),
              help="Conversation directory (default: $RYE_CONVERSATIONS or ~/.rye)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(
    ctx: click.Context,
    continue_id: str | None,
    provider: str | None,
    model: str | None,
    directory: Path | None,
    verbose: bool,
) -> None:
    """rye -- chat with LLMs and keep every conversation as markdown.

    \b
    Usage:
      rye                      (start a new conversation)
      rye -c 3f2a              (continue a conversation)
      rye list
      rye show 3f2a
    """
    _configure_logging(verbose)

    config = load_config()
    if provider:
        config = replace(config, provider=provider.lower(), api_key=resolve_api_key(provider.lower()))
    if model:
        config = replace(config, model=model)
    if directory:
        config = replace(config, conversations_dir=directory.expanduser())
    ctx.obj = config

    if ctx.invoked_subcommand is not None:
        return

    _run_repl(config, continue_id)


def _run_repl(config: RyeConfig, continue_id: str | None) -> None:
    from rye.cli.repl import Repl
    from rye.core.controller import SessionController
    from rye.providers.registry import create_provider
    from rye.ui.terminal import MarkdownRenderer

    store = ConversationStore(config.conversations_dir)
    conversation = load_conversation(store, continue_id) if continue_id else None

    try:
        llm = create_provider(
            config.provider,
            model=config.model,
            api_key=config.api_key,
            max_tokens=config.max_tokens,
        )
    except KeyError as exc:
        fail(str(exc.args[0]))
    except ImportError as exc:
        fail(str(exc))

    renderer = MarkdownRenderer()
    if config.api_key is None:
        renderer.warning(
            f"No API key found for '{config.provider}'. "
            "Set ANTHROPIC_API_KEY in your environment or a .env file."
        )

    controller = SessionController(store, llm, renderer, conversation)
    asyncio.run(Repl(controller, renderer, vi_mode=config.vi_mode).run())


def _register_subcommands() -> None:
    """Register CLI subcommands."""
    from rye.cli.commands import list_cmd, show_cmd

    cli.add_command(list_cmd, "list")
    cli.add_command(show_cmd, "show")


_register_subcommands()


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
