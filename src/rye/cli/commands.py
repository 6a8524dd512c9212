"""CLI subcommands for rye (list, show)."""

from __future__ import annotations

import click

from rye.core.config import RyeConfig
from rye.core.store import ConversationStore


@click.command()
@click.option("--limit", "-n", default=20, help="Max conversations to show")
@click.pass_obj
def list_cmd(config: RyeConfig, limit: int) -> None:
    """List stored conversations, newest first."""
    store = ConversationStore(config.conversations_dir)
    conversations = store.list_conversations()[:limit]
    if not conversations:
        click.echo(f"No conversations found in {store.directory}.")
        return

    click.echo(f"{'ID':<40} {'Updated':<17} {'Title'}")
    click.echo("-" * 80)
    for info in conversations:
        updated = info.modified.strftime("%Y-%m-%d %H:%M")
        click.echo(f"{info.id:<40} {updated:<17} {info.title or '(untitled)'}")


@click.command()
@click.argument("identifier")
@click.pass_obj
def show_cmd(config: RyeConfig, identifier: str) -> None:
    """Render a stored conversation."""
    from rye.cli.main import load_conversation
    from rye.ui.terminal import MarkdownRenderer

    store = ConversationStore(config.conversations_dir)
    conversation = load_conversation(store, identifier)
    renderer = MarkdownRenderer()
    renderer.render(conversation.to_markdown())
    renderer.info(str(conversation.path))
