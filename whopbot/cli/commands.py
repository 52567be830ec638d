"""CLI commands for whopbot."""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from whopbot import __logo__, __version__

app = typer.Typer(
    name="whopbot",
    help=f"{__logo__} whopbot - moderation and utility bot for Whop chats",
    no_args_is_help=True,
)

console = Console()

SECRET_FIELDS = {"api_key"}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} whopbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """whopbot - moderation and utility bot for Whop chats."""
    pass


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def mask(value: str) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


def _load(env_file: Path | None):
    from whopbot.config.loader import load_config

    try:
        return load_config(env_file)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    env_file: Path = typer.Option(None, "--env-file", "-e", help="Dotenv file to load"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
):
    """Connect to the Whop websocket and serve commands."""
    from whopbot.app import WhopBot
    from whopbot.config.loader import require_credentials

    config = _load(env_file)
    configure_logging("DEBUG" if verbose else config.log_level)

    try:
        require_credentials(config)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"{__logo__} Starting whopbot...")
    bot = WhopBot(config)

    console.print(f"[green]✓[/green] Commands: {len(bot.registry)}")
    webhooks = sorted(config.get_webhooks())
    if webhooks:
        console.print(f"[green]✓[/green] Webhooks: {', '.join(webhooks)}")
    else:
        console.print("[yellow]Warning: No webhooks configured[/yellow]")

    try:
        asyncio.run(bot.run())
    except KeyboardInterrupt:
        console.print("\nShutting down...")


@app.command()
def commands():
    """List the chat command vocabulary."""
    from whopbot.commands import build_registry

    registry = build_registry()

    table = Table(title="Chat Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Admin")
    table.add_column("Usage")

    for definition in registry.definitions():
        admin = "[yellow]yes[/yellow]" if definition.admin_only else "[dim]no[/dim]"
        table.add_row(f"/{definition.name}", admin, definition.usage)

    console.print(table)


@app.command()
def config(
    env_file: Path = typer.Option(None, "--env-file", "-e", help="Dotenv file to load"),
):
    """Show the effective configuration with secrets masked."""
    cfg = _load(env_file)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in cfg.model_dump(exclude={"scheduled_announcements"}).items():
        if name in SECRET_FIELDS or "webhook_url" in name:
            value = mask(str(value))
        table.add_row(name, str(value))

    for channel, url in sorted(cfg.get_webhooks().items()):
        table.add_row(f"webhook[{channel}]", mask(url))
    for announcement in cfg.scheduled_announcements:
        state = "" if announcement.enabled else " (disabled)"
        table.add_row(
            f"announcement[{announcement.name}]",
            f"{announcement.cron} -> {announcement.feed_id}{state}",
        )

    console.print(table)


if __name__ == "__main__":
    app()
