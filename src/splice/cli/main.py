"""Splice CLI: main entry point and shared utilities."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from splice import __version__
from splice.config import Settings
from splice.core.logging import pick_level, setup_logging

console = Console()


def fail(message: str, code: int = 1) -> None:
    """Print an error and exit."""
    console.print(f"[red]Error:[/red] {message}")
    sys.exit(code)


def resolve_workspace(settings: Settings, workspace: str | None, out_dir: str | None) -> Path:
    """--workspace wins, then SPLICE_WORKSPACE_DIR, then <out>/.splice."""
    if workspace:
        return Path(workspace).expanduser().resolve()
    return settings.resolve_workspace(out_dir)


def workspace_option(fn):
    """Shared --workspace / --out options."""
    fn = click.option("--out", "out_dir", default=None, help="Output directory (workspace defaults to <out>/.splice)")(fn)
    return click.option("--workspace", default=None, help="Workspace directory holding objects/ and checkpoints/")(fn)


@click.group()
@click.option("--log-level", default=None, type=click.Choice(["debug", "info", "warn", "error"]), help="Log level")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="splice")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, quiet: bool, verbose: bool) -> None:
    """Splice: rebuild threads and conversations from personal archives."""
    settings = Settings()
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    setup_logging(pick_level(log_level, quiet, verbose, default=settings.log_level))


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from splice.cli.checkpoint_commands import export_messages, list_checkpoints, run, show_checkpoint  # noqa: E402
from splice.cli.decision_commands import decisions  # noqa: E402

main.add_command(run)
main.add_command(list_checkpoints, name="checkpoints")
main.add_command(show_checkpoint, name="show")
main.add_command(export_messages, name="messages")
main.add_command(decisions)
