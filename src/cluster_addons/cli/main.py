"""Main CLI entry point using Typer."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from cluster_addons import __version__
from cluster_addons.cli.commands import posthooks, reconcile
from cluster_addons.logging.config import configure_logging

app = typer.Typer(
    name="addons",
    help="Install and reconcile add-ons on managed Kubernetes clusters.",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"addons version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Write console logs as JSON.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (defaults to ~/.config/cluster-addons/config.yaml).",
        dir_okay=False,
    ),
) -> None:
    """Add-on engine CLI."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)
    ctx.obj = {"config_path": config}


# Register subcommands
app.add_typer(posthooks.app, name="posthooks")
app.command()(reconcile.reconcile)


if __name__ == "__main__":
    app()
