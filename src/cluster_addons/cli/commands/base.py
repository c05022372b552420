"""Shared options, loaders and error handling for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console

from cluster_addons.core.config.models import AddonsConfig, load_config
from cluster_addons.exceptions import AddonError, ConfigurationMissingError
from cluster_addons.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesTimeoutError,
)
from cluster_addons.integrations.kubernetes.helm_client import HelmClient
from cluster_addons.integrations.kubernetes.static_cluster import (
    ClusterFileError,
    StaticCluster,
    load_cluster_file,
)
from cluster_addons.services.kubernetes.release_manager import ReleaseManager

console = Console()

ClusterFileArgument = Annotated[
    Path,
    typer.Argument(
        help="YAML file describing the target cluster",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]


def get_config(ctx: typer.Context) -> AddonsConfig:
    """Load configuration from the path given to the top-level command."""
    config_path: Path | None = (ctx.obj or {}).get("config_path")
    try:
        return load_config(config_path)
    except (ValueError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1) from e


def get_cluster(path: Path) -> StaticCluster:
    try:
        return load_cluster_file(path)
    except ClusterFileError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def get_release_manager(config: AddonsConfig) -> ReleaseManager:
    try:
        return ReleaseManager(HelmClient(config.helm.binary_path))
    except KubernetesError as e:
        handle_error(e)


def handle_error(error: Exception) -> NoReturn:
    """Print an engine or Kubernetes error and exit with status 1."""
    if isinstance(error, AddonError):
        console.print(f"[red]Error:[/red] {error.message}")
        cause = error.__cause__
        while cause is not None:
            console.print(f"  Cause: {cause}")
            cause = cause.__cause__ if cause.__cause__ is not cause else None
        if error.timed_out:
            console.print("\n[dim]Hint: Increase helm.timeout or ADDONS_HELM_TIMEOUT.[/dim]")
        if isinstance(error, ConfigurationMissingError):
            console.print(f"\n[dim]Hint: Set '{error.setting}' in the configuration file.[/dim]")

    elif isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesTimeoutError):
        console.print("[red]Error:[/red] Operation timed out")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesError):
        console.print(f"[red]Error:[/red] {error}")

    else:
        console.print(f"[red]Error:[/red] {error}")

    raise typer.Exit(1)
