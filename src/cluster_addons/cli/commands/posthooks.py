"""Post hook commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
import yaml
from rich.table import Table

from cluster_addons.auth.organization import StaticOrganizationLookup
from cluster_addons.cli.commands.base import (
    ClusterFileArgument,
    console,
    get_cluster,
    get_config,
    get_release_manager,
    handle_error,
)
from cluster_addons.exceptions import AddonError
from cluster_addons.integrations.kubernetes.exceptions import KubernetesError
from cluster_addons.posthooks import POST_HOOKS, PostHookContext, PostHookRunner

app = typer.Typer(help="Run post-provisioning hooks against a cluster.")
logger = structlog.get_logger()


@app.command("list")
def list_hooks(ctx: typer.Context) -> None:
    """List available post hooks in their default order."""
    config = get_config(ctx)
    default_order = list(config.posthooks.order)

    table = Table(title="Post Hooks")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Default position", justify="right")
    table.add_column("Description", style="dim")

    ordered = default_order + sorted(name for name in POST_HOOKS if name not in default_order)
    for name in ordered:
        hook = POST_HOOKS.get(name)
        position = str(default_order.index(name) + 1) if name in default_order else "-"
        summary = (hook.__doc__ or "").strip().splitlines()[0] if hook and hook.__doc__ else ""
        table.add_row(name, position, summary)

    console.print(table)


def _load_params(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] Cannot read parameters file {path}: {e}")
        raise typer.Exit(1) from e
    if not isinstance(data, dict):
        console.print("[red]Error:[/red] Parameters file must map hook names to parameters")
        raise typer.Exit(1)
    return data


@app.command("run")
def run_hooks(
    ctx: typer.Context,
    cluster_file: ClusterFileArgument,
    hooks: Annotated[
        list[str] | None,
        typer.Option(
            "--hook",
            "-H",
            help="Post hook to run (repeatable, in order). Defaults to the configured order.",
        ),
    ] = None,
    params_file: Annotated[
        Path | None,
        typer.Option(
            "--params",
            "-p",
            help="YAML file mapping hook names to their parameters",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Run post hooks against the cluster described by CLUSTER_FILE."""
    config = get_config(ctx)
    cluster = get_cluster(cluster_file)
    hook_names = hooks or list(config.posthooks.order)
    params = _load_params(params_file)

    organizations = None
    if cluster.organization_name:
        organizations = StaticOrganizationLookup({cluster.organization_id: cluster.organization_name})

    context = PostHookContext(
        config=config,
        releases=get_release_manager(config),
        organizations=organizations,
    )
    runner = PostHookRunner(context)

    logger.info("running_posthooks", cluster=cluster.name, hooks=hook_names)
    try:
        results = runner.run(cluster, hook_names, params)
    except (AddonError, KubernetesError) as e:
        handle_error(e)

    for name in hook_names:
        console.print(f"[green]✓[/green] {name}")
        report = results.get(name)
        if isinstance(report, dict):
            for key, ok in report.items():
                mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
                console.print(f"    {mark} {key}")
