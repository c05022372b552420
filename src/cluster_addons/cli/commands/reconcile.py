"""Reconcile command."""

from __future__ import annotations

from typing import Annotated

import typer

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
from cluster_addons.reconcilers import AddonReconciler, DesiredState, FederationReconciler


def reconcile(
    ctx: typer.Context,
    cluster_file: ClusterFileArgument,
    addon: Annotated[str, typer.Argument(help="Add-on to reconcile (e.g. federation)")],
    state: Annotated[
        DesiredState,
        typer.Option("--state", "-s", help="Desired state of the add-on", case_sensitive=False),
    ] = DesiredState.PRESENT,
    aspects: Annotated[
        list[str] | None,
        typer.Option(
            "--aspect",
            "-a",
            help="Only reconcile this aspect (repeatable). Defaults to every aspect.",
        ),
    ] = None,
) -> None:
    """Drive ADDON on the cluster described by CLUSTER_FILE to the desired state."""
    config = get_config(ctx)
    cluster = get_cluster(cluster_file)
    releases = get_release_manager(config)

    reconciler = AddonReconciler(
        [FederationReconciler(config.federation, releases, helm_timeout=config.helm.timeout)]
    )

    try:
        reconciler.reconcile(cluster, addon, state, aspects or None)
    except (AddonError, KubernetesError) as e:
        handle_error(e)

    console.print(f"[green]✓[/green] {addon} is {state.value} on cluster {cluster.name}")
