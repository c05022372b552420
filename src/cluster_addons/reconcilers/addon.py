"""Dispatch reconcile requests to the reconciler of the named add-on."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

import structlog

from cluster_addons.exceptions import ReconcileError, UnknownAddonError
from cluster_addons.logging import bind_cluster
from cluster_addons.reconcilers.state import DesiredState

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle
    from cluster_addons.reconcilers.state import DesiredStateReconciler

logger = structlog.get_logger()


class AddonReconciler:
    """Reconcile add-ons by name.

    Called without aspects, every aspect of the add-on runs in the order the
    desired state requires and the first failure stops the rest. Called with
    explicit aspects, each one is attempted independently; the first failure
    is raised once all have run.
    """

    def __init__(self, reconcilers: Iterable[DesiredStateReconciler]) -> None:
        self._reconcilers: Mapping[str, DesiredStateReconciler] = {r.name: r for r in reconcilers}

    def addons(self) -> list[str]:
        return sorted(self._reconcilers)

    def aspects(self, addon_name: str) -> tuple[str, ...]:
        return self._get(addon_name).aspects

    def _get(self, addon_name: str) -> DesiredStateReconciler:
        try:
            return self._reconcilers[addon_name]
        except KeyError:
            raise UnknownAddonError(addon_name) from None

    def reconcile(
        self,
        cluster: ClusterHandle,
        addon_name: str,
        desired_state: DesiredState | str,
        aspects: Sequence[str] | None = None,
    ) -> None:
        """Drive ``addon_name`` on ``cluster`` toward ``desired_state``.

        Raises:
            UnknownAddonError: If no reconciler is registered for the add-on.
            ReconcileError: If an aspect fails or is unknown to the add-on.
        """
        reconciler = self._get(addon_name)
        state = DesiredState(desired_state)
        log = bind_cluster(logger.bind(addon=addon_name), cluster).bind(desired_state=state.value)

        if aspects is None:
            log.info("reconciling_addon")
            for aspect in reconciler.order(state):
                self._reconcile_aspect(reconciler, cluster, aspect, state, log)
            log.info("reconciled_addon")
            return

        for aspect in aspects:
            if aspect not in reconciler.aspects:
                raise ReconcileError(addon_name, aspect, "unknown aspect")

        failures: list[ReconcileError] = []
        for aspect in aspects:
            try:
                self._reconcile_aspect(reconciler, cluster, aspect, state, log)
            except ReconcileError as e:
                failures.append(e)

        if failures:
            log.error("reconcile_aspects_failed", failed=[f.aspect for f in failures])
            raise failures[0]
        log.info("reconciled_addon", aspects=list(aspects))

    @staticmethod
    def _reconcile_aspect(
        reconciler: DesiredStateReconciler,
        cluster: ClusterHandle,
        aspect: str,
        state: DesiredState,
        log: structlog.BoundLogger,
    ) -> None:
        log.info("reconciling_aspect", aspect=aspect)
        try:
            reconciler.reconcile_aspect(cluster, aspect, state)
        except Exception as e:
            log.error("reconcile_aspect_failed", aspect=aspect, error=str(e))
            raise ReconcileError(reconciler.name, aspect, str(e)) from e
