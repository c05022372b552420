"""Run an ordered list of post hooks against one cluster."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import structlog

from cluster_addons.exceptions import PostHookError, UnknownPostHookError
from cluster_addons.logging import bind_cluster
from cluster_addons.posthooks.autoscaling import (
    InstallClusterAutoscalerPostHook,
    InstallHorizontalPodAutoscalerPostHook,
)
from cluster_addons.posthooks.backup import RestoreFromBackup
from cluster_addons.posthooks.cluster_roles import CreateClusterRoles
from cluster_addons.posthooks.dashboard import InstallKubernetesDashboardPostHook
from cluster_addons.posthooks.node_labels import LabelNodesWithNodePoolName
from cluster_addons.posthooks.spot import InitSpotConfig
from cluster_addons.posthooks.system import (
    InstallHelmPostHook,
    InstallPVCOperatorPostHook,
    LabelKubeSystemNamespacePostHook,
)
from cluster_addons.posthooks.termination_handler import DeployInstanceTerminationHandler

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle
    from cluster_addons.posthooks.base import PostHook, PostHookContext, PostHookParams

logger = structlog.get_logger()

POST_HOOKS: dict[str, type[PostHook]] = {
    hook.name: hook
    for hook in (
        InstallKubernetesDashboardPostHook,
        InstallClusterAutoscalerPostHook,
        InstallHorizontalPodAutoscalerPostHook,
        InstallPVCOperatorPostHook,
        LabelKubeSystemNamespacePostHook,
        InstallHelmPostHook,
        LabelNodesWithNodePoolName,
        InitSpotConfig,
        DeployInstanceTerminationHandler,
        CreateClusterRoles,
        RestoreFromBackup,
    )
}


class PostHookRunner:
    """Execute post hooks strictly in order, stopping at the first failure.

    Example:
        ```python
        runner = PostHookRunner(context)
        runner.run(cluster, ["CreateClusterRoles", "InstallHelmPostHook"])
        ```
    """

    def __init__(
        self,
        context: PostHookContext,
        registry: Mapping[str, type[PostHook]] | None = None,
    ) -> None:
        self._context = context
        self._registry = dict(POST_HOOKS if registry is None else registry)

    def available(self) -> list[str]:
        """Names of every registered post hook."""
        return sorted(self._registry)

    def run(
        self,
        cluster: ClusterHandle,
        hook_names: Sequence[str],
        params: Mapping[str, PostHookParams] | None = None,
    ) -> dict[str, Any]:
        """Run ``hook_names`` against ``cluster``.

        Args:
            cluster: Target cluster.
            hook_names: Hooks to run, in order.
            params: Parameter bags keyed by hook name.

        Returns:
            Report of every hook that ran, keyed by hook name.

        Raises:
            UnknownPostHookError: Before anything runs, if a name is unknown.
            PostHookError: When a hook fails; the remaining hooks are skipped.
        """
        unknown = [name for name in hook_names if name not in self._registry]
        if unknown:
            raise UnknownPostHookError(unknown)

        params = params or {}
        log = bind_cluster(logger.bind(entity="posthook_runner"), cluster)
        results: dict[str, Any] = {}

        for name in hook_names:
            hook = self._registry[name](self._context)
            log.info("running_posthook", posthook=name)
            try:
                results[name] = hook.run(cluster, params.get(name))
            except Exception as e:
                log.error("posthook_failed", posthook=name, error=str(e))
                raise PostHookError(name, str(e)) from e
            log.info("posthook_finished", posthook=name)

        return results
