"""System post hooks: namespace label, PVC operator and the Helm server."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cluster_addons.posthooks.base import PostHook, PostHookParams
from cluster_addons.services.kubernetes.helm_bootstrap import HelmBootstrapper
from cluster_addons.services.kubernetes.resource_ensurer import ResourceEnsurer

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

KUBE_SYSTEM_NAMESPACE = "kube-system"
PVC_OPERATOR_RELEASE = "pvc-operator"


class LabelKubeSystemNamespacePostHook(PostHook):
    """Label kube-system with its own name so policies can select it."""

    name = "LabelKubeSystemNamespacePostHook"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        with self._kubernetes(cluster) as client:
            ResourceEnsurer(client).ensure_namespace_labels(
                KUBE_SYSTEM_NAMESPACE, {"name": KUBE_SYSTEM_NAMESPACE}
            )


class InstallPVCOperatorPostHook(PostHook):
    name = "InstallPVCOperatorPostHook"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        self._install(
            cluster,
            PVC_OPERATOR_RELEASE,
            self.config.charts.pvc_operator,
            self.config.cluster.namespace,
        )


class InstallHelmPostHook(PostHook):
    """Install the in-cluster Helm server and wait until it is ready."""

    name = "InstallHelmPostHook"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        distribution = self._probe(cluster).distribution()
        with self._kubernetes(cluster) as client:
            bootstrapper = HelmBootstrapper(client, self.config.helm.tiller, sleep=self._ctx.sleep)
            bootstrapper.bootstrap(distribution)
        self._cluster_log(cluster).info("helm_server_installed")
