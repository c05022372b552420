"""Spot instance tooling post hook."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cluster_addons.posthooks.base import PostHook, PostHookParams
from cluster_addons.services.kubernetes.resource_ensurer import ResourceEnsurer

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

SPOT_SCHEDULER_RELEASE = "spot-scheduler"
SPOT_WEBHOOK_RELEASE = "spot-webhook"


class InitSpotConfig(PostHook):
    """Prepare spot-priced clusters: config map, scheduler and admission webhook."""

    name = "InitSpotConfig"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        log = self._cluster_log(cluster)
        if not self._probe(cluster).is_spot_priced(required=True):
            log.debug("cluster_not_spot_priced")
            return

        namespace = self.config.cluster.namespace
        with self._kubernetes(cluster) as client:
            ResourceEnsurer(client).get_or_create_config_map(namespace, self.config.cluster.spot_config_map)

        charts = self.config.charts
        self._install(cluster, SPOT_SCHEDULER_RELEASE, charts.spot_scheduler, namespace)
        self._install(cluster, SPOT_WEBHOOK_RELEASE, charts.spot_webhook, namespace, wait=True)
        log.info("spot_config_initialized")
