"""Instance termination handler post hook."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cluster_addons.exceptions import ConfigurationMissingError
from cluster_addons.integrations.kubernetes.models.cluster import Cloud
from cluster_addons.integrations.kubernetes.models.values import (
    HollowtreesNotifierValues,
    InstanceTerminationHandlerValues,
)
from cluster_addons.posthooks.base import PostHook, PostHookParams

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

TERMINATION_HANDLER_RELEASE = "ith"
TERMINATION_HANDLER_CLOUDS = frozenset({Cloud.AMAZON, Cloud.GOOGLE})
ALERTS_PATH = "/alerts"


class DeployInstanceTerminationHandler(PostHook):
    """Deploy the handler that drains nodes about to be reclaimed.

    When autoscaling is enabled the handler also notifies the alert endpoint,
    authenticating with a token signed for this cluster.
    """

    name = "DeployInstanceTerminationHandler"

    def notifier_values(self, cluster: ClusterHandle) -> HollowtreesNotifierValues:
        scale_options = self._probe(cluster).scale_options()
        if scale_options is None or not scale_options.enabled:
            return HollowtreesNotifierValues(enabled=False)

        hollowtrees = self.config.hollowtrees
        if not hollowtrees.token_signing_key:
            raise ConfigurationMissingError("hollowtrees.token_signing_key")

        generator = self._ctx.token_generator_factory(self.config)
        _, token = generator.generate(cluster.id, cluster.organization_id)
        return HollowtreesNotifierValues(
            enabled=True,
            url=hollowtrees.endpoint + ALERTS_PATH,
            organization_id=cluster.organization_id,
            cluster_id=cluster.id,
            cluster_name=cluster.name,
            jwt_token=token,
        )

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        cloud = self._probe(cluster).cloud()
        if cloud not in TERMINATION_HANDLER_CLOUDS:
            self._cluster_log(cluster).debug("termination_handler_not_supported", cloud=str(cloud))
            return

        values = InstanceTerminationHandlerValues(hollowtrees_notifier=self.notifier_values(cluster))
        self._install(
            cluster,
            TERMINATION_HANDLER_RELEASE,
            self.config.charts.instance_termination_handler,
            self.config.cluster.namespace,
            values,
        )
