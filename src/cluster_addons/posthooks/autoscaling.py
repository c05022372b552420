"""Autoscaling post hooks: cluster autoscaler and horizontal pod autoscaler."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cluster_addons.integrations.kubernetes.models.cluster import Cloud
from cluster_addons.integrations.kubernetes.models.values import (
    AutoDiscoveryValues,
    ClusterAutoscalerValues,
    EnabledToggle,
    HPAOperatorValues,
    KubeMetricsAdapterValues,
    MetricsServerChartValues,
    PrometheusValues,
)
from cluster_addons.posthooks.base import PostHook, PostHookParams

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

AUTOSCALER_RELEASE = "autoscaler"
HPA_OPERATOR_RELEASE = "hpa-operator"

AUTOSCALER_CLOUD_PROVIDERS = {Cloud.AMAZON: "aws", Cloud.AZURE: "azure"}

# Vendors whose clusters may come without a metrics server
METRICS_SERVER_VENDORS = frozenset({Cloud.AMAZON, Cloud.AZURE, Cloud.ALIBABA, Cloud.ORACLE})


class InstallClusterAutoscalerPostHook(PostHook):
    """Install the cluster autoscaler on Amazon and Azure clusters."""

    name = "InstallClusterAutoscalerPostHook"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        cloud = self._probe(cluster).cloud()
        provider = AUTOSCALER_CLOUD_PROVIDERS.get(cloud)
        if provider is None:
            self._cluster_log(cluster).info("autoscaler_not_supported", cloud=str(cloud))
            return

        values = ClusterAutoscalerValues(
            cloud_provider=provider,
            auto_discovery=AutoDiscoveryValues(cluster_name=cluster.name),
        )
        self._install(
            cluster,
            AUTOSCALER_RELEASE,
            self.config.autoscale.charts.cluster_autoscaler,
            self.config.autoscale.namespace,
            values,
        )


class InstallHorizontalPodAutoscalerPostHook(PostHook):
    """Install the HPA operator wired to the in-cluster Prometheus."""

    name = "InstallHorizontalPodAutoscalerPostHook"

    def prometheus_url(self) -> str:
        autoscale = self.config.autoscale
        prometheus = autoscale.hpa.prometheus
        return f"http://{prometheus.service_name}.{autoscale.namespace}.svc/{prometheus.service_context}"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        log = self._cluster_log(cluster)
        values = HPAOperatorValues(
            kube_metrics_adapter=KubeMetricsAdapterValues(
                prometheus=PrometheusValues(url=self.prometheus_url())
            )
        )

        if self._probe(cluster).cloud() in METRICS_SERVER_VENDORS:
            with self._kubernetes(cluster) as client:
                has_metrics_api = self._probe(cluster, client).has_metrics_server_api()
            if has_metrics_api:
                log.info("metrics_server_already_installed")
            else:
                log.info("metrics_server_missing_enabling_subchart")
                values = values.model_copy(
                    update={
                        "metrics_server": EnabledToggle(enabled=True),
                        "metrics_server_chart": MetricsServerChartValues(),
                    }
                )

        self._install(
            cluster,
            HPA_OPERATOR_RELEASE,
            self.config.autoscale.charts.hpa_operator,
            self.config.autoscale.namespace,
            values,
        )
