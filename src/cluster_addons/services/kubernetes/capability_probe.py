"""Read-only questions about a cluster's distribution, vendor and features."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from cluster_addons.integrations.kubernetes.exceptions import KubernetesError
from cluster_addons.logging import bind_cluster

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.client import KubernetesClient
    from cluster_addons.integrations.kubernetes.models.cluster import (
        ClusterHandle,
        Cloud,
        Distribution,
        ScaleOptions,
    )

logger = structlog.get_logger()

METRICS_API_GROUP = "metrics.k8s.io"
METRICS_API_GROUP_VERSION = "metrics.k8s.io/v1beta1"


class CapabilityProbe:
    """Answer capability questions about one cluster.

    A probe that fails to get an answer reports the capability as absent and
    logs the failure, unless the caller passes ``required=True``; then the
    error propagates.
    """

    def __init__(self, cluster: ClusterHandle, client: KubernetesClient | None = None) -> None:
        self._cluster = cluster
        self._client = client
        self._log = bind_cluster(logger.bind(entity="capability"), cluster)

    def rbac_enabled(self) -> bool:
        return bool(self._cluster.rbac_enabled)

    def distribution(self) -> Distribution:
        return self._cluster.distribution

    def cloud(self) -> Cloud:
        return self._cluster.cloud

    def has_metrics_server_api(self, required: bool = False) -> bool:
        """Whether the cluster serves the ``metrics.k8s.io/v1beta1`` API."""
        if self._client is None:
            raise ValueError("has_metrics_server_api needs a Kubernetes client")
        try:
            group_list = self._client.apis.get_api_versions()
        except Exception as e:
            if required:
                translated = self._client.translate_api_exception(e, resource_type="APIGroupList")
                if translated is e:
                    raise
                raise translated from e
            self._log.warning("metrics_api_probe_failed", error=str(e))
            return False

        for group in group_list.groups or []:
            if group.name != METRICS_API_GROUP:
                continue
            for version in group.versions or []:
                if version.group_version == METRICS_API_GROUP_VERSION:
                    self._log.debug("metrics_api_found")
                    return True
        return False

    def is_spot_priced(self, required: bool = False) -> bool:
        """Whether the cluster has spot-priced node pools."""
        try:
            return bool(self._cluster.get_status().spot)
        except (KubernetesError, OSError) as e:
            if required:
                raise
            self._log.warning("spot_probe_failed", error=str(e))
            return False

    def scale_options(self, required: bool = False) -> ScaleOptions | None:
        """Autoscaling settings of the cluster, None when never configured."""
        try:
            return self._cluster.get_scale_options()
        except (KubernetesError, OSError) as e:
            if required:
                raise
            self._log.warning("scale_options_probe_failed", error=str(e))
            return None
