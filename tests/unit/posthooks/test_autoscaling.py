"""Unit tests for the autoscaling post hooks."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from cluster_addons.integrations.kubernetes.models.cluster import Cloud
from cluster_addons.posthooks.autoscaling import (
    InstallClusterAutoscalerPostHook,
    InstallHorizontalPodAutoscalerPostHook,
)
from cluster_addons.posthooks.base import PostHookContext


def _api_groups(*names: str) -> MagicMock:
    groups = []
    for name in names:
        group = MagicMock()
        group.name = name
        group.versions = [MagicMock(group_version=f"{name}/v1beta1")]
        groups.append(group)
    return MagicMock(groups=groups)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestInstallHorizontalPodAutoscalerPostHook:
    """Tests for InstallHorizontalPodAutoscalerPostHook."""

    def test_prometheus_url(self, hook_context: PostHookContext) -> None:
        """Should point at the Prometheus service in the autoscale namespace."""
        hook = InstallHorizontalPodAutoscalerPostHook(hook_context)

        assert hook.prometheus_url() == "http://monitor-prometheus-server.kube-system.svc/prometheus"

    def test_enables_metrics_server_when_missing(
        self,
        hook_context: PostHookContext,
        mock_k8s_client: MagicMock,
        mock_releases: MagicMock,
        cluster: Any,
        installed: Any,
    ) -> None:
        """Should enable the bundled metrics server on an Amazon cluster without one."""
        mock_k8s_client.apis.get_api_versions.return_value = _api_groups("apps")

        InstallHorizontalPodAutoscalerPostHook(hook_context).run(cluster)

        ((release, _),) = installed(mock_releases)
        assert release.name == "hpa-operator"
        assert release.namespace == "kube-system"
        values = release.rendered_values()
        assert values["metricsServer"] == {"enabled": True}
        assert values["metrics-server"] == {"rbac": {"create": True}}

    def test_keeps_existing_metrics_server(
        self,
        hook_context: PostHookContext,
        mock_k8s_client: MagicMock,
        mock_releases: MagicMock,
        cluster: Any,
        installed: Any,
    ) -> None:
        """Should not install a second metrics server."""
        mock_k8s_client.apis.get_api_versions.return_value = _api_groups("metrics.k8s.io")

        InstallHorizontalPodAutoscalerPostHook(hook_context).run(cluster)

        ((release, _),) = installed(mock_releases)
        assert "metricsServer" not in release.rendered_values()

    def test_other_vendors_skip_probe(
        self,
        hook_context: PostHookContext,
        mock_k8s_client: MagicMock,
        mock_releases: MagicMock,
        make_cluster: Any,
        installed: Any,
    ) -> None:
        """Should not probe for the metrics API on Google clusters."""
        InstallHorizontalPodAutoscalerPostHook(hook_context).run(make_cluster(cloud=Cloud.GOOGLE))

        mock_k8s_client.apis.get_api_versions.assert_not_called()
        ((release, _),) = installed(mock_releases)
        assert release.rendered_values() == {
            "kube-metrics-adapter": {
                "prometheus": {"url": "http://monitor-prometheus-server.kube-system.svc/prometheus"}
            }
        }


@pytest.mark.unit
@pytest.mark.kubernetes
class TestInstallClusterAutoscalerPostHook:
    """Tests for InstallClusterAutoscalerPostHook."""

    @pytest.mark.parametrize(("cloud", "provider"), [(Cloud.AMAZON, "aws"), (Cloud.AZURE, "azure")])
    def test_installs_for_supported_clouds(
        self,
        hook_context: PostHookContext,
        mock_releases: MagicMock,
        make_cluster: Any,
        installed: Any,
        cloud: Cloud,
        provider: str,
    ) -> None:
        """Should install with the matching cloud provider."""
        InstallClusterAutoscalerPostHook(hook_context).run(make_cluster(cloud=cloud))

        ((release, _),) = installed(mock_releases)
        assert release.name == "autoscaler"
        assert release.namespace == "kube-system"
        assert release.rendered_values()["cloudProvider"] == provider
        assert release.rendered_values()["autoDiscovery"] == {"clusterName": "demo"}

    def test_skips_other_clouds(
        self, hook_context: PostHookContext, mock_releases: MagicMock, make_cluster: Any
    ) -> None:
        """Should do nothing on clouds the autoscaler does not support."""
        InstallClusterAutoscalerPostHook(hook_context).run(make_cluster(cloud=Cloud.GOOGLE))

        mock_releases.install_or_upgrade.assert_not_called()
