"""Unit tests for the dashboard post hook."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from cluster_addons.posthooks.base import PostHookContext
from cluster_addons.posthooks.dashboard import (
    DASHBOARD_RULES,
    InstallKubernetesDashboardPostHook,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestInstallKubernetesDashboardPostHook:
    """Tests for InstallKubernetesDashboardPostHook."""

    def test_rbac_enabled_provisions_role(
        self,
        hook_context: PostHookContext,
        mock_k8s_client: MagicMock,
        mock_releases: MagicMock,
        cluster: Any,
        installed: Any,
        named: Any,
    ) -> None:
        """Should create account, role and binding, then install with that account."""
        mock_k8s_client.core_v1.read_namespaced_service_account.return_value = named("dashboard")
        mock_k8s_client.rbac_v1.read_cluster_role.return_value = named("dashboard")
        mock_k8s_client.rbac_v1.read_cluster_role_binding.return_value = named("dashboard")

        InstallKubernetesDashboardPostHook(hook_context).run(cluster)

        mock_k8s_client.core_v1.read_namespaced_service_account.assert_called_once_with(
            "dashboard", "pipeline-system"
        )
        ((release, options),) = installed(mock_releases)
        assert release.name == "dashboard"
        assert release.namespace == "pipeline-system"
        assert release.chart == "banzaicloud-stable/kubernetes-dashboard"
        assert release.rendered_values() == {
            "rbac": {"create": False, "clusterAdminRole": False},
            "serviceAccount": {"create": False, "name": "dashboard"},
        }
        assert options.wait is False
        mock_k8s_client.close.assert_called_once_with()

    def test_rbac_disabled_uses_chart_defaults(
        self,
        hook_context: PostHookContext,
        mock_k8s_client: MagicMock,
        mock_releases: MagicMock,
        make_cluster: Any,
        installed: Any,
    ) -> None:
        """Should install with empty values and touch no RBAC objects."""
        InstallKubernetesDashboardPostHook(hook_context).run(make_cluster(rbac_enabled=False))

        ((release, _),) = installed(mock_releases)
        assert release.rendered_values() == {}
        mock_k8s_client.rbac_v1.read_cluster_role.assert_not_called()

    def test_role_grants_key_holder_access(self) -> None:
        """Should let the dashboard update its own secrets only."""
        scoped = [rule for rule in DASHBOARD_RULES if "update" in rule.verbs and "secrets" in rule.resources]

        assert scoped[0].resource_names == (
            "kubernetes-dashboard-key-holder",
            "kubernetes-dashboard-dashboard",
        )
