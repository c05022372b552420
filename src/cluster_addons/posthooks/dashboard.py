"""Kubernetes dashboard post hook."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cluster_addons.integrations.kubernetes.models.rbac import PolicyRule, Subject
from cluster_addons.integrations.kubernetes.models.values import (
    DashboardValues,
    HelmValues,
    ServiceAccountValues,
)
from cluster_addons.posthooks.base import PostHook, PostHookParams
from cluster_addons.services.kubernetes.resource_ensurer import ResourceEnsurer

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

DASHBOARD_RELEASE = "dashboard"

# Mirrors the role the kubernetes-dashboard chart would create for itself
DASHBOARD_RULES: tuple[PolicyRule, ...] = (
    PolicyRule(api_groups=("*",), resources=("*",), verbs=("list", "get")),
    PolicyRule(api_groups=("",), resources=("secrets",), verbs=("create",)),
    PolicyRule(api_groups=("",), resources=("configmaps",), verbs=("create",)),
    PolicyRule(
        api_groups=("",),
        resources=("secrets",),
        resource_names=("kubernetes-dashboard-key-holder", f"kubernetes-dashboard-{DASHBOARD_RELEASE}"),
        verbs=("update", "delete"),
    ),
    PolicyRule(
        api_groups=("",),
        resources=("configmaps",),
        resource_names=("kubernetes-dashboard-settings",),
        verbs=("update",),
    ),
    PolicyRule(
        api_groups=("",),
        resources=("services",),
        resource_names=("heapster",),
        verbs=("proxy",),
    ),
    PolicyRule(
        api_groups=("",),
        resources=("services/proxy",),
        resource_names=("heapster", "http:heapster:", "https:heapster:"),
        verbs=("get",),
    ),
)


class InstallKubernetesDashboardPostHook(PostHook):
    """Install the dashboard, provisioning a least-privilege role when RBAC is on."""

    name = "InstallKubernetesDashboardPostHook"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        namespace = self.config.cluster.namespace
        values: HelmValues | dict[str, Any] = {}

        if self._probe(cluster).rbac_enabled():
            with self._kubernetes(cluster) as client:
                resources = ResourceEnsurer(client)
                account = resources.get_or_create_service_account(namespace, DASHBOARD_RELEASE)
                account_name = account.metadata.name
                role = resources.get_or_create_cluster_role(DASHBOARD_RELEASE, DASHBOARD_RULES)
                resources.get_or_create_cluster_role_binding(
                    DASHBOARD_RELEASE,
                    Subject.service_account(namespace, account_name),
                    role.metadata.name,
                )
            values = DashboardValues(service_account=ServiceAccountValues(name=account_name))
        else:
            self._cluster_log(cluster).info("rbac_disabled_using_chart_defaults")

        self._install(cluster, DASHBOARD_RELEASE, self.config.charts.dashboard, namespace, values)
