"""Typed Helm values for the charts this engine installs.

Each chart gets its own model; ``to_values`` renders the wire mapping Helm
expects, using the chart's own key spelling via field aliases.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FeatureGate = Literal["Enabled", "Disabled"]


def feature_gate(enabled: bool) -> FeatureGate:
    """Map a boolean toggle onto the string form feature gates use."""
    return "Enabled" if enabled else "Disabled"


class HelmValues(BaseModel):
    """Base class for chart values models."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
    )

    def to_values(self) -> dict[str, Any]:
        """Render the values mapping passed to Helm."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class DashboardRBACValues(HelmValues):
    create: bool = False
    cluster_admin_role: bool = Field(default=False, alias="clusterAdminRole")


class ServiceAccountValues(HelmValues):
    create: bool = False
    name: str | None = None


class DashboardValues(HelmValues):
    """Values for the kubernetes-dashboard chart when RBAC is provisioned by us."""

    rbac: DashboardRBACValues = DashboardRBACValues()
    service_account: ServiceAccountValues = Field(
        default=ServiceAccountValues(),
        alias="serviceAccount",
    )


# ---------------------------------------------------------------------------
# HPA operator
# ---------------------------------------------------------------------------


class PrometheusValues(HelmValues):
    url: str


class KubeMetricsAdapterValues(HelmValues):
    prometheus: PrometheusValues


class EnabledToggle(HelmValues):
    enabled: bool = True


class RBACCreateValues(HelmValues):
    create: bool = True


class MetricsServerChartValues(HelmValues):
    rbac: RBACCreateValues = RBACCreateValues()


class HPAOperatorValues(HelmValues):
    """Values for the hpa-operator chart.

    ``metrics_server`` toggles the bundled metrics-server sub-chart; both it and
    ``metrics_server_chart`` stay unset unless the sub-chart is needed.
    """

    kube_metrics_adapter: KubeMetricsAdapterValues = Field(alias="kube-metrics-adapter")
    metrics_server: EnabledToggle | None = Field(default=None, alias="metricsServer")
    metrics_server_chart: MetricsServerChartValues | None = Field(
        default=None,
        alias="metrics-server",
    )


# ---------------------------------------------------------------------------
# Instance termination handler
# ---------------------------------------------------------------------------


class Toleration(HelmValues):
    key: str | None = None
    operator: Literal["Exists", "Equal"] = "Exists"
    value: str | None = None
    effect: str | None = None


class HollowtreesNotifierValues(HelmValues):
    enabled: bool = False
    url: str | None = Field(default=None, alias="URL")
    organization_id: int | None = Field(default=None, alias="organizationID")
    cluster_id: int | None = Field(default=None, alias="clusterID")
    cluster_name: str | None = Field(default=None, alias="clusterName")
    jwt_token: str | None = Field(default=None, alias="jwtToken")


class InstanceTerminationHandlerValues(HelmValues):
    tolerations: list[Toleration] = Field(default_factory=lambda: [Toleration()])
    hollowtrees_notifier: HollowtreesNotifierValues = Field(
        default=HollowtreesNotifierValues(),
        alias="hollowtreesNotifier",
    )


# ---------------------------------------------------------------------------
# Cluster autoscaler
# ---------------------------------------------------------------------------


class AutoDiscoveryValues(HelmValues):
    cluster_name: str = Field(alias="clusterName")


class ClusterAutoscalerRBACValues(HelmValues):
    create: bool = True


class ClusterAutoscalerValues(HelmValues):
    cloud_provider: Literal["aws", "azure"] = Field(alias="cloudProvider")
    auto_discovery: AutoDiscoveryValues = Field(alias="autoDiscovery")
    rbac: ClusterAutoscalerRBACValues = ClusterAutoscalerRBACValues()
    extra_args: dict[str, Any] = Field(default_factory=dict, alias="extraArgs")


# ---------------------------------------------------------------------------
# Federation controller
# ---------------------------------------------------------------------------


class FederationGlobalValues(HelmValues):
    scope: Literal["Cluster", "Namespaced"]


class FederationFeatureGates(HelmValues):
    scheduler_preferences: FeatureGate = Field(alias="SchedulerPreferences")
    cross_cluster_service_discovery: FeatureGate = Field(alias="CrossClusterServiceDiscovery")
    federated_ingress: FeatureGate = Field(alias="FederatedIngress")


class ControllerManagerValues(HelmValues):
    repository: str
    tag: str
    feature_gates: FederationFeatureGates = Field(alias="featureGates")


class FederationControllerValues(HelmValues):
    """Values for the kubefed chart."""

    global_: FederationGlobalValues = Field(alias="global")
    controllermanager: ControllerManagerValues
