"""Add-on engine configuration models.

Configuration is resolved once (YAML file plus ``ADDONS_*`` environment
overrides), validated, and frozen. Components receive the resulting
``AddonsConfig`` at construction time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger()

# XDG-compliant config location
CONFIG_DIR = Path.home() / ".config" / "cluster-addons"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_CHART_REPOSITORY = "banzaicloud-stable"

DEFAULT_POST_HOOK_ORDER: tuple[str, ...] = (
    "CreateClusterRoles",
    "InstallHelmPostHook",
    "LabelKubeSystemNamespacePostHook",
    "LabelNodesWithNodePoolName",
    "InstallKubernetesDashboardPostHook",
    "InstallClusterAutoscalerPostHook",
    "InstallHorizontalPodAutoscalerPostHook",
    "InstallPVCOperatorPostHook",
    "InitSpotConfig",
    "DeployInstanceTerminationHandler",
)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


def _positive(value: float, field_name: str) -> float:
    if value <= 0:
        raise ValueError(f"{field_name} must be positive")
    return value


class ChartConfig(_FrozenModel):
    """Coordinates of a chart: ``repo/chart`` reference and optional version."""

    chart: str
    version: str | None = None

    @field_validator("chart")
    @classmethod
    def validate_chart(cls, v: str) -> str:
        """Validate chart reference is not empty."""
        if not v.strip():
            raise ValueError("chart must not be empty")
        return v.strip()


def _chart(name: str, version: str | None = None) -> ChartConfig:
    return ChartConfig(chart=f"{DEFAULT_CHART_REPOSITORY}/{name}", version=version)


class ClusterSettings(_FrozenModel):
    """Settings shared by every managed cluster."""

    namespace: str = "pipeline-system"
    node_pool_label_key: str = "nodepool.banzaicloud.io/name"
    spot_config_map: str = "spot-deploy-config"

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Validate namespace is not empty."""
        if not v:
            raise ValueError("namespace must not be empty")
        return v


class PrometheusConfig(_FrozenModel):
    service_name: str = "monitor-prometheus-server"
    service_context: str = "prometheus"


class HPAConfig(_FrozenModel):
    prometheus: PrometheusConfig = PrometheusConfig()


class AutoscaleChartsConfig(_FrozenModel):
    hpa_operator: ChartConfig = _chart("hpa-operator")
    cluster_autoscaler: ChartConfig = _chart("cluster-autoscaler")


class AutoscaleConfig(_FrozenModel):
    """Autoscaling add-ons: HPA operator and cluster autoscaler."""

    namespace: str = "kube-system"
    hpa: HPAConfig = HPAConfig()
    charts: AutoscaleChartsConfig = AutoscaleChartsConfig()


class ChartsConfig(_FrozenModel):
    """Charts installed by post hooks into the system namespace."""

    dashboard: ChartConfig = _chart("kubernetes-dashboard")
    pvc_operator: ChartConfig = _chart("pvc-operator")
    spot_scheduler: ChartConfig = _chart("spot-scheduler")
    spot_webhook: ChartConfig = _chart("spot-config-webhook")
    instance_termination_handler: ChartConfig = _chart("instance-termination-handler")


class TillerConfig(_FrozenModel):
    """In-cluster Helm server component."""

    version: str = "v2.16.1"
    image_repository: str = "gcr.io/kubernetes-helm/tiller"
    install_attempts: int = 5
    retry_interval: float = 10.0
    ready_timeout: float = 300.0
    ready_poll_interval: float = 5.0

    @field_validator("install_attempts")
    @classmethod
    def validate_install_attempts(cls, v: int) -> int:
        """Validate at least one install attempt is made."""
        if v < 1:
            raise ValueError("install_attempts must be at least 1")
        return v

    @field_validator("retry_interval", "ready_timeout", "ready_poll_interval")
    @classmethod
    def validate_durations(cls, v: float) -> float:
        """Validate durations are positive."""
        return _positive(v, "duration")

    @property
    def image(self) -> str:
        return f"{self.image_repository}:{self.version}"


class HelmConfig(_FrozenModel):
    binary_path: str | None = None
    timeout: int = 300
    tiller: TillerConfig = TillerConfig()

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v


class TokenConfig(_FrozenModel):
    issuer: str = "https://banzaicloud.com/"
    audience: str = "https://pipeline.banzaicloud.com"


class AuthConfig(_FrozenModel):
    token: TokenConfig = TokenConfig()


class HollowtreesConfig(_FrozenModel):
    """External notifier receiving instance termination alerts."""

    endpoint: str = ""
    token_signing_key: str = Field(default="", repr=False)

    @field_validator("endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DisasterRecoveryConfig(_FrozenModel):
    restore_wait_timeout: int = 600

    @field_validator("restore_wait_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("restore_wait_timeout must be positive")
        return v


class ControllerImageConfig(_FrozenModel):
    repository: str = "quay.io/kubernetes-multicluster/kubefed"
    tag: str = "v0.1.0-rc6"


class KubefedChartConfig(ChartConfig):
    chart: str = "kubefed-charts/kubefed"
    version: str | None = "0.1.0-rc6"
    controller_manager: ControllerImageConfig = ControllerImageConfig()


class FederationConfig(_FrozenModel):
    """Federation controller add-on settings."""

    target_namespace: str = "kube-federation-system"
    global_scope: bool = True
    scheduler_preferences: bool = True
    cross_cluster_service_discovery: bool = True
    federated_ingress: bool = True
    chart: KubefedChartConfig = KubefedChartConfig()
    release_name: str = "kubefed"
    type_config_poll_interval: float = 1.0
    type_config_poll_timeout: float = 10.0
    crd_deletion_grace_period: int = 180
    # Remove every *.kubefed.io CRD on teardown, not only the federated* ones
    remove_all_crds: bool = True

    @field_validator("type_config_poll_interval", "type_config_poll_timeout")
    @classmethod
    def validate_poll(cls, v: float) -> float:
        """Validate polling durations are positive."""
        return _positive(v, "poll duration")


class PostHooksConfig(_FrozenModel):
    order: tuple[str, ...] = DEFAULT_POST_HOOK_ORDER


class AddonsConfig(_FrozenModel):
    """Complete add-on engine configuration."""

    cluster: ClusterSettings = ClusterSettings()
    autoscale: AutoscaleConfig = AutoscaleConfig()
    charts: ChartsConfig = ChartsConfig()
    helm: HelmConfig = HelmConfig()
    auth: AuthConfig = AuthConfig()
    hollowtrees: HollowtreesConfig = HollowtreesConfig()
    disaster_recovery: DisasterRecoveryConfig = DisasterRecoveryConfig()
    federation: FederationConfig = FederationConfig()
    posthooks: PostHooksConfig = PostHooksConfig()

    def to_yaml(self) -> str:
        """Serialize configuration to YAML."""
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False)


# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "ADDONS_SYSTEM_NAMESPACE": ("cluster", "namespace"),
    "ADDONS_HELM_TIMEOUT": ("helm", "timeout"),
    "ADDONS_HELM_BINARY": ("helm", "binary_path"),
    "ADDONS_HOLLOWTREES_ENDPOINT": ("hollowtrees", "endpoint"),
    "ADDONS_HOLLOWTREES_SIGNING_KEY": ("hollowtrees", "token_signing_key"),
    "ADDONS_FEDERATION_NAMESPACE": ("federation", "target_namespace"),
}


def load_raw_config(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file.

    Args:
        path: Config file location.

    Returns:
        The parsed mapping, or an empty dict when the file is missing or empty.

    Raises:
        ValueError: If the document is not a mapping.
    """
    if not path.exists():
        logger.debug("config_file_missing", path=str(path))
        return {}

    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")
    return data


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply ``ADDONS_*`` environment overrides on top of a raw config mapping."""
    result = {key: dict(value) if isinstance(value, dict) else value for key, value in config_dict.items()}
    for env_name, (section, key) in ENV_OVERRIDES.items():
        if (value := os.environ.get(env_name)) is not None:
            result.setdefault(section, {})[key] = value
    return result


def load_config(path: Path | None = None) -> AddonsConfig:
    """Load, override and validate configuration.

    Args:
        path: Config file location (defaults to ``CONFIG_FILE``).

    Returns:
        The frozen configuration.
    """
    config_path = path or CONFIG_FILE
    config_dict = apply_env_overrides(load_raw_config(config_path))
    config = AddonsConfig.model_validate(config_dict)
    logger.debug("config_loaded", path=str(config_path))
    return config
