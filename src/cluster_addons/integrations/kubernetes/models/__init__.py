"""Kubernetes integration models."""

from cluster_addons.integrations.kubernetes.models.cluster import (
    ClusterHandle,
    ClusterStatus,
    Cloud,
    Distribution,
    ScaleOptions,
)
from cluster_addons.integrations.kubernetes.models.helm import (
    HelmCommandResult,
    HelmRelease,
    InstallOptions,
    Release,
    ReleaseStatus,
)

__all__ = [
    "Cloud",
    "ClusterHandle",
    "ClusterStatus",
    "Distribution",
    "HelmCommandResult",
    "HelmRelease",
    "InstallOptions",
    "Release",
    "ReleaseStatus",
    "ScaleOptions",
]
