"""Cluster handle contract and the small value types it exposes.

The cluster handle is owned by the provisioning subsystem. Components in this
package only borrow it for the duration of one call and never keep the
credentials it hands out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable


class Distribution(StrEnum):
    """Kubernetes distribution a cluster runs."""

    EKS = "eks"
    GKE = "gke"
    OKE = "oke"
    AKS = "aks"
    PKE = "pke"
    ACK = "ack"
    DUMMY = "dummy"
    UNKNOWN = "unknown"


class Cloud(StrEnum):
    """Cloud vendor hosting a cluster."""

    AMAZON = "amazon"
    GOOGLE = "google"
    AZURE = "azure"
    ORACLE = "oracle"
    ALIBABA = "alibaba"
    KUBERNETES = "kubernetes"


@dataclass(frozen=True)
class ClusterStatus:
    """Subset of the provisioner's cluster status used by post hooks."""

    status: str = "RUNNING"
    spot: bool = False


@dataclass(frozen=True)
class ScaleOptions:
    """Cluster-wide autoscaling settings."""

    enabled: bool = False
    desired_cpu: float = 0.0
    desired_mem: float = 0.0
    desired_gpu: int = 0
    on_demand_pct: int = 0
    excludes: tuple[str, ...] = field(default_factory=tuple)
    keep_desired_capacity: bool = False


@runtime_checkable
class ClusterHandle(Protocol):
    """Opaque reference to a provisioned cluster."""

    @property
    def id(self) -> int: ...

    @property
    def organization_id(self) -> int: ...

    @property
    def name(self) -> str: ...

    @property
    def distribution(self) -> Distribution: ...

    @property
    def cloud(self) -> Cloud: ...

    @property
    def rbac_enabled(self) -> bool: ...

    def get_status(self) -> ClusterStatus:
        """Return the current provisioner status of the cluster."""
        ...

    def get_scale_options(self) -> ScaleOptions | None:
        """Return autoscaling settings, or None when never configured."""
        ...

    def get_k8s_config(self) -> bytes:
        """Return a kubeconfig document granting admin access to the cluster."""
        ...

    def list_node_names(self) -> dict[str, list[str]]:
        """Return node names keyed by node pool name."""
        ...
