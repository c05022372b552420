"""Cluster handle backed by a YAML cluster file.

Used by the CLI to drive post hooks and reconcilers against a cluster that
is described locally instead of by the provisioning control plane::

    id: 42
    organization_id: 7
    organization_name: acme
    name: demo
    distribution: pke
    cloud: amazon
    rbac_enabled: true
    kubeconfig: ./demo.kubeconfig
    status:
      spot: false
    scale_options:
      enabled: true
    node_pools:
      pool1: [demo-pool1-0, demo-pool1-1]
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cluster_addons.integrations.kubernetes.models.cluster import (
    Cloud,
    ClusterStatus,
    Distribution,
    ScaleOptions,
)


class ClusterFileError(ValueError):
    """A cluster file is missing, unreadable or invalid."""


class StaticCluster(BaseModel):
    """ClusterHandle implementation whose answers come from a cluster file."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: int
    organization_id: int
    organization_name: str | None = None
    name: str
    distribution: Distribution = Distribution.UNKNOWN
    cloud: Cloud = Cloud.KUBERNETES
    rbac_enabled: bool = True
    kubeconfig_path: Path = Field(alias="kubeconfig")
    status: ClusterStatus = ClusterStatus()
    scale_options: ScaleOptions | None = None
    node_pools: dict[str, list[str]] = Field(default_factory=dict)

    def get_status(self) -> ClusterStatus:
        return self.status

    def get_scale_options(self) -> ScaleOptions | None:
        return self.scale_options

    def get_k8s_config(self) -> bytes:
        # Read on every call so credentials are never cached
        return self.kubeconfig_path.read_bytes()

    def list_node_names(self) -> dict[str, list[str]]:
        return {pool: list(nodes) for pool, nodes in self.node_pools.items()}


def load_cluster_file(path: Path) -> StaticCluster:
    """Load a cluster file; a relative kubeconfig path is resolved against it.

    Raises:
        ClusterFileError: If the file cannot be read or does not validate.
    """
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ClusterFileError(f"Cannot read cluster file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ClusterFileError(f"Cluster file {path} must contain a mapping")

    kubeconfig = data.get("kubeconfig")
    if isinstance(kubeconfig, str) and not Path(kubeconfig).expanduser().is_absolute():
        data["kubeconfig"] = str(path.parent / kubeconfig)
    elif isinstance(kubeconfig, str):
        data["kubeconfig"] = str(Path(kubeconfig).expanduser())

    try:
        return StaticCluster.model_validate(data)
    except ValidationError as e:
        raise ClusterFileError(f"Invalid cluster file {path}:\n{e}") from e
