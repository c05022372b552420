"""Unit tests for cluster files."""

from __future__ import annotations

from pathlib import Path

import pytest

from cluster_addons.integrations.kubernetes.models.cluster import Cloud, Distribution
from cluster_addons.integrations.kubernetes.static_cluster import (
    ClusterFileError,
    load_cluster_file,
)

CLUSTER_FILE = """\
id: 42
organization_id: 7
organization_name: acme
name: demo
distribution: pke
cloud: amazon
kubeconfig: ./demo.kubeconfig
status:
  spot: true
scale_options:
  enabled: true
node_pools:
  pool1: [node-a, node-b]
"""


@pytest.mark.unit
class TestLoadClusterFile:
    """Tests for load_cluster_file."""

    def test_loads_and_resolves_kubeconfig(self, tmp_path: Path) -> None:
        """Should resolve a relative kubeconfig path against the cluster file."""
        (tmp_path / "demo.kubeconfig").write_bytes(b"apiVersion: v1\n")
        path = tmp_path / "cluster.yaml"
        path.write_text(CLUSTER_FILE)

        cluster = load_cluster_file(path)

        assert cluster.distribution is Distribution.PKE
        assert cluster.cloud is Cloud.AMAZON
        assert cluster.get_status().spot is True
        assert cluster.get_scale_options() is not None
        assert cluster.get_scale_options().enabled is True
        assert cluster.list_node_names() == {"pool1": ["node-a", "node-b"]}
        assert cluster.get_k8s_config() == b"apiVersion: v1\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ClusterFileError, match="Cannot read"):
            load_cluster_file(tmp_path / "missing.yaml")

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Should reject unknown distributions."""
        path = tmp_path / "cluster.yaml"
        path.write_text(CLUSTER_FILE.replace("distribution: pke", "distribution: k3s"))

        with pytest.raises(ClusterFileError, match="Invalid cluster file"):
            load_cluster_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "cluster.yaml"
        path.write_text("- 1\n")

        with pytest.raises(ClusterFileError, match="mapping"):
            load_cluster_file(path)
