"""Unit tests for federation resource models."""

from __future__ import annotations

import pytest

from cluster_addons.integrations.kubernetes.models.federation import (
    INGRESS_DNS_RECORD,
    FederatedTypeConfig,
)


@pytest.mark.unit
class TestFederatedTypeConfig:
    """Tests for FederatedTypeConfig.from_k8s_object."""

    def test_parses_custom_object(self) -> None:
        """Should read name, namespace and the federated type."""
        obj = {
            "apiVersion": "core.kubefed.io/v1beta1",
            "kind": "FederatedTypeConfig",
            "metadata": {"name": "deployments.apps", "namespace": "kube-federation-system"},
            "spec": {
                "federatedType": {
                    "group": "types.kubefed.io",
                    "kind": "FederatedDeployment",
                    "pluralName": "federateddeployments",
                    "scope": "Namespaced",
                    "version": "v1beta1",
                },
                "propagation": "Enabled",
            },
        }

        config = FederatedTypeConfig.from_k8s_object(obj)

        assert config.name == "deployments.apps"
        assert config.namespace == "kube-federation-system"
        assert config.federated_type.plural_name == "federateddeployments"
        assert config.federated_type.namespaced
        assert config.federated_type.display_name == "federateddeployments.types.kubefed.io"

    def test_cluster_scoped_type(self) -> None:
        """Should recognise cluster-scoped federated types."""
        obj = {
            "metadata": {"name": "clusterroles.rbac.authorization.k8s.io"},
            "spec": {
                "federatedType": {
                    "group": "types.kubefed.io",
                    "version": "v1beta1",
                    "pluralName": "federatedclusterroles",
                    "scope": "Cluster",
                }
            },
        }

        assert not FederatedTypeConfig.from_k8s_object(obj).federated_type.namespaced

    def test_dns_record_names(self) -> None:
        assert INGRESS_DNS_RECORD.display_name == "ingressdnsrecords.multiclusterdns.kubefed.io"
