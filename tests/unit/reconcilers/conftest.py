"""Shared fixtures for reconciler tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from cluster_addons.core.config.models import FederationConfig
from cluster_addons.integrations.kubernetes.client import KubernetesClient
from cluster_addons.reconcilers.federation import FederationReconciler


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Mock Kubernetes client that translates errors like the real one."""
    client = MagicMock()
    client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    client.custom_objects.list_namespaced_custom_object.return_value = {"items": []}
    client.custom_objects.list_cluster_custom_object.return_value = {"items": []}
    client.apiextensions_v1.list_custom_resource_definition.return_value = MagicMock(items=[])
    return client


@pytest.fixture
def mock_releases() -> MagicMock:
    releases = MagicMock()
    releases.helm_manages_crds.return_value = True
    return releases


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def federation(
    mock_releases: MagicMock, mock_k8s_client: MagicMock, sleeps: list[float]
) -> FederationReconciler:
    return FederationReconciler(
        FederationConfig(),
        mock_releases,
        helm_timeout=120,
        client_factory=lambda cluster: mock_k8s_client,
        sleep=sleeps.append,
    )
