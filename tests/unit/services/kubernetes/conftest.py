"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from cluster_addons.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client that translates errors like the real one.

    API groups (core_v1, apps_v1, rbac_v1, custom_objects, ...) are plain
    MagicMock attributes.
    """
    mock_client = MagicMock()
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return mock_client


@pytest.fixture
def mock_helm() -> MagicMock:
    """Create a mock HelmClient reporting no releases and helm 3."""
    helm = MagicMock()
    helm.list_releases.return_value = []
    helm.get_major_version.return_value = 3
    return helm
