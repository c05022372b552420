"""Shared fixtures for post hook tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from cluster_addons.core.config.models import AddonsConfig
from cluster_addons.integrations.kubernetes.client import KubernetesClient
from cluster_addons.integrations.kubernetes.models.helm import InstallOptions, Release
from cluster_addons.posthooks.base import PostHookContext


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Mock Kubernetes client that translates errors like the real one."""
    client = MagicMock()
    client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return client


@pytest.fixture
def mock_releases() -> MagicMock:
    """Mock ReleaseManager."""
    return MagicMock()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def hook_context(
    addons_config: AddonsConfig,
    mock_releases: MagicMock,
    mock_k8s_client: MagicMock,
    sleeps: list[float],
) -> PostHookContext:
    """Context wiring every hook to the mocks above."""
    return PostHookContext(
        config=addons_config,
        releases=mock_releases,
        client_factory=lambda cluster: mock_k8s_client,
        sleep=sleeps.append,
    )


@pytest.fixture
def installed() -> Callable[[MagicMock], list[tuple[Release, InstallOptions]]]:
    """Extract (release, options) pairs from install_or_upgrade calls."""

    def extract(releases: MagicMock) -> list[tuple[Release, InstallOptions]]:
        return [(c.args[1], c.args[2]) for c in releases.install_or_upgrade.call_args_list]

    return extract


@pytest.fixture
def named() -> Callable[..., MagicMock]:
    """Build an API object stand-in whose metadata.name is set."""

    def factory(name: str, **attrs: Any) -> MagicMock:
        obj = MagicMock(**attrs)
        obj.metadata.name = name
        return obj

    return factory
