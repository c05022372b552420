"""Shared pytest fixtures for cluster_addons tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import typer
import yaml
from typer.testing import CliRunner

from cluster_addons.cli.main import app
from cluster_addons.core.config.models import AddonsConfig
from cluster_addons.integrations.kubernetes.models.cluster import (
    Cloud,
    ClusterStatus,
    Distribution,
)
from cluster_addons.integrations.kubernetes.static_cluster import StaticCluster

KUBECONFIG = {
    "apiVersion": "v1",
    "kind": "Config",
    "current-context": "test",
    "clusters": [{"name": "test", "cluster": {"server": "https://127.0.0.1:6443"}}],
    "users": [{"name": "admin", "user": {"token": "secret"}}],
    "contexts": [{"name": "test", "context": {"cluster": "test", "user": "admin"}}],
}


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear ADDONS_ prefixed environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("ADDONS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Generator[None]:
    """Remove handlers that configure_logging adds during a test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    yield
    root.handlers = original_handlers


@pytest.fixture
def kubeconfig_file(tmp_path: Path) -> Path:
    """Write a minimal kubeconfig to disk."""
    path = tmp_path / "kubeconfig.yaml"
    path.write_text(yaml.safe_dump(KUBECONFIG))
    return path


def _make_cluster(kubeconfig: Path, **overrides: Any) -> StaticCluster:
    data: dict[str, Any] = {
        "id": 42,
        "organization_id": 7,
        "organization_name": "acme",
        "name": "demo",
        "distribution": Distribution.EKS,
        "cloud": Cloud.AMAZON,
        "rbac_enabled": True,
        "kubeconfig": kubeconfig,
        "status": ClusterStatus(),
        "node_pools": {},
    }
    data.update(overrides)
    return StaticCluster.model_validate(data)


@pytest.fixture
def cluster(kubeconfig_file: Path) -> StaticCluster:
    """An EKS cluster on Amazon with RBAC enabled."""
    return _make_cluster(kubeconfig_file)


@pytest.fixture
def addons_config() -> AddonsConfig:
    """Default configuration with a token signing key set."""
    return AddonsConfig.model_validate(
        {"hollowtrees": {"endpoint": "https://alerts.example.com/", "token_signing_key": "s3cr3t"}}
    )


@pytest.fixture
def make_cluster(kubeconfig_file: Path) -> Callable[..., StaticCluster]:
    """Factory for clusters that differ from the default in a few fields."""

    def factory(**overrides: Any) -> StaticCluster:
        overrides.setdefault("kubeconfig", kubeconfig_file)
        return _make_cluster(**overrides)

    return factory
