"""Unit tests for KubernetesClient."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException
from urllib3.exceptions import ProtocolError

from cluster_addons.integrations.kubernetes.client import KubernetesClient
from cluster_addons.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestTranslateApiException:
    """Tests for translate_api_exception."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, KubernetesAuthError),
            (403, KubernetesAuthError),
            (404, KubernetesNotFoundError),
            (409, KubernetesConflictError),
            (400, KubernetesValidationError),
            (422, KubernetesValidationError),
        ],
    )
    def test_status_mapping(self, status: int, expected: type[KubernetesError]) -> None:
        """Should map HTTP status codes onto exception types."""
        translated = KubernetesClient.translate_api_exception(ApiException(status=status, reason="x"))

        assert isinstance(translated, expected)

    def test_not_found_names_resource(self) -> None:
        """Should describe the missing resource."""
        translated = KubernetesClient.translate_api_exception(
            ApiException(status=404),
            resource_type="ConfigMap",
            resource_name="spot-deploy-config",
            namespace="pipeline-system",
        )

        assert translated.resource_name == "spot-deploy-config"
        assert "spot-deploy-config" in str(translated)
        assert "pipeline-system" in str(translated)

    def test_server_error_keeps_status(self) -> None:
        """Should keep the status code of unmapped errors."""
        translated = KubernetesClient.translate_api_exception(ApiException(status=500, reason="boom"))

        assert type(translated) is KubernetesError
        assert translated.status_code == 500

    def test_transport_error(self) -> None:
        """Should treat urllib3 errors as connection failures."""
        translated = KubernetesClient.translate_api_exception(ProtocolError("reset"))

        assert isinstance(translated, KubernetesConnectionError)

    def test_passes_through_translated_errors(self) -> None:
        """Should return an already translated error unchanged."""
        error = KubernetesTimeoutError(timeout_seconds=10)

        assert KubernetesClient.translate_api_exception(error) is error


@pytest.mark.unit
@pytest.mark.kubernetes
class TestFromCluster:
    """Tests for KubernetesClient.from_cluster."""

    def test_builds_dedicated_client(self, cluster: Any) -> None:
        """Should build a client from the cluster's kubeconfig."""
        with KubernetesClient.from_cluster(cluster) as client:
            assert client.core_v1 is client.core_v1
            assert client.core_v1.api_client.configuration.host == "https://127.0.0.1:6443"

    def test_clients_do_not_share_configuration(self, make_cluster: Any, tmp_path: Any) -> None:
        """Should keep clients for different clusters apart."""
        other_kubeconfig = tmp_path / "other.yaml"
        other_kubeconfig.write_text(
            "apiVersion: v1\nkind: Config\ncurrent-context: other\n"
            "clusters: [{name: other, cluster: {server: 'https://10.0.0.1:6443'}}]\n"
            "users: [{name: u, user: {token: t}}]\n"
            "contexts: [{name: other, context: {cluster: other, user: u}}]\n"
        )

        first = KubernetesClient.from_cluster(make_cluster())
        second = KubernetesClient.from_cluster(make_cluster(kubeconfig=other_kubeconfig))

        assert first.core_v1.api_client.configuration.host == "https://127.0.0.1:6443"
        assert second.core_v1.api_client.configuration.host == "https://10.0.0.1:6443"

    def test_unreadable_kubeconfig(self) -> None:
        """Should raise KubernetesConnectionError when the kubeconfig cannot be read."""
        cluster = MagicMock()
        cluster.name = "demo"
        cluster.get_k8s_config.side_effect = OSError("gone")

        with pytest.raises(KubernetesConnectionError, match="demo"):
            KubernetesClient.from_cluster(cluster)

    def test_non_mapping_kubeconfig(self) -> None:
        """Should reject a kubeconfig that is not a mapping."""
        cluster = MagicMock()
        cluster.name = "demo"
        cluster.get_k8s_config.return_value = b"- just\n- a list\n"

        with pytest.raises(KubernetesConnectionError, match="not a mapping"):
            KubernetesClient.from_cluster(cluster)
