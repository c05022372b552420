"""Unit tests for Kubernetes integration exceptions."""

from __future__ import annotations

import pytest

from cluster_addons.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)


@pytest.mark.unit
class TestKubernetesError:
    """Tests for the base exception's string form."""

    def test_message_only(self) -> None:
        assert str(KubernetesError("boom")) == "boom"

    def test_includes_status_and_location(self) -> None:
        error = KubernetesError(
            "failed",
            status_code=500,
            resource_type="ClusterRole",
            resource_name="admin",
            namespace="kube-system",
        )
        assert str(error) == "failed (status: 500) [ClusterRole/admin in kube-system]"


@pytest.mark.unit
class TestSubclasses:
    """Tests for the status-specific subclasses."""

    def test_not_found_builds_message(self) -> None:
        error = KubernetesNotFoundError(
            resource_type="ConfigMap", resource_name="cfg", namespace="default"
        )
        assert error.status_code == 404
        assert error.message == "ConfigMap 'cfg' not found in namespace 'default'"

    def test_conflict_builds_message(self) -> None:
        error = KubernetesConflictError(resource_type="ClusterRoleBinding", resource_name="b")
        assert error.status_code == 409
        assert error.message == "ClusterRoleBinding 'b' already exists"

    def test_auth_keeps_status(self) -> None:
        assert KubernetesAuthError("Forbidden", status_code=403).status_code == 403

    def test_validation_defaults_to_unprocessable(self) -> None:
        assert KubernetesValidationError().status_code == 422

    def test_timeout_mentions_deadline(self) -> None:
        error = KubernetesTimeoutError("Helm wait", timeout_seconds=2.5)
        assert error.message == "Helm wait (after 2.5s)"
        assert error.timeout_seconds == 2.5

    def test_all_derive_from_base(self) -> None:
        assert issubclass(KubernetesNotFoundError, KubernetesError)
        assert issubclass(KubernetesConflictError, KubernetesError)
