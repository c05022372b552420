"""Errors raised while talking to a cluster's API server or Helm.

``KubernetesClient.translate_api_exception`` maps HTTP statuses onto these
classes; callers branch on the class, never on the status code.
"""

from __future__ import annotations


def _describe(resource_type: str, resource_name: str, namespace: str | None, outcome: str) -> str:
    text = f"{resource_type} '{resource_name}' {outcome}"
    if namespace:
        text += f" in namespace '{namespace}'"
    return text


class KubernetesError(Exception):
    """An API call against a cluster failed.

    The resource fields name what was being acted on, so a log line or CLI
    message can point at it without a traceback.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(status: {self.status_code})")
        if self.resource_type and self.resource_name:
            where = f"{self.resource_type}/{self.resource_name}"
            if self.namespace:
                where += f" in {self.namespace}"
            parts.append(f"[{where}]")
        return " ".join(parts)


class KubernetesConnectionError(KubernetesError):
    """The cluster could not be reached, or its kubeconfig was unusable. Fatal."""

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message=message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """The API server rejected our credentials (401) or permissions (403). Fatal."""

    def __init__(self, message: str = "Not authorized", status_code: int = 401) -> None:
        super().__init__(message=message, status_code=status_code)


class KubernetesNotFoundError(KubernetesError):
    """Expected absence.

    Listing a custom resource whose CRD is not installed also lands here,
    since the API server answers 404 for an unknown kind.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if resource_type and resource_name:
            message = _describe(resource_type, resource_name, namespace, "not found")
        super().__init__(message, 404, resource_type, resource_name, namespace)


class KubernetesValidationError(KubernetesError):
    """The API server refused the object we sent (400/422). Not retried."""

    def __init__(self, message: str = "Object rejected", status_code: int = 422) -> None:
        super().__init__(message=message, status_code=status_code)


class KubernetesConflictError(KubernetesError):
    """The object already exists in a shape we did not ask for (409)."""

    def __init__(
        self,
        message: str = "Resource conflict",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if resource_type and resource_name:
            message = _describe(resource_type, resource_name, namespace, "already exists")
        super().__init__(message, 409, resource_type, resource_name, namespace)


class KubernetesTimeoutError(KubernetesError):
    """A bounded wait expired (helm ``--wait``, readiness or deletion polling)."""

    def __init__(self, message: str = "Timed out", timeout_seconds: float | None = None) -> None:
        if timeout_seconds:
            message = f"{message} (after {timeout_seconds:g}s)"
        super().__init__(message=message)
        self.timeout_seconds = timeout_seconds
