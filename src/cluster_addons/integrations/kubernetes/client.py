"""Kubernetes API client wrapper.

Provides a per-cluster client that wraps the official kubernetes Python client
with an isolated API connection, lazy API group initialization, and consistent
error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
import yaml

from cluster_addons.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import (
        ApiClient,
        ApiextensionsV1Api,
        ApisApi,
        AppsV1Api,
        CoreV1Api,
        CustomObjectsApi,
        RbacAuthorizationV1Api,
    )

    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client bound to a single cluster.

    Wraps the official kubernetes Python client with:
    - A dedicated ``ApiClient`` built from the cluster's kubeconfig, so
      clients for different clusters never share the global default config
    - Lazy API group initialization
    - Consistent error translation to custom exceptions
    - Context manager support

    Example:
        ```python
        from cluster_addons.integrations.kubernetes import KubernetesClient

        with KubernetesClient.from_cluster(cluster) as client:
            nodes = client.core_v1.list_node()
            print(f"Cluster has {len(nodes.items)} nodes")
        ```
    """

    def __init__(
        self,
        kubeconfig: dict[str, Any],
        *,
        context: str | None = None,
    ) -> None:
        """Initialize Kubernetes client from a parsed kubeconfig.

        Args:
            kubeconfig: Parsed kubeconfig document.
            context: Optional kubeconfig context name (current-context if None).
        """
        self._kubeconfig = kubeconfig
        self._context = context
        self._api_client: ApiClient | None = None

        # Lazy-loaded API group instances
        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None
        self._rbac_v1: RbacAuthorizationV1Api | None = None
        self._apiextensions_v1: ApiextensionsV1Api | None = None
        self._custom_objects: CustomObjectsApi | None = None
        self._apis: ApisApi | None = None

        self._load_config()

        logger.debug(
            "kubernetes_client_initialized",
            context=context or kubeconfig.get("current-context"),
        )

    @classmethod
    def from_cluster(
        cls,
        cluster: ClusterHandle,
    ) -> KubernetesClient:
        """Build a client from the credentials a cluster handle hands out.

        Args:
            cluster: Cluster to connect to.

        Returns:
            A client connected to the cluster.

        Raises:
            KubernetesConnectionError: If the kubeconfig cannot be fetched or parsed.
        """
        try:
            raw = cluster.get_k8s_config()
            kubeconfig = yaml.safe_load(raw)
        except (OSError, yaml.YAMLError) as e:
            raise KubernetesConnectionError(
                message=f"Unable to fetch kubeconfig for cluster '{cluster.name}'",
                original_error=e,
            ) from e

        if not isinstance(kubeconfig, dict):
            raise KubernetesConnectionError(
                message=f"Kubeconfig of cluster '{cluster.name}' is not a mapping",
            )

        return cls(kubeconfig)

    def _load_config(self) -> None:
        """Build the dedicated API client from the kubeconfig document."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            self._api_client = config.new_client_from_config_dict(
                self._kubeconfig,
                context=self._context,
            )
        except ConfigException as e:
            raise KubernetesConnectionError(
                message="Cannot load Kubernetes configuration from kubeconfig",
                original_error=e,
            ) from e

        self._invalidate_api_cache()

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        self._core_v1 = None
        self._apps_v1 = None
        self._rbac_v1 = None
        self._apiextensions_v1 = None
        self._custom_objects = None
        self._apis = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (namespaces, nodes, service accounts, configmaps)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api(self._api_client)
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance (deployments)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api(self._api_client)
        return self._apps_v1

    @property
    def rbac_v1(self) -> RbacAuthorizationV1Api:
        """Get RbacAuthorizationV1Api instance (clusterroles, bindings)."""
        if self._rbac_v1 is None:
            from kubernetes.client import RbacAuthorizationV1Api

            self._rbac_v1 = RbacAuthorizationV1Api(self._api_client)
        return self._rbac_v1

    @property
    def apiextensions_v1(self) -> ApiextensionsV1Api:
        """Get ApiextensionsV1Api instance (customresourcedefinitions)."""
        if self._apiextensions_v1 is None:
            from kubernetes.client import ApiextensionsV1Api

            self._apiextensions_v1 = ApiextensionsV1Api(self._api_client)
        return self._apiextensions_v1

    @property
    def custom_objects(self) -> CustomObjectsApi:
        """Get CustomObjectsApi instance (federation resources and other CRs)."""
        if self._custom_objects is None:
            from kubernetes.client import CustomObjectsApi

            self._custom_objects = CustomObjectsApi(self._api_client)
        return self._custom_objects

    @property
    def apis(self) -> ApisApi:
        """Get ApisApi instance for API group discovery."""
        if self._apis is None:
            from kubernetes.client import ApisApi

            self._apis = ApisApi(self._api_client)
        return self._apis

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a custom exception.

        Args:
            e: The original ApiException.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import HTTPError

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, HTTPError):
            return KubernetesConnectionError(
                message=f"Kubernetes API unreachable: {e}",
                original_error=e,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Not authorized",
                status_code=status,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Object rejected",
                status_code=status,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        if self._api_client is not None:
            self._api_client.close()
            self._api_client = None
        self._invalidate_api_cache()
        logger.debug("Kubernetes client closed")

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
