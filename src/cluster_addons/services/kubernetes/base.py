"""Base class for services that talk to one cluster's Kubernetes API."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import structlog

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()


class K8sBaseManager:
    """Base class for Kubernetes services.

    Holds the per-cluster client, a logger bound to ``_entity_name`` and the
    translation of raw API errors into ``KubernetesError`` subclasses.
    """

    _entity_name: str = ""

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client
        self._log = logger.bind(entity=self._entity_name)

    @property
    def client(self) -> KubernetesClient:
        return self._client

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        """Translate a Kubernetes API exception and re-raise it.

        Raises:
            KubernetesError: Always; the subclass matches the HTTP status.
        """
        translated = self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
        if translated is e:
            raise translated
        raise translated from e
