"""Federation controller add-on reconciler.

The add-on has three aspects:

- ``controller``: the kubefed Helm release.
- ``service-discovery``: the multi-cluster DNS records the controller keeps.
- ``federated-types``: FederatedTypeConfigs, the federated instances they
  govern and, on helm releases that leave CRDs behind, the federation CRDs.

Only the controller has anything to install. Removal deletes records and
types before the release so the controller can still process finalizers.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import closing, contextmanager
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from cluster_addons.integrations.kubernetes.client import KubernetesClient
from cluster_addons.integrations.kubernetes.exceptions import KubernetesNotFoundError
from cluster_addons.integrations.kubernetes.models.federation import (
    FEDERATED_TYPE_CONFIG_PLURAL,
    FEDERATION_CRD_SUFFIX,
    INGRESS_DNS_RECORD,
    KUBEFED_GROUP,
    KUBEFED_VERSION,
    SERVICE_DNS_RECORD,
    FederatedAPIResource,
    FederatedTypeConfig,
)
from cluster_addons.integrations.kubernetes.models.helm import InstallOptions, Release
from cluster_addons.integrations.kubernetes.models.values import (
    ControllerManagerValues,
    FederationControllerValues,
    FederationFeatureGates,
    FederationGlobalValues,
    feature_gate,
)
from cluster_addons.logging import bind_cluster
from cluster_addons.reconcilers.state import DesiredState, DesiredStateReconciler
from cluster_addons.utils.polling import poll_until

if TYPE_CHECKING:
    from cluster_addons.core.config.models import FederationConfig
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle
    from cluster_addons.services.kubernetes.release_manager import ReleaseManager

logger = structlog.get_logger()


class FederationAspect(StrEnum):
    CONTROLLER = "controller"
    SERVICE_DISCOVERY = "service-discovery"
    FEDERATED_TYPES = "federated-types"


class FederationReconciler(DesiredStateReconciler):
    """Install or tear down the federation controller on a host cluster."""

    name = "federation"
    aspects = (
        FederationAspect.CONTROLLER,
        FederationAspect.SERVICE_DISCOVERY,
        FederationAspect.FEDERATED_TYPES,
    )

    def __init__(
        self,
        config: FederationConfig,
        releases: ReleaseManager,
        *,
        helm_timeout: int = 300,
        client_factory: Callable[[ClusterHandle], KubernetesClient] = KubernetesClient.from_cluster,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._releases = releases
        self._helm_timeout = helm_timeout
        self._client_factory = client_factory
        self._sleep = sleep
        self._log = logger.bind(addon=self.name)

    def reconcile_aspect(
        self,
        cluster: ClusterHandle,
        aspect: str,
        desired_state: DesiredState,
    ) -> None:
        match FederationAspect(aspect):
            case FederationAspect.CONTROLLER:
                self.reconcile_controller(cluster, desired_state)
            case FederationAspect.SERVICE_DISCOVERY:
                self.reconcile_service_discovery(cluster, desired_state)
            case FederationAspect.FEDERATED_TYPES:
                self.reconcile_federated_types(cluster, desired_state)

    # -----------------------------------------------------------------------
    # Aspects
    # -----------------------------------------------------------------------

    def controller_values(self) -> FederationControllerValues:
        config = self._config
        image = config.chart.controller_manager
        return FederationControllerValues(
            global_=FederationGlobalValues(scope="Cluster" if config.global_scope else "Namespaced"),
            controllermanager=ControllerManagerValues(
                repository=image.repository,
                tag=image.tag,
                feature_gates=FederationFeatureGates(
                    scheduler_preferences=feature_gate(config.scheduler_preferences),
                    cross_cluster_service_discovery=feature_gate(config.cross_cluster_service_discovery),
                    federated_ingress=feature_gate(config.federated_ingress),
                ),
            ),
        )

    def reconcile_controller(self, cluster: ClusterHandle, desired_state: DesiredState) -> None:
        log = bind_cluster(self._log, cluster).bind(aspect=FederationAspect.CONTROLLER.value)
        namespace = self._config.target_namespace

        if desired_state is DesiredState.PRESENT:
            log.info("installing_federation_controller")
            release = Release(
                name=self._config.release_name,
                chart=self._config.chart.chart,
                namespace=namespace,
                version=self._config.chart.version,
                values=self.controller_values(),
            )
            self._releases.install_or_upgrade(
                cluster,
                release,
                InstallOptions(wait=True, timeout=self._helm_timeout, upgrade=True),
            )
        else:
            log.info("removing_federation_controller")
            self._releases.delete(cluster, self._config.release_name, namespace)

    def reconcile_service_discovery(self, cluster: ClusterHandle, desired_state: DesiredState) -> None:
        if desired_state is DesiredState.PRESENT:
            return

        namespace = self._config.target_namespace
        with self._kubernetes(cluster) as client:
            for resource in (INGRESS_DNS_RECORD, SERVICE_DNS_RECORD):
                items = self._list_namespaced(client, resource, namespace)
                self._delete_items(client, resource, items)

    def reconcile_federated_types(self, cluster: ClusterHandle, desired_state: DesiredState) -> None:
        if desired_state is DesiredState.PRESENT:
            return

        log = bind_cluster(self._log, cluster).bind(aspect=FederationAspect.FEDERATED_TYPES.value)
        with self._kubernetes(cluster) as client:
            type_configs = self.list_type_configs(client)
            log.debug("found_type_configs", count=len(type_configs))

            for type_config in type_configs:
                resource = type_config.federated_type
                self._delete_items(client, resource, self._list_all_namespaces(client, resource))

            for type_config in type_configs:
                self.delete_type_config(client, type_config)

            if not self._releases.helm_manages_crds():
                self.remove_federation_crds(client, all_crds=self._config.remove_all_crds)

    # -----------------------------------------------------------------------
    # Federated type configs
    # -----------------------------------------------------------------------

    def list_type_configs(self, client: KubernetesClient) -> list[FederatedTypeConfig]:
        namespace = self._config.target_namespace
        try:
            response = client.custom_objects.list_namespaced_custom_object(
                KUBEFED_GROUP, KUBEFED_VERSION, namespace, FEDERATED_TYPE_CONFIG_PLURAL
            )
        except Exception as e:
            if self._not_found(client, e, "FederatedTypeConfig", None, namespace):
                self._log.warning("no_type_configs_found", namespace=namespace)
                return []
        return [FederatedTypeConfig.from_k8s_object(item) for item in response.get("items", [])]

    def delete_type_config(self, client: KubernetesClient, type_config: FederatedTypeConfig) -> None:
        """Delete a type config and wait until the API no longer returns it."""
        namespace = type_config.namespace or self._config.target_namespace
        name = type_config.name
        custom_objects = client.custom_objects

        self._log.debug("deleting_type_config", name=name, namespace=namespace)
        try:
            custom_objects.delete_namespaced_custom_object(
                KUBEFED_GROUP, KUBEFED_VERSION, namespace, FEDERATED_TYPE_CONFIG_PLURAL, name
            )
        except Exception as e:
            if self._not_found(client, e, "FederatedTypeConfig", name, namespace):
                return

        def gone() -> bool:
            try:
                custom_objects.get_namespaced_custom_object(
                    KUBEFED_GROUP, KUBEFED_VERSION, namespace, FEDERATED_TYPE_CONFIG_PLURAL, name
                )
            except Exception as e:
                return self._not_found(client, e, "FederatedTypeConfig", name, namespace)
            return False

        poll_until(
            gone,
            interval=self._config.type_config_poll_interval,
            timeout=self._config.type_config_poll_timeout,
            description=f"FederatedTypeConfig {namespace}/{name} to be deleted",
            sleep=self._sleep,
        )
        self._log.info("deleted_type_config", name=name, namespace=namespace)

    # -----------------------------------------------------------------------
    # CRDs
    # -----------------------------------------------------------------------

    def remove_federation_crds(self, client: KubernetesClient, *, all_crds: bool = False) -> list[str]:
        """Delete federation CRDs.

        Args:
            client: Client of the host cluster.
            all_crds: Delete every ``*.kubefed.io`` CRD rather than only
                those whose name starts with ``federated``.

        Returns:
            Names of the CRDs deletion was requested for.
        """
        from kubernetes.client import V1DeleteOptions

        try:
            crds = client.apiextensions_v1.list_custom_resource_definition()
        except Exception as e:
            if self._not_found(client, e, "CustomResourceDefinition", None, None):
                return []

        options = V1DeleteOptions(
            propagation_policy="Background",
            grace_period_seconds=self._config.crd_deletion_grace_period,
        )
        removed: list[str] = []
        for crd in crds.items or []:
            name = crd.metadata.name
            if not name.endswith(FEDERATION_CRD_SUFFIX):
                continue
            if not (all_crds or name.startswith("federated")):
                continue
            self._log.debug("removing_crd", name=name)
            try:
                client.apiextensions_v1.delete_custom_resource_definition(name, body=options)
            except Exception as e:
                if self._not_found(client, e, "CustomResourceDefinition", name, None):
                    continue
            removed.append(name)
        self._log.info("removed_federation_crds", count=len(removed))
        return removed

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @contextmanager
    def _kubernetes(self, cluster: ClusterHandle) -> Iterator[KubernetesClient]:
        with closing(self._client_factory(cluster)) as client:
            yield client

    @staticmethod
    def _not_found(
        client: KubernetesClient,
        e: Exception,
        resource_type: str,
        name: str | None,
        namespace: str | None,
    ) -> bool:
        """Return True for a not-found answer, re-raise anything else translated."""
        translated = client.translate_api_exception(e, resource_type, name, namespace)
        if isinstance(translated, KubernetesNotFoundError):
            return True
        if translated is e:
            raise translated
        raise translated from e

    def _list_namespaced(
        self,
        client: KubernetesClient,
        resource: FederatedAPIResource,
        namespace: str,
    ) -> list[dict[str, Any]]:
        try:
            response = client.custom_objects.list_namespaced_custom_object(
                resource.group, resource.version, namespace, resource.plural_name
            )
        except Exception as e:
            if self._not_found(client, e, resource.kind or resource.plural_name, None, namespace):
                self._log.debug("no_resources_found", resource=resource.display_name)
                return []
        return list(response.get("items", []))

    def _list_all_namespaces(
        self,
        client: KubernetesClient,
        resource: FederatedAPIResource,
    ) -> list[dict[str, Any]]:
        try:
            response = client.custom_objects.list_cluster_custom_object(
                resource.group, resource.version, resource.plural_name
            )
        except Exception as e:
            if self._not_found(client, e, resource.kind or resource.plural_name, None, None):
                self._log.debug("no_resources_found", resource=resource.display_name)
                return []
        return list(response.get("items", []))

    def _delete_items(
        self,
        client: KubernetesClient,
        resource: FederatedAPIResource,
        items: list[dict[str, Any]],
    ) -> None:
        custom_objects = client.custom_objects
        for item in items:
            metadata = item.get("metadata") or {}
            name = metadata.get("name", "")
            namespace = metadata.get("namespace")
            self._log.debug("deleting_resource", resource=resource.display_name, name=name, namespace=namespace)
            try:
                if resource.namespaced and namespace:
                    custom_objects.delete_namespaced_custom_object(
                        resource.group, resource.version, namespace, resource.plural_name, name
                    )
                else:
                    custom_objects.delete_cluster_custom_object(
                        resource.group, resource.version, resource.plural_name, name
                    )
            except Exception as e:
                if self._not_found(client, e, resource.kind or resource.plural_name, name, namespace):
                    continue
