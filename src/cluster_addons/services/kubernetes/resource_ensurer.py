"""Idempotent create-or-get for the plain Kubernetes objects post hooks need.

Objects are fetched by name first. An existing object is returned unchanged
(RBAC rules already on the cluster are never rewritten); a missing one is
created. Label helpers merge keys in with a JSON merge-patch.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from cluster_addons.integrations.kubernetes.exceptions import KubernetesNotFoundError
from cluster_addons.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from kubernetes.client import (
        V1ClusterRole,
        V1ClusterRoleBinding,
        V1ConfigMap,
        V1ServiceAccount,
    )

    from cluster_addons.integrations.kubernetes.models.rbac import PolicyRule, Subject

MERGE_PATCH = "application/merge-patch+json"


class ResourceEnsurer(K8sBaseManager):
    """Get-or-create service accounts, RBAC objects, config maps and labels."""

    _entity_name = "resource"

    def _read(
        self,
        read: Any,
        resource_type: str,
        name: str,
        namespace: str | None = None,
    ) -> Any | None:
        """Read an object, returning None when it does not exist."""
        try:
            return read()
        except Exception as e:
            try:
                self._handle_api_error(e, resource_type, name, namespace)
            except KubernetesNotFoundError:
                return None

    def _create(
        self,
        create: Any,
        resource_type: str,
        name: str,
        namespace: str | None = None,
    ) -> Any:
        self._log.info("creating_resource", kind=resource_type, name=name, namespace=namespace)
        try:
            created = create()
        except Exception as e:
            self._handle_api_error(e, resource_type, name, namespace)
        self._log.info("created_resource", kind=resource_type, name=name, namespace=namespace)
        return created

    # -----------------------------------------------------------------------
    # Get or create
    # -----------------------------------------------------------------------

    def get_or_create_service_account(self, namespace: str, name: str) -> V1ServiceAccount:
        """Return the named service account, creating it when absent."""
        from kubernetes.client import V1ObjectMeta, V1ServiceAccount

        core = self._client.core_v1
        existing = self._read(
            lambda: core.read_namespaced_service_account(name, namespace),
            "ServiceAccount",
            name,
            namespace,
        )
        if existing is not None:
            self._log.debug("service_account_exists", name=name, namespace=namespace)
            return existing

        body = V1ServiceAccount(metadata=V1ObjectMeta(name=name, namespace=namespace))
        return self._create(
            lambda: core.create_namespaced_service_account(namespace, body),
            "ServiceAccount",
            name,
            namespace,
        )

    def get_or_create_cluster_role(self, name: str, rules: Sequence[PolicyRule]) -> V1ClusterRole:
        """Return the named cluster role, creating it with ``rules`` when absent.

        The rules of an existing role are left as they are.
        """
        from kubernetes.client import V1ClusterRole, V1ObjectMeta

        rbac = self._client.rbac_v1
        existing = self._read(lambda: rbac.read_cluster_role(name), "ClusterRole", name)
        if existing is not None:
            self._log.debug("cluster_role_exists", name=name)
            return existing

        body = V1ClusterRole(
            metadata=V1ObjectMeta(name=name),
            rules=[rule.to_k8s() for rule in rules],
        )
        return self._create(lambda: rbac.create_cluster_role(body), "ClusterRole", name)

    def get_or_create_cluster_role_binding(
        self,
        name: str,
        subject: Subject,
        cluster_role: str,
    ) -> V1ClusterRoleBinding:
        """Return the named cluster role binding, creating it when absent.

        Args:
            name: Binding name.
            subject: Service account or group to bind.
            cluster_role: Name of the cluster role to bind to.
        """
        from kubernetes.client import V1ClusterRoleBinding, V1ObjectMeta, V1RoleRef

        from cluster_addons.integrations.kubernetes.models.rbac import RBAC_API_GROUP

        rbac = self._client.rbac_v1
        existing = self._read(
            lambda: rbac.read_cluster_role_binding(name),
            "ClusterRoleBinding",
            name,
        )
        if existing is not None:
            self._log.debug("cluster_role_binding_exists", name=name)
            return existing

        body = V1ClusterRoleBinding(
            metadata=V1ObjectMeta(name=name),
            role_ref=V1RoleRef(api_group=RBAC_API_GROUP, kind="ClusterRole", name=cluster_role),
            subjects=[subject.to_k8s()],
        )
        return self._create(
            lambda: rbac.create_cluster_role_binding(body),
            "ClusterRoleBinding",
            name,
        )

    def get_or_create_config_map(
        self,
        namespace: str,
        name: str,
        data: Mapping[str, str] | None = None,
    ) -> V1ConfigMap:
        """Return the named config map, creating it with ``data`` when absent."""
        from kubernetes.client import V1ConfigMap, V1ObjectMeta

        core = self._client.core_v1
        existing = self._read(
            lambda: core.read_namespaced_config_map(name, namespace),
            "ConfigMap",
            name,
            namespace,
        )
        if existing is not None:
            self._log.debug("config_map_exists", name=name, namespace=namespace)
            return existing

        body = V1ConfigMap(
            metadata=V1ObjectMeta(name=name, namespace=namespace),
            data=dict(data or {}),
        )
        return self._create(
            lambda: core.create_namespaced_config_map(namespace, body),
            "ConfigMap",
            name,
            namespace,
        )

    # -----------------------------------------------------------------------
    # Labels
    # -----------------------------------------------------------------------

    def ensure_namespace_labels(self, namespace: str, labels: Mapping[str, str]) -> None:
        """Merge ``labels`` into the labels of a namespace."""
        body = {"metadata": {"labels": dict(labels)}}
        self._log.debug("labelling_namespace", namespace=namespace, labels=dict(labels))
        try:
            self._client.core_v1.patch_namespace(namespace, body, _content_type=MERGE_PATCH)
        except Exception as e:
            self._handle_api_error(e, "Namespace", namespace)

    def ensure_node_labels(self, node: str, labels: Mapping[str, str]) -> None:
        """Merge ``labels`` into the labels of a node."""
        body = {"metadata": {"labels": dict(labels)}}
        self._log.debug("labelling_node", node=node, labels=dict(labels))
        try:
            self._client.core_v1.patch_node(node, body, _content_type=MERGE_PATCH)
        except Exception as e:
            self._handle_api_error(e, "Node", node)
