"""Organization cluster-admin binding for PKE clusters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cluster_addons.exceptions import ConfigurationMissingError
from cluster_addons.integrations.kubernetes.exceptions import KubernetesConflictError
from cluster_addons.integrations.kubernetes.models.cluster import Distribution
from cluster_addons.integrations.kubernetes.models.rbac import RBAC_API_GROUP, Subject
from cluster_addons.posthooks.base import PostHook, PostHookParams

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.client import KubernetesClient
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

CLUSTER_ADMIN_ROLE = "cluster-admin"


class CreateClusterRoles(PostHook):
    """Bind the cluster's organization group to ``cluster-admin``.

    An existing binding with the same role and group is accepted as is. A
    binding of that name pointing anywhere else is reported as a conflict.
    """

    name = "CreateClusterRoles"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> None:
        log = self._cluster_log(cluster)
        distribution = self._probe(cluster).distribution()
        if distribution != Distribution.PKE:
            log.info("cluster_roles_not_needed", distribution=str(distribution))
            return

        if self._ctx.organizations is None:
            raise ConfigurationMissingError("organizations")
        organization = self._ctx.organizations.get_organization_name(cluster.organization_id)
        binding_name = f"{organization}-cluster-admin"
        subject = Subject.group(organization)

        with self._kubernetes(cluster) as client:
            try:
                self._create_binding(client, binding_name, subject)
            except KubernetesConflictError:
                existing = self._read_binding(client, binding_name)
                if not self._binding_matches(existing, subject):
                    raise
                log.info("cluster_role_binding_exists", name=binding_name)
                return

        log.info("created_cluster_role_binding", name=binding_name)

    @staticmethod
    def _create_binding(client: KubernetesClient, name: str, subject: Subject) -> None:
        from kubernetes.client import V1ClusterRoleBinding, V1ObjectMeta, V1RoleRef

        body = V1ClusterRoleBinding(
            metadata=V1ObjectMeta(name=name),
            role_ref=V1RoleRef(api_group=RBAC_API_GROUP, kind="ClusterRole", name=CLUSTER_ADMIN_ROLE),
            subjects=[subject.to_k8s()],
        )
        try:
            client.rbac_v1.create_cluster_role_binding(body)
        except Exception as e:
            translated = client.translate_api_exception(e, "ClusterRoleBinding", name)
            if translated is e:
                raise
            raise translated from e

    @staticmethod
    def _read_binding(client: KubernetesClient, name: str) -> Any:
        try:
            return client.rbac_v1.read_cluster_role_binding(name)
        except Exception as e:
            translated = client.translate_api_exception(e, "ClusterRoleBinding", name)
            if translated is e:
                raise
            raise translated from e

    @staticmethod
    def _binding_matches(binding: Any, subject: Subject) -> bool:
        role_ref = binding.role_ref
        if role_ref is None or role_ref.kind != "ClusterRole" or role_ref.name != CLUSTER_ADMIN_ROLE:
            return False
        return any(subject.matches(existing) for existing in binding.subjects or [])
