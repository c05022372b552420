"""RBAC value types used when bootstrapping cluster roles and bindings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kubernetes.client import RbacV1Subject, V1PolicyRule

RBAC_API_GROUP = "rbac.authorization.k8s.io"


@dataclass(frozen=True)
class PolicyRule:
    """One rule of a cluster role. An empty string in api_groups is the core group."""

    api_groups: tuple[str, ...]
    resources: tuple[str, ...]
    verbs: tuple[str, ...]
    resource_names: tuple[str, ...] = ()

    def to_k8s(self) -> V1PolicyRule:
        from kubernetes.client import V1PolicyRule

        return V1PolicyRule(
            api_groups=list(self.api_groups),
            resources=list(self.resources),
            verbs=list(self.verbs),
            resource_names=list(self.resource_names) or None,
        )


@dataclass(frozen=True)
class Subject:
    """Subject of a role binding."""

    kind: str
    name: str
    namespace: str | None = None

    @classmethod
    def service_account(cls, namespace: str, name: str) -> Subject:
        return cls(kind="ServiceAccount", name=name, namespace=namespace)

    @classmethod
    def group(cls, name: str) -> Subject:
        return cls(kind="Group", name=name)

    @property
    def api_group(self) -> str:
        return "" if self.kind == "ServiceAccount" else RBAC_API_GROUP

    def to_k8s(self) -> RbacV1Subject:
        from kubernetes.client import RbacV1Subject

        return RbacV1Subject(
            kind=self.kind,
            name=self.name,
            namespace=self.namespace,
            api_group=self.api_group or None,
        )

    def matches(self, subject: Any) -> bool:
        """Compare with a subject read back from the API."""
        return (
            getattr(subject, "kind", None) == self.kind
            and getattr(subject, "name", None) == self.name
            and (self.namespace is None or getattr(subject, "namespace", None) == self.namespace)
        )
