"""Models for the federation custom resources the reconciler tears down."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Federation control plane resources
KUBEFED_GROUP = "core.kubefed.io"
KUBEFED_VERSION = "v1beta1"
FEDERATED_TYPE_CONFIG_PLURAL = "federatedtypeconfigs"

# Cross-cluster service discovery records
MULTICLUSTER_DNS_GROUP = "multiclusterdns.kubefed.io"
MULTICLUSTER_DNS_VERSION = "v1alpha1"

FEDERATION_CRD_SUFFIX = "kubefed.io"


class FederatedAPIResource(BaseModel):
    """An API resource kind reachable through the custom objects API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    group: str
    version: str
    kind: str = ""
    plural_name: str = Field(alias="pluralName")
    scope: Literal["Namespaced", "Cluster"] = "Namespaced"

    @property
    def namespaced(self) -> bool:
        return self.scope == "Namespaced"

    @property
    def display_name(self) -> str:
        """Resource name as ``plural.group``."""
        return f"{self.plural_name}.{self.group}" if self.group else self.plural_name


INGRESS_DNS_RECORD = FederatedAPIResource(
    group=MULTICLUSTER_DNS_GROUP,
    version=MULTICLUSTER_DNS_VERSION,
    kind="IngressDNSRecord",
    plural_name="ingressdnsrecords",
)

SERVICE_DNS_RECORD = FederatedAPIResource(
    group=MULTICLUSTER_DNS_GROUP,
    version=MULTICLUSTER_DNS_VERSION,
    kind="ServiceDNSRecord",
    plural_name="servicednsrecords",
)


class FederatedTypeConfig(BaseModel):
    """A FederatedTypeConfig resource, reduced to what teardown needs."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    namespace: str | None = None
    federated_type: FederatedAPIResource

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> FederatedTypeConfig:
        """Create from a custom objects API response item."""
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace"),
            federated_type=FederatedAPIResource.model_validate(spec.get("federatedType") or {}),
        )
