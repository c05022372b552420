"""Data models for Helm operations.

Typed dataclasses for Helm releases, install options, and command results.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.values import HelmValues

# Left behind when helm is killed mid-operation
PENDING_HELM_STATUSES = frozenset({"pending-install", "pending-upgrade", "pending-rollback"})

class ReleaseStatus(StrEnum):
    """Observable status of a named release."""

    NOT_FOUND = "not_found"
    DEPLOYED = "deployed"
    FAILED = "failed"
    PENDING = "pending"
    OTHER = "other"

    @classmethod
    def from_helm(cls, status: str) -> ReleaseStatus:
        """Map a raw ``helm list`` status string onto a ReleaseStatus."""
        normalized = status.strip().lower()
        if normalized == "deployed":
            return cls.DEPLOYED
        if normalized == "failed":
            return cls.FAILED
        if normalized in PENDING_HELM_STATUSES:
            return cls.PENDING
        return cls.OTHER


@dataclass
class HelmRelease:
    """A release as reported by ``helm list``."""

    name: str
    namespace: str
    revision: int
    status: str
    chart: str
    app_version: str
    updated: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> HelmRelease:
        """Create a HelmRelease from ``helm list --output json`` entry."""
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace", "")),
            revision=int(data.get("revision", 0)),
            status=str(data.get("status", "")),
            chart=str(data.get("chart", "")),
            app_version=str(data.get("app_version", "")),
            updated=str(data.get("updated", "")),
        )

    @property
    def release_status(self) -> ReleaseStatus:
        """Status of this release as a ReleaseStatus."""
        return ReleaseStatus.from_helm(self.status)


@dataclass(frozen=True)
class Release:
    """One Helm deployment this engine wants on a cluster.

    ``values`` is either a typed values model or an already-rendered mapping
    (charts installed with their defaults pass an empty mapping).
    """

    name: str
    chart: str
    namespace: str
    version: str | None = None
    values: HelmValues | Mapping[str, Any] = field(default_factory=dict)

    def rendered_values(self) -> dict[str, Any]:
        """Return the values in their wire form."""
        if isinstance(self.values, Mapping):
            return dict(self.values)
        return self.values.to_values()


@dataclass(frozen=True)
class InstallOptions:
    """Options for installing a release.

    Attributes:
        wait: Block until Helm reports every resource ready.
        timeout: Seconds Helm may wait before giving up.
        upgrade: Re-apply values when the release is already deployed.
    """

    wait: bool = False
    timeout: int = 300
    upgrade: bool = False


@dataclass
class HelmCommandResult:
    """Generic result from a Helm command."""

    success: bool
    stdout: str
    stderr: str = ""

    @property
    def output(self) -> str:
        """Return the primary output (stdout)."""
        return self.stdout
