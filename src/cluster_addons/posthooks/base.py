"""Post hook base class and the collaborators every hook receives."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping
from contextlib import closing, contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import structlog

from cluster_addons.integrations.kubernetes.client import KubernetesClient
from cluster_addons.integrations.kubernetes.models.helm import InstallOptions, Release
from cluster_addons.logging import bind_cluster
from cluster_addons.services.kubernetes.capability_probe import CapabilityProbe

if TYPE_CHECKING:
    from cluster_addons.auth.organization import OrganizationLookup
    from cluster_addons.auth.tokens import TokenGenerator
    from cluster_addons.core.config.models import AddonsConfig, ChartConfig
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle
    from cluster_addons.integrations.kubernetes.models.values import HelmValues
    from cluster_addons.posthooks.backup import BackupService
    from cluster_addons.services.kubernetes.release_manager import ReleaseManager

logger = structlog.get_logger()

PostHookParams = Mapping[str, Any]


def _client_for(cluster: ClusterHandle) -> KubernetesClient:
    return KubernetesClient.from_cluster(cluster)


def _token_generator_for(config: AddonsConfig) -> TokenGenerator:
    from cluster_addons.auth.tokens import TokenGenerator

    return TokenGenerator(
        issuer=config.auth.token.issuer,
        audience=config.auth.token.audience,
        signing_key=config.hollowtrees.token_signing_key,
    )


@dataclass
class PostHookContext:
    """Everything a post hook may need besides the cluster itself.

    Attributes:
        config: Engine configuration.
        releases: Helm release manager.
        client_factory: Builds a Kubernetes client for a cluster.
        organizations: Resolves organization names.
        backups: Restores cluster backups.
        token_generator_factory: Builds the token generator from config.
        sleep: Sleep function used by bounded waits.
    """

    config: AddonsConfig
    releases: ReleaseManager
    client_factory: Callable[[ClusterHandle], KubernetesClient] = _client_for
    organizations: OrganizationLookup | None = None
    backups: BackupService | None = None
    token_generator_factory: Callable[[AddonsConfig], TokenGenerator] = _token_generator_for
    sleep: Callable[[float], None] = time.sleep


class PostHook(ABC):
    """One idempotent provisioning action run after a cluster becomes ready."""

    name: ClassVar[str]

    def __init__(self, context: PostHookContext) -> None:
        self._ctx = context
        self._log = logger.bind(posthook=self.name)

    @property
    def config(self) -> AddonsConfig:
        return self._ctx.config

    @abstractmethod
    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> Any:
        """Run the action against ``cluster``.

        Returns:
            An optional per-hook report (most hooks return None).
        """

    def _cluster_log(self, cluster: ClusterHandle) -> Any:
        return bind_cluster(self._log, cluster)

    @contextmanager
    def _kubernetes(self, cluster: ClusterHandle) -> Iterator[KubernetesClient]:
        """Yield a client for ``cluster`` and close it afterwards."""
        with closing(self._ctx.client_factory(cluster)) as client:
            yield client

    def _probe(self, cluster: ClusterHandle, client: KubernetesClient | None = None) -> CapabilityProbe:
        return CapabilityProbe(cluster, client)

    def _install(
        self,
        cluster: ClusterHandle,
        release_name: str,
        chart: ChartConfig,
        namespace: str,
        values: HelmValues | Mapping[str, Any] | None = None,
        *,
        wait: bool = False,
    ) -> None:
        release = Release(
            name=release_name,
            chart=chart.chart,
            namespace=namespace,
            version=chart.version,
            values=values if values is not None else {},
        )
        options = InstallOptions(wait=wait, timeout=self.config.helm.timeout)
        self._ctx.releases.install_or_upgrade(cluster, release, options)
