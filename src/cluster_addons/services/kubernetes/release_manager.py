"""Release manager: converge a single Helm release on a cluster.

Every operation looks the release up first (failed and pending releases
included) and acts on the observed status, so each call is safe to repeat.
"""

from __future__ import annotations

import os
import re
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
import yaml

from cluster_addons.exceptions import ReleaseError, ReleaseStateError
from cluster_addons.integrations.kubernetes.exceptions import KubernetesConnectionError
from cluster_addons.integrations.kubernetes.helm_client import (
    HelmClient,
    HelmCommandError,
    HelmError,
)
from cluster_addons.integrations.kubernetes.models.helm import (
    HelmRelease,
    InstallOptions,
    Release,
    ReleaseStatus,
)

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

logger = structlog.get_logger()

# First helm major version that installs CRDs from the chart's crds/ directory
DECLARATIVE_CRD_HELM_MAJOR = 3


class ReleaseManager:
    """Install, upgrade and delete Helm releases on managed clusters.

    The kubeconfig of the target cluster is fetched from the cluster handle
    for each operation, written to a private temporary file and removed once
    the operation returns.
    """

    _entity_name: str = "release"

    def __init__(self, helm_client: HelmClient | None = None) -> None:
        """Initialize the release manager.

        Args:
            helm_client: Optional HelmClient (auto-created if None).
        """
        self._helm = helm_client or HelmClient()
        self._helm_major: int | None = None
        self._log = logger.bind(entity=self._entity_name)

    # -----------------------------------------------------------------------
    # Temporary files
    # -----------------------------------------------------------------------

    @staticmethod
    @contextmanager
    def _kubeconfig_file(cluster: ClusterHandle) -> Iterator[str]:
        try:
            kubeconfig = cluster.get_k8s_config()
        except OSError as e:
            raise KubernetesConnectionError(
                message=f"Unable to fetch kubeconfig for cluster '{cluster.name}'",
                original_error=e,
            ) from e

        fd, path = tempfile.mkstemp(prefix="kubeconfig-", suffix=".yaml")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(kubeconfig)
            yield path
        finally:
            os.unlink(path)

    @staticmethod
    @contextmanager
    def _values_files(values: Mapping[str, Any]) -> Iterator[list[str]]:
        if not values:
            yield []
            return

        fd, path = tempfile.mkstemp(prefix="values-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(dict(values), f, default_flow_style=False)
            yield [path]
        finally:
            os.unlink(path)

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def _find_release(self, name: str, namespace: str, kubeconfig: str) -> HelmRelease | None:
        releases = self._helm.list_releases(
            namespace=namespace,
            kubeconfig=kubeconfig,
            all_releases=True,
            filter_pattern=f"^{re.escape(name)}$",
        )
        for found in releases:
            if found.name == name:
                return found
        return None

    def status(self, cluster: ClusterHandle, release_name: str, namespace: str) -> ReleaseStatus:
        """Return the observable status of a release.

        Raises:
            ReleaseError: If helm cannot list releases.
        """
        with self._kubeconfig_file(cluster) as kubeconfig:
            try:
                found = self._find_release(release_name, namespace, kubeconfig)
            except HelmError as e:
                raise ReleaseError("Failed to query release", release_name, namespace) from e
        return found.release_status if found else ReleaseStatus.NOT_FOUND

    def helm_manages_crds(self) -> bool:
        """Whether the helm CLI handles CRDs declaratively (helm 3 or later)."""
        if self._helm_major is None:
            self._helm_major = self._helm.get_major_version()
        return self._helm_major >= DECLARATIVE_CRD_HELM_MAJOR

    # -----------------------------------------------------------------------
    # Release management
    # -----------------------------------------------------------------------

    def install_or_upgrade(
        self,
        cluster: ClusterHandle,
        release: Release,
        options: InstallOptions | None = None,
    ) -> None:
        """Make sure ``release`` is deployed on the cluster.

        A deployed release is left alone unless ``options.upgrade`` is set. A
        failed release, or one left pending by an interrupted helm run, is
        deleted and installed again. A release in any other state
        (uninstalling, superseded, ...) is never installed over.

        Args:
            cluster: Target cluster.
            release: The release to converge.
            options: Install options.

        Raises:
            ReleaseStateError: If the release is in a state other than
                deployed, failed or pending.
            ReleaseError: If helm fails; a helm ``--wait`` timeout is chained
                as ``KubernetesTimeoutError``.
        """
        options = options or InstallOptions()
        log = self._log.bind(release=release.name, namespace=release.namespace, cluster_id=cluster.id)

        with self._kubeconfig_file(cluster) as kubeconfig:
            try:
                found = self._find_release(release.name, release.namespace, kubeconfig)
            except HelmError as e:
                raise ReleaseError("Failed to query release", release.name, release.namespace) from e

            status = found.release_status if found else ReleaseStatus.NOT_FOUND
            log.debug("release_status_observed", status=str(status))

            if status is ReleaseStatus.DEPLOYED:
                if options.upgrade:
                    self._upgrade(release, options, kubeconfig)
                else:
                    log.info("release_already_deployed")
                return

            if status is ReleaseStatus.OTHER:
                raise ReleaseStateError(release.name, release.namespace, found.status if found else "")

            if status in (ReleaseStatus.FAILED, ReleaseStatus.PENDING):
                log.warning("deleting_broken_release", status=found.status if found else "")
                try:
                    self._helm.uninstall(release.name, namespace=release.namespace, kubeconfig=kubeconfig)
                except HelmError as e:
                    raise ReleaseError(
                        f"Failed to delete {status} release", release.name, release.namespace
                    ) from e

            self._install(release, options, kubeconfig)

    def upgrade(
        self,
        cluster: ClusterHandle,
        release: Release,
        options: InstallOptions | None = None,
    ) -> None:
        """Run ``helm upgrade --install`` for ``release``.

        Raises:
            ReleaseError: If helm fails.
        """
        with self._kubeconfig_file(cluster) as kubeconfig:
            self._upgrade(release, options or InstallOptions(), kubeconfig)

    def delete(self, cluster: ClusterHandle, release_name: str, namespace: str) -> None:
        """Delete a release; an absent release is not an error.

        Raises:
            ReleaseError: If helm fails for any reason other than the release
                being absent.
        """
        log = self._log.bind(release=release_name, namespace=namespace, cluster_id=cluster.id)

        with self._kubeconfig_file(cluster) as kubeconfig:
            try:
                found = self._find_release(release_name, namespace, kubeconfig)
            except HelmError as e:
                raise ReleaseError("Failed to query release", release_name, namespace) from e
            if found is None:
                log.debug("release_absent")
                return

            log.info("deleting_release", status=found.status)
            try:
                self._helm.uninstall(release_name, namespace=namespace, kubeconfig=kubeconfig)
            except HelmCommandError as e:
                # Removed by someone else between list and uninstall
                if e.release_not_found:
                    log.debug("release_absent")
                    return
                raise ReleaseError("Failed to delete release", release_name, namespace) from e
            except HelmError as e:
                raise ReleaseError("Failed to delete release", release_name, namespace) from e

    def _install(self, release: Release, options: InstallOptions, kubeconfig: str) -> None:
        self._log.info(
            "installing_release",
            release=release.name,
            chart=release.chart,
            namespace=release.namespace,
            wait=options.wait,
        )
        with self._values_files(release.rendered_values()) as values_files:
            try:
                self._helm.install(
                    release.name,
                    release.chart,
                    namespace=release.namespace,
                    kubeconfig=kubeconfig,
                    values_files=values_files,
                    version=release.version,
                    wait=options.wait,
                    timeout=options.timeout,
                )
            except HelmError as e:
                raise ReleaseError("Failed to install release", release.name, release.namespace) from e

    def _upgrade(self, release: Release, options: InstallOptions, kubeconfig: str) -> None:
        self._log.info(
            "upgrading_release",
            release=release.name,
            chart=release.chart,
            namespace=release.namespace,
            wait=options.wait,
        )
        with self._values_files(release.rendered_values()) as values_files:
            try:
                self._helm.upgrade(
                    release.name,
                    release.chart,
                    namespace=release.namespace,
                    kubeconfig=kubeconfig,
                    values_files=values_files,
                    version=release.version,
                    install=True,
                    create_namespace=True,
                    wait=options.wait,
                    timeout=options.timeout,
                )
            except HelmError as e:
                raise ReleaseError("Failed to upgrade release", release.name, release.namespace) from e
