"""Helm CLI wrapper for release management.

Wraps the helm binary via subprocess for install, upgrade, list, uninstall,
and version operations against an explicit kubeconfig.
"""

from __future__ import annotations

import json
import re
import shutil
import subprocess
from pathlib import Path

import structlog

from cluster_addons.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesTimeoutError,
)
from cluster_addons.integrations.kubernetes.models.helm import (
    HelmCommandResult,
    HelmRelease,
)

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HELM_TIMEOUT_SECONDS = 300
VERSION_TIMEOUT_SECONDS = 10
SHORT_TIMEOUT_SECONDS = 30
# Extra time granted to the helm process beyond its own --timeout
PROCESS_GRACE_SECONDS = 30

_HELM_WAIT_TIMEOUT_MARKERS = ("timed out waiting for the condition", "context deadline exceeded")
# helm 3: "release: not found" / "Release not loaded"; helm 2: 'release: "x" not found'
_RELEASE_NOT_FOUND = re.compile(r'release: (?:"[^"]*" )?not found|release not loaded', re.IGNORECASE)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class HelmError(KubernetesError):
    """Base exception for Helm operations."""

    def __init__(
        self,
        message: str,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message=message)
        self.stderr = stderr


class HelmBinaryNotFoundError(HelmError):
    """Raised when helm binary is not found in PATH."""

    def __init__(self) -> None:
        super().__init__(
            message=(
                "helm binary not found in PATH. Install from: https://helm.sh/docs/intro/install/"
            ),
        )


class HelmCommandError(HelmError):
    """Raised when a helm command fails."""

    @property
    def release_not_found(self) -> bool:
        """Whether helm refused because the release does not exist.

        Only helm's own release lookup messages count; a missing kubeconfig
        context or auth plugin also says "not found" and must not match.
        """
        text = self.stderr or self.message
        return _RELEASE_NOT_FOUND.search(text) is not None


class HelmTimeoutError(HelmError, KubernetesTimeoutError):
    """Raised when helm or the resources it waits on exceed the deadline."""

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        stderr: str | None = None,
    ) -> None:
        KubernetesTimeoutError.__init__(self, message=message, timeout_seconds=timeout_seconds)
        self.stderr = stderr


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class HelmClient:
    """Client for interacting with the Helm CLI.

    Wraps helm binary execution and provides typed results. Every release
    operation takes the kubeconfig of the target cluster explicitly.
    """

    def __init__(self, binary_path: str | None = None) -> None:
        """Initialize Helm client.

        Args:
            binary_path: Optional explicit path to helm binary.
                If None, searches PATH.

        Raises:
            HelmBinaryNotFoundError: If binary not found.
        """
        self._binary = self._find_binary(binary_path)
        self._log = logger.bind(binary=self._binary)
        self._log.debug("helm_client_initialized")

    @staticmethod
    def _find_binary(binary_path: str | None) -> str:
        """Locate helm binary.

        Args:
            binary_path: Explicit path or None to search PATH.

        Returns:
            Path to helm binary.

        Raises:
            HelmBinaryNotFoundError: If not found.
        """
        if binary_path:
            path = Path(binary_path)
            if not path.exists():
                raise HelmBinaryNotFoundError()
            return str(path.resolve())

        found = shutil.which("helm")
        if not found:
            raise HelmBinaryNotFoundError()

        return found

    def _run(
        self,
        args: list[str],
        *,
        kubeconfig: str | None = None,
        timeout: int = HELM_TIMEOUT_SECONDS,
    ) -> subprocess.CompletedProcess[str]:
        """Run a helm command.

        Args:
            args: Command arguments (without the ``helm`` prefix).
            kubeconfig: Path of the kubeconfig selecting the target cluster.
            timeout: Timeout in seconds for the helm process.

        Returns:
            CompletedProcess result.

        Raises:
            HelmCommandError: On non-zero exit.
            HelmTimeoutError: On timeout.
        """
        cmd = [self._binary, *args]
        if kubeconfig:
            cmd.extend(["--kubeconfig", kubeconfig])
        self._log.debug("running_helm_command", args=args)

        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=timeout,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else ""
            if any(marker in stderr for marker in _HELM_WAIT_TIMEOUT_MARKERS):
                raise HelmTimeoutError(
                    message=f"Helm command timed out: {stderr}",
                    stderr=e.stderr,
                ) from e
            raise HelmCommandError(
                message=f"Helm command failed: {stderr or f'exit code {e.returncode}'}",
                stderr=e.stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise HelmTimeoutError(
                message="Helm command timed out",
                timeout_seconds=timeout,
            ) from e

    # -----------------------------------------------------------------------
    # Version
    # -----------------------------------------------------------------------

    def get_version(self) -> str:
        """Get helm version string.

        Returns:
            Version string (e.g., ``v3.17.0``).

        Raises:
            HelmError: If version command fails.
        """
        result = self._run(["version", "--short"], timeout=VERSION_TIMEOUT_SECONDS)
        version = result.stdout.strip()
        # Strip build metadata (e.g., "v3.17.0+g301108e" -> "v3.17.0")
        if "+" in version:
            version = version.split("+")[0]
        return version

    def get_major_version(self) -> int:
        """Get the helm major version number.

        Raises:
            HelmError: If the version cannot be determined.
        """
        version = self.get_version()
        # helm 2 prints "Client: v2.16.1"
        version = version.rsplit(" ", 1)[-1].lstrip("v")
        try:
            return int(version.split(".", 1)[0])
        except ValueError as e:
            raise HelmError(message=f"Unrecognized helm version '{version}'") from e

    # -----------------------------------------------------------------------
    # Release management
    # -----------------------------------------------------------------------

    def install(
        self,
        release_name: str,
        chart: str,
        *,
        namespace: str,
        kubeconfig: str | None = None,
        values_files: list[str] | None = None,
        version: str | None = None,
        create_namespace: bool = True,
        wait: bool = False,
        timeout: int = HELM_TIMEOUT_SECONDS,
    ) -> HelmCommandResult:
        """Install a Helm chart.

        Args:
            release_name: Name for the release.
            chart: Chart reference (repo/chart, path, or URL).
            namespace: Target Kubernetes namespace.
            kubeconfig: Kubeconfig path of the target cluster.
            values_files: Paths to values YAML files.
            version: Chart version constraint.
            create_namespace: Create namespace if it doesn't exist.
            wait: Wait for resources to be ready.
            timeout: Seconds helm may spend, including --wait.

        Returns:
            Command result.
        """
        args = ["install", release_name, chart]
        args.extend(
            self._build_common_args(
                namespace=namespace,
                values_files=values_files,
                version=version,
                wait=wait,
                timeout=timeout,
            )
        )
        if create_namespace:
            args.append("--create-namespace")

        result = self._run(args, kubeconfig=kubeconfig, timeout=timeout + PROCESS_GRACE_SECONDS)
        self._log.info("helm_install_success", release=release_name, chart=chart)
        return HelmCommandResult(success=True, stdout=result.stdout, stderr=result.stderr)

    def upgrade(
        self,
        release_name: str,
        chart: str,
        *,
        namespace: str,
        kubeconfig: str | None = None,
        values_files: list[str] | None = None,
        version: str | None = None,
        install: bool = False,
        create_namespace: bool = False,
        wait: bool = False,
        timeout: int = HELM_TIMEOUT_SECONDS,
    ) -> HelmCommandResult:
        """Upgrade a Helm release.

        Args:
            release_name: Name of the release.
            chart: Chart reference.
            namespace: Target namespace.
            kubeconfig: Kubeconfig path of the target cluster.
            values_files: Paths to values YAML files.
            version: Chart version constraint.
            install: Install if release doesn't exist (--install).
            create_namespace: Create namespace if needed.
            wait: Wait for resources to be ready.
            timeout: Seconds helm may spend, including --wait.

        Returns:
            Command result.
        """
        args = ["upgrade", release_name, chart]
        args.extend(
            self._build_common_args(
                namespace=namespace,
                values_files=values_files,
                version=version,
                wait=wait,
                timeout=timeout,
            )
        )
        if install:
            args.append("--install")
        if create_namespace:
            args.append("--create-namespace")

        result = self._run(args, kubeconfig=kubeconfig, timeout=timeout + PROCESS_GRACE_SECONDS)
        self._log.info("helm_upgrade_success", release=release_name, chart=chart)
        return HelmCommandResult(success=True, stdout=result.stdout, stderr=result.stderr)

    def uninstall(
        self,
        release_name: str,
        *,
        namespace: str,
        kubeconfig: str | None = None,
        timeout: int = HELM_TIMEOUT_SECONDS,
    ) -> HelmCommandResult:
        """Uninstall a release.

        Args:
            release_name: Name of the release.
            namespace: Target namespace.
            kubeconfig: Kubeconfig path of the target cluster.
            timeout: Seconds helm may spend.

        Returns:
            Command result.
        """
        args = ["uninstall", release_name, "--namespace", namespace]

        result = self._run(args, kubeconfig=kubeconfig, timeout=timeout + PROCESS_GRACE_SECONDS)
        self._log.info("helm_uninstall_success", release=release_name)
        return HelmCommandResult(success=True, stdout=result.stdout, stderr=result.stderr)

    def list_releases(
        self,
        *,
        namespace: str | None = None,
        kubeconfig: str | None = None,
        all_releases: bool = False,
        filter_pattern: str | None = None,
    ) -> list[HelmRelease]:
        """List Helm releases.

        Args:
            namespace: Namespace to list releases from.
            kubeconfig: Kubeconfig path of the target cluster.
            all_releases: Include releases in all states.
            filter_pattern: Filter releases by name pattern (a regex).

        Returns:
            List of releases.
        """
        args = ["list", "--output", "json"]
        if namespace:
            args.extend(["--namespace", namespace])
        if all_releases:
            args.append("--all")
        if filter_pattern:
            args.extend(["--filter", filter_pattern])

        result = self._run(args, kubeconfig=kubeconfig, timeout=SHORT_TIMEOUT_SECONDS)
        data = json.loads(result.stdout) if result.stdout.strip() else []
        return [HelmRelease.from_json(entry) for entry in data]

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _build_common_args(
        *,
        namespace: str | None = None,
        values_files: list[str] | None = None,
        version: str | None = None,
        wait: bool = False,
        timeout: int | None = None,
    ) -> list[str]:
        """Build common Helm CLI arguments.

        Returns:
            List of CLI argument strings.
        """
        args: list[str] = []
        if namespace:
            args.extend(["--namespace", namespace])
        if version:
            args.extend(["--version", version])
        if values_files:
            for f in values_files:
                args.extend(["--values", f])
        if wait:
            args.append("--wait")
        if timeout:
            args.extend(["--timeout", f"{timeout}s"])
        return args
