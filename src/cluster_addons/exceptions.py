"""Add-on engine exceptions.

Engine errors wrap the integration-layer error that caused them with
``raise ... from ...`` so the original stays reachable through ``__cause__``.
"""

from __future__ import annotations

from collections.abc import Iterable

from cluster_addons.integrations.kubernetes.exceptions import KubernetesTimeoutError


class AddonError(Exception):
    """Base exception for add-on engine failures.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def timed_out(self) -> bool:
        """Whether a deadline expiry caused this error somewhere down the chain."""
        seen: set[int] = set()
        error: BaseException | None = self
        while error is not None and id(error) not in seen:
            if isinstance(error, KubernetesTimeoutError):
                return True
            seen.add(id(error))
            error = error.__cause__
        return False


class ReleaseError(AddonError):
    """A Helm release operation failed."""

    def __init__(self, message: str, release_name: str, namespace: str) -> None:
        super().__init__(f"{message} [release {release_name} in {namespace}]")
        self.release_name = release_name
        self.namespace = namespace


class ReleaseStateError(ReleaseError):
    """A release exists in a state that must not be installed over."""

    def __init__(self, release_name: str, namespace: str, status: str) -> None:
        super().__init__(
            f"Release is in state '{status}' and cannot be installed over",
            release_name=release_name,
            namespace=namespace,
        )
        self.status = status


class ConfigurationMissingError(AddonError):
    """A setting required by an action is not configured."""

    def __init__(self, setting: str) -> None:
        super().__init__(f"Required configuration '{setting}' is not set")
        self.setting = setting


class PostHookError(AddonError):
    """A post hook failed; the failing hook is named in ``hook``."""

    def __init__(self, hook: str, message: str | None = None) -> None:
        super().__init__(f"Post hook '{hook}' failed" + (f": {message}" if message else ""))
        self.hook = hook


class UnknownPostHookError(AddonError):
    """One or more requested post hook names are not registered."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(names)
        super().__init__(f"Unknown post hook(s): {', '.join(self.names)}")


class PostHookParamError(AddonError):
    """Parameters supplied to a post hook failed validation."""

    def __init__(self, hook: str, message: str) -> None:
        super().__init__(f"Invalid parameters for post hook '{hook}': {message}")
        self.hook = hook


class ReconcileError(AddonError):
    """Reconciling one aspect of an add-on failed."""

    def __init__(self, addon: str, aspect: str, message: str | None = None) -> None:
        detail = f": {message}" if message else ""
        super().__init__(f"Reconciling {aspect} of add-on '{addon}' failed{detail}")
        self.addon = addon
        self.aspect = aspect


class UnknownAddonError(AddonError):
    """No reconciler is registered under the requested add-on name."""

    def __init__(self, addon: str) -> None:
        super().__init__(f"Unknown add-on '{addon}'")
        self.addon = addon
