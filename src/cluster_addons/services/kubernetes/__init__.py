"""Kubernetes services used by post hooks and reconcilers."""

from cluster_addons.services.kubernetes.base import K8sBaseManager
from cluster_addons.services.kubernetes.capability_probe import CapabilityProbe
from cluster_addons.services.kubernetes.helm_bootstrap import HelmBootstrapper
from cluster_addons.services.kubernetes.release_manager import ReleaseManager
from cluster_addons.services.kubernetes.resource_ensurer import ResourceEnsurer

__all__ = [
    "CapabilityProbe",
    "HelmBootstrapper",
    "K8sBaseManager",
    "ReleaseManager",
    "ResourceEnsurer",
]
