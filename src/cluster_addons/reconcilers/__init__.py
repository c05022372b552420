"""Desired-state reconcilers for add-ons."""

from cluster_addons.reconcilers.addon import AddonReconciler
from cluster_addons.reconcilers.federation import FederationAspect, FederationReconciler
from cluster_addons.reconcilers.state import DesiredState, DesiredStateReconciler

__all__ = [
    "AddonReconciler",
    "DesiredState",
    "DesiredStateReconciler",
    "FederationAspect",
    "FederationReconciler",
]
