"""Add-on reconciliation engine for managed Kubernetes clusters."""

from cluster_addons.__version__ import __version__

__all__ = ["__version__"]
