"""Version information for cluster_addons."""

__version__ = "0.1.0"
