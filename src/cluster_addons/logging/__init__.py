"""Logging configuration for cluster_addons."""

from cluster_addons.logging.config import bind_cluster, configure_logging, get_logger

__all__ = ["bind_cluster", "configure_logging", "get_logger"]
