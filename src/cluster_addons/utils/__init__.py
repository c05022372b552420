"""Shared utilities."""

from cluster_addons.utils.polling import max_poll_attempts, poll_until

__all__ = ["max_poll_attempts", "poll_until"]
