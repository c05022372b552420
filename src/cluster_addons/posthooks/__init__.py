"""Post hooks: idempotent actions run once a cluster becomes ready."""

from cluster_addons.posthooks.base import PostHook, PostHookContext
from cluster_addons.posthooks.runner import POST_HOOKS, PostHookRunner

__all__ = ["POST_HOOKS", "PostHook", "PostHookContext", "PostHookRunner"]
