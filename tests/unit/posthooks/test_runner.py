"""Unit tests for PostHookRunner."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from cluster_addons.core.config.models import DEFAULT_POST_HOOK_ORDER
from cluster_addons.exceptions import PostHookError, UnknownPostHookError
from cluster_addons.posthooks.base import PostHook, PostHookContext
from cluster_addons.posthooks.runner import POST_HOOKS, PostHookRunner


def _recording_hook(hook_name: str, calls: list[tuple[str, Any]], error: Exception | None = None) -> type[PostHook]:
    class RecordingHook(PostHook):
        name = hook_name

        def run(self, cluster: Any, params: Any = None) -> Any:
            calls.append((hook_name, params))
            if error is not None:
                raise error
            return f"{hook_name} done"

    return RecordingHook


@pytest.fixture
def calls() -> list[tuple[str, Any]]:
    return []


@pytest.fixture
def runner(hook_context: PostHookContext, calls: list[tuple[str, Any]]) -> PostHookRunner:
    registry = {
        "A": _recording_hook("A", calls),
        "B": _recording_hook("B", calls, RuntimeError("boom")),
        "C": _recording_hook("C", calls),
    }
    return PostHookRunner(hook_context, registry)


@pytest.mark.unit
class TestPostHookRunner:
    """Tests for PostHookRunner."""

    def test_registry_covers_default_order(self) -> None:
        """Should register every hook of the default order plus the restore hook."""
        assert set(DEFAULT_POST_HOOK_ORDER) <= set(POST_HOOKS)
        assert "RestoreFromBackup" in POST_HOOKS
        assert len(POST_HOOKS) == 11

    def test_available_sorted(self, runner: PostHookRunner) -> None:
        assert runner.available() == ["A", "B", "C"]

    def test_runs_in_order_with_params(
        self, runner: PostHookRunner, calls: list[tuple[str, Any]], cluster: Any
    ) -> None:
        """Should run hooks in the given order, each with its own params."""
        results = runner.run(cluster, ["C", "A"], {"A": {"x": 1}})

        assert calls == [("C", None), ("A", {"x": 1})]
        assert results == {"C": "C done", "A": "A done"}

    def test_stops_at_first_failure(
        self, runner: PostHookRunner, calls: list[tuple[str, Any]], cluster: Any
    ) -> None:
        """Should name the failing hook and skip the rest."""
        with pytest.raises(PostHookError) as exc_info:
            runner.run(cluster, ["A", "B", "C"])

        assert exc_info.value.hook == "B"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert [name for name, _ in calls] == ["A", "B"]

    def test_unknown_names_rejected_before_running(
        self, runner: PostHookRunner, calls: list[tuple[str, Any]], cluster: Any
    ) -> None:
        """Should fail before running anything when a name is unknown."""
        with pytest.raises(UnknownPostHookError) as exc_info:
            runner.run(cluster, ["A", "Nope", "Other"])

        assert exc_info.value.names == ("Nope", "Other")
        assert calls == []

    def test_timeout_visible_through_hook_error(self, hook_context: PostHookContext, cluster: Any) -> None:
        """Should keep a deadline expiry detectable on the runner's error."""
        from cluster_addons.exceptions import ReleaseError
        from cluster_addons.integrations.kubernetes.exceptions import KubernetesTimeoutError

        releases = MagicMock()
        error = ReleaseError("Failed to install release", "spot-webhook", "pipeline-system")
        error.__cause__ = KubernetesTimeoutError(timeout_seconds=300)
        releases.install_or_upgrade.side_effect = error
        hook_context.releases = releases

        with pytest.raises(PostHookError) as exc_info:
            PostHookRunner(hook_context).run(cluster, ["InstallPVCOperatorPostHook"])

        assert exc_info.value.timed_out
