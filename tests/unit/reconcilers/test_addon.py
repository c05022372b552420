"""Unit tests for AddonReconciler."""

from __future__ import annotations

from typing import Any, ClassVar

import pytest

from cluster_addons.exceptions import ReconcileError, UnknownAddonError
from cluster_addons.reconcilers.addon import AddonReconciler
from cluster_addons.reconcilers.state import DesiredState, DesiredStateReconciler


class RecordingReconciler(DesiredStateReconciler):
    name = "demo"
    aspects: ClassVar[tuple[str, ...]] = ("first", "second", "third")

    def __init__(self, failing: set[str] | None = None) -> None:
        self.calls: list[tuple[str, DesiredState]] = []
        self.failing = failing or set()

    def reconcile_aspect(self, cluster: Any, aspect: str, desired_state: DesiredState) -> None:
        self.calls.append((aspect, desired_state))
        if aspect in self.failing:
            raise RuntimeError(f"{aspect} broke")


@pytest.mark.unit
class TestAddonReconciler:
    """Tests for AddonReconciler."""

    def test_lists_addons_and_aspects(self) -> None:
        reconciler = AddonReconciler([RecordingReconciler()])

        assert reconciler.addons() == ["demo"]
        assert reconciler.aspects("demo") == ("first", "second", "third")

    def test_unknown_addon(self, cluster: Any) -> None:
        with pytest.raises(UnknownAddonError, match="nope"):
            AddonReconciler([RecordingReconciler()]).reconcile(cluster, "nope", "present")

    def test_present_runs_in_order(self, cluster: Any) -> None:
        demo = RecordingReconciler()

        AddonReconciler([demo]).reconcile(cluster, "demo", "present")

        assert [aspect for aspect, _ in demo.calls] == ["first", "second", "third"]

    def test_absent_runs_in_reverse(self, cluster: Any) -> None:
        demo = RecordingReconciler()

        AddonReconciler([demo]).reconcile(cluster, "demo", DesiredState.ABSENT)

        assert demo.calls == [
            ("third", DesiredState.ABSENT),
            ("second", DesiredState.ABSENT),
            ("first", DesiredState.ABSENT),
        ]

    def test_full_run_stops_at_first_failure(self, cluster: Any) -> None:
        """Should skip later aspects once one fails."""
        demo = RecordingReconciler(failing={"second"})

        with pytest.raises(ReconcileError) as exc_info:
            AddonReconciler([demo]).reconcile(cluster, "demo", "present")

        assert exc_info.value.aspect == "second"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert [aspect for aspect, _ in demo.calls] == ["first", "second"]

    def test_explicit_aspects_all_attempted(self, cluster: Any) -> None:
        """Should attempt every requested aspect and raise the first failure."""
        demo = RecordingReconciler(failing={"first", "third"})

        with pytest.raises(ReconcileError) as exc_info:
            AddonReconciler([demo]).reconcile(cluster, "demo", "absent", ["first", "second", "third"])

        assert exc_info.value.aspect == "first"
        assert [aspect for aspect, _ in demo.calls] == ["first", "second", "third"]

    def test_unknown_aspect_rejected_up_front(self, cluster: Any) -> None:
        demo = RecordingReconciler()

        with pytest.raises(ReconcileError, match="unknown aspect"):
            AddonReconciler([demo]).reconcile(cluster, "demo", "present", ["second", "fourth"])

        assert demo.calls == []

    def test_invalid_state(self, cluster: Any) -> None:
        with pytest.raises(ValueError):
            AddonReconciler([RecordingReconciler()]).reconcile(cluster, "demo", "installed")
