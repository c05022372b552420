"""Desired state of an add-on and the reconciler contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle


class DesiredState(StrEnum):
    PRESENT = "present"
    ABSENT = "absent"


class DesiredStateReconciler(ABC):
    """Drives one add-on toward a desired state, one aspect at a time.

    ``aspects`` lists the add-on's aspects in installation order; removal
    walks them in reverse so dependents go before what they depend on.
    """

    name: ClassVar[str]
    aspects: ClassVar[tuple[str, ...]]

    def order(self, desired_state: DesiredState) -> tuple[str, ...]:
        if desired_state is DesiredState.PRESENT:
            return self.aspects
        return tuple(reversed(self.aspects))

    @abstractmethod
    def reconcile_aspect(
        self,
        cluster: ClusterHandle,
        aspect: str,
        desired_state: DesiredState,
    ) -> None:
        """Converge a single aspect."""
