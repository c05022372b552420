"""Organization lookup contract and a static implementation for the CLI."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class OrganizationLookup(Protocol):
    """Resolves organization ids to their (already normalized) names."""

    def get_organization_name(self, organization_id: int) -> str:
        """Return the organization's name.

        Raises:
            LookupError: If the organization does not exist.
        """
        ...


class StaticOrganizationLookup:
    """OrganizationLookup backed by a fixed mapping."""

    def __init__(self, names: Mapping[int, str]) -> None:
        self._names = dict(names)

    def get_organization_name(self, organization_id: int) -> str:
        try:
            return self._names[organization_id]
        except KeyError:
            raise LookupError(f"Unknown organization {organization_id}") from None
