"""Organization lookup and token signing."""

from cluster_addons.auth.organization import OrganizationLookup, StaticOrganizationLookup
from cluster_addons.auth.tokens import TokenGenerator

__all__ = ["OrganizationLookup", "StaticOrganizationLookup", "TokenGenerator"]
