"""Configuration management with Pydantic validation."""

from cluster_addons.core.config.models import (
    AddonsConfig,
    ChartConfig,
    FederationConfig,
    load_config,
)

__all__ = [
    "AddonsConfig",
    "ChartConfig",
    "FederationConfig",
    "load_config",
]
