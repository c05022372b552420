"""Unit tests for the instance termination handler post hook."""

from __future__ import annotations

import dataclasses
from typing import Any
from unittest.mock import MagicMock

import jwt
import pytest

from cluster_addons.auth.tokens import SIGNING_ALGORITHM
from cluster_addons.core.config.models import AddonsConfig
from cluster_addons.exceptions import ConfigurationMissingError
from cluster_addons.integrations.kubernetes.models.cluster import Cloud, ScaleOptions
from cluster_addons.posthooks.base import PostHookContext
from cluster_addons.posthooks.termination_handler import DeployInstanceTerminationHandler


@pytest.mark.unit
@pytest.mark.kubernetes
class TestDeployInstanceTerminationHandler:
    """Tests for DeployInstanceTerminationHandler."""

    def test_skips_unsupported_clouds(
        self, hook_context: PostHookContext, mock_releases: MagicMock, make_cluster: Any
    ) -> None:
        """Should only deploy on Amazon and Google."""
        DeployInstanceTerminationHandler(hook_context).run(make_cluster(cloud=Cloud.AZURE))

        mock_releases.install_or_upgrade.assert_not_called()

    def test_notifier_disabled_without_autoscaling(
        self,
        hook_context: PostHookContext,
        mock_releases: MagicMock,
        cluster: Any,
        installed: Any,
    ) -> None:
        """Should deploy with the notifier off when autoscaling is not enabled."""
        DeployInstanceTerminationHandler(hook_context).run(cluster)

        ((release, _),) = installed(mock_releases)
        assert release.name == "ith"
        assert release.namespace == "pipeline-system"
        assert release.rendered_values()["hollowtreesNotifier"] == {"enabled": False}

    def test_notifier_carries_signed_token(
        self,
        hook_context: PostHookContext,
        mock_releases: MagicMock,
        make_cluster: Any,
        installed: Any,
        addons_config: AddonsConfig,
    ) -> None:
        """Should point the notifier at the alert endpoint with a token for this cluster."""
        cluster = make_cluster(cloud=Cloud.GOOGLE, scale_options=ScaleOptions(enabled=True))

        DeployInstanceTerminationHandler(hook_context).run(cluster)

        ((release, _),) = installed(mock_releases)
        notifier = release.rendered_values()["hollowtreesNotifier"]
        assert notifier["enabled"] is True
        assert notifier["URL"] == "https://alerts.example.com/alerts"
        assert notifier["clusterID"] == 42
        assert notifier["organizationID"] == 7
        assert notifier["clusterName"] == "demo"

        claims = jwt.decode(
            notifier["jwtToken"],
            "s3cr3t",
            algorithms=[SIGNING_ALGORITHM],
            audience=addons_config.auth.token.audience,
            issuer=addons_config.auth.token.issuer,
        )
        assert claims["clusterID"] == 42
        assert claims["organizationID"] == 7

    def test_missing_signing_key(
        self, hook_context: PostHookContext, mock_releases: MagicMock, make_cluster: Any
    ) -> None:
        """Should refuse to deploy an unauthenticated notifier."""
        context = dataclasses.replace(hook_context, config=AddonsConfig())
        cluster = make_cluster(scale_options=ScaleOptions(enabled=True))

        with pytest.raises(ConfigurationMissingError, match="token_signing_key"):
            DeployInstanceTerminationHandler(context).run(cluster)

        mock_releases.install_or_upgrade.assert_not_called()
