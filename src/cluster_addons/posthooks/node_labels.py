"""Node pool labelling for distributions that cannot label nodes at creation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cluster_addons.integrations.kubernetes.exceptions import KubernetesError
from cluster_addons.integrations.kubernetes.models.cluster import Distribution
from cluster_addons.posthooks.base import PostHook, PostHookParams
from cluster_addons.services.kubernetes.resource_ensurer import ResourceEnsurer

if TYPE_CHECKING:
    from cluster_addons.integrations.kubernetes.models.cluster import ClusterHandle

# These distributions label nodes through their node pool APIs
SELF_LABELLING_DISTRIBUTIONS = frozenset(
    {Distribution.EKS, Distribution.OKE, Distribution.GKE, Distribution.PKE}
)


class LabelNodesWithNodePoolName(PostHook):
    """Label every node with the name of its node pool.

    A node that cannot be patched is logged and skipped; the returned map
    tells which nodes were labelled (``True``) and which were not.
    """

    name = "LabelNodesWithNodePoolName"

    def run(self, cluster: ClusterHandle, params: PostHookParams | None = None) -> dict[str, bool]:
        log = self._cluster_log(cluster)
        distribution = self._probe(cluster).distribution()
        if distribution in SELF_LABELLING_DISTRIBUTIONS:
            log.info("nodes_already_labelled", distribution=str(distribution))
            return {}

        label_key = self.config.cluster.node_pool_label_key
        outcome: dict[str, bool] = {}
        with self._kubernetes(cluster) as client:
            resources = ResourceEnsurer(client)
            for pool, nodes in cluster.list_node_names().items():
                for node in nodes:
                    try:
                        resources.ensure_node_labels(node, {label_key: pool})
                    except KubernetesError as e:
                        log.warning("node_label_failed", node=node, node_pool=pool, error=str(e))
                        outcome[node] = False
                    else:
                        outcome[node] = True

        log.info("node_labels_applied", labelled=sum(outcome.values()), failed=len(outcome) - sum(outcome.values()))
        return outcome
