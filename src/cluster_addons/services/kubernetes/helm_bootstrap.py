"""Install the in-cluster Helm server component (tiller) with plain API calls."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from cluster_addons.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)
from cluster_addons.integrations.kubernetes.models.cluster import Distribution
from cluster_addons.integrations.kubernetes.models.rbac import Subject
from cluster_addons.services.kubernetes.base import K8sBaseManager
from cluster_addons.services.kubernetes.resource_ensurer import ResourceEnsurer
from cluster_addons.utils.polling import poll_until

if TYPE_CHECKING:
    from kubernetes.client import V1Deployment, V1Service

    from cluster_addons.core.config.models import TillerConfig
    from cluster_addons.integrations.kubernetes.client import KubernetesClient

TILLER_NAMESPACE = "kube-system"
TILLER_SERVICE_ACCOUNT = "tiller"
TILLER_DEPLOYMENT = "tiller-deploy"
TILLER_LABELS = {"app": "helm", "name": "tiller"}
TILLER_PORT = 44134
TILLER_PROBE_PORT = 44135

PKE_MASTER_TAINT_KEY = "node-role.kubernetes.io/master"
PKE_MASTER_WORKER_LABEL_KEY = "node-role.kubernetes.io/master-worker"


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, KubernetesError) and not isinstance(
        error, (KubernetesAuthError, KubernetesValidationError)
    )


class HelmBootstrapper(K8sBaseManager):
    """Create or replace the tiller service account, binding, deployment and service.

    Installation is retried on transient API errors; once it succeeds the
    deployment is polled until it reports ready.
    """

    _entity_name = "helm_server"

    def __init__(
        self,
        client: KubernetesClient,
        config: TillerConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(client)
        self._config = config
        self._sleep = sleep
        self._resources = ResourceEnsurer(client)

    def bootstrap(self, distribution: Distribution) -> None:
        """Install tiller, then block until it is ready.

        Raises:
            KubernetesError: If installation still fails after the configured
                number of attempts.
            KubernetesTimeoutError: If the deployment is not ready in time.
        """
        retrying = Retrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self._config.install_attempts),
            wait=wait_fixed(self._config.retry_interval),
            sleep=self._sleep,
            before_sleep=lambda state: self._log.warning(
                "helm_server_install_retry",
                attempt=state.attempt_number,
                error=str(state.outcome.exception()) if state.outcome else None,
            ),
            reraise=True,
        )
        retrying(self.install, distribution)
        self.wait_until_ready()

    def install(self, distribution: Distribution) -> None:
        """Create or replace every tiller object."""
        self._log.info("installing_helm_server", image=self._config.image, distribution=str(distribution))
        self._resources.get_or_create_service_account(TILLER_NAMESPACE, TILLER_SERVICE_ACCOUNT)
        self._resources.get_or_create_cluster_role_binding(
            TILLER_SERVICE_ACCOUNT,
            Subject.service_account(TILLER_NAMESPACE, TILLER_SERVICE_ACCOUNT),
            "cluster-admin",
        )
        self._apply_deployment(self.build_deployment(distribution))
        self._apply_service(self.build_service())
        self._log.info("installed_helm_server")

    def wait_until_ready(self) -> None:
        poll_until(
            self._deployment_ready,
            interval=self._config.ready_poll_interval,
            timeout=self._config.ready_timeout,
            description=f"deployment {TILLER_NAMESPACE}/{TILLER_DEPLOYMENT} to become ready",
            sleep=self._sleep,
        )
        self._log.info("helm_server_ready")

    def _deployment_ready(self) -> bool:
        try:
            deployment = self._client.apps_v1.read_namespaced_deployment(
                TILLER_DEPLOYMENT, TILLER_NAMESPACE
            )
        except Exception as e:
            self._handle_api_error(e, "Deployment", TILLER_DEPLOYMENT, TILLER_NAMESPACE)

        desired = (deployment.spec.replicas if deployment.spec else None) or 1
        ready = (deployment.status.ready_replicas if deployment.status else None) or 0
        return ready >= desired

    # -----------------------------------------------------------------------
    # Object builders
    # -----------------------------------------------------------------------

    def build_deployment(self, distribution: Distribution) -> V1Deployment:
        from kubernetes.client import (
            V1Container,
            V1ContainerPort,
            V1Deployment,
            V1DeploymentSpec,
            V1EnvVar,
            V1HTTPGetAction,
            V1LabelSelector,
            V1ObjectMeta,
            V1PodSpec,
            V1PodTemplateSpec,
            V1Probe,
        )

        def probe(path: str) -> V1Probe:
            return V1Probe(
                http_get=V1HTTPGetAction(path=path, port=TILLER_PROBE_PORT),
                initial_delay_seconds=1,
                timeout_seconds=1,
            )

        container = V1Container(
            name="tiller",
            image=self._config.image,
            env=[
                V1EnvVar(name="TILLER_NAMESPACE", value=TILLER_NAMESPACE),
                V1EnvVar(name="TILLER_HISTORY_MAX", value="0"),
            ],
            ports=[
                V1ContainerPort(name="tiller", container_port=TILLER_PORT),
                V1ContainerPort(name="http", container_port=TILLER_PROBE_PORT),
            ],
            liveness_probe=probe("/liveness"),
            readiness_probe=probe("/readiness"),
        )

        pod_spec = V1PodSpec(
            service_account_name=TILLER_SERVICE_ACCOUNT,
            automount_service_account_token=True,
            containers=[container],
        )
        if distribution == Distribution.PKE:
            pod_spec.tolerations = self._pke_tolerations()
            pod_spec.affinity = self._pke_affinity()

        return V1Deployment(
            metadata=V1ObjectMeta(name=TILLER_DEPLOYMENT, namespace=TILLER_NAMESPACE, labels=TILLER_LABELS),
            spec=V1DeploymentSpec(
                replicas=1,
                selector=V1LabelSelector(match_labels=TILLER_LABELS),
                template=V1PodTemplateSpec(
                    metadata=V1ObjectMeta(labels=TILLER_LABELS),
                    spec=pod_spec,
                ),
            ),
        )

    @staticmethod
    def build_service() -> V1Service:
        from kubernetes.client import V1ObjectMeta, V1Service, V1ServicePort, V1ServiceSpec

        return V1Service(
            metadata=V1ObjectMeta(name=TILLER_DEPLOYMENT, namespace=TILLER_NAMESPACE, labels=TILLER_LABELS),
            spec=V1ServiceSpec(
                type="ClusterIP",
                selector=TILLER_LABELS,
                ports=[V1ServicePort(name="tiller", port=TILLER_PORT, target_port="tiller")],
            ),
        )

    @staticmethod
    def _pke_tolerations() -> list[Any]:
        from kubernetes.client import V1Toleration

        return [V1Toleration(key=PKE_MASTER_TAINT_KEY, operator="Exists")]

    @staticmethod
    def _pke_affinity() -> Any:
        from kubernetes.client import (
            V1Affinity,
            V1NodeAffinity,
            V1NodeSelectorRequirement,
            V1NodeSelectorTerm,
            V1PreferredSchedulingTerm,
        )

        # Prefer master or master-worker nodes
        terms = [
            V1PreferredSchedulingTerm(
                weight=100,
                preference=V1NodeSelectorTerm(
                    match_expressions=[V1NodeSelectorRequirement(key=key, operator="Exists")]
                ),
            )
            for key in (PKE_MASTER_TAINT_KEY, PKE_MASTER_WORKER_LABEL_KEY)
        ]
        return V1Affinity(
            node_affinity=V1NodeAffinity(preferred_during_scheduling_ignored_during_execution=terms)
        )

    # -----------------------------------------------------------------------
    # Create or replace
    # -----------------------------------------------------------------------

    def _exists(self, read: Callable[[], Any], kind: str, name: str) -> bool:
        try:
            read()
        except Exception as e:
            try:
                self._handle_api_error(e, kind, name, TILLER_NAMESPACE)
            except KubernetesNotFoundError:
                return False
        return True

    def _apply_deployment(self, body: V1Deployment) -> None:
        apps = self._client.apps_v1
        exists = self._exists(
            lambda: apps.read_namespaced_deployment(TILLER_DEPLOYMENT, TILLER_NAMESPACE),
            "Deployment",
            TILLER_DEPLOYMENT,
        )
        try:
            if exists:
                apps.replace_namespaced_deployment(TILLER_DEPLOYMENT, TILLER_NAMESPACE, body)
            else:
                apps.create_namespaced_deployment(TILLER_NAMESPACE, body)
        except Exception as e:
            self._handle_api_error(e, "Deployment", TILLER_DEPLOYMENT, TILLER_NAMESPACE)
        self._log.debug("applied_deployment", name=TILLER_DEPLOYMENT, replaced=exists)

    def _apply_service(self, body: V1Service) -> None:
        core = self._client.core_v1
        exists = self._exists(
            lambda: core.read_namespaced_service(TILLER_DEPLOYMENT, TILLER_NAMESPACE),
            "Service",
            TILLER_DEPLOYMENT,
        )
        if exists:
            # Services keep their cluster IP; only create when missing
            self._log.debug("service_exists", name=TILLER_DEPLOYMENT)
            return
        try:
            core.create_namespaced_service(TILLER_NAMESPACE, body)
        except Exception as e:
            self._handle_api_error(e, "Service", TILLER_DEPLOYMENT, TILLER_NAMESPACE)
        self._log.debug("applied_service", name=TILLER_DEPLOYMENT)
