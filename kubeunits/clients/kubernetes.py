"""
Kubernetes orchestrator client.

Maps the OrchestratorClient protocol onto the CoreV1 API of the official
``kubernetes`` client:

- workloads -> pods
- artifact bundles -> config maps (binary_data, mounted as a volume)

Error classification:
- ApiException -> OrchestratorError carrying the HTTP status and reason
- urllib3 transport errors -> OrchestratorError without a status
The original exception is kept as __cause__.
"""

import base64
import logging
import os
from pathlib import Path
from typing import Any, Callable

import urllib3
from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from kubeunits.errors import ConfigurationError, OrchestratorError
from kubeunits.schemas import (
    ArtifactBundleRef,
    WorkloadDescriptor,
    WorkloadHandle,
    WorkloadKind,
)
from kubeunits.schemas.workload import BUNDLE_LABEL, OWNER_LABEL

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_TOKEN = Path("/var/run/secrets/kubernetes.io/serviceaccount/token")

BUNDLE_VOLUME_NAME = "uploadedfiles-volume"


def in_cluster(config: Any, token_path: Path = SERVICE_ACCOUNT_TOKEN) -> bool:
    """
    Check whether the controller may talk to the cluster.

    True only when Kubernetes support is enabled in configuration, the
    process runs inside a pod (service env vars present) and the service
    account token is readable and non-empty.
    """
    if not config.get("vm.kubernetes.enabled", False):
        logger.info("Kubernetes support is disabled.")
        return False

    host = os.environ.get("KUBERNETES_SERVICE_HOST")
    port = os.environ.get("KUBERNETES_SERVICE_PORT")
    if not host or not port:
        logger.info("Kubernetes service environment variables not found.")
        return False

    try:
        token = token_path.read_text()
    except OSError as e:
        logger.warning("Error accessing kubernetes service account: %s", e)
        return False

    if not token.strip():
        logger.warning("Kubernetes service account token not accessible.")
        return False

    return True


def get_kubernetes_client() -> client.CoreV1Api:
    """
    Create a CoreV1 API client from the in-cluster service account.

    Raises:
        ConfigurationError: If in-cluster configuration cannot be loaded
    """
    try:
        k8s_config.load_incluster_config()
    except ConfigException as e:
        raise ConfigurationError(f"Cannot load in-cluster kubernetes config: {e}") from e
    return client.CoreV1Api()


def _call(action: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Invoke a CoreV1 method, translating failures into OrchestratorError."""
    try:
        return fn(*args, **kwargs)
    except ApiException as e:
        raise OrchestratorError(
            f"{action} failed: ({e.status}) {e.reason}",
            status=e.status,
            reason=e.reason,
        ) from e
    except urllib3.exceptions.HTTPError as e:
        raise OrchestratorError(f"{action} failed: {e}") from e


class KubernetesOrchestratorClient:
    """
    OrchestratorClient backed by a Kubernetes namespace.

    Usage:
        core = get_kubernetes_client()
        orchestrator = KubernetesOrchestratorClient(core, namespace="units")
    """

    def __init__(self, core_v1: client.CoreV1Api, namespace: str):
        self._core = core_v1
        self.namespace = namespace

    # -- workloads ---------------------------------------------------------

    def create_workload(self, descriptor: WorkloadDescriptor) -> WorkloadHandle:
        if descriptor.kind is WorkloadKind.POD:
            body = build_pod(descriptor, self.namespace)
            logger.info("Creating unit pod %s", descriptor.name)
            pod = _call(
                f"create pod {descriptor.name}",
                self._core.create_namespaced_pod,
                namespace=self.namespace,
                body=body,
            )
            return _handle(pod)
        raise ValueError(f"Unsupported workload kind: {descriptor.kind.value}")

    def delete_workload(self, name: str, grace_period_seconds: int) -> None:
        _call(
            f"delete pod {name}",
            self._core.delete_namespaced_pod,
            name=name,
            namespace=self.namespace,
            grace_period_seconds=grace_period_seconds,
        )

    def list_workloads(self, label_selector: str) -> list[WorkloadHandle]:
        pods = _call(
            f"list pods {label_selector!r}",
            self._core.list_namespaced_pod,
            namespace=self.namespace,
            label_selector=label_selector,
        )
        return [_handle(pod) for pod in pods.items]

    # -- artifact bundles --------------------------------------------------

    def create_or_update_artifact_bundle(
        self,
        name: str,
        labels: dict[str, str],
        payload: dict[str, bytes],
    ) -> ArtifactBundleRef:
        body = client.V1ConfigMap(
            metadata=client.V1ObjectMeta(name=name, namespace=self.namespace, labels=labels),
            binary_data={
                key: base64.b64encode(value).decode("ascii")
                for key, value in payload.items()
            },
        )

        bundle_key = labels.get(BUNDLE_LABEL, name)
        existing = _call(
            f"list configmaps for {bundle_key}",
            self._core.list_namespaced_config_map,
            namespace=self.namespace,
            label_selector=f"{BUNDLE_LABEL}={bundle_key}",
            limit=1,
        )

        if existing.items:
            logger.info("Updating existing configmap '%s' for unit files.", name)
            result = _call(
                f"replace configmap {name}",
                self._core.replace_namespaced_config_map,
                name=name,
                namespace=self.namespace,
                body=body,
            )
        else:
            logger.info("Creating configmap '%s' for unit files.", name)
            result = _call(
                f"create configmap {name}",
                self._core.create_namespaced_config_map,
                namespace=self.namespace,
                body=body,
            )
        return ArtifactBundleRef(
            name=result.metadata.name,
            namespace=result.metadata.namespace or self.namespace,
            labels=dict(result.metadata.labels or {}),
        )

    def delete_artifact_bundle(self, name: str) -> None:
        logger.info("Removing configmap '%s' for unit files.", name)
        _call(
            f"delete configmap {name}",
            self._core.delete_namespaced_config_map,
            name=name,
            namespace=self.namespace,
        )


def build_pod(descriptor: WorkloadDescriptor, namespace: str) -> client.V1Pod:
    """Translate a pod WorkloadDescriptor into a V1Pod body."""
    volume_mounts = None
    volumes = None
    if descriptor.bundle is not None and descriptor.mount_point:
        volume_mounts = [
            client.V1VolumeMount(name=BUNDLE_VOLUME_NAME, mount_path=descriptor.mount_point)
        ]
        volumes = [
            client.V1Volume(
                name=BUNDLE_VOLUME_NAME,
                config_map=client.V1ConfigMapVolumeSource(name=descriptor.bundle.name),
            )
        ]

    container = client.V1Container(
        name=descriptor.container_name,
        image=descriptor.image,
        args=list(descriptor.args) or None,
        env=[client.V1EnvVar(name=e.name, value=e.value) for e in descriptor.env] or None,
        volume_mounts=volume_mounts,
        resources=client.V1ResourceRequirements(
            limits=dict(descriptor.resources.limits) or None,
            requests=dict(descriptor.resources.requests) or None,
        ),
    )

    affinity = client.V1Affinity(
        pod_affinity=client.V1PodAffinity(
            preferred_during_scheduling_ignored_during_execution=[
                client.V1WeightedPodAffinityTerm(
                    weight=descriptor.affinity_weight,
                    pod_affinity_term=client.V1PodAffinityTerm(
                        label_selector=client.V1LabelSelector(
                            match_labels={OWNER_LABEL: descriptor.affinity_owner},
                        ),
                        topology_key=descriptor.affinity_topology_key,
                    ),
                )
            ]
        )
    )

    return client.V1Pod(
        metadata=client.V1ObjectMeta(
            name=descriptor.name,
            namespace=namespace,
            labels=dict(descriptor.labels),
        ),
        spec=client.V1PodSpec(
            restart_policy=descriptor.restart_policy,
            containers=[container],
            affinity=affinity,
            volumes=volumes,
        ),
    )


def _handle(pod: client.V1Pod) -> WorkloadHandle:
    meta = pod.metadata
    return WorkloadHandle(
        name=meta.name,
        namespace=meta.namespace or "",
        labels=dict(meta.labels or {}),
        uid=meta.uid,
    )
