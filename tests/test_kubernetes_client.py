"""Tests for the Kubernetes orchestrator client.

The CoreV1 API is mocked; these tests check the translation from
descriptors to pod/config map bodies and the error classification.
"""

import base64
from unittest.mock import MagicMock

import pytest
import urllib3
from kubernetes import client as k8s
from kubernetes.client.rest import ApiException

from kubeunits.clients import OrchestratorClient
from kubeunits.clients.kubernetes import (
    BUNDLE_VOLUME_NAME,
    KubernetesOrchestratorClient,
    build_pod,
    in_cluster,
)
from kubeunits.config import KubeunitsConfig
from kubeunits.errors import OrchestratorError
from kubeunits.schemas import (
    ArtifactBundleRef,
    EnvVar,
    ResourceSpec,
    WorkloadDescriptor,
    WorkloadKind,
)


def _pod(name: str, labels=None) -> k8s.V1Pod:
    return k8s.V1Pod(
        metadata=k8s.V1ObjectMeta(name=name, namespace="units", labels=labels or {}, uid="uid-1")
    )


def _descriptor(bundle=None, mount_point="") -> WorkloadDescriptor:
    return WorkloadDescriptor(
        kind=WorkloadKind.POD,
        name="cc-peer0-mycc-1.0",
        namespace="units",
        image="hyperledger/cc-mycc:1.0",
        container_name="unit-mycc",
        args=["chaincode", "-peer.address=peer0:7052"],
        env=[EnvVar("CORE_CHAINCODE_ID_NAME", "mycc:1.0")],
        labels={"owner": "peer0", "unit-name": "mycc", "unit-version": "1.0"},
        mount_point=mount_point,
        bundle=bundle,
        resources=ResourceSpec(limits={"cpu": "1"}, requests={"memory": "256Mi"}),
        affinity_owner="peer0",
    )


@pytest.fixture
def core():
    return MagicMock()


@pytest.fixture
def orchestrator(core):
    return KubernetesOrchestratorClient(core, namespace="units")


class TestBuildPod:
    """Tests for build_pod."""

    def test_container(self):
        pod = build_pod(_descriptor(), "units")
        container = pod.spec.containers[0]

        assert pod.metadata.name == "cc-peer0-mycc-1.0"
        assert pod.metadata.namespace == "units"
        assert pod.spec.restart_policy == "Never"
        assert container.image == "hyperledger/cc-mycc:1.0"
        assert container.args == ["chaincode", "-peer.address=peer0:7052"]
        assert container.env[0].name == "CORE_CHAINCODE_ID_NAME"
        assert container.resources.limits == {"cpu": "1"}
        assert container.resources.requests == {"memory": "256Mi"}

    def test_soft_affinity_on_owner(self):
        pod = build_pod(_descriptor(), "units")
        affinity = pod.spec.affinity.pod_affinity

        assert affinity.required_during_scheduling_ignored_during_execution is None
        term = affinity.preferred_during_scheduling_ignored_during_execution[0]
        assert term.weight == 50
        assert term.pod_affinity_term.label_selector.match_labels == {"owner": "peer0"}
        assert term.pod_affinity_term.topology_key == "kubernetes.io/hostname"

    def test_bundle_mounted(self):
        bundle = ArtifactBundleRef("cc-peer0-mycc-1.0", "units")
        pod = build_pod(_descriptor(bundle=bundle, mount_point="/etc/unit/"), "units")

        mount = pod.spec.containers[0].volume_mounts[0]
        assert mount.name == BUNDLE_VOLUME_NAME
        assert mount.mount_path == "/etc/unit/"
        assert pod.spec.volumes[0].config_map.name == "cc-peer0-mycc-1.0"

    def test_no_bundle_no_volume(self):
        pod = build_pod(_descriptor(), "units")
        assert pod.spec.volumes is None
        assert pod.spec.containers[0].volume_mounts is None


class TestKubernetesOrchestratorClient:
    """Tests for KubernetesOrchestratorClient."""

    def test_implements_protocol(self, orchestrator):
        assert isinstance(orchestrator, OrchestratorClient)

    def test_create_workload(self, orchestrator, core):
        core.create_namespaced_pod.return_value = _pod("cc-peer0-mycc-1.0", {"owner": "peer0"})

        handle = orchestrator.create_workload(_descriptor())

        kwargs = core.create_namespaced_pod.call_args.kwargs
        assert kwargs["namespace"] == "units"
        assert isinstance(kwargs["body"], k8s.V1Pod)
        assert handle.name == "cc-peer0-mycc-1.0"
        assert handle.labels == {"owner": "peer0"}
        assert handle.uid == "uid-1"

    def test_delete_workload_grace_period(self, orchestrator, core):
        orchestrator.delete_workload("cc-peer0-mycc-1.0", grace_period_seconds=0)

        core.delete_namespaced_pod.assert_called_once_with(
            name="cc-peer0-mycc-1.0",
            namespace="units",
            grace_period_seconds=0,
        )

    def test_list_workloads(self, orchestrator, core):
        core.list_namespaced_pod.return_value = k8s.V1PodList(items=[_pod("a"), _pod("b")])

        handles = orchestrator.list_workloads("owner=peer0")

        core.list_namespaced_pod.assert_called_once_with(namespace="units", label_selector="owner=peer0")
        assert [h.name for h in handles] == ["a", "b"]

    def test_create_bundle(self, orchestrator, core):
        core.list_namespaced_config_map.return_value = k8s.V1ConfigMapList(items=[])
        core.create_namespaced_config_map.side_effect = lambda namespace, body: body

        ref = orchestrator.create_or_update_artifact_bundle(
            "cc-peer0-mycc-1.0", {"unit-bundle": "cc-peer0-mycc-1.0"}, {"ca.crt": b"\x00cert"}
        )

        body = core.create_namespaced_config_map.call_args.kwargs["body"]
        assert body.binary_data == {"ca.crt": base64.b64encode(b"\x00cert").decode("ascii")}
        assert core.list_namespaced_config_map.call_args.kwargs["label_selector"] == (
            "unit-bundle=cc-peer0-mycc-1.0"
        )
        core.replace_namespaced_config_map.assert_not_called()
        assert ref.name == "cc-peer0-mycc-1.0"

    def test_update_existing_bundle(self, orchestrator, core):
        existing = k8s.V1ConfigMap(metadata=k8s.V1ObjectMeta(name="cc-peer0-mycc-1.0"))
        core.list_namespaced_config_map.return_value = k8s.V1ConfigMapList(items=[existing])
        core.replace_namespaced_config_map.side_effect = lambda name, namespace, body: body

        orchestrator.create_or_update_artifact_bundle(
            "cc-peer0-mycc-1.0", {"unit-bundle": "cc-peer0-mycc-1.0"}, {"a": b"1"}
        )

        core.create_namespaced_config_map.assert_not_called()
        assert core.replace_namespaced_config_map.call_args.kwargs["name"] == "cc-peer0-mycc-1.0"

    def test_delete_bundle(self, orchestrator, core):
        orchestrator.delete_artifact_bundle("cc-peer0-mycc-1.0")
        core.delete_namespaced_config_map.assert_called_once_with(
            name="cc-peer0-mycc-1.0", namespace="units"
        )

    def test_api_exception_classified(self, orchestrator, core):
        core.delete_namespaced_pod.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(OrchestratorError) as exc_info:
            orchestrator.delete_workload("gone", grace_period_seconds=0)

        assert exc_info.value.is_not_found
        assert exc_info.value.reason == "Not Found"
        assert isinstance(exc_info.value.__cause__, ApiException)

    def test_transport_error_classified(self, orchestrator, core):
        core.list_namespaced_pod.side_effect = urllib3.exceptions.HTTPError("connection refused")

        with pytest.raises(OrchestratorError) as exc_info:
            orchestrator.list_workloads("owner=peer0")

        assert exc_info.value.status is None


class TestInCluster:
    """Tests for the in-cluster capability check."""

    @pytest.fixture
    def token(self, tmp_path):
        path = tmp_path / "token"
        path.write_text("bearer-token")
        return path

    @pytest.fixture
    def service_env(self, monkeypatch):
        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
        monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "443")

    def test_in_cluster(self, service_env, token):
        assert in_cluster(KubeunitsConfig(kubernetes_enabled=True), token_path=token)

    def test_disabled(self, service_env, token):
        assert not in_cluster(KubeunitsConfig(kubernetes_enabled=False), token_path=token)

    def test_missing_service_env(self, monkeypatch, token):
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
        assert not in_cluster(KubeunitsConfig(kubernetes_enabled=True), token_path=token)

    def test_unreadable_token(self, service_env, tmp_path):
        config = KubeunitsConfig(kubernetes_enabled=True)
        assert not in_cluster(config, token_path=tmp_path / "missing")

    def test_empty_token(self, service_env, tmp_path):
        empty = tmp_path / "token"
        empty.write_text("")
        assert not in_cluster(KubeunitsConfig(kubernetes_enabled=True), token_path=empty)
