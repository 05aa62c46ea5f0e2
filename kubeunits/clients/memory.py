"""
In-memory orchestrator.

A small thread-safe stand-in for a cluster, used by the test-suite and by
``kubeunits --dry-run``. It behaves like the real API where the controller
cares: duplicate creates conflict (409), deleting something unknown is a
404, and label selectors are exact-match.
"""

import threading
from dataclasses import dataclass, field
from typing import Any

from kubeunits.errors import OrchestratorError
from kubeunits.schemas import (
    ArtifactBundleRef,
    WorkloadDescriptor,
    WorkloadHandle,
    parse_selector,
)
from kubeunits.schemas.workload import BUNDLE_LABEL


@dataclass
class StoredBundle:
    name: str
    labels: dict[str, str]
    payload: dict[str, bytes]


@dataclass
class ClientCall:
    """A recorded call, for assertions in tests."""
    method: str
    args: tuple = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class InMemoryOrchestratorClient:
    """
    In-memory implementation of OrchestratorClient.

    Usage:
        client = InMemoryOrchestratorClient(namespace="test")
        client.fail_next("delete_workload", OrchestratorError("boom", status=500))
    """

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self.workloads: dict[str, WorkloadDescriptor] = {}
        self.bundles: dict[str, StoredBundle] = {}
        self.calls: list[ClientCall] = []
        self._failures: dict[str, list[OrchestratorError]] = {}
        self._lock = threading.Lock()

    def fail_next(self, method: str, error: OrchestratorError) -> None:
        """Make the next call to ``method`` raise ``error``."""
        with self._lock:
            self._failures.setdefault(method, []).append(error)

    def _record(self, method: str, *args: Any, **kwargs: Any) -> None:
        # Caller holds the lock.
        self.calls.append(ClientCall(method, args, kwargs))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def calls_to(self, method: str) -> list[ClientCall]:
        return [c for c in self.calls if c.method == method]

    def _handle(self, descriptor: WorkloadDescriptor) -> WorkloadHandle:
        return WorkloadHandle(
            name=descriptor.name,
            namespace=self.namespace,
            labels=dict(descriptor.labels),
            uid=f"uid-{descriptor.name}",
        )

    def create_workload(self, descriptor: WorkloadDescriptor) -> WorkloadHandle:
        with self._lock:
            self._record("create_workload", descriptor)
            if descriptor.name in self.workloads:
                raise OrchestratorError(
                    f'pods "{descriptor.name}" already exists',
                    status=409,
                    reason="AlreadyExists",
                )
            self.workloads[descriptor.name] = descriptor
            return self._handle(descriptor)

    def delete_workload(self, name: str, grace_period_seconds: int) -> None:
        with self._lock:
            self._record("delete_workload", name, grace_period_seconds=grace_period_seconds)
            if name not in self.workloads:
                raise OrchestratorError(f'pods "{name}" not found', status=404, reason="NotFound")
            del self.workloads[name]

    def list_workloads(self, label_selector: str) -> list[WorkloadHandle]:
        terms = parse_selector(label_selector)
        with self._lock:
            self._record("list_workloads", label_selector)
            return [
                self._handle(d)
                for d in self.workloads.values()
                if all(d.labels.get(k) == v for k, v in terms.items())
            ]

    def create_or_update_artifact_bundle(
        self,
        name: str,
        labels: dict[str, str],
        payload: dict[str, bytes],
    ) -> ArtifactBundleRef:
        bundle_key = labels.get(BUNDLE_LABEL, name)
        with self._lock:
            self._record("create_or_update_artifact_bundle", name, labels, payload)
            for existing in self.bundles.values():
                if existing.labels.get(BUNDLE_LABEL) == bundle_key:
                    existing.labels = dict(labels)
                    existing.payload = dict(payload)
                    return ArtifactBundleRef(existing.name, self.namespace, dict(labels))
            self.bundles[name] = StoredBundle(name, dict(labels), dict(payload))
            return ArtifactBundleRef(name, self.namespace, dict(labels))

    def delete_artifact_bundle(self, name: str) -> None:
        with self._lock:
            self._record("delete_artifact_bundle", name)
            if name not in self.bundles:
                raise OrchestratorError(f'configmaps "{name}" not found', status=404, reason="NotFound")
            del self.bundles[name]
