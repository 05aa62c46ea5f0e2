"""
Orchestrator client protocol.

This is the only boundary where kubeunits talks to a cluster. The controller
composes descriptors and calls these five methods; it never schedules,
places or runs containers itself.
"""

from typing import Protocol, runtime_checkable

from kubeunits.schemas import ArtifactBundleRef, WorkloadDescriptor, WorkloadHandle


@runtime_checkable
class OrchestratorClient(Protocol):
    """
    Protocol for cluster orchestrator operations.

    Implementations raise OrchestratorError for every failure reported by
    the cluster (conflicts, missing resources, quota, transport errors).
    Calls are fire-once; retry policy belongs to the caller.
    """

    def create_workload(self, descriptor: WorkloadDescriptor) -> WorkloadHandle:
        """Create a workload from the descriptor and return its handle."""
        ...

    def delete_workload(self, name: str, grace_period_seconds: int) -> None:
        """Delete a workload by name."""
        ...

    def list_workloads(self, label_selector: str) -> list[WorkloadHandle]:
        """List workloads whose labels match ``label_selector``."""
        ...

    def create_or_update_artifact_bundle(
        self,
        name: str,
        labels: dict[str, str],
        payload: dict[str, bytes],
    ) -> ArtifactBundleRef:
        """Upload a file bundle, replacing an existing one with the same bundle key."""
        ...

    def delete_artifact_bundle(self, name: str) -> None:
        """Delete an artifact bundle by name."""
        ...
