"""
Workload schemas exchanged between the controller and the orchestrator client.

The controller assembles a WorkloadDescriptor per start request; the
orchestrator client turns it into whatever the cluster API needs and hands
back WorkloadHandles. Descriptors and resource specs are value objects built
fresh for every start and never shared.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .unit import UnitDescriptor, WorkloadKind

# Label keys written on every workload and bundle.
SERVICE_LABEL = "service"
OWNER_LABEL = "owner"
UNIT_NAME_LABEL = "unit-name"
UNIT_VERSION_LABEL = "unit-version"
UNIT_LABEL = "unit"
BUNDLE_LABEL = "unit-bundle"

WORKLOAD_SERVICE = "unit-workload"

# Soft affinity: prefer nodes already running this owner's workloads.
AFFINITY_WEIGHT = 50
AFFINITY_TOPOLOGY_KEY = "kubernetes.io/hostname"


@dataclass(frozen=True)
class EnvVar:
    """A single environment variable for the workload container."""
    name: str
    value: str

    @classmethod
    def parse(cls, entry: str) -> "EnvVar":
        """
        Parse a ``KEY=VALUE`` entry.

        Splits on the first ``=`` only, so values may themselves contain
        ``=`` (base64 payloads, for example). An entry without ``=`` becomes
        a variable with an empty value.
        """
        name, _, value = entry.partition("=")
        return cls(name=name, value=value)


@dataclass
class ResourceSpec:
    """
    Resource limits and requests in orchestrator quantity syntax.

    A resource kind missing from configuration is omitted, never zeroed.
    """
    limits: dict[str, str] = field(default_factory=dict)
    requests: dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.limits and not self.requests

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"limits": dict(self.limits), "requests": dict(self.requests)}


@dataclass(frozen=True)
class ArtifactBundleRef:
    """Reference to an uploaded artifact bundle (a config map on Kubernetes)."""
    name: str
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkloadHandle:
    """A running (or just created) instance as reported by the orchestrator."""
    name: str
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    uid: Optional[str] = None


@dataclass
class WorkloadDescriptor:
    """
    Everything the orchestrator needs to create one workload.

    Attributes:
        kind: Workload kind to create
        name: Derived workload name (also the container's exit-handle key)
        namespace: Target scope for the workload
        image: Container image reference
        container_name: Name of the single container in the workload
        args: Container arguments
        env: Container environment
        labels: Identity labels (owner, unit name, unit version, ...)
        mount_point: Where the artifact bundle is mounted ("" when no files)
        bundle: Uploaded artifact bundle, if any
        resources: Resource limits and requests
        affinity_owner: Owner whose workloads this one prefers to sit next to
        affinity_weight: Weight of the soft affinity preference
        affinity_topology_key: Node label used to group co-located workloads
        restart_policy: Never; the hosting process reschedules on exit
    """
    kind: WorkloadKind
    name: str
    namespace: str
    image: str
    container_name: str
    args: list[str] = field(default_factory=list)
    env: list[EnvVar] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    mount_point: str = ""
    bundle: Optional[ArtifactBundleRef] = None
    resources: ResourceSpec = field(default_factory=ResourceSpec)
    affinity_owner: str = ""
    affinity_weight: int = AFFINITY_WEIGHT
    affinity_topology_key: str = AFFINITY_TOPOLOGY_KEY
    restart_policy: str = "Never"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "namespace": self.namespace,
            "image": self.image,
            "container_name": self.container_name,
            "args": list(self.args),
            "env": {e.name: e.value for e in self.env},
            "labels": dict(self.labels),
            "mount_point": self.mount_point,
            "bundle": self.bundle.name if self.bundle else None,
            "resources": self.resources.to_dict(),
            "affinity": {
                "owner": self.affinity_owner,
                "weight": self.affinity_weight,
                "topology_key": self.affinity_topology_key,
            },
            "restart_policy": self.restart_policy,
        }


@dataclass(frozen=True)
class StopOptions:
    """
    Options for stopping a unit.

    Attributes:
        timeout: Seconds the caller is willing to wait (informational;
                 deletes always use a zero grace period)
        kill: Whether the caller asked for the unit to be killed
        remove: When False, stop leaves the workload in place
    """
    timeout: int = 0
    kill: bool = True
    remove: bool = True


def workload_labels(owner_id: str, descriptor: UnitDescriptor, name: str) -> dict[str, str]:
    """Identity labels written on a unit's workload."""
    return {
        SERVICE_LABEL: WORKLOAD_SERVICE,
        OWNER_LABEL: owner_id,
        UNIT_NAME_LABEL: descriptor.name,
        UNIT_VERSION_LABEL: descriptor.version,
        UNIT_LABEL: name,
    }


def bundle_labels(owner_id: str, name: str) -> dict[str, str]:
    """Labels written on a unit's artifact bundle."""
    return {
        SERVICE_LABEL: WORKLOAD_SERVICE,
        OWNER_LABEL: owner_id,
        BUNDLE_LABEL: name,
    }


def instance_selector(owner_id: str, descriptor: UnitDescriptor) -> str:
    """
    Label selector matching every running instance of a unit for an owner.

    Values are interpolated as-is; callers keep owner, name and version in
    the workload-name character set.
    """
    return (
        f"{OWNER_LABEL}={owner_id},"
        f"{UNIT_NAME_LABEL}={descriptor.name},"
        f"{UNIT_VERSION_LABEL}={descriptor.version}"
    )


def parse_selector(selector: str) -> dict[str, str]:
    """Parse an equality-only selector like ``a=1, b=2`` into a dict."""
    terms: dict[str, str] = {}
    for term in selector.split(","):
        term = term.strip()
        if not term:
            continue
        key, _, value = term.partition("=")
        terms[key.strip()] = value.strip()
    return terms
