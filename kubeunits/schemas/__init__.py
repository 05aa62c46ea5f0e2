"""
Schemas for kubeunits.

- UnitDescriptor: logical identity (name + version) of a unit
- WorkloadKind: closed enum of workload kinds
- WorkloadDescriptor: what the controller submits to the orchestrator
- WorkloadHandle / ArtifactBundleRef: what the orchestrator hands back
"""

from .unit import UnitDescriptor, WorkloadKind
from .workload import (
    ArtifactBundleRef,
    EnvVar,
    ResourceSpec,
    StopOptions,
    WorkloadDescriptor,
    WorkloadHandle,
    bundle_labels,
    instance_selector,
    parse_selector,
    workload_labels,
)

__all__ = [
    "UnitDescriptor",
    "WorkloadKind",
    "ArtifactBundleRef",
    "EnvVar",
    "ResourceSpec",
    "StopOptions",
    "WorkloadDescriptor",
    "WorkloadHandle",
    "bundle_labels",
    "instance_selector",
    "parse_selector",
    "workload_labels",
]
