"""
UnitDescriptor schema - the stable logical identity of a workload type.

A unit is one versioned piece of user-supplied code that the controller
schedules as a short-lived container. The (name, version) pair never changes
after creation; everything the controller derives (workload names, image
references, label selectors) is computed from it.
"""

from dataclasses import dataclass
from enum import Enum


class WorkloadKind(str, Enum):
    """
    Closed set of workload kinds the controller can assemble.

    Descriptor assembly dispatches on this enum rather than inspecting
    runtime types.
    """
    POD = "pod"


@dataclass(frozen=True)
class UnitDescriptor:
    """
    Immutable identity of a logical unit.

    Attributes:
        name: Unit name (e.g. "assetledger")
        version: Unit version (e.g. "develop-61")
    """
    name: str
    version: str = ""

    @property
    def qualified_name(self) -> str:
        """Name including the version, e.g. ``assetledger-develop-61``."""
        if self.version:
            return f"{self.name}-{self.version}"
        return self.name

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}

    def __str__(self) -> str:
        return f"{self.name}:{self.version}"
