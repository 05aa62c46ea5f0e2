"""
Workload naming.

Derives orchestrator-safe, deterministic names for a unit so that repeated
starts and stops of the same (owner, unit) always address the same workload.
"""

import re

from kubeunits.schemas import UnitDescriptor

DEFAULT_NAME_PREFIX = "cc"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]")


def derive_name(owner_id: str, descriptor: UnitDescriptor, prefix: str = DEFAULT_NAME_PREFIX) -> str:
    """
    Compose the workload name for a unit.

        derive_name("peer-0", UnitDescriptor("assetledger", "develop-61"))
        -> "cc-peer-0-assetledger-develop-61"

        derive_name("", UnitDescriptor("assetledger", "develop-61"))
        -> "cc-assetledger-develop-61"

    Every character outside ``[A-Za-z0-9-_.]`` is replaced with ``-``.
    """
    if owner_id:
        name = f"{prefix}-{owner_id}-{descriptor.qualified_name}"
    else:
        name = f"{prefix}-{descriptor.qualified_name}"
    return _UNSAFE_CHARS.sub("-", name)


def image_name(descriptor: UnitDescriptor, registry_namespace: str, registry_prefix: str) -> str:
    """Container image reference: ``<namespace>/<prefix>-<name>:<version>``."""
    return f"{registry_namespace}/{registry_prefix}-{descriptor.name}:{descriptor.version}"
