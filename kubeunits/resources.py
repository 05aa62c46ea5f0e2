"""
Resource spec building.

Reads the optional container resource quantities from configuration:

    vm.kubernetes.container.limits.cpu
    vm.kubernetes.container.limits.memory
    vm.kubernetes.container.requests.cpu
    vm.kubernetes.container.requests.memory

A key that is unset adds nothing. A key that is set must hold a valid
Kubernetes quantity ("500m", "256Mi", "1"); the string is passed through
unchanged once it parses.
"""

import logging
from typing import Any, Optional, Protocol

from kubernetes.utils import parse_quantity

from kubeunits.errors import ConfigurationError
from kubeunits.schemas import ResourceSpec

logger = logging.getLogger(__name__)

KEY_PREFIX = "vm.kubernetes.container"

# (section, resource) pairs in the order they are read.
RESOURCE_KEYS = (
    ("limits", "cpu"),
    ("limits", "memory"),
    ("requests", "cpu"),
    ("requests", "memory"),
)


class ConfigLookup(Protocol):
    """Anything that can answer dotted-key lookups."""

    def get(self, key: str, default: Any = None) -> Any:
        ...


def resource_key(section: str, resource: str) -> str:
    return f"{KEY_PREFIX}.{section}.{resource}"


def get_resource_quantity(config: ConfigLookup, key: str) -> Optional[str]:
    """
    Read and validate one quantity.

    Returns:
        The quantity string, or None when the key is not configured

    Raises:
        ConfigurationError: If the configured value is not a valid quantity
    """
    raw = config.get(key)
    if raw is None or raw == "":
        return None

    quantity = str(raw).strip()
    try:
        parse_quantity(quantity)
    except (ValueError, ArithmeticError) as e:
        raise ConfigurationError(
            f"Invalid resource quantity for '{key}': {quantity!r} ({e})",
            key=key,
        ) from e
    return quantity


def build_resource_spec(config: ConfigLookup) -> ResourceSpec:
    """
    Assemble limits and requests from configuration.

    Raises:
        ConfigurationError: On the first malformed quantity; nothing
            partially built is returned
    """
    spec = ResourceSpec()
    for section, resource in RESOURCE_KEYS:
        key = resource_key(section, resource)
        quantity = get_resource_quantity(config, key)
        if quantity is None:
            continue
        getattr(spec, section)[resource] = quantity

    if spec.is_empty():
        logger.debug("No container resource constraints configured")
    return spec
