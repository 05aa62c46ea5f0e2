"""
kubeunits - lifecycle controller for short-lived unit workloads

Starts, stops and waits on versioned units of user code running as
containers on a Kubernetes cluster, on behalf of a single owner.
"""

__version__ = "0.1.0"


__all__ = [
    "LifecycleController",
    "UnitDescriptor",
    "KubeunitsConfig",
    "load_config",
    "get_kubeunits_home",
]

from .config import KubeunitsConfig, load_config, get_kubeunits_home
from .controller import LifecycleController
from .schemas import UnitDescriptor
