"""
Orchestrator clients.

- OrchestratorClient: the protocol the controller depends on
- InMemoryOrchestratorClient: in-process cluster for tests and dry runs
- KubernetesOrchestratorClient: pods and config maps via the kubernetes API

The Kubernetes client is imported lazily from ``kubeunits.clients.kubernetes``
so that the protocol and in-memory client stay cheap to import.
"""

from kubeunits.clients.base import OrchestratorClient
from kubeunits.clients.memory import InMemoryOrchestratorClient

__all__ = [
    "OrchestratorClient",
    "InMemoryOrchestratorClient",
]
