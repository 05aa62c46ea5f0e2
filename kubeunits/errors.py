"""
Error classes for kubeunits.

These error types let calling orchestration layers decide their own retry
policy. The controller never retries; it only classifies:
- ConfigurationError: malformed configuration (fails before any cluster call)
- NotFoundError: no wait handle / resource registered under a name
- OrchestratorError: anything surfaced by the cluster API, unmodified
- PackagingError: reserved for stricter bundle validation

Error handling contract:
- Errors are exceptions, not values
- Orchestrator failures keep the original exception as __cause__
"""

from typing import Optional


class KubeunitsError(Exception):
    """Base exception for kubeunits."""
    pass


class ConfigurationError(KubeunitsError):
    """
    Configuration error - do not retry.

    Raised for malformed resource quantities and unreadable config files.
    When the problem is tied to a single config key, ``key`` names it.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class NotFoundError(KubeunitsError):
    """No wait handle or resource is registered under ``name``."""

    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"{name} not found")
        self.name = name


class OrchestratorError(KubeunitsError):
    """
    Failure reported by the cluster orchestrator.

    Examples:
    - Conflict (409) when a workload with the same name already exists
    - Not found (404) when deleting something already gone
    - Quota exceeded, network errors, authorization failures

    ``status`` carries the HTTP-style status code when the orchestrator
    reported one.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_conflict(self) -> bool:
        return self.status == 409


class PackagingError(KubeunitsError):
    """
    Malformed file bundle.

    Reserved: bundle packaging is currently best-effort and never raises this.
    """
    pass
