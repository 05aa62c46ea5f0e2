"""
Build metrics.

One histogram observation per unit start, labeled by unit name and outcome.
Metrics are a side channel: recording them never changes control flow.
"""

from typing import Optional

from prometheus_client import Histogram

UNIT_BUILD_DURATION_SECONDS = Histogram(
    "kubeunits_unit_build_duration_seconds",
    "Time to package and schedule a unit workload in seconds",
    labelnames=("unit", "success"),
)


class BuildMetrics:
    """Records unit build durations on a prometheus Histogram."""

    def __init__(self, histogram: Optional[Histogram] = None):
        self.build_duration = histogram if histogram is not None else UNIT_BUILD_DURATION_SECONDS

    def observe(self, unit: str, success: bool, seconds: float) -> None:
        self.build_duration.labels(unit=unit, success=str(success).lower()).observe(seconds)
