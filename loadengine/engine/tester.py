"""``PerformanceTester``: one entry point for all four profiles.

Accepts either a config object or the config's fields as keyword options,
and keeps a handle on the accumulator of the most recent run so callers
can inspect live metrics from another thread.
"""

from typing import Any

import structlog

from loadengine.engine.actor import Operation
from loadengine.engine.config import (
    EnduranceProfileConfig,
    LoadProfileConfig,
    SpikeProfileConfig,
    StressProfileConfig,
)
from loadengine.engine.metrics import MetricsSnapshot
from loadengine.engine.models import (
    EnduranceTestResult,
    LoadTestResult,
    SpikeTestResult,
    StressTestResult,
)
from loadengine.engine.profiles import (
    BaseProfile,
    EnduranceProfile,
    LoadProfile,
    SpikeProfile,
    StressProfile,
)
from loadengine.engine.scheduler import ActorScheduler

logger = structlog.get_logger()


class PerformanceTester:
    def __init__(self, scheduler: ActorScheduler | None = None) -> None:
        self._scheduler = scheduler
        self._profile: BaseProfile | None = None

    def _start(self, profile: BaseProfile) -> BaseProfile:
        self._profile = profile
        return profile

    def load_test(
        self, operation: Operation, config: LoadProfileConfig | None = None, **options: Any
    ) -> LoadTestResult:
        cfg = config or LoadProfileConfig(**options)
        return self._start(LoadProfile(cfg, self._scheduler)).run(operation)

    def stress_test(
        self, operation: Operation, config: StressProfileConfig | None = None, **options: Any
    ) -> StressTestResult:
        cfg = config or StressProfileConfig(**options)
        return self._start(StressProfile(cfg, self._scheduler)).run(operation)

    def spike_test(
        self, operation: Operation, config: SpikeProfileConfig | None = None, **options: Any
    ) -> SpikeTestResult:
        cfg = config or SpikeProfileConfig(**options)
        return self._start(SpikeProfile(cfg, self._scheduler)).run(operation)

    def endurance_test(
        self, operation: Operation, config: EnduranceProfileConfig | None = None, **options: Any
    ) -> EnduranceTestResult:
        cfg = config or EnduranceProfileConfig(**options)
        return self._start(EnduranceProfile(cfg, self._scheduler)).run(operation)

    def current_metrics(self) -> MetricsSnapshot:
        """Snapshot of the most recent run's accumulator (live while it runs)."""
        if self._profile is None or self._profile.current is None:
            return MetricsSnapshot()
        return self._profile.current.snapshot()

    def clear_metrics(self) -> None:
        """Reset the most recent accumulator; fails if actors are still writing."""
        if self._profile is not None and self._profile.current is not None:
            self._profile.current.reset()
        logger.info("performance_metrics_cleared")
