"""Load-generation and metrics-aggregation engine."""

from .actor import Operation, VirtualActor
from .config import (
    EnduranceProfileConfig,
    LoadProfileConfig,
    Phase,
    SpikeProfileConfig,
    StressProfileConfig,
)
from .errors import AccumulatorBusyError, ProfileConfigError, SchedulingError
from .metrics import MetricsAccumulator, MetricsSnapshot
from .models import (
    EnduranceTestResult,
    LoadTestResult,
    MonitoringSnapshot,
    ProfileType,
    SpikePhase,
    SpikePhaseSample,
    SpikeTestResult,
    StressStepSample,
    StressStopReason,
    StressTestResult,
)
from .profiles import EnduranceProfile, LoadProfile, SpikeProfile, StressProfile
from .scheduler import ActorScheduler
from .tester import PerformanceTester

__all__ = [
    "AccumulatorBusyError",
    "ActorScheduler",
    "EnduranceProfile",
    "EnduranceProfileConfig",
    "EnduranceTestResult",
    "LoadProfile",
    "LoadProfileConfig",
    "LoadTestResult",
    "MetricsAccumulator",
    "MetricsSnapshot",
    "MonitoringSnapshot",
    "Operation",
    "PerformanceTester",
    "Phase",
    "ProfileConfigError",
    "ProfileType",
    "SchedulingError",
    "SpikePhase",
    "SpikePhaseSample",
    "SpikeProfile",
    "SpikeProfileConfig",
    "SpikeTestResult",
    "StressProfile",
    "StressProfileConfig",
    "StressStepSample",
    "StressStopReason",
    "StressTestResult",
    "VirtualActor",
]
