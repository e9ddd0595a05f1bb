"""Pydantic models for profile results."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProfileType(StrEnum):
    LOAD = "load"
    STRESS = "stress"
    SPIKE = "spike"
    ENDURANCE = "endurance"


class SpikePhase(StrEnum):
    BASE = "base"
    SPIKE = "spike"
    RECOVERY = "recovery"


class StressStopReason(StrEnum):
    MAX_ACTORS = "max_actors"
    MAX_DURATION = "max_duration"
    ERROR_THRESHOLD = "error_threshold"


class LoadTestResult(BaseModel):
    test_type: ProfileType = ProfileType.LOAD
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    avg_response_time_ms: float = 0.0
    min_response_time_ms: float = 0.0
    max_response_time_ms: float = 0.0
    p50_response_time_ms: float = 0.0
    p95_response_time_ms: float = 0.0
    p99_response_time_ms: float = 0.0
    error_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    throughput: float = 0.0  # requests per second
    duration_seconds: float = 0.0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class StressStepSample(BaseModel):
    actors: int
    avg_response_time_ms: float = 0.0
    error_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    total_requests: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None


class StressTestResult(BaseModel):
    test_type: ProfileType = ProfileType.STRESS
    breaking_point: int = 0
    breaking_point_error_rate: float
    stop_reason: StressStopReason
    results: list[StressStepSample] = []
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def concurrency_levels(self) -> list[int]:
        return [step.actors for step in self.results]


class SpikePhaseSample(BaseModel):
    phase: SpikePhase
    actors: int
    avg_response_time_ms: float = 0.0
    error_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    total_requests: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None


class SpikeTestResult(BaseModel):
    test_type: ProfileType = ProfileType.SPIKE
    results: list[SpikePhaseSample] = []
    # recovery avg latency / base avg latency; None when base has no latency data
    recovery_latency_ratio: float | None = None
    timestamp: datetime = Field(default_factory=_utcnow)

    def phase(self, phase: SpikePhase) -> SpikePhaseSample:
        for sample in self.results:
            if sample.phase == phase:
                return sample
        raise KeyError(phase)


class MonitoringSnapshot(BaseModel):
    timestamp: datetime
    avg_response_time_ms: float = 0.0
    error_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    active_actors: int = 0
    total_requests: int = 0


class EnduranceTestResult(BaseModel):
    test_type: ProfileType = ProfileType.ENDURANCE
    monitoring_data: list[MonitoringSnapshot] = []
    avg_response_time_ms: float = 0.0
    max_response_time_ms: float = 0.0  # peak of the snapshot averages
    avg_error_rate: float = 0.0
    duration_hours: float = 0.0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


ProfileResult = LoadTestResult | StressTestResult | SpikeTestResult | EnduranceTestResult
