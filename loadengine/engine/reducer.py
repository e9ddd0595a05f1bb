"""Reduce accumulated metrics into profile results."""

import statistics
from datetime import datetime

from loadengine.engine.metrics import MetricsSnapshot
from loadengine.engine.models import (
    EnduranceTestResult,
    LoadTestResult,
    MonitoringSnapshot,
    SpikePhase,
    SpikePhaseSample,
    SpikeTestResult,
    StressStepSample,
    StressStopReason,
    StressTestResult,
)


def reduce_load(snapshot: MetricsSnapshot) -> LoadTestResult:
    elapsed = snapshot.elapsed_seconds
    return LoadTestResult(
        total_requests=snapshot.total,
        successful_requests=snapshot.successes,
        failed_requests=snapshot.failures,
        avg_response_time_ms=snapshot.avg_ms,
        min_response_time_ms=snapshot.min_ms,
        max_response_time_ms=snapshot.max_ms,
        p50_response_time_ms=snapshot.p50_ms,
        p95_response_time_ms=snapshot.p95_ms,
        p99_response_time_ms=snapshot.p99_ms,
        error_rate=snapshot.error_rate,
        throughput=snapshot.total / elapsed if elapsed > 0 else 0.0,
        duration_seconds=elapsed,
        started_at=snapshot.started_at,
        ended_at=snapshot.ended_at,
    )


def stress_sample(actors: int, snapshot: MetricsSnapshot) -> StressStepSample:
    return StressStepSample(
        actors=actors,
        avg_response_time_ms=snapshot.avg_ms,
        error_rate=snapshot.error_rate,
        total_requests=snapshot.total,
        started_at=snapshot.started_at,
        ended_at=snapshot.ended_at,
    )


def find_breaking_point(samples: list[StressStepSample], error_rate_threshold: float) -> int:
    """Concurrency of the first step whose error rate reaches the threshold.

    Falls back to the concurrency of the last step run, or 0 when no step
    ran at all.
    """
    for sample in samples:
        if sample.error_rate >= error_rate_threshold:
            return sample.actors
    if samples:
        return samples[-1].actors
    return 0


def reduce_stress(
    samples: list[StressStepSample],
    breaking_point_error_rate: float,
    stop_reason: StressStopReason,
) -> StressTestResult:
    return StressTestResult(
        breaking_point=find_breaking_point(samples, breaking_point_error_rate),
        breaking_point_error_rate=breaking_point_error_rate,
        stop_reason=stop_reason,
        results=samples,
    )


def spike_sample(phase: SpikePhase, actors: int, snapshot: MetricsSnapshot) -> SpikePhaseSample:
    return SpikePhaseSample(
        phase=phase,
        actors=actors,
        avg_response_time_ms=snapshot.avg_ms,
        error_rate=snapshot.error_rate,
        total_requests=snapshot.total,
        started_at=snapshot.started_at,
        ended_at=snapshot.ended_at,
    )


def reduce_spike(samples: list[SpikePhaseSample]) -> SpikeTestResult:
    by_phase = {sample.phase: sample for sample in samples}
    base = by_phase.get(SpikePhase.BASE)
    recovery = by_phase.get(SpikePhase.RECOVERY)
    ratio = None
    if base is not None and recovery is not None and base.avg_response_time_ms > 0:
        ratio = recovery.avg_response_time_ms / base.avg_response_time_ms
    return SpikeTestResult(results=samples, recovery_latency_ratio=ratio)


def monitoring_snapshot(
    snapshot: MetricsSnapshot, active_actors: int, timestamp: datetime
) -> MonitoringSnapshot:
    return MonitoringSnapshot(
        timestamp=timestamp,
        avg_response_time_ms=snapshot.avg_ms,
        error_rate=snapshot.error_rate,
        active_actors=active_actors,
        total_requests=snapshot.total,
    )


def reduce_endurance(
    monitoring_data: list[MonitoringSnapshot],
    final: MetricsSnapshot,
) -> EnduranceTestResult:
    if monitoring_data:
        avg_latency = statistics.fmean(s.avg_response_time_ms for s in monitoring_data)
        peak_latency = max(s.avg_response_time_ms for s in monitoring_data)
        avg_error_rate = statistics.fmean(s.error_rate for s in monitoring_data)
    else:
        avg_latency = peak_latency = avg_error_rate = 0.0
    return EnduranceTestResult(
        monitoring_data=monitoring_data,
        avg_response_time_ms=avg_latency,
        max_response_time_ms=peak_latency,
        avg_error_rate=avg_error_rate,
        duration_hours=final.elapsed_seconds / 3600.0,
        started_at=final.started_at,
        ended_at=final.ended_at,
    )
