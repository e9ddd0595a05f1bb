"""Load profile controllers: load, stress, spike and endurance.

Each controller owns its accumulators for the duration of one ``run`` call.
Phases are strictly sequential: a phase's actors are all joined before the
next phase starts, so metrics never mix across phases.
"""

import threading
import time
from datetime import UTC, datetime

import structlog

from loadengine.engine.actor import Operation
from loadengine.engine.config import (
    EnduranceProfileConfig,
    LoadProfileConfig,
    Phase,
    SpikeProfileConfig,
    StressProfileConfig,
)
from loadengine.engine.errors import SchedulingError
from loadengine.engine.metrics import MetricsAccumulator
from loadengine.engine.models import (
    EnduranceTestResult,
    LoadTestResult,
    MonitoringSnapshot,
    ProfileType,
    SpikePhase,
    SpikeTestResult,
    StressStepSample,
    StressStopReason,
    StressTestResult,
)
from loadengine.engine.reducer import (
    monitoring_snapshot,
    reduce_endurance,
    reduce_load,
    reduce_spike,
    reduce_stress,
    spike_sample,
    stress_sample,
)
from loadengine.engine.scheduler import ActorScheduler

logger = structlog.get_logger()


class BaseProfile:
    """Shared phase runner for the profile controllers."""

    def __init__(self, scheduler: ActorScheduler | None = None) -> None:
        self.scheduler = scheduler or ActorScheduler()
        self.current: MetricsAccumulator | None = None

    def run_phase(self, operation: Operation, phase: Phase) -> MetricsAccumulator:
        """Run one phase against a fresh accumulator and return it once joined.

        The accumulator is registered as busy before it is published on
        ``current``, so it cannot be reset until the phase has finished.
        """
        accumulator = MetricsAccumulator()
        with accumulator.writer():
            self.current = accumulator
            logger.debug("phase_started", phase=phase.label, actors=phase.actors)
            accumulator.mark_started()
            deadline = time.monotonic() + phase.duration_seconds
            try:
                self.scheduler.run(
                    operation,
                    actors=phase.actors,
                    deadline=deadline,
                    accumulator=accumulator,
                    ramp_up_seconds=phase.ramp_up_seconds,
                    pacing_ms=phase.pacing_ms,
                )
            finally:
                accumulator.mark_finished()
        return accumulator


class LoadProfile(BaseProfile):
    def __init__(self, config: LoadProfileConfig, scheduler: ActorScheduler | None = None) -> None:
        super().__init__(scheduler)
        self.config = config

    def run(self, operation: Operation) -> LoadTestResult:
        cfg = self.config
        logger.info(
            "load_test_started",
            actors=cfg.actors,
            duration_seconds=cfg.duration_seconds,
            ramp_up_seconds=cfg.ramp_up_seconds,
            pacing_ms=cfg.pacing_ms,
        )
        phase = Phase(
            actors=cfg.actors,
            duration_seconds=cfg.duration_seconds,
            label=ProfileType.LOAD,
            ramp_up_seconds=cfg.ramp_up_seconds,
            pacing_ms=cfg.pacing_ms,
        )
        accumulator = self.run_phase(operation, phase)
        result = reduce_load(accumulator.snapshot())
        logger.info(
            "load_test_completed",
            total_requests=result.total_requests,
            error_rate=round(result.error_rate, 2),
            avg_response_time_ms=round(result.avg_response_time_ms, 2),
            throughput=round(result.throughput, 2),
        )
        return result


class StressProfile(BaseProfile):
    """Escalates concurrency step by step to find the breaking point."""

    def __init__(
        self, config: StressProfileConfig, scheduler: ActorScheduler | None = None
    ) -> None:
        super().__init__(scheduler)
        self.config = config

    def run(self, operation: Operation) -> StressTestResult:
        cfg = self.config
        logger.info(
            "stress_test_started",
            max_actors=cfg.max_actors,
            step_size=cfg.step_size,
            step_duration_seconds=cfg.step_duration_seconds,
            max_duration_seconds=cfg.max_duration_seconds,
            error_threshold=cfg.error_threshold,
        )
        samples: list[StressStepSample] = []
        stop_reason = StressStopReason.MAX_ACTORS
        start = time.monotonic()
        actors = cfg.step_size

        while actors <= cfg.max_actors:
            if time.monotonic() - start >= cfg.max_duration_seconds:
                stop_reason = StressStopReason.MAX_DURATION
                break

            step = Phase(
                actors=actors,
                duration_seconds=cfg.step_duration_seconds,
                label=f"step-{len(samples) + 1}",
            )
            accumulator = self.run_phase(operation, step)
            sample = stress_sample(actors, accumulator.snapshot())
            samples.append(sample)
            logger.info(
                "stress_step_completed",
                actors=actors,
                total_requests=sample.total_requests,
                avg_response_time_ms=round(sample.avg_response_time_ms, 2),
                error_rate=round(sample.error_rate, 2),
            )

            if sample.error_rate >= cfg.error_threshold:
                stop_reason = StressStopReason.ERROR_THRESHOLD
                logger.info(
                    "stress_error_threshold_reached",
                    actors=actors,
                    error_rate=round(sample.error_rate, 2),
                    error_threshold=cfg.error_threshold,
                )
                break
            actors += cfg.step_size

        result = reduce_stress(samples, cfg.breaking_point_error_rate, stop_reason)
        logger.info(
            "stress_test_completed",
            breaking_point=result.breaking_point,
            steps=len(samples),
            stop_reason=str(stop_reason),
        )
        return result


class SpikeProfile(BaseProfile):
    """Base load, sudden spike, then recovery at base load."""

    def __init__(self, config: SpikeProfileConfig, scheduler: ActorScheduler | None = None) -> None:
        super().__init__(scheduler)
        self.config = config

    def run(self, operation: Operation) -> SpikeTestResult:
        cfg = self.config
        phases = [
            Phase(cfg.base_actors, cfg.base_duration_seconds, SpikePhase.BASE),
            Phase(cfg.spike_actors, cfg.spike_duration_seconds, SpikePhase.SPIKE),
            Phase(cfg.base_actors, cfg.recovery_duration_seconds, SpikePhase.RECOVERY),
        ]
        logger.info(
            "spike_test_started",
            base_actors=cfg.base_actors,
            spike_actors=cfg.spike_actors,
        )

        samples = []
        for phase in phases:
            logger.info("spike_phase_started", phase=str(phase.label), actors=phase.actors)
            accumulator = self.run_phase(operation, phase)
            sample = spike_sample(SpikePhase(phase.label), phase.actors, accumulator.snapshot())
            samples.append(sample)
            logger.info(
                "spike_phase_completed",
                phase=str(phase.label),
                total_requests=sample.total_requests,
                avg_response_time_ms=round(sample.avg_response_time_ms, 2),
                error_rate=round(sample.error_rate, 2),
            )

        result = reduce_spike(samples)
        logger.info("spike_test_completed", recovery_latency_ratio=result.recovery_latency_ratio)
        return result


class EnduranceProfile(BaseProfile):
    """Paced long-duration load with periodic monitoring snapshots."""

    def __init__(
        self, config: EnduranceProfileConfig, scheduler: ActorScheduler | None = None
    ) -> None:
        super().__init__(scheduler)
        self.config = config

    def _monitor(
        self,
        accumulator: MetricsAccumulator,
        stop: threading.Event,
        monitoring_data: list[MonitoringSnapshot],
    ) -> None:
        interval = self.config.monitoring_interval_seconds
        while not stop.wait(interval):
            snap = monitoring_snapshot(
                accumulator.snapshot(), self.config.actors, datetime.now(UTC)
            )
            monitoring_data.append(snap)
            logger.info(
                "endurance_monitoring_snapshot",
                avg_response_time_ms=round(snap.avg_response_time_ms, 2),
                error_rate=round(snap.error_rate, 2),
                total_requests=snap.total_requests,
            )

    def run(self, operation: Operation) -> EnduranceTestResult:
        cfg = self.config
        logger.info(
            "endurance_test_started",
            actors=cfg.actors,
            duration_hours=cfg.duration_hours,
            monitoring_interval_minutes=cfg.monitoring_interval_minutes,
            pacing_ms=cfg.pacing_ms,
        )
        accumulator = MetricsAccumulator()
        monitoring_data: list[MonitoringSnapshot] = []
        stop = threading.Event()
        monitor = threading.Thread(
            target=self._monitor,
            args=(accumulator, stop, monitoring_data),
            name="loadengine-endurance-monitor",
            daemon=True,
        )

        with accumulator.writer():
            self.current = accumulator
            accumulator.mark_started()
            deadline = time.monotonic() + cfg.duration_seconds
            try:
                monitor.start()
            except RuntimeError as exc:
                accumulator.mark_finished()
                logger.error("endurance_monitor_launch_failed", error=str(exc))
                raise SchedulingError(f"could not launch endurance monitor: {exc}") from exc
            try:
                self.scheduler.run(
                    operation,
                    actors=cfg.actors,
                    deadline=deadline,
                    accumulator=accumulator,
                    pacing_ms=cfg.pacing_ms,
                )
            finally:
                stop.set()
                monitor.join()
                accumulator.mark_finished()

        final = accumulator.snapshot()
        if not monitoring_data:
            # run ended before the first interval fired
            monitoring_data.append(monitoring_snapshot(final, cfg.actors, datetime.now(UTC)))

        result = reduce_endurance(monitoring_data, final)
        logger.info(
            "endurance_test_completed",
            snapshots=len(monitoring_data),
            avg_response_time_ms=round(result.avg_response_time_ms, 2),
            max_response_time_ms=round(result.max_response_time_ms, 2),
            avg_error_rate=round(result.avg_error_rate, 2),
        )
        return result
