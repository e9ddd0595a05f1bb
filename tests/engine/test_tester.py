"""Tests for the PerformanceTester facade."""

import threading
import time

import pytest

from loadengine.engine import (
    AccumulatorBusyError,
    LoadProfileConfig,
    MetricsSnapshot,
    PerformanceTester,
    ProfileConfigError,
)
from loadengine.engine.scheduler import ActorScheduler
from tests.helpers import CountingOperation


class ClearingScheduler(ActorScheduler):
    """Tries to clear the tester's metrics right before each phase launches."""

    def __init__(self) -> None:
        super().__init__()
        self.tester: PerformanceTester | None = None
        self.refused = 0

    def run(self, *args, **kwargs) -> int:
        try:
            self.tester.clear_metrics()
        except AccumulatorBusyError:
            self.refused += 1
        return super().run(*args, **kwargs)


class TestPerformanceTester:
    def test_keyword_options(self, fast_operation) -> None:
        tester = PerformanceTester()
        result = tester.load_test(fast_operation, duration_seconds=0.2, actors=2)
        assert result.total_requests == fast_operation.calls

    def test_config_object(self, fast_operation) -> None:
        tester = PerformanceTester()
        result = tester.load_test(fast_operation, LoadProfileConfig(duration_seconds=0.2, actors=1))
        assert result.total_requests > 0

    def test_invalid_options_fail_before_running(self, fast_operation) -> None:
        with pytest.raises(ProfileConfigError):
            PerformanceTester().load_test(fast_operation, duration_seconds=0, actors=2)
        assert fast_operation.calls == 0

    def test_current_metrics_before_any_run(self) -> None:
        assert PerformanceTester().current_metrics() == MetricsSnapshot()

    def test_current_metrics_reflect_last_run(self, fast_operation) -> None:
        tester = PerformanceTester()
        tester.stress_test(
            fast_operation,
            max_actors=4,
            step_size=2,
            step_duration_seconds=0.1,
            max_duration_seconds=5,
            error_threshold=50,
        )
        snap = tester.current_metrics()
        # only the final step's accumulator remains current
        assert 0 < snap.total < fast_operation.calls

    def test_current_metrics_are_live_during_a_run(self) -> None:
        tester = PerformanceTester()
        op = CountingOperation(sleep_ms=5)
        thread = threading.Thread(
            target=tester.load_test, args=(op,), kwargs={"duration_seconds": 0.5, "actors": 2}
        )
        thread.start()
        time.sleep(0.25)
        live = tester.current_metrics()
        with pytest.raises(AccumulatorBusyError):
            tester.clear_metrics()
        thread.join()

        assert live.total > 0
        assert tester.current_metrics().total >= live.total

    def test_clear_metrics(self, fast_operation) -> None:
        tester = PerformanceTester()
        tester.spike_test(
            fast_operation,
            base_actors=1,
            spike_actors=2,
            base_duration_seconds=0.1,
            spike_duration_seconds=0.1,
            recovery_duration_seconds=0.1,
        )
        tester.clear_metrics()
        assert tester.current_metrics().total == 0

    def test_endurance_via_facade(self, fast_operation) -> None:
        result = PerformanceTester().endurance_test(
            fast_operation,
            actors=1,
            duration_hours=0.3 / 3600,
            monitoring_interval_minutes=0.1 / 60,
            pacing_ms=10,
        )
        assert len(result.monitoring_data) >= 2

    def test_clear_metrics_refused_before_actors_start(self) -> None:
        scheduler = ClearingScheduler()
        tester = PerformanceTester(scheduler=scheduler)
        scheduler.tester = tester
        op = CountingOperation(sleep_ms=5)

        result = tester.load_test(op, duration_seconds=0.2, actors=2)

        assert scheduler.refused == 1
        assert result.total_requests == op.calls
        assert result.throughput > 0
        assert result.started_at is not None
