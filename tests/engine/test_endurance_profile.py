"""Tests for the endurance profile and its monitoring timer."""

import threading
from unittest.mock import patch

import pytest

from loadengine.engine.config import EnduranceProfileConfig
from loadengine.engine.errors import SchedulingError
from loadengine.engine.profiles import EnduranceProfile
from tests.helpers import CountingOperation

# 0.6 s run sampled every 0.2 s: the same 3:1 ratio as 3 minutes / 1 minute
SHORT_RUN_HOURS = 0.6 / 3600
SHORT_INTERVAL_MINUTES = 0.2 / 60


class TestEnduranceProfile:
    def test_snapshots_taken_each_interval(self) -> None:
        op = CountingOperation(sleep_ms=2)
        cfg = EnduranceProfileConfig(
            actors=3,
            duration_hours=SHORT_RUN_HOURS,
            monitoring_interval_minutes=SHORT_INTERVAL_MINUTES,
            pacing_ms=20,
        )
        result = EnduranceProfile(cfg).run(op)

        assert 2 <= len(result.monitoring_data) <= 3
        assert all(s.active_actors == 3 for s in result.monitoring_data)
        timestamps = [s.timestamp for s in result.monitoring_data]
        assert timestamps == sorted(timestamps)
        totals = [s.total_requests for s in result.monitoring_data]
        assert totals == sorted(totals)

    def test_overall_metrics_reduce_snapshots(self) -> None:
        op = CountingOperation(sleep_ms=5)
        cfg = EnduranceProfileConfig(
            actors=2,
            duration_hours=SHORT_RUN_HOURS,
            monitoring_interval_minutes=SHORT_INTERVAL_MINUTES,
            pacing_ms=10,
        )
        result = EnduranceProfile(cfg).run(op)

        peaks = [s.avg_response_time_ms for s in result.monitoring_data]
        assert result.max_response_time_ms == max(peaks)
        assert result.avg_response_time_ms <= result.max_response_time_ms
        assert result.avg_error_rate == 0.0
        assert result.duration_hours > 0

    def test_pacing_keeps_call_rate_low(self) -> None:
        op = CountingOperation()
        cfg = EnduranceProfileConfig(
            actors=2,
            duration_hours=SHORT_RUN_HOURS,
            monitoring_interval_minutes=SHORT_INTERVAL_MINUTES,
            pacing_ms=100,
        )
        EnduranceProfile(cfg).run(op)
        # each actor makes roughly one call per 100 ms
        assert op.calls <= 2 * 8

    def test_short_run_still_yields_a_snapshot(self, fast_operation) -> None:
        cfg = EnduranceProfileConfig(
            actors=1,
            duration_hours=0.2 / 3600,
            monitoring_interval_minutes=1,
            pacing_ms=10,
        )
        result = EnduranceProfile(cfg).run(fast_operation)
        assert len(result.monitoring_data) == 1
        assert result.monitoring_data[0].total_requests == fast_operation.calls

    def test_monitor_thread_is_stopped(self, fast_operation) -> None:
        cfg = EnduranceProfileConfig(
            actors=1,
            duration_hours=0.2 / 3600,
            monitoring_interval_minutes=SHORT_INTERVAL_MINUTES,
            pacing_ms=10,
        )
        EnduranceProfile(cfg).run(fast_operation)
        names = {t.name for t in threading.enumerate()}
        assert "loadengine-endurance-monitor" not in names

    def test_monitor_launch_failure_is_a_scheduling_error(self, fast_operation) -> None:
        cfg = EnduranceProfileConfig(
            actors=1,
            duration_hours=SHORT_RUN_HOURS,
            monitoring_interval_minutes=SHORT_INTERVAL_MINUTES,
            pacing_ms=10,
        )
        profile = EnduranceProfile(cfg)

        def failing_start(self) -> None:
            raise RuntimeError("can't start new thread")

        with patch.object(threading.Thread, "start", failing_start):
            with pytest.raises(SchedulingError, match="monitor"):
                profile.run(fast_operation)

        assert fast_operation.calls == 0
        assert profile.current.active_writers == 0
        assert profile.current.snapshot().ended_at is not None
