"""Per-profile configuration with validation.

Each profile takes one of these explicitly at call time. Validation runs in
``__post_init__`` so a bad value fails before any actor is launched.
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Self

from loadengine.engine.errors import ProfileConfigError

DEFAULT_BREAKING_POINT_ERROR_RATE = 5.0
DEFAULT_ENDURANCE_PACING_MS = 1000.0


def _require_number(name: str, value: Any) -> None:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProfileConfigError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ProfileConfigError(f"{name} must be finite, got {value}")


def _require_positive(name: str, value: float) -> None:
    _require_number(name, value)
    if value <= 0:
        raise ProfileConfigError(f"{name} must be > 0, got {value}")


def _require_non_negative(name: str, value: float) -> None:
    _require_number(name, value)
    if value < 0:
        raise ProfileConfigError(f"{name} must be >= 0, got {value}")


def _require_percent(name: str, value: float) -> None:
    _require_number(name, value)
    if not 0 < value <= 100:
        raise ProfileConfigError(f"{name} must be in (0, 100], got {value}")


def _require_count(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProfileConfigError(f"{name} must be a whole number, got {value!r}")
    if value <= 0:
        raise ProfileConfigError(f"{name} must be > 0, got {value}")


class _FromDictMixin:
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build a config from a plain mapping (e.g. parsed YAML).

        Unknown keys are rejected rather than silently ignored.
        """
        known = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
        unknown = sorted(set(data) - known)
        if unknown:
            raise ProfileConfigError(f"unknown {cls.__name__} option(s): {', '.join(unknown)}")
        return cls(**data)


@dataclass
class LoadProfileConfig(_FromDictMixin):
    """Steady load: ``actors`` users for ``duration_seconds``."""

    duration_seconds: float
    actors: int
    ramp_up_seconds: float = 0.0
    pacing_ms: float = 0.0

    def __post_init__(self) -> None:
        _require_positive("duration_seconds", self.duration_seconds)
        _require_count("actors", self.actors)
        _require_non_negative("ramp_up_seconds", self.ramp_up_seconds)
        _require_non_negative("pacing_ms", self.pacing_ms)


@dataclass
class StressProfileConfig(_FromDictMixin):
    """Escalating load in steps of ``step_size`` up to ``max_actors``.

    ``error_threshold`` bounds how far escalation runs: the step whose error
    rate reaches it is the last one. ``breaking_point_error_rate`` is the
    separate classification threshold used to report the breaking point.
    """

    max_actors: int
    step_size: int
    step_duration_seconds: float
    max_duration_seconds: float
    error_threshold: float
    breaking_point_error_rate: float = DEFAULT_BREAKING_POINT_ERROR_RATE

    def __post_init__(self) -> None:
        _require_count("max_actors", self.max_actors)
        _require_count("step_size", self.step_size)
        _require_positive("step_duration_seconds", self.step_duration_seconds)
        _require_positive("max_duration_seconds", self.max_duration_seconds)
        _require_percent("error_threshold", self.error_threshold)
        _require_percent("breaking_point_error_rate", self.breaking_point_error_rate)
        if self.step_size > self.max_actors:
            raise ProfileConfigError(
                f"step_size ({self.step_size}) must not exceed max_actors ({self.max_actors})"
            )


@dataclass
class SpikeProfileConfig(_FromDictMixin):
    """Base load, a sudden spike, then recovery at base load."""

    base_actors: int
    spike_actors: int
    base_duration_seconds: float
    spike_duration_seconds: float
    recovery_duration_seconds: float

    def __post_init__(self) -> None:
        _require_count("base_actors", self.base_actors)
        _require_count("spike_actors", self.spike_actors)
        _require_positive("base_duration_seconds", self.base_duration_seconds)
        _require_positive("spike_duration_seconds", self.spike_duration_seconds)
        _require_positive("recovery_duration_seconds", self.recovery_duration_seconds)


@dataclass
class EnduranceProfileConfig(_FromDictMixin):
    """Long-running paced load sampled every ``monitoring_interval_minutes``."""

    actors: int
    duration_hours: float
    monitoring_interval_minutes: float
    pacing_ms: float = DEFAULT_ENDURANCE_PACING_MS

    def __post_init__(self) -> None:
        _require_count("actors", self.actors)
        _require_positive("duration_hours", self.duration_hours)
        _require_positive("monitoring_interval_minutes", self.monitoring_interval_minutes)
        # unpaced endurance runs saturate the system under test
        _require_positive("pacing_ms", self.pacing_ms)

    @property
    def duration_seconds(self) -> float:
        return self.duration_hours * 3600.0

    @property
    def monitoring_interval_seconds(self) -> float:
        return self.monitoring_interval_minutes * 60.0


@dataclass(frozen=True)
class Phase:
    """One scheduler run: ``actors`` actors for ``duration_seconds``.

    Profiles build one per step (stress) or per stage (spike) and hand it to
    ``BaseProfile.run_phase``; ``label`` names the phase in logs and results.
    """

    actors: int
    duration_seconds: float
    label: str
    ramp_up_seconds: float = 0.0
    pacing_ms: float = 0.0

    def __post_init__(self) -> None:
        _require_count("actors", self.actors)
        _require_positive("duration_seconds", self.duration_seconds)
        _require_non_negative("ramp_up_seconds", self.ramp_up_seconds)
        _require_non_negative("pacing_ms", self.pacing_ms)
