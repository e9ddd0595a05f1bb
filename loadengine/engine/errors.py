"""Errors raised by the load engine.

Operation failures are never raised out of a run; they only show up in
error rates. These exceptions cover misuse and runs that cannot proceed.
"""


class ProfileConfigError(ValueError):
    """A profile was configured with invalid durations, counts or thresholds."""


class AccumulatorBusyError(RuntimeError):
    """A metrics accumulator was reset while actors were still writing to it."""


class SchedulingError(RuntimeError):
    """The scheduler could not launch an actor, so the profile run was aborted."""
