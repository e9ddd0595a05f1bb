"""Virtual actor: one simulated user looping over the operation until a deadline."""

import threading
import time
from collections.abc import Callable

import structlog

from loadengine.engine.metrics import MetricsAccumulator

logger = structlog.get_logger()

Operation = Callable[[], object]


class VirtualActor:
    """Repeatedly invokes an operation and records each outcome.

    The deadline is an absolute ``time.monotonic()`` value and is only
    checked between iterations, so an in-flight call always completes.
    Exceptions raised by the operation are counted as failures and never
    stop the actor.
    """

    def __init__(
        self,
        operation: Operation,
        accumulator: MetricsAccumulator,
        deadline: float,
        pacing_ms: float = 0.0,
        stop_event: threading.Event | None = None,
        actor_id: int = 0,
    ) -> None:
        self.operation = operation
        self.accumulator = accumulator
        self.deadline = deadline
        self.pacing_ms = pacing_ms
        self.actor_id = actor_id
        self._stop_event = stop_event or threading.Event()
        self.iterations = 0

    def _should_continue(self) -> bool:
        return time.monotonic() < self.deadline and not self._stop_event.is_set()

    def run(self) -> int:
        """Run until the deadline passes; returns the number of calls made."""
        pacing_seconds = self.pacing_ms / 1000.0
        with self.accumulator.writer():
            while self._should_continue():
                t0 = time.perf_counter()
                try:
                    self.operation()
                except Exception as exc:
                    self.accumulator.record_failure()
                    logger.debug(
                        "actor_operation_failed",
                        actor_id=self.actor_id,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                else:
                    self.accumulator.record_success((time.perf_counter() - t0) * 1000.0)
                self.iterations += 1

                if pacing_seconds > 0:
                    # never sleep past the deadline
                    remaining = self.deadline - time.monotonic()
                    if remaining > 0:
                        self._stop_event.wait(min(pacing_seconds, remaining))
        return self.iterations
