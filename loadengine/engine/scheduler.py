"""Actor scheduler: staggered launch of virtual actors and the join point."""

import threading
import time

import structlog

from loadengine.engine.actor import Operation, VirtualActor
from loadengine.engine.errors import ProfileConfigError, SchedulingError
from loadengine.engine.metrics import MetricsAccumulator

logger = structlog.get_logger()


class ActorScheduler:
    """Launches N actors against one accumulator and waits for all of them.

    With a ramp-up window W, actor *i* starts at ``i * W / N`` seconds after
    the first, so every actor is running by the time W elapses. Launching
    stops early if the shared deadline passes during ramp-up.
    """

    def __init__(self, thread_name_prefix: str = "loadengine-actor") -> None:
        self.thread_name_prefix = thread_name_prefix
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    @property
    def active_actors(self) -> int:
        with self._lock:
            return sum(1 for t in self._threads if t.is_alive())

    def run(
        self,
        operation: Operation,
        actors: int,
        deadline: float,
        accumulator: MetricsAccumulator,
        ramp_up_seconds: float = 0.0,
        pacing_ms: float = 0.0,
    ) -> int:
        """Launch up to *actors* actors and block until every one has exited.

        The accumulator is registered as busy from before the first launch
        until the last actor is joined. Returns the number of actors actually
        launched.

        Raises:
            ProfileConfigError: if *actors* is not positive.
            SchedulingError: if an actor thread cannot be started. Actors
                already running are stopped and joined first.
        """
        if actors < 1:
            raise ProfileConfigError(f"actors must be > 0, got {actors}")
        stop_event = threading.Event()
        interval = ramp_up_seconds / actors if ramp_up_seconds > 0 else 0.0
        ramp_start = time.monotonic()
        launched: list[threading.Thread] = []

        with self._lock:
            self._threads = launched

        with accumulator.writer():
            try:
                for i in range(actors):
                    if interval > 0:
                        launch_at = ramp_start + i * interval
                        delay = launch_at - time.monotonic()
                        if delay > 0:
                            stop_event.wait(delay)
                    if time.monotonic() >= deadline:
                        logger.warning(
                            "ramp_up_truncated_by_deadline",
                            launched=len(launched),
                            requested=actors,
                        )
                        break

                    actor = VirtualActor(
                        operation,
                        accumulator,
                        deadline=deadline,
                        pacing_ms=pacing_ms,
                        stop_event=stop_event,
                        actor_id=i,
                    )
                    thread = threading.Thread(
                        target=actor.run,
                        name=f"{self.thread_name_prefix}-{i}",
                        daemon=True,
                    )
                    try:
                        thread.start()
                    except RuntimeError as exc:
                        logger.error(
                            "actor_launch_failed",
                            actor_id=i,
                            launched=len(launched),
                            error=str(exc),
                        )
                        raise SchedulingError(f"could not launch actor {i}: {exc}") from exc
                    with self._lock:
                        launched.append(thread)
            except BaseException:
                # abort the phase: running actors exit at their next iteration
                stop_event.set()
                raise
            finally:
                for thread in launched:
                    thread.join()

        logger.debug("actors_joined", launched=len(launched), requested=actors)
        return len(launched)
