"""Test operations shared across the engine tests."""

import threading
import time
from collections.abc import Callable


class CountingOperation:
    """Sleeps ``sleep_ms`` per call and counts invocations thread-safely.

    ``fail_when`` is called with the 1-based call number; a truthy result
    makes that call raise.
    """

    def __init__(
        self,
        sleep_ms: float = 0.0,
        fail_when: Callable[[int], bool] | None = None,
    ) -> None:
        self.sleep_ms = sleep_ms
        self.fail_when = fail_when
        self._lock = threading.Lock()
        self.calls = 0
        self.call_times: list[float] = []

    def __call__(self) -> None:
        with self._lock:
            self.calls += 1
            call_number = self.calls
            self.call_times.append(time.monotonic())
        if self.sleep_ms:
            time.sleep(self.sleep_ms / 1000.0)
        if self.fail_when is not None and self.fail_when(call_number):
            raise RuntimeError(f"call {call_number} failed")
