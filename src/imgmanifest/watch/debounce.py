from __future__ import annotations

import threading
from typing import Any, Callable, Optional


TimerFactory = Callable[[float, Callable[[], None]], Any]


class Debouncer:
    """Runs ``callback`` once after ``delay_s`` of quiet following the latest ``trigger()``.

    At most one timer is live. Re-triggering cancels it and arms a fresh one, and a
    superseded timer that still manages to fire is ignored.
    """

    def __init__(
        self,
        delay_s: float,
        callback: Callable[[], None],
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        if delay_s <= 0:
            raise ValueError(f"delay_s must be positive, got {delay_s}")
        self.delay_s = delay_s
        self.callback = callback
        self.timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        with self._lock:
            self._cancel_locked()
            generation = self._generation
            timer = self.timer_factory(self.delay_s, lambda: self._fire(generation))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        self.callback()
