"""
Trailing-edge debouncing for field writes.

Quantity, price and threshold edits arrive once per keystroke.  A
``Debouncer`` holds the latest write per key and only hands it to the
callback once no newer write for the same key arrived within the delay.
Different keys never cancel each other.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Protocol

from workshop_kernel.logging_config import get_logger

logger = get_logger("domain.debounce")

DEFAULT_DEBOUNCE_SECONDS = 0.5


class TimerLike(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerLike]


def _thread_timer(delay: float, fn: Callable[[], None]) -> TimerLike:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    return timer


@dataclass
class _PendingWrite:
    timer: TimerLike
    callback: Callable[..., Any]
    args: tuple
    kwargs: dict


class Debouncer:
    """Coalesces rapid successive writes per key.

    ``timer_factory`` defaults to ``threading.Timer``; tests inject a manual
    timer so firing is deterministic.
    """

    def __init__(
        self,
        delay_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: TimerFactory | None = None,
    ):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self._timer_factory = timer_factory or _thread_timer
        self._pending: dict[Hashable, _PendingWrite] = {}
        self._lock = threading.Lock()

    def schedule(self, key: Hashable, callback: Callable[..., Any], *args, **kwargs) -> None:
        """Schedule ``callback(*args, **kwargs)``, replacing any pending write for ``key``."""
        timer = self._timer_factory(self.delay_seconds, lambda: self._fire(key, timer))
        with self._lock:
            previous = self._pending.pop(key, None)
            self._pending[key] = _PendingWrite(timer, callback, args, kwargs)
        if previous is not None:
            previous.timer.cancel()
            logger.debug("debounced_write_rescheduled", extra={"key": repr(key)})
        timer.start()

    def _fire(self, key: Hashable, timer: TimerLike) -> None:
        with self._lock:
            pending = self._pending.get(key)
            # A newer write replaced this one after the timer elapsed.
            if pending is None or pending.timer is not timer:
                return
            del self._pending[key]
        pending.callback(*pending.args, **pending.kwargs)

    def flush(self, key: Hashable | None = None) -> int:
        """Run pending writes now (one key or all). Returns how many ran."""
        with self._lock:
            if key is None:
                due = list(self._pending.values())
                self._pending.clear()
            else:
                entry = self._pending.pop(key, None)
                due = [entry] if entry is not None else []
        for pending in due:
            pending.timer.cancel()
            pending.callback(*pending.args, **pending.kwargs)
        return len(due)

    def cancel(self, key: Hashable) -> bool:
        with self._lock:
            pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending.timer.cancel()
        return True

    def cancel_all(self) -> int:
        with self._lock:
            due = list(self._pending.values())
            self._pending.clear()
        for pending in due:
            pending.timer.cancel()
        return len(due)

    def is_pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._pending

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
