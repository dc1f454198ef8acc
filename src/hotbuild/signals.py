"""Rebuild signal channel and debouncing of change bursts."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class RebuildSignal:
    sequence: int
    requested_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class LatestSignal:
    """Single-slot channel where a newer signal overwrites an undelivered one."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending: RebuildSignal | None = None
        self._sequence = 0
        self._closed = False
        self.replaced = 0

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._pending is not None

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def post(self) -> RebuildSignal | None:
        """Publish a rebuild request; returns ``None`` once the channel is closed."""
        with self._cond:
            if self._closed:
                return None
            self._sequence += 1
            if self._pending is not None:
                self.replaced += 1
            self._pending = RebuildSignal(sequence=self._sequence)
            self._cond.notify_all()
            return self._pending

    def take(self, timeout: float | None = None) -> RebuildSignal | None:
        """Wait for and consume the pending signal.

        Returns ``None`` on timeout or when the channel is closed.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._pending is not None or self._closed, timeout)
            if self._closed:
                return None
            signal, self._pending = self._pending, None
            return signal

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._pending = None
            self._cond.notify_all()


class Debouncer:
    """Collapse calls to :meth:`trigger` into one callback per quiet window.

    Each trigger restarts the window; the callback runs on a timer thread once
    *window* seconds pass without another trigger.
    """

    def __init__(self, window: float, callback: Callable[[], object]) -> None:
        self.window = window
        self._callback = callback
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._closed = False

    def trigger(self) -> None:
        with self._lock:
            if self._closed:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.window, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._closed = True
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._closed:
                return
            self._timer = None
        self._callback()
