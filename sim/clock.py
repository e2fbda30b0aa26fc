"""
Frame clock and cooperative scheduler.

The scheduler is the only place callbacks run. Each tick():
    1. advances the clock (delta clamped to max_delta),
    2. runs the delayed callbacks that were due at the start of the tick,
    3. runs the frame callbacks that were requested before the tick.

Callbacks registered during a tick run on a later tick, so no two
callbacks of the same chain ever overlap.
"""

import heapq
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeContext:
    """Timing information for one tick."""
    frame_index: int
    delta: float
    elapsed: float


class FrameClock:
    """
    Monotonic clock with bounded per-tick deltas.

    Elapsed time only ever grows, and a single delta never exceeds
    ``max_delta`` (a stalled frame is not replayed as one large jump).
    """

    def __init__(self, time_source: Optional[Callable[[], float]] = None,
                 max_delta: float = 0.05):
        """
        Args:
            time_source: Function returning seconds (default time.monotonic)
            max_delta: Largest delta reported for a single tick
        """
        if max_delta <= 0.0:
            raise ValueError("max_delta must be > 0")
        self.time_source = time_source or time.monotonic
        self.max_delta = max_delta
        self._last: Optional[float] = None
        self._elapsed = 0.0
        self._frame_index = 0

    @property
    def elapsed(self) -> float:
        return self._elapsed

    def reset(self) -> None:
        self._last = None
        self._elapsed = 0.0
        self._frame_index = 0

    def next(self, now: Optional[float] = None) -> TimeContext:
        """Advance the clock and return the new tick's context."""
        if now is None:
            now = self.time_source()
        if self._last is None:
            delta = 0.0
        else:
            delta = min(max(0.0, now - self._last), self.max_delta)
        self._last = now
        self._elapsed += delta
        self._frame_index += 1
        return TimeContext(self._frame_index, delta, self._elapsed)


class Scheduler:
    """
    Single-threaded frame/timer scheduler.

    ``request_frame`` is one-shot, like a browser animation frame: a
    callback that wants to keep running requests the next frame itself.
    ``call_later`` fires once the clock's elapsed time reaches the due
    time. Both return a handle accepted by ``cancel``.
    """

    def __init__(self, clock: Optional[FrameClock] = None):
        self.clock = clock or FrameClock()
        self._ids = itertools.count(1)
        self._frames: Dict[int, Callable[[TimeContext], None]] = {}
        self._timers: List[Tuple[float, int]] = []
        self._timer_callbacks: Dict[int, Callable[[TimeContext], None]] = {}

    @property
    def now(self) -> float:
        """Scheduler time (clamped elapsed seconds)."""
        return self.clock.elapsed

    def request_frame(self, callback: Callable[[TimeContext], None]) -> int:
        handle = next(self._ids)
        self._frames[handle] = callback
        return handle

    def call_later(self, delay: float, callback: Callable[[TimeContext], None]) -> int:
        """
        Schedule a callback ``delay`` seconds from now.

        Raises:
            ValueError: If delay is negative
        """
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        handle = next(self._ids)
        heapq.heappush(self._timers, (self.now + delay, handle))
        self._timer_callbacks[handle] = callback
        return handle

    def cancel(self, handle: Optional[int]) -> bool:
        """Cancel a pending frame or timer. Returns True if it was pending."""
        if handle is None:
            return False
        if self._frames.pop(handle, None) is not None:
            return True
        if self._timer_callbacks.pop(handle, None) is None:
            return False
        # cancelled entries stay in the heap until popped; rebuild once they dominate
        if len(self._timers) > 2 * len(self._timer_callbacks) + 8:
            self._timers = [entry for entry in self._timers if entry[1] in self._timer_callbacks]
            heapq.heapify(self._timers)
        return True

    @property
    def pending(self) -> int:
        return len(self._frames) + len(self._timer_callbacks)

    def tick(self, now: Optional[float] = None) -> TimeContext:
        """
        Run one tick.

        Args:
            now: Explicit time source reading (seconds); defaults to the
                clock's time source

        Returns:
            TimeContext for this tick
        """
        ctx = self.clock.next(now)

        due = []
        while self._timers and self._timers[0][0] <= ctx.elapsed + 1e-12:
            _, handle = heapq.heappop(self._timers)
            callback = self._timer_callbacks.pop(handle, None)
            if callback is not None:
                due.append(callback)

        frames = list(self._frames.values())
        self._frames.clear()

        for callback in due:
            callback(ctx)
        for callback in frames:
            callback(ctx)
        return ctx

    def run_for(self, duration: float, fps: float = 60.0) -> int:
        """
        Drive the scheduler headlessly with a synthetic time source.

        Args:
            duration: Seconds of scheduler time to run
            fps: Tick rate

        Returns:
            Number of ticks executed
        """
        frame = 1.0 / fps
        start = self.clock._last if self.clock._last is not None else 0.0
        if self.clock._last is None:
            self.tick(start)
        n = int(round(duration * fps))
        for i in range(1, n + 1):
            self.tick(start + i * frame)
        logger.debug("ran %d ticks (%.3fs)", n, duration)
        return n
