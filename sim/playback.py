"""
Playback controller.

One controller drives either kind of track through time:

    DiscreteTrack    cursor is an index into a precomputed step list;
                     advanced once per ``step_interval / speed`` seconds
    ContinuousTrack  cursor is simulated time; advanced every frame by
                     ``delta * speed`` through the integrator

State machine:

    idle -> running <-> paused -> completed
    stop() from any non-idle state -> (stopped) -> idle

Every scheduled callback carries a (session_id, generation) token. Any
command that invalidates pending work bumps the generation, so a stale
callback that still fires finds a mismatched token and does nothing.
"""

import logging
import numpy as np
from collections import deque
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Deque, List, Optional, Sequence, Tuple, Union

from .clock import Scheduler, TimeContext
from .integrator import SimulationState, integrate_span, DEFAULT_MAX_DT

logger = logging.getLogger(__name__)

IDLE = 'idle'
RUNNING = 'running'
PAUSED = 'paused'
STOPPED = 'stopped'
COMPLETED = 'completed'


@dataclass
class PlaybackConfig:
    """
    Playback tuning.

    Attributes:
        step_interval: Seconds between discrete steps at speed 1.0
        max_dt: Largest single integration step (seconds)
        history_size: Continuous states kept in the replay window
        min_speed: Lower speed clamp
        max_speed: Upper speed clamp
    """
    step_interval: float = 0.6
    max_dt: float = DEFAULT_MAX_DT
    history_size: int = 500
    min_speed: float = 0.1
    max_speed: float = 10.0


@dataclass(frozen=True, eq=False)
class Snapshot:
    """
    Read-only view of a controller, handed to render adapters.

    Attributes:
        kind: 'continuous' or 'discrete'
        run_state: Controller run state
        speed: Current speed multiplier
        session_id: Session that produced the snapshot
        state: Continuous state (continuous only)
        step: Current step record (discrete only, None if no steps)
        index: Discrete cursor
        total: Number of steps
    """
    kind: str
    run_state: str
    speed: float
    session_id: int
    state: Optional[SimulationState] = None
    step: Any = None
    index: Optional[int] = None
    total: Optional[int] = None

    @property
    def time(self) -> Optional[float]:
        return self.state.time if self.state is not None else None


class DiscreteTrack:
    """Cursor over an immutable step sequence."""

    kind = 'discrete'

    def __init__(self, steps: Sequence[Any]):
        self.steps: Tuple[Any, ...] = tuple(steps)
        self.cursor = 0

    @property
    def total(self) -> int:
        return len(self.steps)

    def reset(self) -> None:
        self.cursor = 0

    def advance(self, span: Optional[float] = None) -> None:
        self.cursor = min(self.cursor + 1, self.total)

    def jump_to(self, index: int) -> int:
        self.cursor = min(max(int(index), 0), self.total)
        return self.cursor

    def is_complete(self) -> bool:
        return self.cursor >= self.total

    @property
    def current_step(self) -> Any:
        if not self.steps:
            return None
        return self.steps[min(self.cursor, self.total - 1)]

    def snapshot(self, **common) -> Snapshot:
        return Snapshot(kind=self.kind, step=self.current_step,
                        index=self.cursor, total=self.total, **common)


class ContinuousTrack:
    """
    Simulated-time cursor over a physical system.

    Keeps the last ``history_size`` states as a bounded replay window.
    """

    kind = 'continuous'

    def __init__(self, system, initial_state: Optional[np.ndarray] = None,
                 duration: Optional[float] = None,
                 max_dt: float = DEFAULT_MAX_DT,
                 history_size: int = 500):
        """
        Args:
            system: PhysicalSystem to integrate
            initial_state: Start vector (default: system.initial_state()
                evaluated on every reset)
            duration: Optional simulated time after which the session
                completes
            max_dt: Largest single integration step
            history_size: Replay window length
        """
        self.system = system
        self._initial = None if initial_state is None else np.array(initial_state, dtype=float)
        self.duration = duration
        self.max_dt = max_dt
        self.history: Deque[SimulationState] = deque(maxlen=history_size)
        self.state: SimulationState = None
        self.reset()

    def reset(self) -> None:
        x0 = self._initial if self._initial is not None else self.system.initial_state()
        self.state = SimulationState(x0, 0.0)
        self.history.clear()
        self.history.append(self.state)

    @property
    def cursor(self) -> float:
        return self.state.time

    def advance(self, span: Optional[float] = None) -> None:
        if span is None:
            span = self.max_dt
        if self.duration is not None:
            span = min(span, max(0.0, self.duration - self.state.time))
        self.state = integrate_span(self.state, self.system, span, self.max_dt)
        self.history.append(self.state)

    def is_complete(self) -> bool:
        if self.system.is_terminal(self.state.values):
            return True
        return self.duration is not None and self.state.time >= self.duration - 1e-9

    def snapshot(self, **common) -> Snapshot:
        return Snapshot(kind=self.kind, state=self.state, **common)


Track = Union[DiscreteTrack, ContinuousTrack]


class PlaybackController:
    """
    Generic playback driver for discrete and continuous tracks.

    All mutation happens either inside a command call or inside a
    scheduler callback; listeners receive a Snapshot after each change.
    Commands that are invalid for the current run state return False and
    leave the controller untouched.
    """

    def __init__(self, scheduler: Scheduler,
                 config: Optional[PlaybackConfig] = None):
        """
        Args:
            scheduler: Scheduler that owns tick delivery
            config: Playback tuning (defaults to PlaybackConfig())
        """
        self.scheduler = scheduler
        self.config = config or PlaybackConfig()
        self.run_state = IDLE
        self.speed = 1.0
        self.session_id = 0
        self._generation = 0
        self._handle: Optional[int] = None
        self._track: Optional[Track] = None
        self._listeners: List[Callable[[Snapshot], None]] = []

    # ------------------------------------------------------------------
    # Preparation
    # ------------------------------------------------------------------

    def load_steps(self, steps: Sequence[Any]) -> DiscreteTrack:
        """Prepare a discrete track. Any running session is stopped."""
        return self._load(DiscreteTrack(steps))

    def load_system(self, system, initial_state: Optional[np.ndarray] = None,
                    duration: Optional[float] = None) -> ContinuousTrack:
        """Prepare a continuous track. Any running session is stopped."""
        track = ContinuousTrack(system, initial_state, duration,
                                max_dt=self.config.max_dt,
                                history_size=self.config.history_size)
        return self._load(track)

    def _load(self, track):
        self._invalidate()
        self._track = track
        self.run_state = IDLE
        self._notify()
        return track

    @property
    def track(self) -> Optional[Track]:
        return self._track

    @property
    def kind(self) -> Optional[str]:
        return self._track.kind if self._track is not None else None

    @property
    def cursor(self):
        if self._track is None:
            return None
        return self._track.cursor

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Begin a new session from the initial cursor.

        Supersedes any running session: its pending callbacks become
        stale.
        """
        if self._track is None:
            logger.debug("start() ignored: nothing loaded")
            return False

        self._invalidate()
        self.session_id += 1
        self._track.reset()
        self.run_state = RUNNING
        logger.debug("session %d started (%s)", self.session_id, self._track.kind)

        if self._track.is_complete():
            self._complete()
        else:
            self._schedule()
        self._notify()
        return True

    def pause(self) -> bool:
        if self.run_state != RUNNING:
            return False
        self._invalidate()
        self.run_state = PAUSED
        self._notify()
        return True

    def resume(self) -> bool:
        if self.run_state != PAUSED:
            return False
        self._invalidate()
        self.run_state = RUNNING
        self._schedule()
        self._notify()
        return True

    def stop(self) -> bool:
        """
        Cancel pending work and restore the initial cursor; ends idle.
        """
        if self.run_state == IDLE:
            return False
        self._invalidate()
        self.run_state = STOPPED
        self._notify()
        if self._track is not None:
            self._track.reset()
        self.run_state = IDLE
        logger.debug("session %d stopped", self.session_id)
        self._notify()
        return True

    reset = stop

    def set_speed(self, multiplier: float) -> float:
        """
        Set the speed multiplier (clamped). Applies from the next tick.

        Returns:
            The speed actually stored
        """
        multiplier = float(multiplier)
        if not np.isfinite(multiplier):
            return self.speed
        self.speed = min(max(multiplier, self.config.min_speed), self.config.max_speed)
        return self.speed

    def jump_to(self, index: int) -> bool:
        """
        Move the discrete cursor (scrub). Valid in running, paused and
        completed sessions.

        Jumping to the end completes the session; jumping back from
        completed pauses it.
        """
        if not isinstance(self._track, DiscreteTrack):
            return False
        if self.run_state not in (RUNNING, PAUSED, COMPLETED):
            return False

        self._track.jump_to(index)
        if self._track.is_complete():
            if self.run_state != COMPLETED:
                self._complete()
        elif self.run_state == COMPLETED:
            self.run_state = PAUSED
        self._notify()
        return True

    def advance(self) -> bool:
        """
        Advance by one step (discrete) or one max_dt (continuous) by hand.

        Valid while running or paused.
        """
        if self.run_state not in (RUNNING, PAUSED) or self._track is None:
            return False
        self._track.advance(None)
        if self._track.is_complete():
            self._complete()
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Tick handling
    # ------------------------------------------------------------------

    @property
    def step_delay(self) -> float:
        """Seconds until the next discrete step at the current speed."""
        return self.config.step_interval / self.speed

    def _token(self) -> Tuple[int, int]:
        return (self.session_id, self._generation)

    def _is_live(self, token: Tuple[int, int]) -> bool:
        return token == self._token() and self.run_state == RUNNING

    def _schedule(self) -> None:
        token = self._token()
        if isinstance(self._track, DiscreteTrack):
            self._handle = self.scheduler.call_later(
                self.step_delay, partial(self._on_tick, token))
        else:
            self._handle = self.scheduler.request_frame(partial(self._on_tick, token))

    def _on_tick(self, token: Tuple[int, int], ctx: TimeContext) -> None:
        if not self._is_live(token):
            logger.debug("dropped stale tick %s (current %s, %s)",
                         token, self._token(), self.run_state)
            return
        self._handle = None
        self._track.advance(ctx.delta * self.speed)
        if self._track.is_complete():
            self._complete()
        else:
            self._schedule()
        self._notify()

    def _invalidate(self) -> None:
        self._generation += 1
        self.scheduler.cancel(self._handle)
        self._handle = None

    def _complete(self) -> None:
        self._invalidate()
        self.run_state = COMPLETED
        logger.debug("session %d completed", self.session_id)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.run_state in (RUNNING, PAUSED)

    def snapshot(self) -> Optional[Snapshot]:
        if self._track is None:
            return None
        return self._track.snapshot(run_state=self.run_state, speed=self.speed,
                                    session_id=self.session_id)

    def add_listener(self, callback: Callable[[Snapshot], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Snapshot], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        if snap is None:
            return
        for callback in list(self._listeners):
            callback(snap)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(kind={self.kind}, state={self.run_state}, "
                f"cursor={self.cursor}, speed={self.speed})")
