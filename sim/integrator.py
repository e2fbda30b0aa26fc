"""
Semi-implicit (symplectic) Euler integrator.

For each (position, velocity) pair declared by the system:
    v(t+dt) = v(t) + a(x(t), t) dt
    p(t+dt) = p(t) + v(t+dt) dt

First-order states use explicit Euler:
    y(t+dt) = y(t) + f(x(t), t) dt

dt is clamped to [0, max_dt] so a stalled frame cannot produce a large
step.
"""

import logging
import numpy as np
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_MAX_DT = 0.05


@dataclass(frozen=True, eq=False)
class SimulationState:
    """
    Immutable continuous state.

    Attributes:
        values: State vector (read-only copy)
        time: Elapsed simulated time (>= 0)
        degenerate: True if the last integration step was held
    """
    values: np.ndarray
    time: float = 0.0
    degenerate: bool = False

    def __post_init__(self):
        values = np.array(self.values, dtype=float)
        values.flags.writeable = False
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'time', max(0.0, float(self.time)))

    def __getitem__(self, i):
        return self.values[i]

    def __len__(self) -> int:
        return len(self.values)


def clamp_dt(dt: float, max_dt: float = DEFAULT_MAX_DT) -> float:
    """Clamp a time step into [0, max_dt]."""
    if not np.isfinite(dt) or dt <= 0.0:
        return 0.0
    return min(float(dt), max_dt)


def integrate(state: SimulationState, system, dt: float,
              max_dt: float = DEFAULT_MAX_DT) -> SimulationState:
    """
    Advance a state by one semi-implicit Euler step.

    Args:
        state: Current state
        system: PhysicalSystem providing derivative()
        dt: Requested time step (clamped to max_dt)
        max_dt: Largest step accepted

    Returns:
        New SimulationState. If the system is degenerate or the step
        produces non-finite values, the values are held and
        ``degenerate`` is set.
    """
    dt = clamp_dt(dt, max_dt)
    t_next = state.time + dt

    reason = system.degenerate_reason()
    if reason is not None:
        _warn_degenerate(system, reason)
        return SimulationState(state.values, t_next, degenerate=True)

    x = system.update_mode(state.values)
    with np.errstate(all='ignore'):
        rates = np.asarray(system.derivative(x, state.time), dtype=float)
        x_next = np.array(x, dtype=float)

        for pos, vel in system.coordinate_pairs:
            x_next[vel] = x[vel] + rates[vel] * dt
            x_next[pos] = x[pos] + x_next[vel] * dt

        for i in system.first_order_indices():
            x_next[i] = x[i] + rates[i] * dt

        x_next = system.constrain_step(x, x_next)

    if not np.all(np.isfinite(x_next)):
        _warn_degenerate(system, "non-finite state")
        return SimulationState(state.values, t_next, degenerate=True)

    return SimulationState(x_next, t_next)


def integrate_span(state: SimulationState, system, span: float,
                   max_dt: float = DEFAULT_MAX_DT) -> SimulationState:
    """
    Advance a state by ``span`` seconds in steps of at most max_dt.

    Used when a speed multiplier asks for more simulated time per frame
    than a single clamped step allows.
    """
    remaining = max(0.0, float(span))
    while remaining > 1e-12:
        dt = min(remaining, max_dt)
        state = integrate(state, system, dt, max_dt)
        remaining -= dt
    return state


def _warn_degenerate(system, reason: str) -> None:
    # once per system instance
    if getattr(system, '_degenerate_warned', None) != reason:
        logger.warning("%r is degenerate (%s); holding state", system, reason)
        try:
            system._degenerate_warned = reason
        except AttributeError:
            pass
