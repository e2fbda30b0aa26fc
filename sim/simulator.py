"""
Fixed-step offline simulation engine.

Runs a physical system through the integrator for a fixed span of
simulated time and logs the trajectory for analysis and plotting.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from tqdm.auto import tqdm

from .integrator import SimulationState, integrate, DEFAULT_MAX_DT

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """
    Container for simulation results.

    Attributes:
        time: Time vector
        states: State trajectory (T x n_states)
        readouts: Per-sample system readouts
        degenerate: Per-sample held-step flags
        metadata: Additional simulation information
    """
    time: np.ndarray
    states: np.ndarray
    readouts: List[Dict[str, Any]] = field(default_factory=list)
    degenerate: np.ndarray = field(default_factory=lambda: np.array([], dtype=bool))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def series(self, key: str) -> np.ndarray:
        """Extract one readout quantity as an array (NaN where missing)."""
        values = []
        for r in self.readouts:
            v = r.get(key)
            values.append(np.nan if v is None or isinstance(v, str) else v)
        return np.array(values, dtype=float)

    def value_at(self, t: float, index: int = 0) -> float:
        """Linearly interpolated state component at time t."""
        return float(np.interp(t, self.time, self.states[:, index]))

    def compute_metrics(self) -> Dict[str, float]:
        """
        Compute summary metrics.

        Returns:
            Dictionary with final state, extrema and energy drift where
            an 'energy' readout exists
        """
        metrics = {
            'duration': float(self.time[-1]),
            'steps': len(self.time) - 1,
            'held_steps': int(np.sum(self.degenerate)),
        }
        for i, label in enumerate(self.metadata.get('state_labels', [])):
            metrics[f'final_{label}'] = float(self.states[-1, i])
            metrics[f'max_abs_{label}'] = float(np.max(np.abs(self.states[:, i])))

        energy = self.series('energy')
        if len(energy) > 0 and np.all(np.isfinite(energy)) and energy[0] != 0:
            metrics['energy_drift'] = float(np.max(np.abs(energy - energy[0])) / abs(energy[0]))

        return metrics


class Simulator:
    """
    Offline fixed-step driver.

    Uses the same integrator as the playback controller, without a
    scheduler, so runs are reproducible for a given dt.
    """

    def __init__(self, system, dt: float = 1.0 / 60.0,
                 max_dt: float = DEFAULT_MAX_DT):
        """
        Initialize simulator.

        Args:
            system: PhysicalSystem instance
            dt: Fixed step (seconds)
            max_dt: Integrator clamp
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.system = system
        self.dt = min(dt, max_dt)
        self.max_dt = max_dt

    def run(self, T: float, x0: Optional[np.ndarray] = None,
            stop_on_terminal: bool = False) -> SimulationResult:
        """
        Run the system for T seconds.

        Args:
            T: Total simulated time (seconds)
            x0: Initial state (defaults to system.initial_state())
            stop_on_terminal: End early when the system reports a
                boundary condition

        Returns:
            SimulationResult with full trajectory data
        """
        if x0 is None:
            x0 = self.system.initial_state()
        state = SimulationState(x0, 0.0)

        n_steps = int(round(T / self.dt))
        time = [state.time]
        states = [np.array(state.values)]
        held = [False]
        readouts = [self.system.readout(state.values, state.time)]

        for _ in range(n_steps):
            state = integrate(state, self.system, self.dt, self.max_dt)
            time.append(state.time)
            states.append(np.array(state.values))
            held.append(state.degenerate)
            readouts.append(self.system.readout(state.values, state.time))
            if stop_on_terminal and self.system.is_terminal(state.values):
                logger.debug("%r reached terminal state at t=%.3f", self.system, state.time)
                break

        metadata = {
            'system': self.system.__class__.__name__,
            'parameters': self.system.parameters,
            'state_labels': list(self.system.state_labels),
            'dt': self.dt,
            'x0': np.array(x0, dtype=float),
        }

        return SimulationResult(
            time=np.array(time),
            states=np.vstack(states),
            readouts=readouts,
            degenerate=np.array(held, dtype=bool),
            metadata=metadata
        )

    def run_batch(self, parameter_sets: List[Dict[str, float]], T: float,
                  progress: bool = False) -> List[SimulationResult]:
        """
        Run the system once per parameter set (parameter sweep).

        Parameters are restored afterwards.

        Args:
            parameter_sets: List of {name: value} overrides
            T: Simulation time per run
            progress: Show a tqdm progress bar

        Returns:
            List of SimulationResult objects
        """
        saved = self.system.parameters
        results = []
        try:
            for params in tqdm(parameter_sets, desc="sweep", disable=not progress):
                for name, value in params.items():
                    self.system.set_parameter(name, value)
                results.append(self.run(T))
        finally:
            for name, value in saved.items():
                self.system.set_parameter(name, value)
        return results
