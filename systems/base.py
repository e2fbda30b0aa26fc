"""
Base class for continuous physical systems.

Provides a standard interface for every system driven by the continuous
integrator and the playback controller.
"""

import logging
import math
import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple, Optional, Any

logger = logging.getLogger(__name__)

# Denominators below this magnitude are treated as zero.
EPSILON = 1e-9


class PhysicalSystem(ABC):
    """
    Abstract base class for continuous-time physical systems.

    All systems implement the ODE:
        dx/dt = f(x, t; p)

    where:
        x: state vector
        t: elapsed simulated time
        p: system parameters (held on the instance, clamped to bounds)

    Second-order coordinates are declared in ``coordinate_pairs`` as
    (position_index, velocity_index) so the integrator can update the
    velocity first and the position from the updated velocity.

    Attributes:
        n_states: Dimension of state space
        state_labels: Human-readable name of each state component
        coordinate_pairs: (position, velocity) index pairs
        param_bounds: Parameter name -> (low, high)
    """

    n_states: int = 0
    state_labels: List[str] = []
    coordinate_pairs: List[Tuple[int, int]] = []

    def __init__(self, **params: float):
        """
        Initialize system.

        Args:
            **params: Parameter values, clamped to ``param_bounds``
        """
        self.param_bounds: Dict[str, Tuple[float, float]] = {}
        self._setup_constraints()
        self._params: Dict[str, float] = {}
        for name, value in params.items():
            self.set_parameter(name, value)

    @abstractmethod
    def _setup_constraints(self) -> None:
        """Set up parameter bounds."""
        pass

    @abstractmethod
    def derivative(self, x: np.ndarray, t: float) -> np.ndarray:
        """
        Compute rates of change.

        Must be pure in (x, t, parameters).

        Args:
            x: Current state vector
            t: Current simulated time

        Returns:
            dxdt: Rate of each state component
        """
        pass

    @abstractmethod
    def initial_state(self) -> np.ndarray:
        """Return the state a fresh session starts from."""
        pass

    def clamp_parameter(self, name: str, value: float) -> float:
        """
        Clamp a parameter into its declared range.

        Args:
            name: Parameter name
            value: Requested value

        Returns:
            Value within bounds

        Raises:
            KeyError: Unknown parameter
            ValueError: Non-finite value
        """
        if name not in self.param_bounds:
            raise KeyError(f"Unknown parameter '{name}' for {self.__class__.__name__}")
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Parameter '{name}' must be finite, got {value}")

        low, high = self.param_bounds[name]
        clamped = min(max(value, low), high)
        if clamped != value:
            logger.warning("%s.%s=%g out of range [%g, %g], clamped to %g",
                           self.__class__.__name__, name, value, low, high, clamped)
        return clamped

    def set_parameter(self, name: str, value: float) -> float:
        """
        Set a parameter, clamped into range. Takes effect on the next tick.

        Returns:
            The value actually stored
        """
        clamped = self.clamp_parameter(name, value)
        self._params[name] = clamped
        self._on_parameter_change(name)
        return clamped

    def _on_parameter_change(self, name: str) -> None:
        """Hook for systems with dependent parameters."""
        pass

    def get_parameter(self, name: str) -> float:
        return self._params[name]

    @property
    def parameters(self) -> Dict[str, float]:
        """Copy of current parameter values."""
        return dict(self._params)

    def update_mode(self, x: np.ndarray) -> np.ndarray:
        """
        Apply discrete mode transitions before rates are computed.

        Default is identity. Must not mutate ``x``.
        """
        return x

    def constrain_step(self, x: np.ndarray, x_next: np.ndarray) -> np.ndarray:
        """
        Enforce state constraints on the result of one integration step.

        Default is identity. Must not mutate ``x``.

        Args:
            x: State the step started from
            x_next: Unconstrained next state (may be modified in place)
        """
        return x_next

    def degenerate_reason(self) -> Optional[str]:
        """
        Report a zero or near-zero denominator in the current parameters.

        Returns:
            Description of the degenerate condition, or None
        """
        return None

    def is_terminal(self, x: np.ndarray) -> bool:
        """Boundary condition that completes a continuous session."""
        return False

    def readout(self, x: np.ndarray, t: float = 0.0) -> Dict[str, Any]:
        """
        Informational values for the current state.

        Args:
            x: State vector
            t: Simulated time

        Returns:
            Dictionary of derived quantities
        """
        return {label: float(x[i]) for i, label in enumerate(self.state_labels)}

    def first_order_indices(self) -> List[int]:
        """State indices not covered by a (position, velocity) pair."""
        paired = {i for pair in self.coordinate_pairs for i in pair}
        return [i for i in range(self.n_states) if i not in paired]

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v:g}" for k, v in self._params.items())
        return f"{self.__class__.__name__}({params})"
