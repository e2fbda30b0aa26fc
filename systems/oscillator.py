"""
Damped driven harmonic oscillator.

    m x'' = -k x - b x' + F0 cos(omega t)

Natural frequency w0 = sqrt(k/m). With b = 0 and F0 = 0 the total
mechanical energy E = 1/2 m v^2 + 1/2 k x^2 is conserved.
"""

import math
import numpy as np
from typing import Dict, Any, Optional
from .base import PhysicalSystem, EPSILON


class DampedDrivenOscillator(PhysicalSystem):
    """
    Mass on a spring with viscous damping and sinusoidal drive.

    State: [x, v]
    """

    n_states = 2
    state_labels = ['x', 'v']
    coordinate_pairs = [(0, 1)]

    def __init__(self, mass: float = 1.0,
                 stiffness: float = 10.0,
                 damping: float = 0.5,
                 drive_amplitude: float = 5.0,
                 drive_frequency: float = 3.0,
                 x0: float = 1.0,
                 v0: float = 0.0):
        """
        Initialize oscillator.

        Args:
            mass: m (kg)
            stiffness: Spring constant k (N/m)
            damping: Damping coefficient b (N s/m)
            drive_amplitude: F0 (N)
            drive_frequency: Drive angular frequency omega (rad/s)
            x0: Initial displacement
            v0: Initial velocity
        """
        self.x0 = float(x0)
        self.v0 = float(v0)
        super().__init__(mass=mass,
                         stiffness=stiffness,
                         damping=damping,
                         drive_amplitude=drive_amplitude,
                         drive_frequency=drive_frequency)

    def _setup_constraints(self) -> None:
        self.param_bounds = {
            'mass': (0.1, 10.0),
            'stiffness': (0.1, 100.0),
            'damping': (0.0, 10.0),
            'drive_amplitude': (0.0, 50.0),
            'drive_frequency': (0.0, 20.0),
        }

    def degenerate_reason(self) -> Optional[str]:
        if abs(self._params['mass']) < EPSILON:
            return "mass is zero"
        return None

    def initial_state(self) -> np.ndarray:
        return np.array([self.x0, self.v0])

    def acceleration(self, x: float, v: float, t: float) -> float:
        p = self._params
        force = (-p['stiffness'] * x - p['damping'] * v
                 + p['drive_amplitude'] * math.cos(p['drive_frequency'] * t))
        return force / p['mass']

    def derivative(self, x: np.ndarray, t: float) -> np.ndarray:
        return np.array([x[1], self.acceleration(x[0], x[1], t)])

    @property
    def natural_frequency(self) -> float:
        return math.sqrt(self._params['stiffness'] / self._params['mass'])

    def energy(self, x: np.ndarray) -> float:
        """Kinetic plus spring potential energy."""
        return 0.5 * self._params['mass'] * x[1] ** 2 + 0.5 * self._params['stiffness'] * x[0] ** 2

    def readout(self, x: np.ndarray, t: float = 0.0) -> Dict[str, Any]:
        return {
            'x': float(x[0]),
            'v': float(x[1]),
            'a': self.acceleration(x[0], x[1], t),
            'energy': self.energy(x),
            'w0': self.natural_frequency,
            'drive_force': self._params['drive_amplitude'] * math.cos(self._params['drive_frequency'] * t),
        }
