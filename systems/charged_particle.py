"""
Charged particle in a uniform out-of-plane magnetic field.

In-plane Lorentz force F = q v x B with B along z:
    ax =  q vy B / m
    ay = -q vx B / m

giving circular motion of radius r = m |v| / |q B| and period
T = 2 pi m / |q B|. In velocity-selector mode an in-plane electric field
along y adds ay += q E / m; the particle passes undeflected when
|v| = E / B.
"""

import math
import numpy as np
from typing import Dict, Any, Optional
from .base import PhysicalSystem, EPSILON

MODES = ('basic', 'velocity_selector')


class ChargedParticle(PhysicalSystem):
    """
    Point charge moving in the plane.

    State: [x, y, vx, vy]
    """

    n_states = 4
    state_labels = ['x', 'y', 'vx', 'vy']
    coordinate_pairs = [(0, 2), (1, 3)]

    def __init__(self, charge: float = 1.0,
                 mass: float = 1.0,
                 field: float = 1.0,
                 electric_field: float = 0.0,
                 speed: float = 5.0,
                 extent: float = 50.0,
                 mode: str = 'basic'):
        """
        Initialize particle.

        Args:
            charge: q
            mass: m
            field: B (tesla), out of plane
            electric_field: E along y, used in velocity-selector mode
            speed: Launch speed along +x
            extent: Half-width of the square region; leaving it ends the run
            mode: 'basic' or 'velocity_selector'
        """
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got '{mode}'")
        self.mode = mode
        super().__init__(charge=charge,
                         mass=mass,
                         field=field,
                         electric_field=electric_field,
                         speed=speed,
                         extent=extent)

    def _setup_constraints(self) -> None:
        self.param_bounds = {
            'charge': (-5.0, 5.0),
            'mass': (0.1, 10.0),
            'field': (-2.0, 2.0),
            'electric_field': (-20.0, 20.0),
            'speed': (0.1, 50.0),
            'extent': (1.0, 1000.0),
        }

    def degenerate_reason(self) -> Optional[str]:
        if abs(self._params['mass']) < EPSILON:
            return "mass is zero"
        return None

    def initial_state(self) -> np.ndarray:
        return np.array([0.0, 0.0, self._params['speed'], 0.0])

    def derivative(self, x: np.ndarray, t: float) -> np.ndarray:
        p = self._params
        q, m, b = p['charge'], p['mass'], p['field']
        ax = q * x[3] * b / m
        ay = -q * x[2] * b / m
        if self.mode == 'velocity_selector':
            ay += q * p['electric_field'] / m
        return np.array([x[2], x[3], ax, ay])

    def _qb(self) -> float:
        return abs(self._params['charge'] * self._params['field'])

    def orbit_radius(self, speed: Optional[float] = None) -> Optional[float]:
        """r = m v / |q B|; None when q B is zero (straight line)."""
        if self._qb() < EPSILON:
            return None
        v = self._params['speed'] if speed is None else speed
        return self._params['mass'] * v / self._qb()

    def period(self) -> Optional[float]:
        """Cyclotron period 2 pi m / |q B|; None when q B is zero."""
        if self._qb() < EPSILON:
            return None
        return 2.0 * math.pi * self._params['mass'] / self._qb()

    def selector_speed(self) -> Optional[float]:
        """Speed passed undeflected by the crossed fields, E / |B|."""
        if abs(self._params['field']) < EPSILON:
            return None
        return abs(self._params['electric_field'] / self._params['field'])

    def is_terminal(self, x: np.ndarray) -> bool:
        extent = self._params['extent']
        return abs(x[0]) > extent or abs(x[1]) > extent

    def readout(self, x: np.ndarray, t: float = 0.0) -> Dict[str, Any]:
        speed = float(math.hypot(x[2], x[3]))
        return {
            'x': float(x[0]),
            'y': float(x[1]),
            'speed': speed,
            'radius': self.orbit_radius(speed),
            'period': self.period(),
            'kinetic_energy': 0.5 * self._params['mass'] * speed * speed,
        }
