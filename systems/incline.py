"""
Block on an inclined plane with static and kinetic friction.

Static phase: the block is held while
    m g sin(theta) <= mu_s m g cos(theta)

Kinetic phase: once the static limit is exceeded the block slides with
    a = g (sin(theta) - mu_k cos(theta))

The static -> kinetic transition is one-way for a session: a sliding
block never re-enters the static phase, even if the angle is lowered
mid-run.
"""

import math
import numpy as np
from typing import Dict, Any, Optional
from .base import PhysicalSystem, EPSILON


class InclinePlane(PhysicalSystem):
    """
    Incline with friction.

    State: [s, v, sliding]
        s: distance travelled down the ramp
        v: speed along the ramp
        sliding: 0.0 (static) or 1.0 (kinetic)
    """

    n_states = 3
    state_labels = ['s', 'v', 'sliding']
    coordinate_pairs = [(0, 1)]

    def __init__(self, angle: float = 30.0,
                 mass: float = 5.0,
                 mu_static: float = 0.5,
                 mu_kinetic: float = 0.3,
                 gravity: float = 9.8,
                 ramp_length: float = 10.0):
        """
        Initialize incline.

        Args:
            angle: Incline angle in degrees
            mass: Block mass (kg)
            mu_static: Static friction coefficient
            mu_kinetic: Kinetic friction coefficient (kept <= mu_static)
            gravity: g (m/s^2)
            ramp_length: Distance at which the block leaves the ramp
        """
        super().__init__(angle=angle,
                         mass=mass,
                         mu_static=mu_static,
                         mu_kinetic=mu_kinetic,
                         gravity=gravity,
                         ramp_length=ramp_length)

    def _setup_constraints(self) -> None:
        self.param_bounds = {
            'angle': (0.0, 60.0),
            'mass': (0.1, 50.0),
            'mu_static': (0.0, 1.0),
            'mu_kinetic': (0.0, 1.0),
            'gravity': (1.0, 25.0),
            'ramp_length': (0.5, 50.0),
        }

    def _on_parameter_change(self, name: str) -> None:
        # mu_k <= mu_s
        mu_s = self._params.get('mu_static')
        mu_k = self._params.get('mu_kinetic')
        if mu_s is not None and mu_k is not None and mu_k > mu_s:
            self._params['mu_kinetic'] = mu_s

    def degenerate_reason(self) -> Optional[str]:
        if abs(self._params['mass']) < EPSILON:
            return "mass is zero"
        return None

    def initial_state(self) -> np.ndarray:
        return np.array([0.0, 0.0, 0.0])

    def forces(self) -> Dict[str, float]:
        """Force components along and normal to the ramp."""
        p = self._params
        theta = math.radians(p['angle'])
        weight = p['mass'] * p['gravity']
        normal = weight * math.cos(theta)
        return {
            'weight': weight,
            'parallel': weight * math.sin(theta),
            'normal': normal,
            'static_max': p['mu_static'] * normal,
            'kinetic': p['mu_kinetic'] * normal,
        }

    def will_slide(self) -> bool:
        f = self.forces()
        return f['parallel'] > f['static_max']

    @property
    def critical_angle(self) -> float:
        """Angle (degrees) above which the block slides: arctan(mu_s)."""
        return math.degrees(math.atan(self._params['mu_static']))

    def kinetic_acceleration(self) -> float:
        p = self._params
        theta = math.radians(p['angle'])
        return p['gravity'] * (math.sin(theta) - p['mu_kinetic'] * math.cos(theta))

    def update_mode(self, x: np.ndarray) -> np.ndarray:
        if x[2] >= 0.5 or not self.will_slide():
            return x
        x = x.copy()
        x[2] = 1.0
        return x

    def constrain_step(self, x: np.ndarray, x_next: np.ndarray) -> np.ndarray:
        # kinetic friction can stop the block but never push it back up
        if x_next[2] < 0.5 or x_next[1] >= 0.0:
            return x_next
        a = self.kinetic_acceleration()
        x_next[1] = 0.0
        if x[1] > 0.0 and a < 0.0:
            # stopping distance under constant deceleration
            x_next[0] = x[0] + x[1] * x[1] / (2.0 * -a)
        else:
            x_next[0] = max(x_next[0], x[0])
        return x_next

    def derivative(self, x: np.ndarray, t: float) -> np.ndarray:
        if x[2] < 0.5:
            return np.zeros(3)
        a = self.kinetic_acceleration()
        if x[1] <= 0.0 and a < 0.0:
            a = 0.0
        return np.array([x[1], a, 0.0])

    def is_terminal(self, x: np.ndarray) -> bool:
        return x[0] >= self._params['ramp_length']

    def readout(self, x: np.ndarray, t: float = 0.0) -> Dict[str, Any]:
        sliding = x[2] >= 0.5
        f = self.forces()
        if sliding:
            friction = f['kinetic']
        else:
            friction = min(f['parallel'], f['static_max'])
        return {
            's': float(x[0]),
            'v': float(x[1]),
            'a': self.kinetic_acceleration() if sliding else 0.0,
            'phase': 'kinetic' if sliding else 'static',
            'friction': friction,
            'normal': f['normal'],
            'parallel': f['parallel'],
            'critical_angle': self.critical_angle,
        }
