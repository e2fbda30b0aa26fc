"""
Series RC circuit.

Charging (source connected) or discharging (source shorted):
    I = (Vs * gate - Vc) / R
    dVc/dt = I / C

gate is 1 while charging and 0 while discharging.

Parameter ranges:
    R  in [10, 1000] ohm
    C  in [10, 500] uF
    Vs in [1, 20] V

C is multiplied by ``capacitance_scale`` before use so that the time
constant tau = R*C lands in interactive seconds (R=100, C=200 uF -> 2 s).
"""

import numpy as np
from typing import Dict, Any, Optional
from .base import PhysicalSystem, EPSILON

MODES = ('charge', 'discharge')


class RCCircuit(PhysicalSystem):
    """
    First-order RC circuit with a switchable source.

    State: [Vc] (capacitor voltage)
    """

    n_states = 1
    state_labels = ['Vc']
    coordinate_pairs = []

    def __init__(self, resistance: float = 100.0,
                 capacitance: float = 200.0,
                 source_voltage: float = 10.0,
                 mode: str = 'charge',
                 capacitance_scale: float = 1e-4):
        """
        Initialize RC circuit.

        Args:
            resistance: R in ohm
            capacitance: C in microfarad
            source_voltage: Source EMF in volt
            mode: 'charge' or 'discharge'
            capacitance_scale: Factor applied to C (uF) to get the
                capacitance used in the ODE
        """
        self.capacitance_scale = capacitance_scale
        self.set_mode(mode)
        super().__init__(resistance=resistance,
                         capacitance=capacitance,
                         source_voltage=source_voltage)

    def _setup_constraints(self) -> None:
        self.param_bounds = {
            'resistance': (10.0, 1000.0),
            'capacitance': (10.0, 500.0),
            'source_voltage': (1.0, 20.0),
        }

    def set_mode(self, mode: str) -> None:
        """Switch between 'charge' and 'discharge'."""
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got '{mode}'")
        self.mode = mode

    @property
    def effective_capacitance(self) -> float:
        """Capacitance used in the ODE (scaled)."""
        return self._params['capacitance'] * self.capacitance_scale

    @property
    def time_constant(self) -> Optional[float]:
        """tau = R * C, or None if degenerate."""
        if self.degenerate_reason() is not None:
            return None
        return self._params['resistance'] * self.effective_capacitance

    def degenerate_reason(self) -> Optional[str]:
        if abs(self._params['resistance']) < EPSILON:
            return "resistance is zero"
        if abs(self.effective_capacitance) < EPSILON:
            return "capacitance is zero"
        return None

    def initial_state(self) -> np.ndarray:
        if self.mode == 'charge':
            return np.array([0.0])
        return np.array([self._params['source_voltage']])

    def current(self, vc: float) -> float:
        """Loop current for capacitor voltage vc."""
        gate = 1.0 if self.mode == 'charge' else 0.0
        return (self._params['source_voltage'] * gate - vc) / self._params['resistance']

    def derivative(self, x: np.ndarray, t: float) -> np.ndarray:
        i = self.current(x[0])
        return np.array([i / self.effective_capacitance])

    def readout(self, x: np.ndarray, t: float = 0.0) -> Dict[str, Any]:
        vc = float(x[0])
        c = self.effective_capacitance
        degenerate = self.degenerate_reason() is not None
        return {
            'Vc': vc,
            'I': None if degenerate else self.current(vc),
            'q': vc * c,
            'energy': 0.5 * c * vc * vc,
            'tau': self.time_constant,
            'charge_fraction': vc / self._params['source_voltage'],
            'mode': self.mode,
        }
