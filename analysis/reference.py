"""
Reference solutions for the continuous systems.

Used to check the interactive integrator against closed forms and a
high-accuracy scipy solution.

RC circuit (closed form):
    charging:     Vc(t) = Vs (1 - exp(-t / RC))
    discharging:  Vc(t) = Vs exp(-t / RC)

Everything else is compared against scipy.integrate.solve_ivp (RK45 with
tight tolerances) on the system's own derivative function.

Limitations:
    - Incline mode switching is applied once at t = 0 for the reference,
      which matches the one-way transition when parameters are fixed
    - Agreement is only expected to first order in dt
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Any, Optional
from scipy.integrate import solve_ivp


@dataclass
class ComparisonResult:
    """Integrator vs reference comparison."""
    max_abs_error: float
    final_abs_error: float
    relative_error: float
    details: Dict[str, Any]


def rc_analytic(system, t: np.ndarray) -> np.ndarray:
    """
    Closed-form capacitor voltage.

    Args:
        system: RCCircuit
        t: Times (seconds)

    Returns:
        Vc(t)
    """
    tau = system.time_constant
    vs = system.get_parameter('source_voltage')
    t = np.asarray(t, dtype=float)
    if tau is None:
        return np.full_like(t, system.initial_state()[0])
    if system.mode == 'charge':
        return vs * (1.0 - np.exp(-t / tau))
    return vs * np.exp(-t / tau)


def reference_trajectory(system, T: float, n_samples: int = 500,
                         x0: Optional[np.ndarray] = None,
                         rtol: float = 1e-9, atol: float = 1e-9):
    """
    Integrate the system's derivative with solve_ivp.

    Args:
        system: PhysicalSystem
        T: Duration
        n_samples: Output samples
        x0: Initial state (default system.initial_state())

    Returns:
        (t, states) with states shaped (n_samples, n_states)
    """
    if x0 is None:
        x0 = system.initial_state()
    x0 = system.update_mode(np.asarray(x0, dtype=float))
    t_eval = np.linspace(0.0, T, n_samples)

    def rhs(t, x):
        return system.derivative(x, t)

    sol = solve_ivp(rhs, (0.0, T), x0, t_eval=t_eval, rtol=rtol, atol=atol)
    if not sol.success:
        raise RuntimeError(f"reference integration failed: {sol.message}")
    return sol.t, sol.y.T


def compare_to_reference(result, system, index: int = 0) -> ComparisonResult:
    """
    Compare a SimulationResult component against the scipy reference.

    Args:
        result: SimulationResult from Simulator.run
        system: The simulated system
        index: State component to compare

    Returns:
        ComparisonResult
    """
    T = float(result.time[-1])
    t_ref, x_ref = reference_trajectory(system, T, x0=result.metadata.get('x0'))
    sim_values = np.interp(t_ref, result.time, result.states[:, index])
    err = np.abs(sim_values - x_ref[:, index])
    scale = max(float(np.max(np.abs(x_ref[:, index]))), 1e-12)
    return ComparisonResult(
        max_abs_error=float(np.max(err)),
        final_abs_error=float(err[-1]),
        relative_error=float(np.max(err) / scale),
        details={'t': t_ref, 'reference': x_ref[:, index], 'simulated': sim_values}
    )


def energy_drift(energies: np.ndarray) -> float:
    """Max |E - E0| / |E0| over a window."""
    energies = np.asarray(energies, dtype=float)
    if len(energies) == 0 or energies[0] == 0:
        return 0.0
    return float(np.max(np.abs(energies - energies[0])) / abs(energies[0]))


def steady_state_amplitude(system) -> Optional[float]:
    """
    Driven oscillator steady-state amplitude:
        A = F0 / sqrt((k - m w^2)^2 + (b w)^2)

    Returns None at undamped resonance.
    """
    p = system.parameters
    w = p['drive_frequency']
    denom = np.hypot(p['stiffness'] - p['mass'] * w * w, p['damping'] * w)
    if denom < 1e-12:
        return None
    return float(p['drive_amplitude'] / denom)
