"""
Physical system definitions for continuous simulation.

Each system supplies bounded parameters and a pure derivative function.
"""

from .base import PhysicalSystem
from .rc_circuit import RCCircuit
from .oscillator import DampedDrivenOscillator
from .incline import InclinePlane
from .charged_particle import ChargedParticle

__all__ = ['PhysicalSystem', 'RCCircuit', 'DampedDrivenOscillator',
           'InclinePlane', 'ChargedParticle']
