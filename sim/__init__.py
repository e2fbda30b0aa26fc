"""
Simulation and playback engine.

Provides the frame clock and scheduler, the semi-implicit Euler
integrator, the generic playback controller, an offline simulator and
matplotlib render adapters.
"""

from .clock import FrameClock, Scheduler, TimeContext
from .integrator import SimulationState, integrate, integrate_span, clamp_dt
from .playback import (PlaybackController, PlaybackConfig, Snapshot,
                       DiscreteTrack, ContinuousTrack,
                       IDLE, RUNNING, PAUSED, STOPPED, COMPLETED)
from .simulator import Simulator, SimulationResult

__all__ = [
    'FrameClock',
    'Scheduler',
    'TimeContext',
    'SimulationState',
    'integrate',
    'integrate_span',
    'clamp_dt',
    'PlaybackController',
    'PlaybackConfig',
    'Snapshot',
    'DiscreteTrack',
    'ContinuousTrack',
    'IDLE',
    'RUNNING',
    'PAUSED',
    'STOPPED',
    'COMPLETED',
    'Simulator',
    'SimulationResult',
]
