"""
Reproductor simulado (sin audio real).
"""

from .simulated_player import PROGRESS_STEP, TICK_INTERVAL, PlayerState, SimulatedPlayer

__all__ = ['PROGRESS_STEP', 'TICK_INTERVAL', 'PlayerState', 'SimulatedPlayer']
