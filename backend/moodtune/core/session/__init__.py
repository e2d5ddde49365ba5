"""
Módulo de sesión: máquina de estados de vistas, captura y reproductor.
"""

from .controller import AUTO_TRANSITION_DELAY, CaptureView, MoodSession, View

__all__ = ['AUTO_TRANSITION_DELAY', 'CaptureView', 'MoodSession', 'View']
