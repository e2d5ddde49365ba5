"""
Módulo de rutas de la API Flask.

Este paquete contiene los blueprints que definen los endpoints
de la API REST del sistema de playlists emocionales.
"""

from .health import health_bp
from .emotion import emotion_bp
from .camera import camera_bp
from .player import player_bp

__all__ = ['health_bp', 'emotion_bp', 'camera_bp', 'player_bp']
