"""
Core - Módulo principal del sistema de detección emocional y playlists.

Este paquete contiene todos los componentes fundamentales del sistema:
- camera: Captura de imagen desde webcam
- emotion: Normalización de etiquetas y detector Hugging Face
- music: Catálogo estático de playlists por emoción
- player: Reproductor simulado
- session: Orquestación de vistas y estado de la sesión
- utils: Utilidades matemáticas y métricas
"""

from . import camera
from . import emotion
from . import music
from . import player
from . import session
from . import utils
from . import errors

# Exponer componentes principales para facilitar imports
from .camera import WebcamCapture
from .emotion import Emotion, HFEmotionDetector, normalize_emotion
from .music import get_playlist
from .player import SimulatedPlayer
from .session import MoodSession

__all__ = [
    'camera',
    'emotion',
    'music',
    'player',
    'session',
    'utils',
    'errors',
    'WebcamCapture',
    'Emotion',
    'HFEmotionDetector',
    'normalize_emotion',
    'get_playlist',
    'SimulatedPlayer',
    'MoodSession',
]
