"""
Módulo de reconocimiento emocional facial.

Este paquete contiene la normalización de etiquetas al conjunto cerrado de
emociones del sistema y el detector basado en Hugging Face.
"""

from .hf_detector import (
    DEFAULT_MODEL_ID,
    DetectionState,
    EmotionResult,
    HFEmotionDetector,
    ModelStatus,
    load_hf_pipeline,
)
from .schema import (
    STANDARD_EMOTIONS,
    Emotion,
    get_all_emotions,
    is_valid_emotion,
    normalize_emotion,
    parse_emotion,
)

__all__ = [
    'DEFAULT_MODEL_ID',
    'DetectionState',
    'EmotionResult',
    'HFEmotionDetector',
    'ModelStatus',
    'load_hf_pipeline',
    'STANDARD_EMOTIONS',
    'Emotion',
    'get_all_emotions',
    'is_valid_emotion',
    'normalize_emotion',
    'parse_emotion',
]
