"""
Módulo de normalización de emociones.

Este módulo define el conjunto cerrado de emociones del sistema y la tabla
de sinónimos que convierte las etiquetas libres de un clasificador externo
(por ejemplo "joy", "anger", "fear") en un miembro de ese conjunto.

La normalización es una función total: cualquier etiqueta desconocida se
convierte en Emotion.NEUTRAL sin lanzar excepciones.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class Emotion(str, Enum):
    """Conjunto fijo de emociones que dirige la selección de playlist."""

    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    NEUTRAL = "neutral"
    FEARFUL = "fearful"
    DISGUSTED = "disgusted"


# Orden de presentación (coincide con el catálogo de playlists)
STANDARD_EMOTIONS: List[Emotion] = list(Emotion)

# Mapeo de etiquetas del clasificador a emociones del sistema
# Las claves se comparan en minúsculas y de forma exacta
LABEL_TO_EMOTION: Dict[str, Emotion] = {
    "happy": Emotion.HAPPY,
    "joy": Emotion.HAPPY,
    "sad": Emotion.SAD,
    "sadness": Emotion.SAD,
    "angry": Emotion.ANGRY,
    "anger": Emotion.ANGRY,
    "surprise": Emotion.SURPRISED,
    "surprised": Emotion.SURPRISED,
    "neutral": Emotion.NEUTRAL,
    "fear": Emotion.FEARFUL,
    "fearful": Emotion.FEARFUL,
    "disgust": Emotion.DISGUSTED,
    "disgusted": Emotion.DISGUSTED,
}


def normalize_emotion(label: Optional[str]) -> Emotion:
    """
    Normaliza una etiqueta del clasificador a una emoción del sistema.

    La comparación es exacta e insensible a mayúsculas. Si la etiqueta no
    está en la tabla de sinónimos, devuelve Emotion.NEUTRAL.

    Args:
        label (str): Etiqueta cruda devuelta por el clasificador

    Returns:
        Emotion: Emoción normalizada

    Examples:
        >>> normalize_emotion("Joy")
        <Emotion.HAPPY: 'happy'>

        >>> normalize_emotion("fear")
        <Emotion.FEARFUL: 'fearful'>

        >>> normalize_emotion("contempt")
        <Emotion.NEUTRAL: 'neutral'>
    """
    if not label or not isinstance(label, str):
        return Emotion.NEUTRAL

    emotion = LABEL_TO_EMOTION.get(label.lower())
    if emotion is None:
        logger.debug(f"Etiqueta no reconocida '{label}', usando neutral")
        return Emotion.NEUTRAL

    return emotion


def parse_emotion(value: str) -> Emotion:
    """
    Convierte un nombre de emoción enviado por el usuario en Emotion.

    A diferencia de normalize_emotion, no hay valor por defecto: se usa para
    la selección manual, donde un nombre desconocido es un error del cliente.

    Raises:
        ValueError: Si el valor no es un nombre de emoción del sistema
    """
    if isinstance(value, Emotion):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Emoción inválida: {value!r}")
    try:
        return Emotion(value.lower())
    except ValueError:
        valid = [e.value for e in STANDARD_EMOTIONS]
        raise ValueError(f"Emoción inválida: {value!r}. Valores válidos: {valid}")


def is_valid_emotion(value: str) -> bool:
    """
    Verifica si un valor es el nombre de una emoción del sistema.

    Examples:
        >>> is_valid_emotion("sad")
        True

        >>> is_valid_emotion("joy")
        False
    """
    return value in {e.value for e in STANDARD_EMOTIONS}


def get_all_emotions() -> List[Emotion]:
    """Obtiene la lista completa de emociones del sistema."""
    return STANDARD_EMOTIONS.copy()
