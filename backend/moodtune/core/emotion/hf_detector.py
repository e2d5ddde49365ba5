"""
Módulo de detección emocional usando un pipeline de Hugging Face.

Este módulo envuelve un pipeline "image-classification" de transformers con
un modelo preentrenado de expresiones faciales. Se encarga de:
- Cargar el modelo una sola vez, informando progreso monotónico 0-100
- Clasificar una imagen y devolver la emoción dominante con su confianza
- Mantener el estado de detección (listo, progreso, último error/resultado)

Modelo por defecto: https://huggingface.co/dima806/facial_emotions_image_detection
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .schema import Emotion, normalize_emotion
from ..errors import DetectionFailed, ModelLoadFailed, ModelNotReady
from ..utils import clamp, to_percent
from ..utils.metrics import get_metrics

DEFAULT_MODEL_ID = "dima806/facial_emotions_image_detection"

NO_EMOTION_MESSAGE = "No emotion detected. Please try again with a clearer image."

# Archivos del repositorio necesarios para construir el pipeline
_MODEL_FILE_SUFFIXES = ('.json', '.safetensors', '.bin', '.txt')

# Lazy imports (solo se cargan cuando se necesitan)
_transformers = None
_huggingface_hub = None

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
ModelLoader = Callable[[str, ProgressCallback], Any]


def _lazy_import_deps():
    """Importa dependencias de manera lazy para evitar overhead al inicio."""
    global _transformers, _huggingface_hub

    if _transformers is None:
        try:
            import transformers
            _transformers = transformers
        except ImportError as e:
            raise RuntimeError(
                "transformers no está instalado. "
                "Ejecuta: pip install transformers torch"
            ) from e

    if _huggingface_hub is None:
        try:
            import huggingface_hub
            _huggingface_hub = huggingface_hub
        except ImportError as e:
            raise RuntimeError(
                "huggingface_hub no está instalado. "
                "Ejecuta: pip install huggingface_hub"
            ) from e

    return _transformers, _huggingface_hub


def _select_model_files(files: List[str]) -> List[str]:
    """
    Filtra los archivos del repositorio que necesita el pipeline.

    Si hay pesos en safetensors se descartan los .bin equivalentes.
    """
    selected = [f for f in files if '/' not in f and f.endswith(_MODEL_FILE_SUFFIXES)]
    if any(f.endswith('.safetensors') for f in selected):
        selected = [f for f in selected if not f.endswith('.bin')]
    return sorted(selected)


def load_hf_pipeline(model_id: str, on_progress: ProgressCallback):
    """
    Descarga el modelo archivo a archivo y construye el pipeline.

    El progreso se informa como porcentaje de archivos descargados,
    tras cada descarga.

    Args:
        model_id: ID del repositorio en Hugging Face o ruta local
        on_progress: Callback que recibe el progreso en [0, 100]

    Returns:
        Pipeline "image-classification" de transformers
    """
    transformers, hf_hub = _lazy_import_deps()

    model_path = Path(model_id)
    if model_path.is_dir():
        # Modelo local: no hay nada que descargar
        on_progress(100)
        return transformers.pipeline("image-classification", model=str(model_path))

    files = _select_model_files(hf_hub.list_repo_files(model_id))
    if not files:
        raise RuntimeError(f"El repositorio {model_id} no contiene archivos de modelo")

    logger.info(f"Descargando {len(files)} archivo(s) de {model_id}")
    on_progress(0)

    local_dir = None
    for index, filename in enumerate(files, start=1):
        downloaded_path = hf_hub.hf_hub_download(repo_id=model_id, filename=filename)
        local_dir = Path(downloaded_path).parent
        on_progress(index / len(files) * 100)
        logger.debug(f"  ✓ {filename} ({index}/{len(files)})")

    return transformers.pipeline("image-classification", model=str(local_dir))


class ModelStatus(str, Enum):
    """Estados del ciclo de vida del modelo."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ClassificationResult:
    """Predicción cruda del clasificador: etiqueta y score en [0, 1]."""

    label: str
    score: float


@dataclass(frozen=True)
class EmotionResult:
    """
    Resultado de una detección.

    Attributes:
        emotion: Emoción dominante normalizada
        confidence: Confianza de la emoción dominante en [0, 100]
        all_emotions: Todas las predicciones mapeadas (emoción, confianza)
    """

    emotion: Emotion
    confidence: float
    all_emotions: Tuple[Tuple[Emotion, float], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'emotion': self.emotion.value,
            'confidence': self.confidence,
            'all_emotions': [
                {'emotion': emotion.value, 'confidence': confidence}
                for emotion, confidence in self.all_emotions
            ],
        }


@dataclass
class DetectionState:
    """Estado observable del detector."""

    status: ModelStatus = ModelStatus.UNLOADED
    loading_progress: float = 0.0
    last_error: Optional[str] = None
    last_result: Optional[EmotionResult] = None

    @property
    def model_ready(self) -> bool:
        return self.status == ModelStatus.READY

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'model_ready': self.model_ready,
            'loading_progress': self.loading_progress,
            'error': self.last_error,
            'result': self.last_result.to_dict() if self.last_result else None,
        }


def _to_pil_image(image) -> Image.Image:
    """
    Convierte la entrada soportada a imagen PIL RGB.

    Acepta bytes JPEG/PNG, un frame BGR de OpenCV o una imagen PIL.
    """
    if isinstance(image, Image.Image):
        return image.convert('RGB')

    if isinstance(image, (bytes, bytearray, memoryview)):
        nparr = np.frombuffer(bytes(image), np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_COLOR) if nparr.size else None
        if image is None:
            raise DetectionFailed("Invalid image format. Use JPEG or PNG.")

    if isinstance(image, np.ndarray):
        if image.ndim == 2:
            return Image.fromarray(image).convert('RGB')
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))

    raise DetectionFailed("Unsupported image type.")


def _parse_predictions(predictions) -> List[ClassificationResult]:
    """
    Valida y aplana la salida del pipeline.

    Raises:
        DetectionFailed: Si la salida está vacía o mal formada
    """
    if not predictions or not isinstance(predictions, (list, tuple)):
        raise DetectionFailed(NO_EMOTION_MESSAGE)

    # El pipeline devuelve una lista anidada si la entrada es un lote
    if isinstance(predictions[0], (list, tuple)):
        predictions = predictions[0]
        if not predictions:
            raise DetectionFailed(NO_EMOTION_MESSAGE)

    parsed = []
    for prediction in predictions:
        try:
            label = prediction['label']
            score = float(prediction['score'])
        except (KeyError, TypeError, ValueError):
            raise DetectionFailed(NO_EMOTION_MESSAGE)
        if not isinstance(label, str) or math.isnan(score):
            raise DetectionFailed(NO_EMOTION_MESSAGE)
        parsed.append(ClassificationResult(label=label, score=score))

    return parsed


class HFEmotionDetector:
    """
    Detector de emociones faciales sobre un pipeline de Hugging Face.

    El modelo se carga una sola vez (unloaded -> loading -> ready). Si la
    carga falla el detector queda en "failed" y solo un nuevo load_model()
    iniciado por el usuario vuelve a intentarlo.

    Attributes:
        model_id (str): Repositorio del modelo en Hugging Face
        state (DetectionState): Estado observable del detector

    Example:
        >>> detector = HFEmotionDetector()
        >>> detector.load_model()
        >>> result = detector.classify(jpeg_bytes)
        >>> print(result.emotion, result.confidence)
        Emotion.HAPPY 87.0
    """

    def __init__(self, model_id: str = DEFAULT_MODEL_ID, loader: Optional[ModelLoader] = None):
        """
        Inicializa el detector sin cargar el modelo.

        Args:
            model_id (str): Repositorio del modelo o ruta local
            loader (callable): Función (model_id, on_progress) -> clasificador.
                              Por defecto descarga desde Hugging Face.
        """
        self.model_id = model_id
        self._loader = loader or load_hf_pipeline
        self._classifier = None
        self._lock = threading.Lock()
        self.state = DetectionState()

    @property
    def is_ready(self) -> bool:
        return self.state.model_ready

    @property
    def is_loading(self) -> bool:
        return self.state.status == ModelStatus.LOADING

    def _report_progress(self, value: float) -> None:
        """Aplica una actualización de progreso acotada y no decreciente."""
        try:
            value = clamp(float(value), 0.0, 100.0)
        except (TypeError, ValueError):
            return
        with self._lock:
            if self.state.status == ModelStatus.LOADING:
                self.state.loading_progress = max(self.state.loading_progress, round(value))

    def begin_loading(self) -> bool:
        """
        Marca el inicio de una carga si no hay otra en curso ni modelo listo.

        Returns:
            bool: True si el llamador debe ejecutar la carga
        """
        with self._lock:
            if self.state.status in (ModelStatus.LOADING, ModelStatus.READY):
                return False
            self.state.status = ModelStatus.LOADING
            self.state.loading_progress = 0.0
            self.state.last_error = None
            return True

    def load_model(self) -> None:
        """
        Carga el modelo de clasificación (bloqueante).

        No hace nada si el modelo ya está listo o cargándose.

        Raises:
            ModelLoadFailed: Si la carga falla (el estado queda en "failed")
        """
        if not self.begin_loading():
            return
        self._run_load()

    def _run_load(self) -> None:
        logger.info(f"Cargando modelo de detección emocional: {self.model_id}")
        try:
            with get_metrics().measure('model_load', {'model_id': self.model_id}):
                classifier = self._loader(self.model_id, self._report_progress)
        except Exception as e:
            logger.error(f"Error al cargar el modelo {self.model_id}: {e}", exc_info=True)
            error = ModelLoadFailed()
            with self._lock:
                self.state.status = ModelStatus.FAILED
                self.state.last_error = error.user_message
            raise error from e

        with self._lock:
            self._classifier = classifier
            self.state.status = ModelStatus.READY
            self.state.loading_progress = 100.0
        logger.info("Modelo cargado correctamente")

    def load_model_in_background(self) -> Optional[threading.Thread]:
        """
        Lanza la carga del modelo en un hilo daemon.

        Returns:
            threading.Thread | None: Hilo lanzado, o None si no hacía falta
        """
        if not self.begin_loading():
            return None

        def _target():
            try:
                self._run_load()
            except ModelLoadFailed:
                # El error ya quedó registrado en el estado
                pass

        thread = threading.Thread(target=_target, name="model-loader", daemon=True)
        thread.start()
        return thread

    def classify(self, image) -> EmotionResult:
        """
        Clasifica la emoción dominante de una imagen.

        Args:
            image: Bytes JPEG/PNG, frame BGR (np.ndarray) o imagen PIL

        Returns:
            EmotionResult: Emoción dominante, confianza [0, 100] y todas
                           las predicciones mapeadas

        Raises:
            ModelNotReady: Si el modelo no está cargado
            DetectionFailed: Si la imagen es inválida o no hay predicciones
        """
        with self._lock:
            classifier = self._classifier
            if self.state.status != ModelStatus.READY or classifier is None:
                error = ModelNotReady()
                self.state.last_error = error.user_message
                raise error
            self.state.last_error = None

        try:
            pil_image = _to_pil_image(image)
            logger.debug("Detectando emoción...")
            try:
                predictions = classifier(pil_image)
            except Exception as e:
                logger.error(f"Error en el clasificador: {e}", exc_info=True)
                raise DetectionFailed("Failed to detect emotion. Please try again.") from e

            parsed = _parse_predictions(predictions)
        except DetectionFailed as e:
            with self._lock:
                self.state.last_error = e.user_message
            raise

        # El pipeline devuelve las predicciones ordenadas por score
        top = parsed[0]
        result = EmotionResult(
            emotion=normalize_emotion(top.label),
            confidence=to_percent(top.score),
            all_emotions=tuple(
                (normalize_emotion(p.label), to_percent(p.score)) for p in parsed
            ),
        )
        logger.info(f"Emoción detectada: {result.emotion.value} ({result.confidence:.1f}%)")

        with self._lock:
            self.state.last_result = result
        return result

    def clear_result(self) -> None:
        """Limpia el último resultado y error (al repetir la captura)."""
        with self._lock:
            self.state.last_result = None
            self.state.last_error = None

    def get_state(self) -> Dict[str, Any]:
        """Copia serializable del estado actual."""
        with self._lock:
            return self.state.to_dict()
