"""
Controlador de estado de la sesión: vistas, captura y reproductor.

Este módulo implementa la máquina de estados de la aplicación:

    detect  --(detección correcta + 1.5 s | selección manual)-->  playlist
    playlist  --(volver)-->  detect

Integra los componentes del sistema:
1. Captura de imagen (WebcamCapture) o imagen enviada por el cliente
2. Clasificación (HFEmotionDetector) y normalización de la emoción
3. Selección de playlist (catálogo estático)
4. Reproductor simulado con progreso por ticks

El tiempo se evalúa de forma perezosa con un reloj monotónico inyectable:
la transición automática y los ticks del reproductor se aplican al consultar
o modificar el estado, sin hilos de temporización.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..emotion.hf_detector import EmotionResult
from ..emotion.schema import Emotion, parse_emotion
from ..errors import CameraUnavailable, CaptureInProgress, MoodTuneError, ModelNotReady, NotStreaming
from ..music.playlists import Playlist, get_playlist
from ..player.simulated_player import SimulatedPlayer, TICK_INTERVAL
from ..utils.metrics import get_metrics

logger = logging.getLogger(__name__)

# Retardo entre una detección correcta y el cambio a la vista de playlist
AUTO_TRANSITION_DELAY = 1.5

MANUAL_CONFIDENCE = 100.0


class View(str, Enum):
    DETECT = "detect"
    PLAYLIST = "playlist"


class CaptureView(str, Enum):
    """Lo que muestra el panel de cámara, por orden de prioridad."""

    LOADING = "loading"
    CAPTURED = "captured"
    STREAMING = "streaming"
    PLACEHOLDER = "placeholder"


class MoodSession:
    """
    Estado completo de una sesión de usuario.

    Todo el estado compartido pertenece a esta clase y solo cambia en
    respuesta a eventos discretos (acción del usuario, paso del tiempo,
    fin de una clasificación). Las clasificaciones se ejecutan fuera del
    lock; un contador de generación descarta resultados que llegan después
    de que el usuario haya navegado.

    Attributes:
        detector: Instancia de HFEmotionDetector
        camera: Instancia de WebcamCapture
        view (View): Vista actual
        detected_emotion (Emotion | None): Emoción detectada o elegida
        confidence (float): Confianza en [0, 100] (100 en selección manual)
        player (SimulatedPlayer): Reproductor de la playlist actual

    Example:
        >>> session = MoodSession(detector, camera)
        >>> session.start_camera()
        >>> session.capture_and_analyze()
        >>> time.sleep(1.5)
        >>> session.snapshot()['view']
        'playlist'
    """

    def __init__(
        self,
        detector,
        camera,
        clock: Callable[[], float] = time.monotonic,
        transition_delay: float = AUTO_TRANSITION_DELAY,
        tick_interval: float = TICK_INTERVAL,
    ):
        self.detector = detector
        self.camera = camera
        self._clock = clock
        self.transition_delay = transition_delay
        self.tick_interval = tick_interval
        self._lock = threading.RLock()

        self.view = View.DETECT
        self.detected_emotion: Optional[Emotion] = None
        self.confidence = 0.0
        self.result: Optional[EmotionResult] = None
        self.captured_image: Optional[bytes] = None
        self.error: Optional[str] = None
        self.player = SimulatedPlayer()

        self._analyzing = False
        self._generation = 0
        self._transition_at: Optional[float] = None
        self._last_tick_at: Optional[float] = None

    @property
    def playlist(self) -> Optional[Playlist]:
        return self.player.playlist

    # ------------------------------------------------------------------
    # Tiempo
    # ------------------------------------------------------------------

    def _sync(self) -> None:
        """Aplica la transición pendiente y los ticks vencidos."""
        now = self._clock()

        if self._transition_at is not None and now >= self._transition_at:
            self._transition_at = None
            self._enter_playlist_view()

        if self.player.state.is_playing and self._last_tick_at is not None:
            ticks = int((now - self._last_tick_at) // self.tick_interval)
            self.player.advance(ticks)
            self._last_tick_at += ticks * self.tick_interval

    def _invalidate_pending(self) -> None:
        """Descarta clasificaciones en vuelo y la transición programada."""
        self._generation += 1
        self._analyzing = False
        self._transition_at = None

    def _enter_playlist_view(self) -> None:
        self.view = View.PLAYLIST
        # Fuera de la vista de detección la cámara no se usa
        self.camera.stop()

    def _load_playlist(self, emotion: Emotion) -> None:
        self.player.load_playlist(get_playlist(emotion))
        self._last_tick_at = None

    # ------------------------------------------------------------------
    # Cámara
    # ------------------------------------------------------------------

    @property
    def capture_view(self) -> CaptureView:
        if self.detector.is_loading:
            return CaptureView.LOADING
        if self.captured_image is not None:
            return CaptureView.CAPTURED
        if self.camera.is_streaming:
            return CaptureView.STREAMING
        return CaptureView.PLACEHOLDER

    def start_camera(self) -> None:
        """
        Activa la cámara. Si falla, el estado previo no cambia.

        Raises:
            CameraUnavailable: Si no se puede acceder a la cámara
        """
        with self._lock:
            self._sync()
            try:
                self.camera.start()
            except CameraUnavailable as e:
                self.error = e.user_message
                raise
            self.captured_image = None
            self.error = None

    def stop_camera(self) -> None:
        with self._lock:
            self._sync()
            self.camera.stop()

    def retake(self) -> None:
        """
        Descarta la captura y el resultado y vuelve a activar la cámara.

        Raises:
            CameraUnavailable: Si no se puede reactivar la cámara
        """
        with self._lock:
            self._sync()
            self._invalidate_pending()
            self.captured_image = None
            self.result = None
            self.detected_emotion = None
            self.confidence = 0.0
            self.error = None
            self.detector.clear_result()
        self.start_camera()

    # ------------------------------------------------------------------
    # Detección
    # ------------------------------------------------------------------

    def _ensure_can_analyze(self) -> None:
        if self._analyzing:
            raise CaptureInProgress()
        if not self.detector.is_ready:
            error = ModelNotReady()
            self.error = error.user_message
            raise error

    def capture_and_analyze(self) -> Optional[EmotionResult]:
        """
        Captura el frame actual de la cámara y detecta la emoción.

        Returns:
            EmotionResult | None: Resultado aplicado, o None si llegó tarde
                                  (el usuario navegó durante el análisis)

        Raises:
            CaptureInProgress: Si ya hay un análisis en curso
            ModelNotReady: Si el modelo no está cargado
            NotStreaming: Si la cámara no está activa
            DetectionFailed: Si la clasificación falla
        """
        with self._lock:
            self._sync()
            self._ensure_can_analyze()
            try:
                image = self.camera.capture_frame()
            except NotStreaming as e:
                self.error = e.user_message
                raise
            # Se muestra la imagen fija; el stream se reactiva con retake()
            self.camera.stop()
            token = self._begin_analysis(image)

        return self._finish_analysis(token, image)

    def analyze_image(self, image: bytes) -> Optional[EmotionResult]:
        """
        Detecta la emoción en una imagen capturada por el cliente.

        Mismo flujo y errores que capture_and_analyze, sin usar la cámara.
        """
        with self._lock:
            self._sync()
            self._ensure_can_analyze()
            token = self._begin_analysis(image)

        return self._finish_analysis(token, image)

    def _begin_analysis(self, image: bytes) -> int:
        self._generation += 1
        self._analyzing = True
        self._transition_at = None
        self.captured_image = image
        self.error = None
        return self._generation

    def _finish_analysis(self, token: int, image: bytes) -> Optional[EmotionResult]:
        metrics = get_metrics()
        try:
            with metrics.measure('emotion_detection'):
                result = self.detector.classify(image)
        except Exception as e:
            with self._lock:
                if token != self._generation:
                    logger.info("Error de una detección obsoleta descartado")
                    return None
                self._analyzing = False
                self.error = getattr(e, 'user_message', MoodTuneError.default_message)
            raise

        with self._lock:
            if token != self._generation:
                logger.info(f"Resultado tardío descartado ({result.emotion.value})")
                return None

            self._analyzing = False
            self.result = result
            self.detected_emotion = result.emotion
            self.confidence = result.confidence
            self._load_playlist(result.emotion)
            self._transition_at = self._clock() + self.transition_delay
            logger.info(
                f"Emoción {result.emotion.value} ({result.confidence:.1f}%), "
                f"playlist en {self.transition_delay}s"
            )
        return result

    def select_emotion(self, emotion) -> Playlist:
        """
        Selección manual de emoción: confianza 100 y cambio inmediato de vista.

        Args:
            emotion: Emotion o su nombre ("sad", "happy", ...)

        Raises:
            ValueError: Si el nombre no es una emoción del sistema
        """
        emotion = parse_emotion(emotion)
        with self._lock:
            self._sync()
            self._invalidate_pending()
            # La elección manual sustituye a cualquier detección previa
            self.result = None
            self.detector.clear_result()
            self.detected_emotion = emotion
            self.confidence = MANUAL_CONFIDENCE
            self.error = None
            self._load_playlist(emotion)
            self._enter_playlist_view()
            logger.info(f"Emoción seleccionada manualmente: {emotion.value}")
            return self.playlist

    def back(self) -> None:
        """Vuelve a la vista de detección y olvida la emoción actual."""
        with self._lock:
            self._sync()
            self._invalidate_pending()
            self.view = View.DETECT
            self.detected_emotion = None
            self.confidence = 0.0
            self.result = None
            self.captured_image = None
            self.error = None
            self.player.pause()
            self.player.playlist = None
            self._last_tick_at = None
            self.camera.stop()
            self.detector.clear_result()

    # ------------------------------------------------------------------
    # Reproductor
    # ------------------------------------------------------------------

    def toggle_play(self) -> None:
        with self._lock:
            self._sync()
            self.player.toggle_play()
            self._last_tick_at = self._clock() if self.player.state.is_playing else None

    def next_track(self) -> None:
        with self._lock:
            self._sync()
            self.player.next_track()

    def previous_track(self) -> None:
        with self._lock:
            self._sync()
            self.player.previous_track()

    def select_track(self, index: int) -> None:
        """
        Raises:
            IndexError: Si la pista no existe en la playlist actual
        """
        with self._lock:
            self._sync()
            self.player.select_track(index)

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._sync()
            self.player.set_volume(volume)

    def toggle_like(self) -> None:
        with self._lock:
            self._sync()
            self.player.toggle_like()

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Estado serializable completo para el cliente."""
        with self._lock:
            self._sync()
            playlist = self.playlist
            return {
                'view': self.view.value,
                'detected_emotion': self.detected_emotion.value if self.detected_emotion else None,
                'confidence': self.confidence,
                'manual_selection': self.detected_emotion is not None and self.result is None,
                'transition_pending': self._transition_at is not None,
                'capture': {
                    'view': self.capture_view.value,
                    'is_streaming': self.camera.is_streaming,
                    'has_image': self.captured_image is not None,
                    'analyzing': self._analyzing,
                },
                'model': self.detector.get_state(),
                'result': self.result.to_dict() if self.result else None,
                'playlist': playlist.to_dict() if playlist else None,
                'player': self.player.to_dict() if playlist else None,
                'error': self.error,
            }

    def close(self) -> None:
        """Libera la cámara y detiene la reproducción."""
        with self._lock:
            self._invalidate_pending()
            self.player.pause()
            self.camera.stop()
