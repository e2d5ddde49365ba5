"""
Módulo de captura de webcam usando OpenCV.

Este módulo proporciona una clase para adquirir y liberar el stream de la
cámara y para convertir el frame actual en una imagen JPEG fija, que es lo
que recibe el detector de emociones.
"""

import logging
from typing import Callable, Dict, Optional

import cv2

from ..errors import CameraUnavailable, NotStreaming

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480
DEFAULT_JPEG_QUALITY = 80


class WebcamCapture:
    """
    Clase para gestionar el stream de la webcam.

    Encapsula cv2.VideoCapture para abrir, capturar y liberar la cámara de
    manera controlada. La resolución 640x480 se pide en modo best-effort:
    si el dispositivo no la soporta se usa la que ofrezca.

    Attributes:
        camera_index (int): Índice de la cámara (0 = cámara por defecto/frontal)
        width (int): Ancho solicitado
        height (int): Alto solicitado
        jpeg_quality (int): Calidad JPEG de las capturas (0-100)
        cap (cv2.VideoCapture): Objeto de captura de OpenCV

    Example:
        >>> with WebcamCapture() as camera:
        ...     jpeg_bytes = camera.capture_frame()
    """

    def __init__(
        self,
        camera_index: int = 0,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        video_capture_factory: Optional[Callable[[int], object]] = None,
    ):
        """
        Inicializa la clase WebcamCapture sin abrir el dispositivo.

        Args:
            camera_index (int): Índice de la cámara a utilizar (default: 0)
            width (int): Ancho solicitado en píxeles (default: 640)
            height (int): Alto solicitado en píxeles (default: 480)
            jpeg_quality (int): Calidad JPEG de la imagen capturada (default: 80)
            video_capture_factory (callable): Constructor del objeto de captura.
                                             Por defecto cv2.VideoCapture.
        """
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.jpeg_quality = jpeg_quality
        self._factory = video_capture_factory or cv2.VideoCapture
        self.cap = None

    @property
    def is_streaming(self) -> bool:
        return self.cap is not None

    def start(self) -> None:
        """
        Abre el stream de la webcam. Si ya está abierto no hace nada.

        Raises:
            CameraUnavailable: Si no hay dispositivo, el permiso fue denegado
                               o la cámara está en uso
        """
        if self.is_streaming:
            return

        cap = None
        try:
            cap = self._factory(self.camera_index)
            if not cap.isOpened():
                raise CameraUnavailable(
                    f"Could not open camera {self.camera_index}. "
                    "Check that it is connected and not in use by another application."
                )

            # Resolución solicitada (best-effort)
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        except CameraUnavailable:
            self._release_handle(cap)
            logger.warning(f"Cámara {self.camera_index} no disponible")
            raise
        except Exception as e:
            self._release_handle(cap)
            logger.error(f"Error al iniciar la cámara {self.camera_index}: {e}")
            raise CameraUnavailable() from e

        self.cap = cap
        logger.info(f"Cámara {self.camera_index} abierta correctamente")

    def stop(self) -> None:
        """
        Libera el dispositivo. Es idempotente.

        Este método debe llamarse siempre al finalizar el uso de la cámara
        para evitar que quede bloqueada.
        """
        if getattr(self, "cap", None) is None:
            return
        cap, self.cap = self.cap, None
        self._release_handle(cap)
        logger.info("Recursos de cámara liberados")

    def capture_frame(self) -> bytes:
        """
        Captura el frame actual como imagen JPEG.

        Returns:
            bytes: Imagen JPEG codificada con la calidad configurada

        Raises:
            NotStreaming: Si la cámara no está abierta o se perdió el stream
        """
        if self.cap is None:
            raise NotStreaming()

        success, frame = self.cap.read()
        if not success or frame is None:
            logger.warning("No se pudo leer el frame de la cámara")
            raise NotStreaming("Could not read a frame from the camera. Please try again.")

        ok, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            raise NotStreaming("Could not encode the captured frame.")

        return buffer.tobytes()

    def get_properties(self) -> Dict[str, int]:
        """
        Obtiene las propiedades actuales de la cámara.

        Returns:
            dict: Ancho, alto y fps reales del dispositivo (vacío si está cerrado)
        """
        if self.cap is None:
            return {}

        return {
            'width': int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            'height': int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            'fps': int(self.cap.get(cv2.CAP_PROP_FPS))
        }

    @staticmethod
    def _release_handle(cap) -> None:
        if cap is None:
            return
        try:
            cap.release()
        except Exception as e:
            logger.warning(f"Error al liberar la cámara: {e}")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()

    def __del__(self):
        """Destructor para asegurar liberación de recursos."""
        self.stop()
