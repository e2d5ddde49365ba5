"""
Tipos de error del sistema.

Todos los errores de dominio heredan de MoodTuneError (a su vez RuntimeError,
como los errores de cámara del backend) y llevan un mensaje apto para
mostrarse al usuario. La capa HTTP los traduce a respuestas JSON; ninguno
debe terminar el proceso.
"""


class MoodTuneError(RuntimeError):
    """
    Error base del sistema.

    Attributes:
        user_message (str): Mensaje legible para mostrar en la interfaz
    """

    default_message = "Unexpected error. Please try again."

    def __init__(self, user_message: str = None):
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class ModelLoadFailed(MoodTuneError):
    """El modelo de clasificación no se pudo cargar."""

    default_message = "Failed to load emotion detection model. Please try again."


class ModelNotReady(MoodTuneError):
    """Se pidió una clasificación antes de que el modelo estuviera listo."""

    default_message = "Model not loaded. Please wait for the model to load."


class CameraUnavailable(MoodTuneError):
    """No hay cámara, el permiso fue denegado o el dispositivo está ocupado."""

    default_message = "Could not access the camera. Check that it is connected and not in use."


class NotStreaming(MoodTuneError):
    """Se intentó capturar un frame sin un stream de cámara activo."""

    default_message = "The camera is not streaming. Start the camera first."


class DetectionFailed(MoodTuneError):
    """La clasificación falló o no devolvió predicciones utilizables."""

    default_message = "Failed to detect emotion. Please try again."


class CaptureInProgress(MoodTuneError):
    """Ya hay un análisis en curso; la captura está deshabilitada."""

    default_message = "An analysis is already in progress."
