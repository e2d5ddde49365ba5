"""
Aplicación principal del backend - moodtune.

Este módulo implementa la API REST Flask que expone la detección emocional
por webcam y la selección de playlists con reproductor simulado.

La API proporciona endpoints para:
- Carga del modelo de clasificación (en segundo plano, con progreso)
- Control de la cámara y captura de imagen
- Detección de emociones desde webcam o desde imagen enviada
- Selección manual de emoción y navegación entre vistas
- Reproductor simulado de la playlist
- Monitoreo de salud y latencias del servicio

IMPORTANTE: La webcam NO se abre al arrancar. Solo se activa cuando el
usuario la pide (/camera/start).
"""

import atexit
import logging

from flask import Flask
from flask_cors import CORS

from .core.camera.webcam import WebcamCapture
from .core.emotion.hf_detector import DEFAULT_MODEL_ID, HFEmotionDetector
from .core.session.controller import MoodSession
from .routes import health_bp, emotion_bp, camera_bp, player_bp

__version__ = "0.1.0"

# Configurar logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config=None):
    """
    Factory function para crear y configurar la aplicación Flask.

    Args:
        config (dict, optional): Diccionario de configuración custom.
                                Si None, usa configuración por defecto.
                                Las claves DETECTOR y CAMERA permiten
                                inyectar componentes ya construidos.

    Returns:
        Flask: Aplicación Flask configurada y lista para usar

    Example:
        >>> app = create_app({'CAMERA_INDEX': 1})
        >>> app.run(debug=True, port=5000)
    """
    app = Flask(__name__)

    # Configuración por defecto
    app.config['DEBUG'] = False
    app.config['HOST'] = '0.0.0.0'
    app.config['PORT'] = 5000
    app.config['MODEL_ID'] = DEFAULT_MODEL_ID
    app.config['CAMERA_INDEX'] = 0
    app.config['FRAME_WIDTH'] = 640
    app.config['FRAME_HEIGHT'] = 480
    app.config['JPEG_QUALITY'] = 80
    app.config['AUTOLOAD_MODEL'] = True
    app.config['INCLUDE_METRICS'] = False
    app.config['DETECTOR'] = None
    app.config['CAMERA'] = None

    # Aplicar configuración custom si se proporciona
    if config:
        app.config.update(config)

    # Habilitar CORS para permitir requests desde el frontend
    CORS(app)

    detector = app.config['DETECTOR']
    if detector is None:
        detector = HFEmotionDetector(model_id=app.config['MODEL_ID'])
        app.config['DETECTOR'] = detector

    camera = app.config['CAMERA']
    if camera is None:
        camera = WebcamCapture(
            camera_index=app.config['CAMERA_INDEX'],
            width=app.config['FRAME_WIDTH'],
            height=app.config['FRAME_HEIGHT'],
            jpeg_quality=app.config['JPEG_QUALITY']
        )
        app.config['CAMERA'] = camera

    session = MoodSession(detector=detector, camera=camera)
    app.config['MOOD_SESSION'] = session

    # Registrar blueprints
    app.register_blueprint(health_bp)
    app.register_blueprint(emotion_bp)
    app.register_blueprint(camera_bp)
    app.register_blueprint(player_bp)

    logger.info("Blueprints registrados")

    # El modelo se carga en segundo plano; /model/status informa el progreso
    if app.config['AUTOLOAD_MODEL']:
        detector.load_model_in_background()
        logger.info(f"Cargando modelo {detector.model_id} en segundo plano")

    # Liberar la cámara al cerrar el proceso
    def cleanup():
        """Libera recursos cuando la aplicación se cierra."""
        try:
            session.close()
            logger.info("Sesión cerrada y cámara liberada")
        except Exception as e:
            logger.error(f"Error al cerrar la sesión: {e}")

    atexit.register(cleanup)
    app.config['CLEANUP'] = cleanup

    return app


def main():
    """
    Función principal para ejecutar el servidor de desarrollo.

    Para producción, usar un servidor WSGI como Gunicorn (con un solo
    proceso: la sesión y la cámara viven en memoria).

    Example:
        $ moodtune-server
    """
    print("=" * 70)
    print(f"Backend moodtune - Playlists según tu emoción v{__version__}")
    print("=" * 70)

    # Crear aplicación
    app = create_app()

    # Información sobre endpoints disponibles
    print("\nEndpoints disponibles:")
    print("  GET  /health                - Verificación de estado")
    print("  GET  /state                 - Estado completo de la sesión")
    print("  GET  /model/status          - Progreso de carga del modelo")
    print("  POST /camera/start          - Activar la webcam")
    print("  POST /emotion               - Capturar y detectar emoción")
    print("  POST /emotion-from-frame    - Detectar emoción desde imagen enviada")
    print("  POST /emotion/select        - Elegir emoción manualmente")
    print("  POST /player/toggle         - Reproducir / pausar")
    print("\n" + "=" * 70)
    print(f"Servidor iniciando en http://{app.config['HOST']}:{app.config['PORT']}")
    print("NOTA: La webcam solo se activa al usar /camera/start")
    print("=" * 70 + "\n")

    # Ejecutar servidor de desarrollo
    app.run(
        host=app.config['HOST'],
        port=app.config['PORT'],
        debug=app.config['DEBUG']
    )


if __name__ == "__main__":
    main()
