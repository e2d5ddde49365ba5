"""
Utilidades compartidas por los blueprints.

Traducen los errores de dominio a respuestas JSON y dan acceso a la
sesión y al detector guardados en la configuración de la app.
"""

from flask import current_app, jsonify

from ..core.errors import (
    CameraUnavailable,
    CaptureInProgress,
    DetectionFailed,
    ModelLoadFailed,
    ModelNotReady,
    MoodTuneError,
    NotStreaming,
)

# Código HTTP por tipo de error de dominio
ERROR_STATUS = {
    ModelNotReady: 503,
    ModelLoadFailed: 503,
    CameraUnavailable: 503,
    NotStreaming: 409,
    CaptureInProgress: 409,
    DetectionFailed: 422,
}


def get_session():
    """Sesión única del proceso (MoodSession)."""
    return current_app.config['MOOD_SESSION']


def get_detector():
    return current_app.config['DETECTOR']


def domain_error_response(error: MoodTuneError):
    """
    Respuesta JSON para un error de dominio.

    Returns:
        Tupla (json, status) con 'error' (tipo) y 'message' (texto para el usuario)
    """
    status = ERROR_STATUS.get(type(error), 400)
    return jsonify({
        'error': type(error).__name__,
        'message': error.user_message
    }), status


def bad_request(error: str, message: str):
    return jsonify({'error': error, 'message': message}), 400


def internal_error_response(endpoint: str, error: Exception, title: str):
    """Registra un error inesperado y responde 500 sin detalles internos."""
    current_app.logger.error(f"Error en {endpoint}: {str(error)}", exc_info=True)

    # En producción, no exponer detalles internos
    error_message = str(error) if current_app.debug else 'Error interno del servidor'
    return jsonify({
        'error': title,
        'message': error_message
    }), 500
