"""
Blueprint para el control de la cámara del servidor.

El stream solo se abre cuando el usuario lo pide y se libera al detenerlo,
al capturar una imagen o al salir de la vista de detección.
"""

from flask import Blueprint, Response, jsonify

from ..core.errors import MoodTuneError
from .common import domain_error_response, get_session, internal_error_response

camera_bp = Blueprint('camera', __name__)


@camera_bp.route('/camera/start', methods=['POST'])
def start_camera():
    """
    Activa la webcam.

    Error cases:
        - 503: Cámara no disponible (sin dispositivo o permiso denegado).
               El estado de la sesión no cambia.
    """
    try:
        session = get_session()
        session.start_camera()
        return jsonify(session.snapshot()), 200
    except MoodTuneError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response('/camera/start', e, 'Error al iniciar la cámara')


@camera_bp.route('/camera/stop', methods=['POST'])
def stop_camera():
    try:
        session = get_session()
        session.stop_camera()
        return jsonify(session.snapshot()), 200
    except Exception as e:
        return internal_error_response('/camera/stop', e, 'Error al detener la cámara')


@camera_bp.route('/camera/retake', methods=['POST'])
def retake():
    """Descarta la imagen capturada y el resultado y reactiva la cámara."""
    try:
        session = get_session()
        session.retake()
        return jsonify(session.snapshot()), 200
    except MoodTuneError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response('/camera/retake', e, 'Error al repetir la captura')


@camera_bp.route('/camera/capture', methods=['GET'])
def captured_image():
    """
    Devuelve la última imagen capturada o analizada.

    Returns:
        image/jpeg, o 404 si no hay imagen
    """
    image = get_session().captured_image
    if image is None:
        return jsonify({
            'error': 'Sin imagen',
            'message': 'No hay ninguna imagen capturada'
        }), 404
    return Response(image, mimetype='image/jpeg')
