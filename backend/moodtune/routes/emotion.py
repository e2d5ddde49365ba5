"""
Blueprint para endpoints relacionados con detección emocional.

Proporciona endpoints para cargar el modelo, analizar el estado emocional
del usuario (webcam del servidor o imagen enviada por el navegador),
elegir una emoción manualmente y volver a la vista de detección.
"""

from flask import Blueprint, jsonify, current_app, request

from ..core.errors import MoodTuneError
from ..core.utils.metrics import get_metrics
from .common import (
    bad_request,
    domain_error_response,
    get_detector,
    get_session,
    internal_error_response,
)

emotion_bp = Blueprint('emotion', __name__)


def _detection_response(result):
    """Construye la respuesta de una detección (resultado + estado de sesión)."""
    session = get_session()

    if result is None:
        # El usuario navegó mientras se analizaba: el resultado no se aplicó
        return jsonify({'ignored': True, 'state': session.snapshot()}), 200

    response = result.to_dict()
    response['ignored'] = False

    # Opcional: incluir tiempo de procesamiento en la respuesta (útil para debugging)
    if current_app.config.get('INCLUDE_METRICS', False):
        last_duration = get_metrics().last_duration('emotion_detection')
        if last_duration is not None:
            response['processing_time_ms'] = round(last_duration * 1000, 2)

    response['state'] = session.snapshot()
    return jsonify(response), 200


@emotion_bp.route('/model/status', methods=['GET'])
def model_status():
    """
    Estado de carga del modelo de detección.

    Example:
        GET /model/status

        Response:
        {
            "status": "loading",
            "model_ready": false,
            "loading_progress": 40,
            "error": null,
            "result": null
        }
    """
    return jsonify(get_detector().get_state()), 200


@emotion_bp.route('/model/load', methods=['POST'])
def load_model():
    """
    Inicia (o reintenta tras un fallo) la carga del modelo en segundo plano.

    Si el modelo ya está listo o cargándose no hace nada.

    Returns:
        202 con el estado del modelo
    """
    try:
        detector = get_detector()
        started = detector.load_model_in_background() is not None
        if started:
            current_app.logger.info("Carga del modelo iniciada")
        response = detector.get_state()
        response['started'] = started
        return jsonify(response), 202
    except Exception as e:
        return internal_error_response('/model/load', e, 'Error al cargar el modelo')


@emotion_bp.route('/emotion', methods=['POST'])
def detect_emotion():
    """
    Captura un frame de la webcam del servidor y detecta la emoción.

    La cámara debe estar activa (POST /camera/start). Tras una detección
    correcta la vista cambia a la playlist a los 1.5 s.

    Example:
        POST /emotion

        Response:
        {
            "emotion": "happy",
            "confidence": 87.0,
            "all_emotions": [{"emotion": "happy", "confidence": 87.0}, ...],
            "ignored": false,
            "state": {...}
        }

    Error cases:
        - 409: Cámara no activa o análisis en curso
        - 422: No se detectó emoción
        - 503: Modelo no cargado
    """
    try:
        result = get_session().capture_and_analyze()
        return _detection_response(result)
    except MoodTuneError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response('/emotion', e, 'Error al detectar emoción')


@emotion_bp.route('/emotion-from-frame', methods=['POST'])
def detect_emotion_from_frame():
    """
    Detecta la emoción en una imagen capturada por el navegador.

    Request:
        - Content-Type: multipart/form-data
        - Campo: "image" (archivo jpeg/png)

    Error cases:
        - 400: Falta el campo "image" o está vacío
        - 422: Imagen inválida o sin emoción detectable
        - 503: Modelo no cargado
    """
    try:
        # Verificar que se envió un archivo
        if 'image' not in request.files:
            return bad_request(
                'Falta el campo "image"',
                'Debes enviar una imagen en el campo "image"'
            )

        file_bytes = request.files['image'].read()

        if not file_bytes:
            return bad_request(
                'Archivo vacío',
                'El archivo enviado no contiene datos'
            )

        result = get_session().analyze_image(file_bytes)
        return _detection_response(result)
    except MoodTuneError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response('/emotion-from-frame', e, 'Error al procesar la imagen')


@emotion_bp.route('/emotion/select', methods=['POST'])
def select_emotion():
    """
    Selección manual de emoción. Cambia a la playlist inmediatamente.

    JSON Body:
        emotion (str): Nombre de la emoción ("happy", "sad", ...)

    Example:
        POST /emotion/select
        Body: {"emotion": "sad"}
    """
    body_data = request.get_json(silent=True) or {}
    if not isinstance(body_data, dict):
        return bad_request('Formato inválido', 'El cuerpo debe ser un objeto JSON')

    emotion = body_data.get('emotion')

    if not emotion:
        return bad_request('Falta el campo "emotion"', 'Debes indicar una emoción')

    try:
        get_session().select_emotion(emotion)
    except ValueError as e:
        return bad_request('Emoción inválida', str(e))
    except Exception as e:
        return internal_error_response('/emotion/select', e, 'Error al seleccionar emoción')

    return jsonify(get_session().snapshot()), 200


@emotion_bp.route('/back', methods=['POST'])
def back_to_detection():
    """Vuelve a la vista de detección y limpia la emoción detectada."""
    try:
        session = get_session()
        session.back()
        return jsonify(session.snapshot()), 200
    except Exception as e:
        return internal_error_response('/back', e, 'Error al volver a la detección')
