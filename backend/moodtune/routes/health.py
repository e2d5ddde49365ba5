"""
Blueprint para endpoints de salud y monitoreo de la API.
"""

from flask import Blueprint, jsonify

from ..core.utils.metrics import get_metrics

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Endpoint de verificación de estado del servicio.
    
    Returns:
        JSON con status "ok" y código HTTP 200
    
    Example:
        GET /health
        
        Response:
        {
            "status": "ok"
        }
    """
    return jsonify({'status': 'ok'}), 200


@health_bp.route('/metrics', methods=['GET'])
def metrics_summary():
    """
    Estadísticas de latencia por etapa (segundos).

    Example:
        GET /metrics

        Response:
        {
            "emotion_detection": {"count": 3, "mean": 0.21, ...}
        }
    """
    return jsonify(get_metrics().get_statistics()), 200
