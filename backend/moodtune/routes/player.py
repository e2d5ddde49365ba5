"""
Blueprint para el estado de la sesión, el catálogo y el reproductor simulado.
"""

from flask import Blueprint, jsonify, request

from ..core.emotion.schema import parse_emotion
from ..core.music.playlists import get_all_playlists, get_playlist
from .common import bad_request, get_session, internal_error_response

player_bp = Blueprint('player', __name__)


@player_bp.route('/state', methods=['GET'])
def session_state():
    """
    Estado completo de la sesión (vista, captura, modelo, playlist, reproductor).

    Los clientes lo consultan periódicamente: la transición automática a la
    playlist y el progreso del reproductor se aplican al leerlo.
    """
    return jsonify(get_session().snapshot()), 200


@player_bp.route('/playlists', methods=['GET'])
def list_playlists():
    return jsonify([playlist.to_dict() for playlist in get_all_playlists()]), 200


@player_bp.route('/playlists/<emotion>', methods=['GET'])
def playlist_detail(emotion):
    try:
        playlist = get_playlist(parse_emotion(emotion))
    except ValueError as e:
        return jsonify({'error': 'Emoción no encontrada', 'message': str(e)}), 404
    return jsonify(playlist.to_dict()), 200


def _player_action(endpoint: str, action):
    try:
        session = get_session()
        action(session)
        return jsonify(session.snapshot()), 200
    except Exception as e:
        return internal_error_response(endpoint, e, 'Error en el reproductor')


@player_bp.route('/player/toggle', methods=['POST'])
def toggle_play():
    return _player_action('/player/toggle', lambda s: s.toggle_play())


@player_bp.route('/player/next', methods=['POST'])
def next_track():
    return _player_action('/player/next', lambda s: s.next_track())


@player_bp.route('/player/previous', methods=['POST'])
def previous_track():
    return _player_action('/player/previous', lambda s: s.previous_track())


@player_bp.route('/player/like', methods=['POST'])
def toggle_like():
    return _player_action('/player/like', lambda s: s.toggle_like())


@player_bp.route('/player/track/<int:index>', methods=['POST'])
def select_track(index):
    """
    Selecciona una pista de la playlist actual.

    Error cases:
        - 404: La pista no existe en la playlist actual
    """
    session = get_session()
    try:
        session.select_track(index)
    except IndexError as e:
        return jsonify({'error': 'Pista no encontrada', 'message': str(e)}), 404
    return jsonify(session.snapshot()), 200


@player_bp.route('/player/volume', methods=['POST'])
def set_volume():
    """
    JSON Body:
        volume (float): Volumen en [0, 100] (se recorta al rango)
    """
    body_data = request.get_json(silent=True) or {}

    try:
        volume = float(body_data['volume'])
    except (KeyError, TypeError, ValueError):
        return bad_request('Formato inválido', 'volume debe ser un número entre 0 y 100')

    return _player_action('/player/volume', lambda s: s.set_volume(volume))
