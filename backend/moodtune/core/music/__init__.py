"""
Módulo de música: catálogo estático de playlists por emoción.
"""

from .playlists import PLAYLISTS, Playlist, Track, get_all_playlists, get_playlist, total_duration

__all__ = ['PLAYLISTS', 'Playlist', 'Track', 'get_all_playlists', 'get_playlist', 'total_duration']
