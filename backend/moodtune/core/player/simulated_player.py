"""
Reproductor simulado de la vista de playlist.

No hay decodificación de audio: el progreso avanza con un tick periódico
mientras is_playing es True y, al completar una pista, pasa a la siguiente.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..music.playlists import Playlist, Track
from ..utils import clamp

logger = logging.getLogger(__name__)

# Incremento de progreso por tick (%) y periodo del tick (segundos)
PROGRESS_STEP = 0.5
TICK_INTERVAL = 0.5

DEFAULT_VOLUME = 70


@dataclass
class PlayerState:
    current_track_index: int = 0
    is_playing: bool = False
    progress: float = 0.0
    volume: float = DEFAULT_VOLUME
    is_liked: bool = False


class SimulatedPlayer:
    """
    Estado del reproductor para una playlist.

    La navegación entre pistas es cíclica en ambos sentidos. Volumen y
    "me gusta" son independientes del resto del estado.

    Example:
        >>> player = SimulatedPlayer(get_playlist(Emotion.SAD))
        >>> player.toggle_play()
        >>> player.tick()
        >>> player.state.progress
        0.5
    """

    def __init__(self, playlist: Optional[Playlist] = None, progress_step: float = PROGRESS_STEP):
        self.playlist = playlist
        self.progress_step = progress_step
        self.state = PlayerState()

    @property
    def track_count(self) -> int:
        return len(self.playlist.tracks) if self.playlist else 0

    @property
    def current_track(self) -> Optional[Track]:
        if not self.track_count:
            return None
        return self.playlist.tracks[self.state.current_track_index]

    def load_playlist(self, playlist: Playlist) -> None:
        """Carga una playlist y reinicia la posición (pista 0, progreso 0, en pausa)."""
        self.playlist = playlist
        self.state.current_track_index = 0
        self.state.progress = 0.0
        self.state.is_playing = False

    def next_track(self) -> None:
        if not self.track_count:
            return
        self.state.current_track_index = (self.state.current_track_index + 1) % self.track_count
        self.state.progress = 0.0

    def previous_track(self) -> None:
        if not self.track_count:
            return
        self.state.current_track_index = (self.state.current_track_index - 1) % self.track_count
        self.state.progress = 0.0

    def select_track(self, index: int) -> None:
        """
        Salta a una pista concreta y reinicia su progreso.

        Raises:
            IndexError: Si el índice no existe en la playlist
        """
        if not 0 <= index < self.track_count:
            raise IndexError(f"Pista fuera de rango: {index} (playlist de {self.track_count})")
        self.state.current_track_index = index
        self.state.progress = 0.0

    def play(self) -> None:
        if self.track_count:
            self.state.is_playing = True

    def pause(self) -> None:
        self.state.is_playing = False

    def toggle_play(self) -> None:
        if self.state.is_playing:
            self.pause()
        else:
            self.play()

    def tick(self) -> None:
        """
        Avanza el progreso simulado un paso.

        Solo actúa mientras se reproduce. Si la pista ya llegó al 100%, pasa
        a la siguiente (cíclicamente) con el progreso a 0.
        """
        if not self.state.is_playing or not self.track_count:
            return

        if self.state.progress >= 100:
            self.next_track()
            logger.debug(f"Pista completada, siguiente: {self.state.current_track_index}")
            return

        self.state.progress = min(100.0, self.state.progress + self.progress_step)

    def advance(self, ticks: int) -> None:
        """
        Aplica `ticks` ticks consecutivos, con el mismo resultado que llamar
        a tick() ese número de veces pero en tiempo constante.
        """
        if ticks <= 0 or not self.state.is_playing or not self.track_count:
            return

        # Ticks hasta llegar al 100% y uno más para pasar de pista
        to_next = math.ceil((100 - self.state.progress) / self.progress_step) + 1
        if ticks < to_next:
            self.state.progress = min(100.0, self.state.progress + ticks * self.progress_step)
            return

        ticks -= to_next
        per_track = math.ceil(100 / self.progress_step) + 1
        skipped, ticks = divmod(ticks, per_track)
        self.state.current_track_index = (
            self.state.current_track_index + 1 + skipped
        ) % self.track_count
        self.state.progress = min(100.0, ticks * self.progress_step)

    def set_volume(self, volume: float) -> None:
        self.state.volume = clamp(float(volume), 0.0, 100.0)

    def toggle_like(self) -> None:
        self.state.is_liked = not self.state.is_liked

    def to_dict(self) -> Dict[str, Any]:
        track = self.current_track
        return {
            'current_track_index': self.state.current_track_index,
            'current_track': track.to_dict() if track else None,
            'is_playing': self.state.is_playing,
            'progress': self.state.progress,
            'volume': self.state.volume,
            'is_liked': self.state.is_liked,
        }
