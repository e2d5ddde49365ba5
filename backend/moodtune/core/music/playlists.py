"""
Catálogo estático de playlists por emoción.

Cada emoción del sistema tiene exactamente una playlist con una etiqueta,
una descripción, pistas de visualización (color e icono) y una lista fija
de pistas. El catálogo es de solo lectura.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Tuple

from ..emotion.schema import Emotion


@dataclass(frozen=True)
class Track:
    """Pista del catálogo. La duración se guarda como texto 'm:ss'."""

    id: str
    title: str
    artist: str
    duration: str
    cover_url: str

    def duration_seconds(self) -> int:
        minutes, seconds = self.duration.split(':')
        return int(minutes) * 60 + int(seconds)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class Playlist:
    """Playlist asociada a una emoción."""

    emotion: Emotion
    label: str
    description: str
    color: str
    icon: str
    tracks: Tuple[Track, ...]

    def to_dict(self) -> Dict:
        return {
            'emotion': self.emotion.value,
            'label': self.label,
            'description': self.description,
            'color': self.color,
            'icon': self.icon,
            'track_count': len(self.tracks),
            'total_duration': total_duration(self.tracks),
            'tracks': [track.to_dict() for track in self.tracks],
        }


def _cover(photo_id: str) -> str:
    return f"https://images.unsplash.com/photo-{photo_id}?w=300&h=300&fit=crop"


PLAYLISTS: Tuple[Playlist, ...] = (
    Playlist(
        emotion=Emotion.HAPPY,
        label='Happy',
        description='Upbeat and joyful tracks to match your mood',
        color='hsl(45, 100%, 60%)',
        icon='😊',
        tracks=(
            Track('h1', 'Walking on Sunshine', 'Katrina & The Waves', '3:58', _cover('1506157786151-b8491531f063')),
            Track('h2', 'Happy', 'Pharrell Williams', '3:53', _cover('1493225457124-a3eb161ffa5f')),
            Track('h3', 'Good Vibrations', 'The Beach Boys', '3:36', _cover('1459749411175-04bf5292ceea')),
            Track('h4', 'Dancing Queen', 'ABBA', '3:51', _cover('1470225620780-dba8ba36b745')),
        ),
    ),
    Playlist(
        emotion=Emotion.SAD,
        label='Melancholy',
        description='Soothing melodies for reflective moments',
        color='hsl(220, 80%, 55%)',
        icon='😢',
        tracks=(
            Track('s1', 'Someone Like You', 'Adele', '4:45', _cover('1514320291840-2e0a9bf2a9ae')),
            Track('s2', 'Fix You', 'Coldplay', '4:54', _cover('1511671782779-c97d3d27a1d4')),
            Track('s3', 'Hurt', 'Johnny Cash', '3:38', _cover('1484755560615-a4c64e778a6c')),
            Track('s4', 'Mad World', 'Gary Jules', '3:08', _cover('1446057032654-9d8885db76c6')),
        ),
    ),
    Playlist(
        emotion=Emotion.ANGRY,
        label='Intense',
        description='Powerful tracks to channel your energy',
        color='hsl(0, 90%, 55%)',
        icon='😠',
        tracks=(
            Track('a1', 'Break Stuff', 'Limp Bizkit', '2:46', _cover('1598387993441-a364f854c3e1')),
            Track('a2', 'Killing in the Name', 'Rage Against the Machine', '5:13', _cover('1571330735066-03aaa9429d89')),
            Track('a3', 'Bodies', 'Drowning Pool', '3:24', _cover('1508700115892-45ecd05ae2ad')),
            Track('a4', 'Chop Suey!', 'System of a Down', '3:30', _cover('1493225457124-a3eb161ffa5f')),
        ),
    ),
    Playlist(
        emotion=Emotion.SURPRISED,
        label='Energetic',
        description='Exciting beats that match your surprise',
        color='hsl(35, 100%, 55%)',
        icon='😮',
        tracks=(
            Track('su1', 'Pump It', 'Black Eyed Peas', '3:33', _cover('1571330735066-03aaa9429d89')),
            Track('su2', 'Levels', 'Avicii', '3:19', _cover('1470225620780-dba8ba36b745')),
            Track('su3', 'Titanium', 'David Guetta ft. Sia', '4:05', _cover('1493225457124-a3eb161ffa5f')),
            Track('su4', 'Wake Me Up', 'Avicii', '4:07', _cover('1459749411175-04bf5292ceea')),
        ),
    ),
    Playlist(
        emotion=Emotion.NEUTRAL,
        label='Chill',
        description='Relaxed vibes for your calm state',
        color='hsl(240, 10%, 50%)',
        icon='😐',
        tracks=(
            Track('n1', 'Weightless', 'Marconi Union', '8:09', _cover('1459749411175-04bf5292ceea')),
            Track('n2', 'Intro', 'The xx', '2:07', _cover('1511671782779-c97d3d27a1d4')),
            Track('n3', 'Sunset Lover', 'Petit Biscuit', '3:29', _cover('1514320291840-2e0a9bf2a9ae')),
            Track('n4', 'Breathe', 'Télépopmusik', '4:37', _cover('1484755560615-a4c64e778a6c')),
        ),
    ),
    Playlist(
        emotion=Emotion.FEARFUL,
        label='Atmospheric',
        description='Ambient sounds for uncertain moments',
        color='hsl(270, 70%, 50%)',
        icon='😨',
        tracks=(
            Track('f1', 'Teardrop', 'Massive Attack', '5:29', _cover('1446057032654-9d8885db76c6')),
            Track('f2', 'Portishead', 'Wandering Star', '4:52', _cover('1508700115892-45ecd05ae2ad')),
            Track('f3', 'Angel', 'Massive Attack', '6:18', _cover('1598387993441-a364f854c3e1')),
            Track('f4', 'Only Time', 'Enya', '3:38', _cover('1506157786151-b8491531f063')),
        ),
    ),
    Playlist(
        emotion=Emotion.DISGUSTED,
        label='Grunge',
        description='Raw and authentic sounds',
        color='hsl(120, 50%, 40%)',
        icon='🤢',
        tracks=(
            Track('d1', 'Smells Like Teen Spirit', 'Nirvana', '5:01', _cover('1571330735066-03aaa9429d89')),
            Track('d2', 'Black Hole Sun', 'Soundgarden', '5:18', _cover('1493225457124-a3eb161ffa5f')),
            Track('d3', 'Creep', 'Radiohead', '3:56', _cover('1470225620780-dba8ba36b745')),
            Track('d4', 'Zombie', 'The Cranberries', '5:06', _cover('1459749411175-04bf5292ceea')),
        ),
    ),
)

_PLAYLISTS_BY_EMOTION: Dict[Emotion, Playlist] = {p.emotion: p for p in PLAYLISTS}


def get_playlist(emotion: Emotion) -> Playlist:
    """
    Obtiene la playlist de una emoción.

    Args:
        emotion (Emotion): Emoción normalizada

    Returns:
        Playlist: Playlist de la emoción, o la de neutral si no existe

    Example:
        >>> get_playlist(Emotion.SAD).label
        'Melancholy'
    """
    return _PLAYLISTS_BY_EMOTION.get(emotion, _PLAYLISTS_BY_EMOTION[Emotion.NEUTRAL])


def get_all_playlists() -> Tuple[Playlist, ...]:
    return PLAYLISTS


def total_duration(tracks: Iterable[Track]) -> str:
    """
    Duración total de un conjunto de pistas en formato legible.

    Examples:
        Cuatro pistas de 4 minutos -> '16 min'
        Una hora y cinco minutos   -> '1h 5m'
    """
    total_seconds = sum(track.duration_seconds() for track in tracks)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes} min"
