"""
Módulo de instrumentación y medición de rendimiento.

Mide latencias de la carga del modelo y de cada clasificación. Las
mediciones viven solo en memoria durante la vida del proceso y cada etapa
conserva como máximo las últimas `max_samples` muestras.
"""

import threading
import time
import statistics
from collections import defaultdict, deque
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Any, Deque, Dict, Optional

DEFAULT_MAX_SAMPLES = 500


class PerformanceMetrics:
    """
    Registro de latencias por etapa (carga del modelo, detección emocional).

    Es seguro usarlo desde varios hilos: la carga del modelo ocurre en
    segundo plano mientras Flask atiende peticiones.
    """

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES):
        self.max_samples = max_samples
        self._samples: Dict[str, Deque[Dict[str, Any]]] = defaultdict(
            lambda: deque(maxlen=self.max_samples)
        )
        self._lock = threading.Lock()

    @contextmanager
    def measure(self, stage_name: str, metadata: Optional[Dict] = None):
        """
        Context manager para medir el tiempo de ejecución de una etapa.

        La medición se registra aunque el bloque lance una excepción.

        Args:
            stage_name: Nombre de la etapa ('model_load', 'emotion_detection')
            metadata: Información adicional que se guarda con la muestra

        Yields:
            Diccionario donde se guardará la duración medida

        Example:
            with metrics.measure('emotion_detection') as timing:
                result = detector.classify(image)
            print(f"Tardó {timing['duration']} segundos")
        """
        start_time = time.perf_counter()
        sample = {'stage': stage_name}
        if metadata:
            sample.update(metadata)

        try:
            yield sample
        finally:
            sample['duration'] = time.perf_counter() - start_time
            sample['timestamp'] = datetime.now().isoformat()
            with self._lock:
                self._samples[stage_name].append(sample)

    def measure_function(self, stage_name: str):
        """Decorador equivalente a envolver la función en measure()."""
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                with self.measure(stage_name):
                    return func(*args, **kwargs)
            return wrapper
        return decorator

    def last_duration(self, stage_name: str) -> Optional[float]:
        """Duración (segundos) de la última muestra de una etapa."""
        with self._lock:
            samples = self._samples.get(stage_name)
            return samples[-1]['duration'] if samples else None

    def get_statistics(self, stage_name: Optional[str] = None) -> Dict:
        """
        Estadísticas agregadas por etapa, en segundos.

        Args:
            stage_name: Etapa concreta (None para todas)
        """
        with self._lock:
            names = [stage_name] if stage_name else list(self._samples)
            durations = {
                name: [s['duration'] for s in self._samples.get(name, ())]
                for name in names
            }

        stats = {}
        for name, times in durations.items():
            if not times:
                continue
            stats[name] = {
                'count': len(times),
                'mean': statistics.mean(times),
                'median': statistics.median(times),
                'stdev': statistics.stdev(times) if len(times) > 1 else 0.0,
                'min': min(times),
                'max': max(times),
                'last': times[-1],
            }
        return stats

    def clear(self):
        with self._lock:
            self._samples.clear()


# Instancia global para uso en la aplicación
_global_metrics = None


def get_metrics() -> PerformanceMetrics:
    """Instancia global de métricas (se crea en el primer uso)."""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = PerformanceMetrics()
    return _global_metrics


def reset_metrics():
    """Descarta la instancia global (útil en tests)."""
    global _global_metrics
    _global_metrics = None
