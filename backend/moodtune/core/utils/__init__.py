"""
Módulo de utilidades comunes del sistema.

Contiene funciones matemáticas y la instrumentación de rendimiento
que se usan en distintas partes del backend.
"""

from .math import clamp, to_percent
from .metrics import PerformanceMetrics, get_metrics, reset_metrics

__all__ = ['clamp', 'to_percent', 'PerformanceMetrics', 'get_metrics', 'reset_metrics']
