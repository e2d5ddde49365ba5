"""
Utilidades matemáticas comunes del sistema.
"""


def clamp(x: float, lo: float, hi: float) -> float:
    """
    Acota x al intervalo [lo, hi].

    Se usa para volumen, progreso de carga y confianza.

        >>> clamp(150, 0, 100)
        100
    """
    return max(lo, min(hi, x))


def to_percent(score: float) -> float:
    """
    Convierte un score en [0, 1] a porcentaje en [0, 100] con 2 decimales.
    
    Examples:
        >>> to_percent(0.87)
        87.0
        >>> to_percent(1.3)
        100.0
    """
    return round(clamp(float(score) * 100.0, 0.0, 100.0), 2)
