"""
Módulo de captura de cámara.
Proporciona el stream de la webcam y la captura de imágenes fijas.
"""

from .webcam import WebcamCapture

__all__ = ['WebcamCapture']
