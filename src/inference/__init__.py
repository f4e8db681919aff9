"""
Detector adapter and inference backends.
"""

from .adapter import DetectorAdapter, DetectorNotReadyError
from .backend import InferenceBackend
from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend

__all__ = [
    "DetectorAdapter",
    "DetectorNotReadyError",
    "InferenceBackend",
    "CpuYoloConfig",
    "UltralyticsCpuBackend",
]
