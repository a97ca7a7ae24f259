"""Utility functions for tracemark.

Image helpers live in ``tracemark.utils.image`` and are imported from there
directly, so that importing the engine does not load OpenCV.
"""

from tracemark.utils.geometry import round_half_up, clamp
from tracemark.utils.profiling import (
    PerformanceProfiler,
    timed,
    profile_block,
    profiler,
)

__all__ = [
    # Geometry
    "round_half_up",
    "clamp",
    # Profiling
    "PerformanceProfiler",
    "timed",
    "profile_block",
    "profiler",
]
