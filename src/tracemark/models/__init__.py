"""Data models for the highlight engine."""

from tracemark.models.geometry import Axis, Point, Segment, LineSegment
from tracemark.models.raster import RasterBuffer
from tracemark.models.profile import LocalLuminanceProfile
from tracemark.models.results import (
    HighlightStatus,
    HighlightResult,
    HighlightOutcome,
    HIGHLIGHT_COLOR,
)

__all__ = [
    "Axis",
    "Point",
    "Segment",
    "LineSegment",
    "RasterBuffer",
    "LocalLuminanceProfile",
    "HighlightStatus",
    "HighlightResult",
    "HighlightOutcome",
    "HIGHLIGHT_COLOR",
]
