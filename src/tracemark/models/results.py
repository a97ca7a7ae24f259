"""Highlight results handed back to the annotation layer."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tracemark.models.geometry import Segment

HIGHLIGHT_COLOR = "#ffd166"


class HighlightStatus(Enum):
    """Outcome of a highlight request."""
    DETECTED = "detected"
    NO_SIGNAL = "no_signal"                      # nothing line-like near the click
    BACKEND_UNAVAILABLE = "backend_unavailable"  # vision worker failed to start
    TIMEOUT = "timeout"                          # vision worker never replied
    SUPERSEDED = "superseded"                    # a newer request replaced this one
    FAILED = "failed"                            # unexpected internal error


@dataclass(frozen=True)
class HighlightResult:
    """
    A detected line ready to be turned into an annotation.

    Attributes:
        segment: Axis-aligned highlight segment
        stroke_width: Width to render the highlight with
        line_width: Estimated thickness of the traced stroke in pixels
        source: "scan" for the fast path, "vision" for the fallback
    """
    segment: Segment
    stroke_width: int
    line_width: int
    source: str = "scan"

    def to_annotation(self, color: str = HIGHLIGHT_COLOR) -> dict:
        """Annotation record in the shape the annotation layer stores."""
        s = self.segment
        return {
            "type": "highlight",
            "points": [{"x": s.x1, "y": s.y1}, {"x": s.x2, "y": s.y2}],
            "props": {"color": color, "width": self.stroke_width},
        }

    def to_dict(self) -> dict:
        return {
            "segment": self.segment.to_dict(),
            "stroke_width": self.stroke_width,
            "line_width": self.line_width,
            "source": self.source,
        }


@dataclass(frozen=True)
class HighlightOutcome:
    """Single explicit outcome of the highlight pipeline."""
    status: HighlightStatus
    result: Optional[HighlightResult] = None
    message: str = ""

    @property
    def found(self) -> bool:
        return self.status is HighlightStatus.DETECTED and self.result is not None

    @classmethod
    def detected(cls, result: HighlightResult) -> "HighlightOutcome":
        return cls(HighlightStatus.DETECTED, result, "Line detected")

    @classmethod
    def no_signal(cls) -> "HighlightOutcome":
        return cls(HighlightStatus.NO_SIGNAL, None, "No line detected here")

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "message": self.message,
            "result": self.result.to_dict() if self.result else None,
        }
