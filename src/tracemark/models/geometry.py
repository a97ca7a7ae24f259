"""Geometric primitives in raster coordinate space."""

import math
from dataclasses import dataclass
from enum import Enum


class Axis(Enum):
    """Orientation of an axis-aligned segment."""
    HORIZONTAL = "h"
    VERTICAL = "v"

    @classmethod
    def of(cls, x1: float, y1: float, x2: float, y2: float) -> "Axis":
        """Classify a free segment by its dominant direction."""
        if abs(x2 - x1) >= abs(y2 - y1):
            return cls.HORIZONTAL
        return cls.VERTICAL


@dataclass(frozen=True)
class Point:
    """A position in raster coordinates (not screen coordinates)."""
    x: float
    y: float


@dataclass(frozen=True)
class Segment:
    """
    An axis-aligned segment.

    The endpoints differ only along the coordinate of ``axis``: a horizontal
    segment has y1 == y2, a vertical one x1 == x2.
    """
    x1: int
    y1: int
    x2: int
    y2: int
    axis: Axis

    def __post_init__(self):
        if self.axis is Axis.HORIZONTAL and self.y1 != self.y2:
            raise ValueError(f"Horizontal segment must have y1 == y2, got {self.y1} != {self.y2}")
        if self.axis is Axis.VERTICAL and self.x1 != self.x2:
            raise ValueError(f"Vertical segment must have x1 == x2, got {self.x1} != {self.x2}")

    @property
    def length(self) -> int:
        if self.axis is Axis.HORIZONTAL:
            return abs(self.x2 - self.x1)
        return abs(self.y2 - self.y1)

    def normalized(self) -> "Segment":
        """Return the segment with its endpoints in increasing order."""
        if (self.x1, self.y1) <= (self.x2, self.y2):
            return self
        return Segment(self.x2, self.y2, self.x1, self.y1, self.axis)

    def to_dict(self) -> dict:
        return {
            "x1": self.x1, "y1": self.y1,
            "x2": self.x2, "y2": self.y2,
            "axis": self.axis.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Segment":
        return cls(
            x1=int(data["x1"]), y1=int(data["y1"]),
            x2=int(data["x2"]), y2=int(data["y2"]),
            axis=Axis(data["axis"]),
        )


@dataclass(frozen=True)
class LineSegment:
    """A free line segment, as reported by the Hough transform."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def axis(self) -> Axis:
        return Axis.of(self.x1, self.y1, self.x2, self.y2)

    def distance_to(self, point: Point) -> float:
        """Distance from a point to the closest point on the segment."""
        vx, vy = self.x2 - self.x1, self.y2 - self.y1
        wx, wy = point.x - self.x1, point.y - self.y1
        c1 = vx * wx + vy * wy
        if c1 <= 0:
            return math.hypot(point.x - self.x1, point.y - self.y1)
        c2 = vx * vx + vy * vy
        if c2 <= c1:
            return math.hypot(point.x - self.x2, point.y - self.y2)
        t = c1 / c2
        return math.hypot(point.x - (self.x1 + t * vx), point.y - (self.y1 + t * vy))

    def to_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}

    @classmethod
    def from_dict(cls, data: dict) -> "LineSegment":
        return cls(x1=data["x1"], y1=data["y1"], x2=data["x2"], y2=data["y2"])
