"""Local luminance profile used to classify line pixels."""

from dataclasses import dataclass

import numpy as np

from tracemark.config import HighlightTuning, DEFAULT_TUNING
from tracemark.models.raster import RasterBuffer


@dataclass(frozen=True)
class LocalLuminanceProfile:
    """
    Background tone and line polarity around a point.

    Derived fresh on every call from a window around the click, since scanned
    and rendered sheets (or different areas of one sheet) can have different
    background tone.

    Attributes:
        background: Mean luminance of the window
        prefer_dark: True when lines are darker than the background
        dark_threshold: Luminance at or below which a pixel is line-like
            (dark-on-light)
        bright_threshold: Luminance at or above which a pixel is line-like
            (light-on-dark)
    """
    background: float
    prefer_dark: bool
    dark_threshold: float
    bright_threshold: float

    @classmethod
    def from_background(cls, background: float,
                        tuning: HighlightTuning = DEFAULT_TUNING) -> "LocalLuminanceProfile":
        offset = tuning.threshold_offset
        return cls(
            background=background,
            prefer_dark=background > tuning.polarity_split,
            dark_threshold=max(0.0, min(255.0, background - offset)),
            bright_threshold=max(0.0, min(255.0, background + offset)),
        )

    @classmethod
    def around(cls, buffer: RasterBuffer, x: int, y: int, radius: int,
               tuning: HighlightTuning = DEFAULT_TUNING) -> "LocalLuminanceProfile":
        """Build the profile from the window of ``radius`` around (x, y)."""
        w, h = buffer.size
        x0, x1 = max(0, x - radius), min(w - 1, x + radius)
        y0, y1 = max(0, y - radius), min(h - 1, y + radius)
        lum = buffer.luminance_region(x0, y0, x1, y1)
        background = float(lum.mean()) if lum.size else 0.0
        return cls.from_background(background, tuning)

    def is_line(self, luminance: float) -> bool:
        """Classify a single luminance sample (truncated to an integer)."""
        level = int(luminance)
        if self.prefer_dark:
            return level <= self.dark_threshold
        return level >= self.bright_threshold

    def line_mask(self, luminance: np.ndarray) -> np.ndarray:
        """Vectorized ``is_line`` over an array of luminance samples."""
        levels = np.floor(luminance)
        if self.prefer_dark:
            return levels <= self.dark_threshold
        return levels >= self.bright_threshold
