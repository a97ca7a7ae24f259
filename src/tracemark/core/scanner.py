"""Fast stripe-based line detection around a click."""

import logging
from typing import Optional

import numpy as np

from tracemark.config import HighlightTuning, DEFAULT_TUNING
from tracemark.models import Axis, Point, Segment, RasterBuffer, LocalLuminanceProfile
from tracemark.utils.profiling import timed

logger = logging.getLogger("tracemark.scanner")


def reach_along(qualifies: np.ndarray, origin: int, direction: int,
                gap_tolerance: int) -> int:
    """
    Walk from ``origin`` in ``direction`` over a row of qualifying flags.

    Up to ``gap_tolerance`` consecutive non-qualifying cells are skipped;
    the walk stops on the next one.

    Returns:
        Index of the last qualifying cell reached (``origin`` if none)
    """
    last = len(qualifies) - 1
    reached = probe = origin
    misses = 0
    while (probe > 0) if direction < 0 else (probe < last):
        probe += direction
        if qualifies[probe]:
            reached = probe
            misses = 0
        else:
            misses += 1
            if misses > gap_tolerance:
                break
    return reached


class StripeScanner:
    """
    Single-pass line finder for clean axis-aligned strokes.

    Looks only at a local window around the click, so its cost does not
    depend on the full image size. Used as the first attempt before the
    vision fallback.
    """

    def __init__(self, tuning: HighlightTuning = DEFAULT_TUNING):
        self.tuning = tuning

    @timed("stripe_scan")
    def scan(self, buffer: RasterBuffer, click: Point) -> Optional[Segment]:
        """
        Find the axis-aligned stroke passing through the click.

        Args:
            buffer: Source raster
            click: Click position in raster coordinates

        Returns:
            Segment at the click's row (horizontal) or column (vertical),
            or None if no stroke is close enough to the click
        """
        t = self.tuning
        w, h = buffer.size
        cx, cy = int(click.x), int(click.y)
        if not buffer.contains(cx, cy):
            return None

        win = t.scan_window(w, h)
        x_left, x_right = max(0, cx - win), min(w - 1, cx + win)
        y_top, y_bottom = max(0, cy - win), min(h - 1, cy + win)

        window = buffer.luminance_region(x_left, y_top, x_right, y_bottom)
        profile = LocalLuminanceProfile.from_background(float(window.mean()), t)
        line = profile.line_mask(window)

        # Window-relative click position
        lx, ly = cx - x_left, cy - y_top

        r = t.seed_radius
        seed = line[max(0, ly - r):ly + r + 1, max(0, lx - r):lx + r + 1]
        if int(seed.sum()) < t.seed_min_hits:
            logger.debug(f"scan: no stroke under click ({cx}, {cy})")
            return None

        need = max(1, t.stripe - 1)
        k = t.stripe_thickness

        # Horizontal: count line pixels per column across a band of rows
        band = line[max(0, ly - k):ly + k + 1, :]
        is_h = band.sum(axis=0) >= need
        left = x_left + reach_along(is_h, lx, -1, t.gap_tolerance)
        right = x_left + reach_along(is_h, lx, 1, t.gap_tolerance)
        len_h = right - left

        # Vertical: same test per row across a band of columns
        band = line[:, max(0, lx - k):lx + k + 1]
        is_v = band.sum(axis=1) >= need
        top = y_top + reach_along(is_v, ly, -1, t.gap_tolerance)
        bottom = y_top + reach_along(is_v, ly, 1, t.gap_tolerance)
        len_v = bottom - top

        if max(len_h, len_v) < t.scan_min_length:
            return None
        if len_h >= len_v:
            return Segment(left, cy, right, cy, Axis.HORIZONTAL)
        return Segment(cx, top, cx, bottom, Axis.VERTICAL)
