"""
Classical line detection for the highlight fallback.

Edge detection followed by a probabilistic Hough transform over a small
region of interest. Imported only inside the vision worker process, which is
where OpenCV gets loaded.
"""

import math
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from tracemark.config import HighlightTuning, DEFAULT_TUNING
from tracemark.models import LineSegment, Point


def hough_candidates(rgba: np.ndarray,
                     tuning: HighlightTuning = DEFAULT_TUNING) -> np.ndarray:
    """
    Run Canny + HoughLinesP over an RGBA region.

    Returns:
        (N, 4) int array of x1, y1, x2, y2 in region coordinates
    """
    h, w = rgba.shape[:2]
    gray = cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)
    edges = cv2.Canny(gray, tuning.canny_low, tuning.canny_high, apertureSize=3)
    min_length = max(tuning.hough_min_length, int(max(w, h) * tuning.hough_length_fraction))
    lines = cv2.HoughLinesP(
        edges,
        1,
        np.pi / 180,
        tuning.hough_threshold,
        minLineLength=min_length,
        maxLineGap=tuning.hough_max_gap,
    )
    if lines is None:
        return np.zeros((0, 4), dtype=np.int32)
    return lines.reshape(-1, 4)


def select_nearest(candidates: Iterable[LineSegment], click: Point,
                   tuning: HighlightTuning = DEFAULT_TUNING) -> Optional[LineSegment]:
    """
    Pick the axis-aligned candidate closest to the click.

    Candidates shorter than ``min_candidate_extent`` in both directions, or
    leaning more than ``axis_tolerance`` pixels off horizontal and vertical,
    are ignored. The winner must lie within ``max_click_distance``.
    """
    best = None
    best_distance = math.inf
    for candidate in candidates:
        dx = abs(candidate.x2 - candidate.x1)
        dy = abs(candidate.y2 - candidate.y1)
        if dx < tuning.min_candidate_extent and dy < tuning.min_candidate_extent:
            continue
        if not (dx <= tuning.axis_tolerance or dy <= tuning.axis_tolerance):
            continue
        distance = candidate.distance_to(click)
        if distance < best_distance:
            best, best_distance = candidate, distance

    if best is None or best_distance > tuning.max_click_distance:
        return None
    return best


def detect_line_in_roi(rgba: np.ndarray, origin: Tuple[int, int], click: Point,
                       tuning: HighlightTuning = DEFAULT_TUNING) -> Optional[LineSegment]:
    """
    Find the line nearest the click inside a region of interest.

    Args:
        rgba: Region pixels (H x W x 4, RGBA)
        origin: (x, y) of the region's top-left corner in raster coordinates
        click: Click position in raster coordinates

    Returns:
        The selected line in raster coordinates, or None
    """
    ox, oy = origin
    candidates = (
        LineSegment(int(x1) + ox, int(y1) + oy, int(x2) + ox, int(y2) + oy)
        for x1, y1, x2, y2 in hough_candidates(rgba, tuning)
    )
    return select_nearest(candidates, click, tuning)
