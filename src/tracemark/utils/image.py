"""Image loading and overlay helpers for the command line tool."""

from pathlib import Path
from typing import Tuple

import cv2
import numpy as np

from tracemark.models import HighlightResult, HIGHLIGHT_COLOR


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    """Convert '#rrggbb' to an OpenCV BGR tuple."""
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #rrggbb color, got {color!r}")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def load_image(path) -> np.ndarray:
    """
    Load an image from disk with OpenCV.

    Raises:
        FileNotFoundError: If the file is missing or cannot be decoded
    """
    image = cv2.imread(str(Path(path)), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    return image


def draw_highlight(image: np.ndarray,
                   result: HighlightResult,
                   color: str = HIGHLIGHT_COLOR,
                   alpha: float = 0.6) -> np.ndarray:
    """
    Draw a translucent highlight stroke over a copy of a BGR image.

    Args:
        image: Source image (BGR)
        result: Detected highlight
        color: Stroke color as '#rrggbb'
        alpha: Opacity of the stroke

    Returns:
        New BGR image with the highlight blended in
    """
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    overlay = image.copy()
    s = result.segment
    cv2.line(overlay, (s.x1, s.y1), (s.x2, s.y2), hex_to_bgr(color),
             max(1, result.stroke_width), cv2.LINE_AA)
    return cv2.addWeighted(overlay, alpha, image, 1 - alpha, 0)


def save_image(path, image: np.ndarray) -> None:
    """
    Write an image to disk with OpenCV.

    Raises:
        OSError: If OpenCV cannot encode or write the file
    """
    if not cv2.imwrite(str(Path(path)), image):
        raise OSError(f"Could not write image: {path}")
