"""
Configuration for the tracemark highlight engine.

Two layers:
- HighlightTuning: the heuristic constants shared by the scanner, the
  extension walker and the vision fallback.
- HighlightOptions: the user-facing tool options, persisted between sessions.
"""

import json
import logging
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Optional

logger = logging.getLogger("tracemark.config")

CONFIG_FILE = Path.home() / ".tracemark.json"


@dataclass(frozen=True)
class HighlightTuning:
    """
    Heuristic constants for line tracing.

    One instance is threaded through every stage so that gap tolerances,
    width ratios and window sizes are defined in a single place.
    """
    # Local luminance profile
    polarity_split: float = 140.0      # background above this => dark lines
    threshold_offset: float = 40.0

    # Stripe scanner
    scan_window_fraction: float = 0.05
    scan_window_min: int = 40
    scan_window_max: int = 140
    seed_radius: int = 2
    seed_min_hits: int = 6
    stripe_thickness: int = 3
    gap_tolerance: int = 3
    scan_min_length: int = 12

    # Extension walker
    walker_window: int = 80
    cross_reach: int = 16
    widen_ratio: float = 1.8
    widen_margin: int = 3
    shrink_ratio: float = 0.5
    min_stop_steps: int = 4
    miss_floor: int = 3
    branch_near: int = 2
    branch_reach: int = 12
    branch_min_run: int = 8
    axis_tie_margin: int = 12
    min_extent: int = 24
    extent_width_ratio: float = 6.0
    stroke_ratio: float = 2.2
    min_stroke: int = 4

    # Vision fallback
    canny_low: int = 50
    canny_high: int = 150
    hough_threshold: int = 60
    hough_min_length: int = 20
    hough_length_fraction: float = 0.25
    hough_max_gap: int = 10
    axis_tolerance: int = 2
    min_candidate_extent: int = 4
    max_click_distance: float = 12.0
    roi_fraction: float = 0.05
    roi_min_pad: int = 30
    roi_max_pad: int = 120

    # Worker
    startup_timeout: float = 30.0
    request_timeout: float = 5.0

    @property
    def stripe(self) -> int:
        """Height of the stripe band (2 * thickness + 1)."""
        return self.stripe_thickness * 2 + 1

    def scan_window(self, width: int, height: int) -> int:
        """Radius of the scanner's local window for an image size."""
        radius = int(max(width, height) * self.scan_window_fraction)
        return max(self.scan_window_min, min(self.scan_window_max, radius))

    def roi_padding(self, width: int, height: int) -> int:
        """Padding around the click for the vision region of interest."""
        pad = int(max(width, height) * self.roi_fraction)
        return max(self.roi_min_pad, min(self.roi_max_pad, pad))


DEFAULT_TUNING = HighlightTuning()


def _clamp_percent(value) -> int:
    return max(0, min(100, int(round(value))))


@dataclass
class HighlightOptions:
    """
    Highlight tool options supplied by the caller.

    Attributes:
        stroke_width_hint: Stroke width for the rendered highlight. When None
            the width suggested by the walker is used.
        stop_at_junctions: Stop the trace at junction blobs and crossing lines
        junction_sensitivity: 0..100, higher stops at shorter branches
        extension_bias: 0..100, higher tolerates longer gaps before stopping
    """
    stroke_width_hint: Optional[int] = None
    stop_at_junctions: bool = True
    junction_sensitivity: int = 60
    extension_bias: int = 50

    def __post_init__(self):
        self.junction_sensitivity = _clamp_percent(self.junction_sensitivity)
        self.extension_bias = _clamp_percent(self.extension_bias)
        if self.stroke_width_hint is not None:
            self.stroke_width_hint = max(1, int(self.stroke_width_hint))


def load_options(path: Path = None) -> HighlightOptions:
    """Load highlight options from a JSON file, falling back to defaults."""
    path = Path(path) if path else CONFIG_FILE
    try:
        if path.exists():
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError(f"expected a JSON object, got {type(data).__name__}")
                known_fields = {f.name for f in HighlightOptions.__dataclass_fields__.values()}
                filtered = {k: v for k, v in data.items() if k in known_fields}
                return HighlightOptions(**filtered)
    except (OSError, ValueError, TypeError) as e:
        logger.warning(f"Could not load highlight options from {path}: {e}")
    return HighlightOptions()


def save_options(options: HighlightOptions, path: Path = None) -> bool:
    """Save highlight options to a JSON file. Returns True on success."""
    path = Path(path) if path else CONFIG_FILE
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(asdict(options), f, indent=2)
        return True
    except OSError as e:
        logger.warning(f"Could not save highlight options to {path}: {e}")
        return False
