"""Line tracing and highlight engine."""

from tracemark.core.errors import HighlightError, VisionBackendError, VisionTimeoutError
from tracemark.core.scanner import StripeScanner
from tracemark.core.walker import (
    ExtensionWalker,
    WalkResult,
    WalkThresholds,
    CrossSectionStrip,
    walk_direction,
)
from tracemark.core.worker import VisionWorker, roi_bounds
from tracemark.core.highlight import HighlightEngine

__all__ = [
    "HighlightError",
    "VisionBackendError",
    "VisionTimeoutError",
    "StripeScanner",
    "ExtensionWalker",
    "WalkResult",
    "WalkThresholds",
    "CrossSectionStrip",
    "walk_direction",
    "VisionWorker",
    "roi_bounds",
    "HighlightEngine",
]
