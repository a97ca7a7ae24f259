"""
tracemark

Click-to-highlight line tracing for rasterized schematics and technical
drawings.

Usage:
    python -m tracemark drawing.png 412 188
    python -m tracemark drawing.png 412 188 --output highlighted.png --json

Or:
    from tracemark import HighlightEngine, RasterBuffer, Point
    with HighlightEngine() as engine:
        outcome = engine.highlight(RasterBuffer.from_bgr(image), Point(412, 188))
"""

import argparse
import json
import logging
import sys

__version__ = "1.0.0"
__author__ = "tracemark Team"

from tracemark.config import HighlightOptions, HighlightTuning, load_options
from tracemark.core import HighlightEngine
from tracemark.models import Point, RasterBuffer, HighlightOutcome, HighlightStatus


def main(argv=None):
    """Trace the line at a pixel of an image file and report the highlight."""
    parser = argparse.ArgumentParser(
        description="tracemark - highlight the drawn line at a point of an image"
    )
    parser.add_argument("image", help="Path to the raster image")
    parser.add_argument("x", type=float, help="Click x in image pixels")
    parser.add_argument("y", type=float, help="Click y in image pixels")
    parser.add_argument(
        "--options",
        type=str,
        help="JSON file with saved highlight options (default: ~/.tracemark.json)"
    )
    parser.add_argument("--width", type=int, help="Highlight stroke width")
    parser.add_argument(
        "--no-stop",
        action="store_true",
        help="Do not stop at junctions"
    )
    parser.add_argument("--junction", type=int, help="Junction sensitivity (0-100)")
    parser.add_argument("--extend", type=int, help="Extension bias (0-100)")
    parser.add_argument(
        "--no-vision",
        action="store_true",
        help="Disable the OpenCV fallback detector"
    )
    parser.add_argument("--output", "-o", type=str, help="Write an image with the highlight drawn")
    parser.add_argument("--json", action="store_true", help="Print the outcome as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log every stage")
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tracemark {__version__}"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    from tracemark.utils.image import load_image, draw_highlight, save_image

    options = load_options(args.options)
    if args.width is not None:
        options.stroke_width_hint = args.width
    if args.no_stop:
        options.stop_at_junctions = False
    if args.junction is not None:
        options.junction_sensitivity = args.junction
    if args.extend is not None:
        options.extension_bias = args.extend
    options = HighlightOptions(**vars(options))

    try:
        image = load_image(args.image)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    with HighlightEngine(vision=False if args.no_vision else None) as engine:
        outcome = engine.highlight(RasterBuffer.from_bgr(image), Point(args.x, args.y), options)

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.found:
        s = outcome.result.segment
        print(f"{outcome.result.source}: ({s.x1}, {s.y1}) -> ({s.x2}, {s.y2}) "
              f"width {outcome.result.stroke_width}")
    else:
        print(outcome.message)

    if args.output and outcome.found:
        save_image(args.output, draw_highlight(image, outcome.result))

    return 0 if outcome.found else 1


__all__ = [
    "HighlightEngine",
    "HighlightOptions",
    "HighlightTuning",
    "HighlightOutcome",
    "HighlightStatus",
    "Point",
    "RasterBuffer",
    "main",
    "__version__",
]
