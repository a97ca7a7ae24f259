#!/usr/bin/env python
"""
tracemark Performance Benchmark Suite

Measures the highlight stages on synthetic drawings and generates a report.

Usage:
    python -m benchmarks.run_benchmarks
    python -m benchmarks.run_benchmarks --image path/to/drawing.png --clicks 412,188 90,640
    python -m benchmarks.run_benchmarks --vision --output report.json
"""

import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from tracemark.utils.profiling import profiler, profile_block


def synthetic_page():
    """1650x1275 page (11x8.5 inches at 150 DPI) with a grid of traces."""
    import numpy as np

    img = np.full((1275, 1650, 3), 255, dtype=np.uint8)
    for row in range(100, 1200, 150):
        img[row:row + 6, 50:1600] = 0
    for col in range(100, 1600, 200):
        img[50:1225, col:col + 6] = 0
    # Thin wires only the fallback picks up
    for row in range(175, 1200, 150):
        img[row:row + 2, 150:1550] = 0
    return img


def benchmark_imports():
    """Benchmark module import times."""
    print("Benchmarking imports...")

    with profile_block("import_numpy"):
        import numpy as np

    with profile_block("import_tracemark_core"):
        from tracemark.core import HighlightEngine

    with profile_block("import_cv2"):
        import cv2


def benchmark_fast_path(image, clicks):
    """Benchmark scan + extend on clicks that land on thick traces."""
    print("Benchmarking fast path...")

    from tracemark.core import HighlightEngine
    from tracemark.models import Point, RasterBuffer

    buffer = RasterBuffer.from_bgr(image)
    engine = HighlightEngine(vision=False)
    found = 0
    for x, y in clicks:
        found += engine.highlight(buffer, Point(x, y)).found
    print(f"  {found}/{len(clicks)} clicks traced")


def benchmark_vision(image, clicks):
    """Benchmark worker startup and fallback detection."""
    print("Benchmarking vision fallback...")

    from tracemark.core import HighlightEngine
    from tracemark.models import Point, RasterBuffer

    buffer = RasterBuffer.from_bgr(image)
    with HighlightEngine() as engine:
        engine.vision.ensure_ready()
        found = 0
        for x, y in clicks:
            found += engine.highlight(buffer, Point(x, y)).found
    print(f"  {found}/{len(clicks)} clicks traced")


def parse_click(text):
    x, y = text.split(",")
    return float(x), float(y)


def main():
    parser = argparse.ArgumentParser(description="tracemark Performance Benchmarks")
    parser.add_argument("--image", type=str, help="Path to a drawing to benchmark on")
    parser.add_argument("--clicks", type=parse_click, nargs="*",
                        help="Click positions as x,y (with --image)")
    parser.add_argument("--vision", action="store_true",
                        help="Also benchmark the vision worker")
    parser.add_argument("--output", type=str, help="Path to save benchmark report (JSON)")
    args = parser.parse_args()

    print("=" * 60)
    print("tracemark Performance Benchmark Suite")
    print("=" * 60)
    print()

    benchmark_imports()
    print()

    if args.image:
        from tracemark.utils.image import load_image
        image = load_image(args.image)
        fast_clicks = args.clicks or [(image.shape[1] / 2, image.shape[0] / 2)]
        thin_clicks = fast_clicks
    else:
        image = synthetic_page()
        fast_clicks = [(200 + 200 * i, 102) for i in range(7)] + \
                      [(102, 175 + 150 * i) for i in range(7)]
        thin_clicks = [(250 + 200 * i, 176) for i in range(6)]

    benchmark_fast_path(image, fast_clicks)
    print()

    if args.vision:
        benchmark_vision(image, thin_clicks)
        print()

    # Print summary
    profiler.print_summary()

    # Save report if requested
    if args.output:
        output_path = Path(args.output)
        profiler.save_report(output_path)
        print(f"\nReport saved to: {output_path}")


if __name__ == "__main__":
    main()
