"""
Directional extension of a stroke from a seed point.

The walker follows a stroke along one axis, measuring the perpendicular
stroke width at each step. It stops when the stroke ends (after a tolerated
number of misses), or, when stopping at junctions is enabled, when the width
balloons into a pad or a perpendicular branch crosses the path.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from tracemark.config import HighlightOptions, HighlightTuning, DEFAULT_TUNING
from tracemark.models import Axis, Point, Segment, RasterBuffer, LocalLuminanceProfile
from tracemark.utils.geometry import round_half_up, clamp
from tracemark.utils.profiling import timed

logger = logging.getLogger("tracemark.walker")


@dataclass(frozen=True)
class WalkThresholds:
    """
    Stopping rules for one walk, derived from the seed's stroke width.

    Attributes:
        widen_stop: Cross width at which a junction pad stops the walk
        shrink_stop: Minimum cross width that still counts as on-line
        min_stop_steps: Steps walked before width/branch stops are honored
        miss_max: Consecutive off-line steps tolerated (gaps, dashes)
        branch_min_run: Perpendicular run length that counts as a branch
    """
    widen_stop: float
    shrink_stop: int
    min_stop_steps: int
    miss_max: int
    branch_min_run: int

    @classmethod
    def derive(cls, base_width: int, options: HighlightOptions,
               tuning: HighlightTuning = DEFAULT_TUNING) -> "WalkThresholds":
        bias = options.extension_bias
        if options.stop_at_junctions:
            widen_stop = max(round_half_up(base_width * tuning.widen_ratio),
                             base_width + tuning.widen_margin)
        else:
            widen_stop = math.inf
        # Sensitivity 60 keeps the nominal run; higher accepts shorter branches
        scale = 1 + (60 - options.junction_sensitivity) / 100
        branch_run = max(1, round_half_up(tuning.branch_min_run * scale))
        # A stroke thicker than the branch run must not look like its own branch
        branch_run = max(branch_run, base_width + branch_run // 2)
        return cls(
            widen_stop=widen_stop,
            shrink_stop=max(1, round_half_up(base_width * tuning.shrink_ratio)),
            min_stop_steps=max(tuning.min_stop_steps,
                               round_half_up(base_width * (1 + bias / 50))),
            miss_max=max(tuning.miss_floor, round_half_up(2 + bias / 5)),
            branch_min_run=branch_run,
        )


def _longest_runs(flags: np.ndarray, offsets: range) -> Tuple[np.ndarray, np.ndarray]:
    """
    Longest run of True down each column of ``flags``.

    Returns:
        (lengths, centers): run length per column and the offset of the
        run's center, taken from ``offsets`` (one offset per row)
    """
    length = flags.shape[1]
    run = np.zeros(length, dtype=np.int32)
    best = np.zeros(length, dtype=np.int32)
    center = np.zeros(length, dtype=np.int32)
    for row, k in zip(flags, offsets):
        run = np.where(row, run + 1, 0)
        better = run > best
        best = np.where(better, run, best)
        start = k - run + 1
        center = np.where(better, np.floor((start + k) / 2 + 0.5).astype(np.int32), center)
    return best, center


class CrossSectionStrip:
    """
    Line-like flags on every cross-section perpendicular to a walk axis.

    For a horizontal walk at row ``fixed`` the strip covers rows
    fixed-reach..fixed+reach (clamped, edge rows repeat) across every column;
    a vertical walk is the transposed case. Cross widths, their center
    offsets and branch run lengths are computed once for the whole strip.
    """

    def __init__(self, widths: np.ndarray, centers: np.ndarray, branch_runs: np.ndarray):
        self.widths = widths
        self.centers = centers
        self.branch_runs = branch_runs

    @classmethod
    def build(cls, buffer: RasterBuffer, profile: LocalLuminanceProfile,
              axis: Axis, fixed: int,
              tuning: HighlightTuning = DEFAULT_TUNING) -> "CrossSectionStrip":
        reach = tuning.cross_reach
        offsets = np.arange(-reach, reach + 1)
        w, h = buffer.size
        if axis is Axis.HORIZONTAL:
            ys = np.clip(fixed + offsets, 0, h - 1)
            lum = buffer.luminance_grid(ys, np.arange(w))
        else:
            xs = np.clip(fixed + offsets, 0, w - 1)
            lum = buffer.luminance_grid(np.arange(h), xs).T
        return cls.from_flags(profile.line_mask(lum), tuning)

    @classmethod
    def from_flags(cls, flags: np.ndarray,
                   tuning: HighlightTuning = DEFAULT_TUNING) -> "CrossSectionStrip":
        """Build from a (2 * cross_reach + 1, length) boolean array."""
        reach = tuning.cross_reach
        widths, centers = _longest_runs(flags, range(-reach, reach + 1))
        b = min(tuning.branch_reach, reach)
        branch_runs, _ = _longest_runs(flags[reach - b:reach + b + 1], range(-b, b + 1))
        return cls(widths, centers, branch_runs)

    @property
    def length(self) -> int:
        return len(self.widths)

    def cross_width(self, index: int) -> Tuple[int, int]:
        """Stroke width at ``index`` and the offset of its center."""
        return int(self.widths[index]), int(self.centers[index])

    def has_branch(self, index: int, near: int, min_run: int) -> bool:
        """True if a perpendicular run of ``min_run`` lies within ``near`` of index."""
        lo = max(0, index - near)
        return int(self.branch_runs[lo:index + near + 1].max()) >= min_run


def walk_direction(strip: CrossSectionStrip, start: int, direction: int,
                   thresholds: WalkThresholds, check_branch: bool = True,
                   branch_near: int = DEFAULT_TUNING.branch_near) -> int:
    """
    Walk along a strip from ``start`` in ``direction`` (-1 or +1).

    Returns:
        Index of the last position that was still on the stroke
    """
    last_good = pos = start
    misses = 0
    steps = 0
    while steps < strip.length:
        steps += 1
        pos += direction
        if pos < 0 or pos >= strip.length:
            break
        width = strip.widths[pos]
        if width >= thresholds.shrink_stop:
            last_good = pos
            if steps > thresholds.min_stop_steps and (
                    width >= thresholds.widen_stop
                    or (check_branch and strip.has_branch(pos, branch_near,
                                                          thresholds.branch_min_run))):
                break
            misses = 0
        else:
            misses += 1
            if misses > thresholds.miss_max:
                break
    return last_good


@dataclass(frozen=True)
class WalkResult:
    """
    Result of walking one axis.

    Attributes:
        segment: Extent reached along the axis
        line_width: Stroke thickness measured at the seed
        stroke_width: Suggested highlight stroke width
    """
    segment: Segment
    line_width: int
    stroke_width: int

    @property
    def length(self) -> int:
        return self.segment.length


class ExtensionWalker:
    """
    Extends a seed point into the full axis-aligned stroke.

    Usage:
        walker = ExtensionWalker()
        result = walker.extend(buffer, Point(120, 40), HighlightOptions())
    """

    def __init__(self, tuning: HighlightTuning = DEFAULT_TUNING):
        self.tuning = tuning

    @timed("extend_walk")
    def extend(self, buffer: RasterBuffer, click: Point,
               options: HighlightOptions = None,
               preferred_axis: Optional[Axis] = None) -> Optional[WalkResult]:
        """
        Trace the stroke near ``click``.

        Args:
            buffer: Source raster
            click: Seed point in raster coordinates
            options: Highlight options (defaults if None)
            preferred_axis: Walk only this axis (set when the vision
                fallback already knows the line's orientation)

        Returns:
            The longer of the walked axes, or None if it is too short to be
            a real line
        """
        t = self.tuning
        options = options or HighlightOptions()
        w, h = buffer.size
        cx = clamp(round_half_up(click.x), 0, w - 1)
        cy = clamp(round_half_up(click.y), 0, h - 1)

        # Own profile: this may run at a point the scanner never looked at
        profile = LocalLuminanceProfile.around(buffer, cx, cy, t.walker_window, t)

        axes = [preferred_axis] if preferred_axis else [Axis.HORIZONTAL, Axis.VERTICAL]
        walks = [self.walk_axis(buffer, profile, axis, cx, cy, options) for axis in axes]
        pick = max(walks, key=lambda walk: walk.length)

        if len(walks) == 2 and abs(walks[0].length - walks[1].length) < t.axis_tie_margin:
            logger.debug(f"extend: ambiguous axis at ({cx}, {cy}), "
                         f"h={walks[0].length} v={walks[1].length}")

        min_len = max(t.min_extent, round_half_up(pick.stroke_width * t.extent_width_ratio))
        if pick.length < min_len:
            logger.debug(f"extend: rejected {pick.segment.axis.value} length "
                         f"{pick.length} < {min_len}")
            return None
        return pick

    def walk_axis(self, buffer: RasterBuffer, profile: LocalLuminanceProfile,
                  axis: Axis, cx: int, cy: int,
                  options: HighlightOptions) -> WalkResult:
        """Walk both directions along one axis from (cx, cy)."""
        t = self.tuning
        w, h = buffer.size
        if axis is Axis.HORIZONTAL:
            fixed, along, bound = cy, cx, h - 1
        else:
            fixed, along, bound = cx, cy, w - 1

        strip = CrossSectionStrip.build(buffer, profile, axis, fixed, t)
        width, offset = strip.cross_width(along)
        if offset:
            # Re-center on the stroke's centerline
            fixed = clamp(fixed + offset, 0, bound)
            strip = CrossSectionStrip.build(buffer, profile, axis, fixed, t)

        base_width = max(1, width)
        thresholds = WalkThresholds.derive(base_width, options, t)
        lo = walk_direction(strip, along, -1, thresholds,
                            options.stop_at_junctions, t.branch_near)
        hi = walk_direction(strip, along, 1, thresholds,
                            options.stop_at_junctions, t.branch_near)

        if axis is Axis.HORIZONTAL:
            segment = Segment(lo, fixed, hi, fixed, axis)
        else:
            segment = Segment(fixed, lo, fixed, hi, axis)
        return WalkResult(
            segment=segment,
            line_width=base_width,
            stroke_width=max(t.min_stroke, round_half_up(base_width * t.stroke_ratio)),
        )
